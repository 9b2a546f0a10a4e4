"""Export helpers for generated outreach."""

from .crm import CRM_HEADERS, CrmEntry, build_crm_csv

__all__ = ["CRM_HEADERS", "CrmEntry", "build_crm_csv"]
