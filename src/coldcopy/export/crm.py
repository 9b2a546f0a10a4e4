"""CSV export of generated emails for CRM import."""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from dataclasses import dataclass

from coldcopy.core.models import FinalEmail, ResearchSnapshot, Tone

CRM_HEADERS: tuple[str, ...] = (
    "Offer",
    "Company",
    "Role",
    "Tone",
    "Angle",
    "Deliverability Risk",
    "Deliverability Cues",
    "Deliverability Recommendation",
    "Email Body",
)

UNKNOWN_VALUE = "Unknown"


@dataclass(slots=True, frozen=True)
class CrmEntry:
    """One generated email plus the research it was built from."""

    offer: str
    tone: Tone
    research: ResearchSnapshot
    email: FinalEmail


def _angle_label(angle_key: str) -> str:
    return angle_key.replace("_", " ", 1)


def _row(entry: CrmEntry) -> list[str]:
    profile = entry.research.profile
    deliverability = entry.research.deliverability
    return [
        entry.offer,
        profile.company or UNKNOWN_VALUE,
        profile.role or UNKNOWN_VALUE,
        entry.tone,
        _angle_label(entry.email.selected_angle),
        deliverability.risk_level,
        deliverability.cues,
        deliverability.recommends,
        entry.email.body,
    ]


def build_crm_csv(entries: Iterable[CrmEntry]) -> str:
    """Render ``entries`` as CSV with every field quoted.

    Rows are separated by ``\\n`` and the output carries no trailing newline.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CRM_HEADERS)
    for entry in entries:
        writer.writerow(_row(entry))
    return buffer.getvalue().removesuffix("\n")


__all__ = ["CRM_HEADERS", "CrmEntry", "UNKNOWN_VALUE", "build_crm_csv"]
