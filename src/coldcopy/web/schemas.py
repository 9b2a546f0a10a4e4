"""Request bodies accepted by the HTTP API."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from coldcopy.core.models import (
    DeliverabilityNote,
    FinalEmail,
    GenerationRequest,
    OutreachAngles,
    ResearchSnapshot,
    TargetProfile,
    TargetSignals,
)
from coldcopy.export import CrmEntry

ToneField = Literal["friendly", "professional", "aggressive", "minimalist"]
AngleField = Literal["value_angle", "curiosity_angle", "social_angle"]
RiskField = Literal["low", "medium", "high"]
# Free-text inputs are trimmed; echoed content such as email bodies is not.
StrippedText = Annotated[str, StringConstraints(strip_whitespace=True)]


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ProfileBody(_ApiModel):
    industry: str | None = None
    role: str | None = None
    company: str | None = None
    recent_achievements: str | None = None
    notable_products_or_services: str | None = None
    public_pain_points: str | None = None
    writing_tone: str | None = None
    values_or_preferences: str | None = None

    def to_model(self) -> TargetProfile:
        return TargetProfile.from_mapping(self.model_dump())


class SignalsBody(_ApiModel):
    buying_reason: StrippedText = Field(min_length=1)
    credibility_hook: StrippedText = Field(min_length=1)
    emotional_hook: StrippedText = Field(min_length=1)

    def to_model(self) -> TargetSignals:
        return TargetSignals.from_mapping(self.model_dump())


class AnglesBody(_ApiModel):
    value_angle: StrippedText = Field(min_length=1)
    curiosity_angle: StrippedText = Field(min_length=1)
    social_angle: StrippedText = Field(min_length=1)

    def to_model(self) -> OutreachAngles:
        return OutreachAngles.from_mapping(self.model_dump())


class DeliverabilityBody(_ApiModel):
    risk_level: RiskField = Field(alias="riskLevel")
    cues: str
    recommends: str

    def to_model(self) -> DeliverabilityNote:
        return DeliverabilityNote(
            risk_level=self.risk_level, cues=self.cues, recommends=self.recommends
        )


class GenerateBody(_ApiModel):
    """Body of ``POST /api/generate``."""

    offer: StrippedText = Field(min_length=5)
    tone: ToneField
    target_text: StrippedText | None = Field(
        default=None, alias="targetText", min_length=5
    )
    selected_angle: AngleField | None = Field(default=None, alias="selectedAngle")
    cached_profile: ProfileBody | None = Field(default=None, alias="cachedProfile")
    cached_signals: SignalsBody | None = Field(default=None, alias="cachedSignals")
    cached_angles: AnglesBody | None = Field(default=None, alias="cachedAngles")

    def to_request(self) -> GenerationRequest:
        return GenerationRequest(
            offer=self.offer,
            tone=self.tone,
            target_text=self.target_text,
            selected_angle=self.selected_angle,
            cached_profile=self.cached_profile.to_model() if self.cached_profile else None,
            cached_signals=self.cached_signals.to_model() if self.cached_signals else None,
            cached_angles=self.cached_angles.to_model() if self.cached_angles else None,
        )


class BatchEntryBody(_ApiModel):
    offer: StrippedText = Field(min_length=5)
    target_text: StrippedText = Field(alias="targetText", min_length=5)
    tone: ToneField
    selected_angle: AngleField | None = Field(default=None, alias="selectedAngle")

    def to_request(self) -> GenerationRequest:
        return GenerationRequest(
            offer=self.offer,
            tone=self.tone,
            target_text=self.target_text,
            selected_angle=self.selected_angle,
        )


class BatchBody(_ApiModel):
    """Body of ``POST /api/batch``."""

    entries: list[BatchEntryBody] = Field(min_length=1)


class ResearchBody(_ApiModel):
    profile: ProfileBody
    signals: SignalsBody
    angles: AnglesBody
    deliverability: DeliverabilityBody

    def to_model(self) -> ResearchSnapshot:
        return ResearchSnapshot(
            profile=self.profile.to_model(),
            signals=self.signals.to_model(),
            angles=self.angles.to_model(),
            deliverability=self.deliverability.to_model(),
        )


class EmailMetaBody(_ApiModel):
    selected_angle: AngleField
    deliverability: DeliverabilityBody


class EmailBody(_ApiModel):
    body: str
    meta: EmailMetaBody

    def to_model(self) -> FinalEmail:
        return FinalEmail(
            body=self.body,
            selected_angle=self.meta.selected_angle,
            deliverability=self.meta.deliverability.to_model(),
        )


class CrmEntryBody(_ApiModel):
    offer: str = Field(min_length=5)
    tone: ToneField
    research: ResearchBody
    email: EmailBody

    def to_entry(self) -> CrmEntry:
        return CrmEntry(
            offer=self.offer,
            tone=self.tone,
            research=self.research.to_model(),
            email=self.email.to_model(),
        )


class CrmBody(_ApiModel):
    """Body of ``POST /api/crm``."""

    entries: list[CrmEntryBody] = Field(min_length=1)


class SuggestionBody(_ApiModel):
    """Body of ``POST /api/suggestions``."""

    query: StrippedText = Field(min_length=3)
    company: StrippedText = Field(min_length=2)
    context: StrippedText = Field(min_length=5)
    keywords: list[str] = Field(default_factory=list)


__all__ = [
    "BatchBody",
    "BatchEntryBody",
    "CrmBody",
    "CrmEntryBody",
    "GenerateBody",
    "SuggestionBody",
]
