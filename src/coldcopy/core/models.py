"""Core domain models used across the application."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Literal

from .datetime_utils import serialize_datetime, utc_now

AngleKey = Literal["value_angle", "curiosity_angle", "social_angle"]
Tone = Literal["friendly", "professional", "aggressive", "minimalist"]
RiskLevel = Literal["low", "medium", "high"]
SuggestionType = Literal["person", "concept", "metric"]

ANGLE_KEYS: tuple[AngleKey, ...] = ("value_angle", "curiosity_angle", "social_angle")
TONES: tuple[Tone, ...] = ("friendly", "professional", "aggressive", "minimalist")
RISK_LEVELS: tuple[RiskLevel, ...] = ("low", "medium", "high")
DEFAULT_ANGLE: AngleKey = "value_angle"


# pylint: disable=too-many-instance-attributes
@dataclass(slots=True, frozen=True)
class TargetProfile:
    """Structured facts about an outreach target; ``None`` marks unknown."""

    industry: str | None = None
    role: str | None = None
    company: str | None = None
    recent_achievements: str | None = None
    notable_products_or_services: str | None = None
    public_pain_points: str | None = None
    writing_tone: str | None = None
    values_or_preferences: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {item.name: getattr(self, item.name) for item in fields(self)}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TargetProfile:
        return cls(**{item.name: data.get(item.name) for item in fields(cls)})


@dataclass(slots=True, frozen=True)
class TargetSignals:
    """Persuasion levers derived from a profile."""

    buying_reason: str
    credibility_hook: str
    emotional_hook: str

    def to_dict(self) -> dict[str, str]:
        return {
            "buying_reason": self.buying_reason,
            "credibility_hook": self.credibility_hook,
            "emotional_hook": self.emotional_hook,
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TargetSignals:
        return cls(
            buying_reason=data["buying_reason"],
            credibility_hook=data["credibility_hook"],
            emotional_hook=data["emotional_hook"],
        )

    def combined_text(self) -> str:
        """Return the three signals joined for pattern matching."""
        return f"{self.buying_reason} {self.credibility_hook} {self.emotional_hook}"


@dataclass(slots=True, frozen=True)
class OutreachAngles:
    """Three candidate framings for the outreach email."""

    value_angle: str
    curiosity_angle: str
    social_angle: str

    def get(self, key: str) -> str:
        """Return the angle text for ``key``."""
        if key not in ANGLE_KEYS:
            raise KeyError(key)
        return getattr(self, key)

    def to_dict(self) -> dict[str, str]:
        return {key: getattr(self, key) for key in ANGLE_KEYS}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> OutreachAngles:
        return cls(
            value_angle=data["value_angle"],
            curiosity_angle=data["curiosity_angle"],
            social_angle=data["social_angle"],
        )


@dataclass(slots=True, frozen=True)
class DeliverabilityNote:
    """Heuristic inbox-placement risk for generated content."""

    risk_level: RiskLevel
    cues: str
    recommends: str

    def to_dict(self) -> dict[str, str]:
        return {
            "riskLevel": self.risk_level,
            "cues": self.cues,
            "recommends": self.recommends,
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> DeliverabilityNote:
        return cls(
            risk_level=data["riskLevel"],
            cues=data["cues"],
            recommends=data["recommends"],
        )


@dataclass(slots=True, frozen=True)
class EmailDraft:
    """Intermediate email text between drafting stages."""

    body: str


@dataclass(slots=True, frozen=True)
class FinalEmail:
    """Email returned to the caller after the humanizer stage."""

    body: str
    selected_angle: AngleKey
    deliverability: DeliverabilityNote

    def to_dict(self) -> dict[str, Any]:
        return {
            "body": self.body,
            "meta": {
                "selected_angle": self.selected_angle,
                "deliverability": self.deliverability.to_dict(),
            },
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FinalEmail:
        meta = data["meta"]
        return cls(
            body=data["body"],
            selected_angle=meta["selected_angle"],
            deliverability=DeliverabilityNote.from_mapping(meta["deliverability"]),
        )


@dataclass(slots=True, frozen=True)
class StageLogEntry:
    """Audit record for one pipeline step."""

    stage: str
    output: str
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, str]:
        return {
            "stage": self.stage,
            "output": self.output,
            "timestamp": serialize_datetime(self.timestamp),
        }


@dataclass(slots=True, frozen=True)
class ResearchSnapshot:
    """Research produced (or reused) for one generation request."""

    profile: TargetProfile
    signals: TargetSignals
    angles: OutreachAngles
    deliverability: DeliverabilityNote

    def to_dict(self) -> dict[str, Any]:
        return {
            "profile": self.profile.to_dict(),
            "signals": self.signals.to_dict(),
            "angles": self.angles.to_dict(),
            "deliverability": self.deliverability.to_dict(),
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ResearchSnapshot:
        return cls(
            profile=TargetProfile.from_mapping(data["profile"]),
            signals=TargetSignals.from_mapping(data["signals"]),
            angles=OutreachAngles.from_mapping(data["angles"]),
            deliverability=DeliverabilityNote.from_mapping(data["deliverability"]),
        )


@dataclass(slots=True, frozen=True)
class GenerationRequest:
    """Input for a fresh or cache-assisted generation."""

    offer: str
    tone: Tone
    target_text: str | None = None
    selected_angle: AngleKey | None = None
    cached_profile: TargetProfile | None = None
    cached_signals: TargetSignals | None = None
    cached_angles: OutreachAngles | None = None

    @property
    def fully_cached(self) -> bool:
        return (
            self.cached_profile is not None
            and self.cached_signals is not None
            and self.cached_angles is not None
        )


@dataclass(slots=True, frozen=True)
class GenerationResult:
    """Research snapshot, final email and stage log for one request."""

    research: ResearchSnapshot
    email: FinalEmail
    stage_log: tuple[StageLogEntry, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "research": self.research.to_dict(),
            "email": self.email.to_dict(),
            "stageLog": [entry.to_dict() for entry in self.stage_log],
        }


@dataclass(slots=True)
class BatchResult:
    """Outcome of one batch entry; exactly one of ``result``/``error`` is set."""

    index: int
    status: Literal["pending", "ok", "error"] = "pending"
    result: GenerationResult | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def succeed(self, result: GenerationResult) -> None:
        self.status = "ok"
        self.result = result
        self.error = None

    def fail(self, message: str) -> None:
        self.status = "error"
        self.result = None
        self.error = message

    def to_dict(self) -> dict[str, Any]:
        if self.result is not None:
            return self.result.to_dict()
        return {"error": self.error or "Unknown error"}


@dataclass(slots=True, frozen=True)
class SearchSuggestion:
    """A lead or talking point offered to the user while researching."""

    type: SuggestionType
    detail: str
    name: str | None = None
    role: str | None = None
    source: str | None = None
    metrics: tuple[str, ...] | None = None
    angles: tuple[str, ...] | None = None
    context: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.type, "detail": self.detail}
        for key in ("name", "role", "source", "context"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        if self.metrics is not None:
            payload["metrics"] = list(self.metrics)
        if self.angles is not None:
            payload["angles"] = list(self.angles)
        return payload


@dataclass(slots=True, frozen=True)
class SuggestionResponse:
    """Suggestions returned by the lookup, with provenance."""

    suggestions: tuple[SearchSuggestion, ...]
    timestamp: datetime
    fallback: bool
    source: str | None = None
    query: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "suggestions": [item.to_dict() for item in self.suggestions],
            "timestamp": serialize_datetime(self.timestamp),
            "fallback": self.fallback,
        }
        if self.source is not None:
            payload["source"] = self.source
        if self.query is not None:
            payload["query"] = self.query
        return payload


__all__ = [
    "ANGLE_KEYS",
    "AngleKey",
    "BatchResult",
    "DEFAULT_ANGLE",
    "DeliverabilityNote",
    "EmailDraft",
    "FinalEmail",
    "GenerationRequest",
    "GenerationResult",
    "OutreachAngles",
    "RISK_LEVELS",
    "ResearchSnapshot",
    "RiskLevel",
    "SearchSuggestion",
    "StageLogEntry",
    "SuggestionResponse",
    "SuggestionType",
    "TONES",
    "TargetProfile",
    "TargetSignals",
    "Tone",
]
