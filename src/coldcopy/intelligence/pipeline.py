"""Staged prompt pipeline that turns research into a finished cold email."""

from __future__ import annotations

import json
import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, fields
from typing import Any, Generic, TypeVar

from coldcopy.core.datetime_utils import utc_now
from coldcopy.core.interfaces import (
    EmptyResponseError,
    ParseError,
    StageExecutor,
    ValidationError,
)
from coldcopy.core.models import (
    ANGLE_KEYS,
    AngleKey,
    DeliverabilityNote,
    EmailDraft,
    FinalEmail,
    OutreachAngles,
    StageLogEntry,
    TargetProfile,
    TargetSignals,
    Tone,
)

from .deliverability import analyze_deliverability
from .prompts import (
    ANGLE_GENERATION_PROMPT,
    HUMANIZER_PROMPT,
    SIGNAL_EXTRACTION_PROMPT,
    TARGET_SCRAPE_PROMPT,
    TEMPLATE_ASSEMBLY_PROMPT,
    TONE_ADAPTER_PROMPT,
    build_angle_payload,
    build_humanizer_payload,
    build_signal_payload,
    build_template_payload,
    build_tone_payload,
)

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n(?P<body>.*?)\n?```$", re.DOTALL)
_UNKNOWN_MARKERS = frozenset({"", "null", "none", "unknown", "n/a"})


@dataclass(slots=True, frozen=True)
class StageDescriptor(Generic[T]):
    """Static definition of one pipeline stage."""

    name: str
    system_prompt: str
    temperature: float
    parser: Callable[[str, str], T]


def _load_json_object(stage: str, raw: str) -> dict[str, Any]:
    text = raw.strip()
    fenced = _CODE_FENCE.match(text)
    if fenced:
        text = fenced.group("body").strip()
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(stage, "output was not valid JSON") from exc
    if not isinstance(payload, dict):
        raise ParseError(stage, "output was not a JSON object")
    return payload


def _require_text_fields(
    stage: str, payload: dict[str, Any], keys: tuple[str, ...]
) -> dict[str, str]:
    values: dict[str, str] = {}
    for key in keys:
        value = payload.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ParseError(stage, f"missing or empty '{key}'")
        values[key] = value.strip()
    return values


def _profile_value(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, list):
        value = ", ".join(str(item) for item in value if item is not None)
    text = str(value).strip()
    return None if text.lower() in _UNKNOWN_MARKERS else text


def parse_profile(stage: str, raw: str) -> TargetProfile:
    payload = _load_json_object(stage, raw)
    return TargetProfile(
        **{
            item.name: _profile_value(payload.get(item.name))
            for item in fields(TargetProfile)
        }
    )


def parse_signals(stage: str, raw: str) -> TargetSignals:
    payload = _load_json_object(stage, raw)
    return TargetSignals(
        **_require_text_fields(
            stage, payload, ("buying_reason", "credibility_hook", "emotional_hook")
        )
    )


def parse_angles(stage: str, raw: str) -> OutreachAngles:
    payload = _load_json_object(stage, raw)
    extra = sorted(set(payload) - set(ANGLE_KEYS))
    if extra:
        raise ParseError(stage, f"unexpected angle keys: {', '.join(extra)}")
    return OutreachAngles(**_require_text_fields(stage, payload, ANGLE_KEYS))


def parse_draft(stage: str, raw: str) -> EmailDraft:
    del stage
    return EmailDraft(body=raw.strip())


def parse_text(stage: str, raw: str) -> str:
    del stage
    return raw.strip()


TARGET_SCRAPE = StageDescriptor("Target Scrape", TARGET_SCRAPE_PROMPT, 0.15, parse_profile)
SIGNAL_EXTRACTION = StageDescriptor(
    "Signal Extraction", SIGNAL_EXTRACTION_PROMPT, 0.3, parse_signals
)
ANGLE_GENERATION = StageDescriptor(
    "Angle Generation", ANGLE_GENERATION_PROMPT, 0.45, parse_angles
)
TEMPLATE_ASSEMBLY = StageDescriptor(
    "Template Assembly", TEMPLATE_ASSEMBLY_PROMPT, 0.42, parse_draft
)
TONE_ADAPTER = StageDescriptor("Tone Adapter", TONE_ADAPTER_PROMPT, 0.5, parse_draft)
HUMANIZER = StageDescriptor("Humanizer", HUMANIZER_PROMPT, 0.55, parse_text)


class GenerationPipeline:
    """Run the six generation stages against a pluggable executor.

    Each instance keeps the stage log of a single request; create a new one
    per request so concurrent requests never share log state.
    """

    def __init__(
        self,
        executor: StageExecutor,
        *,
        on_stage_log: Callable[[StageLogEntry], None] | None = None,
    ) -> None:
        self._executor = executor
        self._on_stage_log = on_stage_log
        self.stage_log: list[StageLogEntry] = []

    async def run_stage(self, stage: StageDescriptor[T], user_prompt: str) -> T:
        """Execute ``stage`` once, parse its output and record a log entry."""
        started = time.perf_counter()
        raw = await self._executor.execute(
            stage=stage.name,
            system_prompt=stage.system_prompt,
            user_prompt=user_prompt,
            temperature=stage.temperature,
        )
        if raw is None or not raw.strip():
            raise EmptyResponseError(stage.name)

        output = stage.parser(stage.name, raw)
        entry = StageLogEntry(stage=stage.name, output=raw, timestamp=utc_now())
        self.record(entry)
        LOGGER.info(
            "Stage %s completed in %.2fs", stage.name, time.perf_counter() - started
        )
        LOGGER.debug("Stage %s output:\n%s", stage.name, raw)
        return output

    def record(self, entry: StageLogEntry) -> None:
        """Append ``entry`` to this request's log and notify the hook."""
        self.stage_log.append(entry)
        if self._on_stage_log is not None:
            self._on_stage_log(entry)

    async def scrape_target(self, target_text: str) -> TargetProfile:
        return await self.run_stage(TARGET_SCRAPE, target_text)

    async def extract_signals(self, profile: TargetProfile) -> TargetSignals:
        return await self.run_stage(SIGNAL_EXTRACTION, build_signal_payload(profile))

    async def generate_angles(self, signals: TargetSignals) -> OutreachAngles:
        return await self.run_stage(ANGLE_GENERATION, build_angle_payload(signals))

    async def build_template(
        self,
        offer: str,
        angle_text: str,
        profile: TargetProfile,
        signals: TargetSignals,
        angle_key: AngleKey,
    ) -> EmailDraft:
        payload = build_template_payload(offer, angle_text, angle_key, profile, signals)
        return await self.run_stage(TEMPLATE_ASSEMBLY, payload)

    async def adapt_tone(self, draft: EmailDraft, tone: Tone) -> EmailDraft:
        return await self.run_stage(TONE_ADAPTER, build_tone_payload(draft, tone))

    async def humanize_email(
        self,
        draft: EmailDraft,
        angle_key: AngleKey,
        deliverability: DeliverabilityNote,
    ) -> FinalEmail:
        body = await self.run_stage(HUMANIZER, build_humanizer_payload(draft))
        return FinalEmail(
            body=body, selected_angle=angle_key, deliverability=deliverability
        )

    async def craft_email(
        self,
        offer: str,
        tone: Tone,
        profile: TargetProfile,
        signals: TargetSignals,
        angles: OutreachAngles,
        angle_key: AngleKey,
    ) -> FinalEmail:
        """Draft, retone and humanize an email for the chosen angle.

        Deliverability is computed once from ``signals`` before drafting and
        attached unchanged to the returned email.
        """
        if angle_key not in ANGLE_KEYS:
            raise ValidationError(
                f"Unknown angle '{angle_key}'",
                field_errors={"selectedAngle": [f"Must be one of {', '.join(ANGLE_KEYS)}"]},
            )
        deliverability = analyze_deliverability(signals)
        template = await self.build_template(
            offer, angles.get(angle_key), profile, signals, angle_key
        )
        toned = await self.adapt_tone(template, tone)
        return await self.humanize_email(toned, angle_key, deliverability)


__all__ = [
    "ANGLE_GENERATION",
    "GenerationPipeline",
    "HUMANIZER",
    "SIGNAL_EXTRACTION",
    "StageDescriptor",
    "TARGET_SCRAPE",
    "TEMPLATE_ASSEMBLY",
    "TONE_ADAPTER",
    "parse_angles",
    "parse_profile",
    "parse_signals",
]
