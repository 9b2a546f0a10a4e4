"""Request orchestration: cache reuse, angle selection and response assembly."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from coldcopy.core.datetime_utils import utc_now
from coldcopy.core.interfaces import StageExecutor, ValidationError
from coldcopy.core.models import (
    ANGLE_KEYS,
    DEFAULT_ANGLE,
    TONES,
    AngleKey,
    GenerationRequest,
    GenerationResult,
    ResearchSnapshot,
    StageLogEntry,
)

from .pipeline import GenerationPipeline

LOGGER = logging.getLogger(__name__)

DELIVERABILITY_STAGE = "Deliverability"


def next_angle(current: AngleKey | None) -> AngleKey:
    """Return the angle after ``current`` in the value, curiosity, social cycle."""
    if current is None:
        return DEFAULT_ANGLE
    index = ANGLE_KEYS.index(current)
    return ANGLE_KEYS[(index + 1) % len(ANGLE_KEYS)]


class GenerationOrchestrator:
    """Decide which stages to run for a request and assemble the response."""

    def __init__(
        self,
        executor: StageExecutor,
        *,
        pipeline_factory: Callable[[StageExecutor], GenerationPipeline] = GenerationPipeline,
    ) -> None:
        self._executor = executor
        self._pipeline_factory = pipeline_factory

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Run the stages ``request`` still needs and return the result.

        Cached profile, signals and angles are each reused when present; only
        the missing ones are produced. Without a complete cached triple the
        request must carry target text.
        """
        _validate(request)
        started = time.perf_counter()
        pipeline = self._pipeline_factory(self._executor)
        LOGGER.info(
            "Generating email (tone=%s, angle=%s, cached=%s)",
            request.tone,
            request.selected_angle or DEFAULT_ANGLE,
            request.fully_cached,
        )

        profile = request.cached_profile
        if profile is None:
            # _validate guarantees target text whenever the profile is missing.
            profile = await pipeline.scrape_target(request.target_text or "")
        signals = request.cached_signals
        if signals is None:
            signals = await pipeline.extract_signals(profile)
        angles = request.cached_angles
        if angles is None:
            angles = await pipeline.generate_angles(signals)

        angle_key = request.selected_angle or DEFAULT_ANGLE
        email = await pipeline.craft_email(
            request.offer, request.tone, profile, signals, angles, angle_key
        )

        deliverability = email.deliverability
        pipeline.record(
            StageLogEntry(
                stage=DELIVERABILITY_STAGE,
                output=f"{deliverability.risk_level} risk - {deliverability.cues}",
                timestamp=utc_now(),
            )
        )
        LOGGER.info(
            "Generated email with %s in %.2fs (%d stage(s) logged)",
            angle_key,
            time.perf_counter() - started,
            len(pipeline.stage_log),
        )

        return GenerationResult(
            research=ResearchSnapshot(
                profile=profile,
                signals=signals,
                angles=angles,
                deliverability=deliverability,
            ),
            email=email,
            stage_log=tuple(pipeline.stage_log),
        )


def _validate(request: GenerationRequest) -> None:
    errors: dict[str, list[str]] = {}
    if not request.offer or not request.offer.strip():
        errors["offer"] = ["Offer is required."]
    if request.tone not in TONES:
        errors["tone"] = [f"Must be one of {', '.join(TONES)}"]
    has_target = bool(request.target_text and request.target_text.strip())
    if not request.fully_cached and not has_target:
        errors["targetText"] = [
            "Target text is required when no cached data is provided."
        ]
    if request.selected_angle is not None and request.selected_angle not in ANGLE_KEYS:
        errors["selectedAngle"] = [f"Must be one of {', '.join(ANGLE_KEYS)}"]
    if errors:
        first = next(iter(errors.values()))[0]
        raise ValidationError(first, field_errors=errors)


__all__ = ["DELIVERABILITY_STAGE", "GenerationOrchestrator", "next_angle"]
