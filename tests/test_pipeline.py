"""Tests for the staged generation pipeline."""

from __future__ import annotations

import json

import pytest

from conftest import SAMPLE_PROFILE, ScriptedExecutor
from coldcopy.core.interfaces import EmptyResponseError, ParseError, ValidationError
from coldcopy.core.models import OutreachAngles, StageLogEntry, TargetProfile, TargetSignals
from coldcopy.intelligence.pipeline import (
    GenerationPipeline,
    parse_angles,
    parse_profile,
)


@pytest.mark.asyncio
async def test_pipeline_walks_every_stage_in_order(executor: ScriptedExecutor) -> None:
    pipeline = GenerationPipeline(executor)

    profile = await pipeline.scrape_target("target copy")
    assert profile.industry == "SaaS"
    signals = await pipeline.extract_signals(profile)
    assert "deliverability" in signals.buying_reason
    angles = await pipeline.generate_angles(signals)
    assert "Revenue Ops" in angles.social_angle

    email = await pipeline.craft_email(
        "Compliance automation", "friendly", profile, signals, angles, "curiosity_angle"
    )

    assert email.body == "humanized final email"
    assert email.selected_angle == "curiosity_angle"
    assert email.deliverability.risk_level == "medium"
    assert executor.stages == [
        "Target Scrape",
        "Signal Extraction",
        "Angle Generation",
        "Template Assembly",
        "Tone Adapter",
        "Humanizer",
    ]
    assert [entry.stage for entry in pipeline.stage_log] == executor.stages


@pytest.mark.asyncio
async def test_stage_temperatures_follow_descriptors(executor: ScriptedExecutor) -> None:
    pipeline = GenerationPipeline(executor)
    profile = await pipeline.scrape_target("target copy")
    signals = await pipeline.extract_signals(profile)
    angles = await pipeline.generate_angles(signals)
    await pipeline.craft_email("Offer text", "minimalist", profile, signals, angles, "value_angle")

    assert [call.temperature for call in executor.calls] == [0.15, 0.3, 0.45, 0.42, 0.5, 0.55]
    assert executor.calls[0].temperature < executor.calls[-1].temperature
    assert all(call.system_prompt for call in executor.calls)


@pytest.mark.asyncio
async def test_craft_email_passes_angle_offer_and_tone_into_prompts(
    executor: ScriptedExecutor,
    profile: TargetProfile,
    signals: TargetSignals,
    angles: OutreachAngles,
) -> None:
    pipeline = GenerationPipeline(executor)

    await pipeline.craft_email(
        "Compliance automation", "aggressive", profile, signals, angles, "social_angle"
    )

    template_call, tone_call, humanizer_call = executor.calls
    assert "Offer: Compliance automation" in template_call.user_prompt
    assert f"Angle (social_angle): {angles.social_angle}" in template_call.user_prompt
    assert '"company": "SignalLoop"' in template_call.user_prompt
    assert tone_call.user_prompt.startswith("Tone: aggressive\nEmail:\nline1 reason")
    assert humanizer_call.user_prompt.startswith("Email:\nline1 reason toned")


@pytest.mark.asyncio
async def test_deliverability_is_independent_of_draft_text(
    profile: TargetProfile, signals: TargetSignals, angles: OutreachAngles
) -> None:
    executor = ScriptedExecutor()
    executor.outputs["Humanizer"] = "Avoid the spam folder, blocked senders beware."
    pipeline = GenerationPipeline(executor)

    email = await pipeline.craft_email("Offer text", "friendly", profile, signals, angles, "value_angle")

    assert email.deliverability.risk_level == "medium"


@pytest.mark.asyncio
async def test_stage_log_records_raw_output_and_hook(executor: ScriptedExecutor) -> None:
    seen: list[StageLogEntry] = []
    pipeline = GenerationPipeline(executor, on_stage_log=seen.append)

    await pipeline.scrape_target("target copy")

    assert len(seen) == 1
    entry = seen[0]
    assert entry.stage == "Target Scrape"
    assert json.loads(entry.output)["company"] == "SignalLoop"
    assert entry.timestamp.tzinfo is not None
    assert pipeline.stage_log == seen


@pytest.mark.asyncio
async def test_malformed_structured_output_raises_parse_error() -> None:
    executor = ScriptedExecutor()
    executor.outputs["Target Scrape"] = "Sure! Here is the profile you asked for."
    pipeline = GenerationPipeline(executor)

    with pytest.raises(ParseError) as excinfo:
        await pipeline.scrape_target("target copy")

    assert excinfo.value.stage == "Target Scrape"
    assert pipeline.stage_log == []


@pytest.mark.asyncio
async def test_empty_output_raises_empty_response_error(profile: TargetProfile) -> None:
    executor = ScriptedExecutor()
    executor.outputs["Signal Extraction"] = "   "
    pipeline = GenerationPipeline(executor)

    with pytest.raises(EmptyResponseError):
        await pipeline.extract_signals(profile)


@pytest.mark.asyncio
async def test_missing_signal_field_is_not_defaulted(profile: TargetProfile) -> None:
    executor = ScriptedExecutor()
    executor.outputs["Signal Extraction"] = json.dumps(
        {"buying_reason": "Needs help", "credibility_hook": ""}
    )
    pipeline = GenerationPipeline(executor)

    with pytest.raises(ParseError, match="credibility_hook"):
        await pipeline.extract_signals(profile)


@pytest.mark.asyncio
async def test_unknown_angle_key_is_rejected(
    executor: ScriptedExecutor,
    profile: TargetProfile,
    signals: TargetSignals,
    angles: OutreachAngles,
) -> None:
    pipeline = GenerationPipeline(executor)

    with pytest.raises(ValidationError):
        await pipeline.craft_email("Offer text", "friendly", profile, signals, angles, "urgent_angle")  # type: ignore[arg-type]

    assert executor.calls == []


def test_parse_profile_accepts_code_fence_and_unknown_markers() -> None:
    raw = "```json\n" + json.dumps({**SAMPLE_PROFILE, "recent_achievements": "unknown", "role": None}) + "\n```"

    profile = parse_profile("Target Scrape", raw)

    assert profile.company == "SignalLoop"
    assert profile.recent_achievements is None
    assert profile.role is None


def test_parse_profile_rejects_json_array() -> None:
    with pytest.raises(ParseError):
        parse_profile("Target Scrape", "[1, 2, 3]")


def test_parse_angles_requires_exactly_three_keys() -> None:
    payload = {
        "value_angle": "a",
        "curiosity_angle": "b",
        "social_angle": "c",
        "bonus_angle": "d",
    }

    with pytest.raises(ParseError, match="bonus_angle"):
        parse_angles("Angle Generation", json.dumps(payload))
