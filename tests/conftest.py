"""Shared stubs and sample research for the test suite."""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field

import pytest

from coldcopy.core.models import OutreachAngles, TargetProfile, TargetSignals

SAMPLE_PROFILE = {
    "industry": "SaaS",
    "role": "Revenue Ops",
    "company": "SignalLoop",
    "recent_achievements": "Launched compliance automation",
    "notable_products_or_services": "deliverability monitoring",
    "public_pain_points": "Manual inbox reporting",
    "writing_tone": "concise",
    "values_or_preferences": "privacy-first",
}

SAMPLE_SIGNALS = {
    "buying_reason": "Need clean deliverability signals before the next launch.",
    "credibility_hook": "SignalLoop secures inbox health reports for regulators.",
    "emotional_hook": "Ops teams feel pressure from manual dashboards.",
}

SAMPLE_ANGLES = {
    "value_angle": "Automate the weekly compliance report with a trusted data layer.",
    "curiosity_angle": "What if inbox health could update the board without bugging ops?",
    "social_angle": "Revenue Ops peers finally hand off reporting to compliance-first automation.",
}

STAGE_OUTPUTS = {
    "Target Scrape": json.dumps(SAMPLE_PROFILE),
    "Signal Extraction": json.dumps(SAMPLE_SIGNALS),
    "Angle Generation": json.dumps(SAMPLE_ANGLES),
    "Template Assembly": "line1 reason\nline2 value\nline3 proof\nline4 cta",
    "Tone Adapter": "line1 reason toned\nline2 value toned\nline3 proof toned\nline4 cta toned",
    "Humanizer": "humanized final email",
}

Responder = Callable[[str], str]


@dataclass
class StageCall:
    stage: str
    system_prompt: str
    user_prompt: str
    temperature: float


@dataclass
class ScriptedExecutor:
    """Stage executor stub answering from a per-stage script."""

    outputs: dict[str, str | Responder | Exception] = field(
        default_factory=lambda: dict(STAGE_OUTPUTS)
    )
    calls: list[StageCall] = field(default_factory=list)
    provider_id: str = "scripted"

    async def execute(
        self,
        *,
        stage: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
    ) -> str:
        self.calls.append(StageCall(stage, system_prompt, user_prompt, temperature))
        output = self.outputs[stage]
        if isinstance(output, Exception):
            raise output
        if callable(output):
            return output(user_prompt)
        return output

    @property
    def stages(self) -> list[str]:
        return [call.stage for call in self.calls]


@pytest.fixture
def executor() -> ScriptedExecutor:
    return ScriptedExecutor()


@pytest.fixture
def profile() -> TargetProfile:
    return TargetProfile.from_mapping(SAMPLE_PROFILE)


@pytest.fixture
def signals() -> TargetSignals:
    return TargetSignals.from_mapping(SAMPLE_SIGNALS)


@pytest.fixture
def angles() -> OutreachAngles:
    return OutreachAngles.from_mapping(SAMPLE_ANGLES)
