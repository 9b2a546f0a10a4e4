"""Heuristic deliverability scoring for extracted signals."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from coldcopy.core.models import DeliverabilityNote, RiskLevel, TargetSignals


@dataclass(slots=True, frozen=True)
class DeliverabilityRule:
    """Pattern paired with the note returned when it matches."""

    pattern: re.Pattern[str]
    risk_level: RiskLevel
    cues: str
    recommends: str

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None

    def to_note(self) -> DeliverabilityNote:
        return DeliverabilityNote(
            risk_level=self.risk_level, cues=self.cues, recommends=self.recommends
        )


# Order matters: the first matching rule wins, so high-risk language must
# precede the broader inbox/compliance rule. "filters" in the medium rule can
# never fire because "filter" already matches in the high rule.
DELIVERABILITY_RULES: tuple[DeliverabilityRule, ...] = (
    DeliverabilityRule(
        pattern=re.compile(r"spam|filter|blocked|suspension|ai filters", re.IGNORECASE),
        risk_level="high",
        cues="Mentions spam or blocked inbox signals.",
        recommends=(
            "Trim claims, avoid trigger words, and mention a trustworthy sender name."
        ),
    ),
    DeliverabilityRule(
        pattern=re.compile(
            r"deliverability|inbox|gmail|compliance|filters", re.IGNORECASE
        ),
        risk_level="medium",
        cues="Talks about inbox health or compliance.",
        recommends=(
            "Lean into compliance proof and keep sentences concise to avoid AI "
            "flagging."
        ),
    ),
)

DEFAULT_NOTE = DeliverabilityNote(
    risk_level="low",
    cues="No obvious deliverability flags detected.",
    recommends=(
        "Stay consistent, mention clean sender reputation, and monitor Gmail "
        "responses."
    ),
)


def analyze_deliverability(
    signals: TargetSignals,
    rules: Sequence[DeliverabilityRule] = DELIVERABILITY_RULES,
) -> DeliverabilityNote:
    """Return the note of the first rule matching the combined signal text."""
    text = signals.combined_text()
    for rule in rules:
        if rule.matches(text):
            return rule.to_note()
    return DEFAULT_NOTE


__all__ = [
    "DEFAULT_NOTE",
    "DELIVERABILITY_RULES",
    "DeliverabilityRule",
    "analyze_deliverability",
]
