"""Prompt templates for each generation stage."""

from __future__ import annotations

import json
from textwrap import dedent

from coldcopy.core.models import EmailDraft, TargetProfile, TargetSignals

TARGET_SCRAPE_PROMPT = dedent(
    """
    You extract factual business and personal details about a target from the
    given text. Respond with clean JSON only containing these fields (set to
    null if unknown):

    industry
    role
    company
    recent_achievements
    notable_products_or_services
    public_pain_points
    writing_tone
    values_or_preferences

    Do not embellish or guess. No prose, JSON only.
    """
).strip()

SIGNAL_EXTRACTION_PROMPT = dedent(
    """
    Given this JSON about a target, extract three signals that matter for cold
    outreach. Keep them short, use at most one sentence per field, avoid
    buzzwords, and tie each field directly to the target context. Return this
    object:

    {
      "buying_reason": "...",
      "credibility_hook": "...",
      "emotional_hook": "..."
    }
    """
).strip()

ANGLE_GENERATION_PROMPT = dedent(
    """
    Create exactly three outreach angles referencing the provided signals. Each
    must be one short line with no corporate tone, and must reference at least
    one signal. Return this object:

    {
      "value_angle": "...",
      "curiosity_angle": "...",
      "social_angle": "..."
    }
    """
).strip()

TEMPLATE_ASSEMBLY_PROMPT = dedent(
    """
    Compose a cold outreach email with 4 lines:
    line 1 reason
    line 2 value
    line 3 proof
    line 4 call to action.
    Use a mix of the chosen angle, the extracted signals, and what the sender
    sells. Do not exceed ninety words, do not open with 'hope you are well', and
    write plainly like a founder sending a quick note. Return the email as plain
    text.
    """
).strip()

TONE_ADAPTER_PROMPT = dedent(
    """
    Rewrite the following email in the requested tone (friendly | professional
    | aggressive | minimalist). Preserve meaning and structure, keep the word
    count similar, and do not add new ideas. Make sure the chosen tone is
    clearly felt.
    """
).strip()

HUMANIZER_PROMPT = dedent(
    """
    Rewrite this email to feel human: add subtle imperfections, vary sentence
    length, and remove repetitive patterns or obvious AI phrases. Keep it clear
    and direct, like a busy person writing quickly. Return the final email as
    plain text.
    """
).strip()


def _to_json(payload: dict[str, object]) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def build_signal_payload(profile: TargetProfile) -> str:
    """Serialise a profile for the signal-extraction stage."""
    return f"Target profile:\n{_to_json(profile.to_dict())}"


def build_angle_payload(signals: TargetSignals) -> str:
    """Serialise signals for the angle-generation stage."""
    return f"Signals:\n{_to_json(signals.to_dict())}"


def build_template_payload(
    offer: str,
    angle_text: str,
    angle_key: str,
    profile: TargetProfile,
    signals: TargetSignals,
) -> str:
    """Combine offer, chosen angle and research for the assembly stage."""
    return (
        f"Offer: {offer}\n"
        f"Angle ({angle_key}): {angle_text}\n"
        f"Profile:\n{_to_json(profile.to_dict())}\n"
        f"Signals:\n{_to_json(signals.to_dict())}"
    )


def build_tone_payload(draft: EmailDraft, tone: str) -> str:
    """Ask for ``draft`` rewritten in ``tone``."""
    return f"Tone: {tone}\nEmail:\n{draft.body}"


def build_humanizer_payload(draft: EmailDraft) -> str:
    return f"Email:\n{draft.body}"


__all__ = [
    "ANGLE_GENERATION_PROMPT",
    "HUMANIZER_PROMPT",
    "SIGNAL_EXTRACTION_PROMPT",
    "TARGET_SCRAPE_PROMPT",
    "TEMPLATE_ASSEMBLY_PROMPT",
    "TONE_ADAPTER_PROMPT",
    "build_angle_payload",
    "build_humanizer_payload",
    "build_signal_payload",
    "build_template_payload",
    "build_tone_payload",
]
