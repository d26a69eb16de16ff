"""
heuristic.py
------------

Deterministic reflection generator used whenever the external language
model is not configured or does not answer usefully. It never performs
network requests and never raises for a non-empty entry, so the journaling
flow always gets a reflection back.

The summary is the first three sentences of the entry. The tone is a coarse
three-way classification based on which marker words appear in the entry:
each marker counts once no matter how often it repeats, and one side has
to strictly outnumber the other for the tone to be anything but ``steady``.
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence

from reflection.models import ReflectionResult, Tone

POSITIVE_MARKERS: Sequence[str] = ("grateful", "excited", "optimistic", "energ", "progress")
NEGATIVE_MARKERS: Sequence[str] = ("tired", "worried", "anxious", "overwhelmed", "stressed", "frustrated")

MAX_SUMMARY_SENTENCES = 3

_WHITESPACE = re.compile(r"\s+")
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")

_TONE_ACTIONS = {
    Tone.UPBEAT: "Capture what made today energising and schedule more of it for the week ahead.",
    Tone.STRESSED: (
        "Choose a small restorative habit for tomorrow, like a short walk, "
        "a journaling break, or a conversation with a friend."
    ),
    Tone.STEADY: "Note one takeaway from this entry and plan a follow-up action before your next journaling session.",
}


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def split_sentences(text: str) -> List[str]:
    """Split normalized text after terminal punctuation, keeping the punctuation."""
    return [sentence for sentence in _SENTENCE_BREAK.split(text) if sentence]


def summarize(content: str) -> str:
    """Return the first three sentences of ``content``, or all of it when it has none."""
    normalized = normalize_whitespace(content)
    sentences = split_sentences(normalized)[:MAX_SUMMARY_SENTENCES]
    return " ".join(sentences) if sentences else normalized


def _marker_hits(text: str, markers: Sequence[str]) -> int:
    return sum(marker in text for marker in markers)


def derive_tone(content: str) -> Tone:
    lowered = content.lower()
    positive = _marker_hits(lowered, POSITIVE_MARKERS)
    negative = _marker_hits(lowered, NEGATIVE_MARKERS)

    if positive > negative and positive > 0:
        return Tone.UPBEAT
    if negative > positive and negative > 0:
        return Tone.STRESSED
    return Tone.STEADY


def build_reflection(goal: str, content: str) -> str:
    """Compose the reflection: summary, optional goal paragraph, tone line."""
    goal = goal.strip()
    summary = summarize(content)
    tone = derive_tone(normalize_whitespace(content))

    reflection = f"You captured: {summary}"
    if goal:
        reflection += f'\n\nKeep your goal of "{goal}" in focus and notice how this entry relates to it.'
    reflection += f"\n\nOverall the tone feels {tone.value}."

    return reflection.strip()


def build_action(goal: str, content: str) -> str:
    goal = goal.strip()
    if goal:
        return f'Identify one concrete step you can take in the next 24 hours to move "{goal}" forward.'
    return _TONE_ACTIONS[derive_tone(content)]


class HeuristicStrategy:
    """Keyword and sentence based strategy that always produces a result."""

    name = "heuristic"

    async def try_generate(self, goal: str, content: str) -> Optional[ReflectionResult]:
        return self.generate(goal, content)

    def generate(self, goal: str, content: str) -> ReflectionResult:
        return ReflectionResult(
            reflection=build_reflection(goal, content),
            action=build_action(goal, content),
        )


__all__ = [
    "HeuristicStrategy",
    "build_action",
    "build_reflection",
    "derive_tone",
    "summarize",
]
