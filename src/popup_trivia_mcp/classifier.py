"""Result classifier — maps a verdict to reject / warn / accept."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import FALLBACK_REJECTION_MESSAGE
from .models.trivia import GenerationVerdict


class Outcome(str, Enum):
    REJECT = "REJECT"
    ACCEPT_WITH_WARNING = "ACCEPT_WITH_WARNING"
    ACCEPT = "ACCEPT"


@dataclass(frozen=True)
class Classification:
    outcome: Outcome
    reason: str | None = None


def classify(verdict: GenerationVerdict) -> Classification:
    """Decide what the orchestrator does with *verdict*.

    Rejection needs both a negative verdict and no usable facts. A negative
    verdict that still carries facts is treated as a false negative and
    plays with a warning, as does any verdict flagged uncertain.
    """
    has_items = bool(verdict.items)
    if not verdict.accepted and not has_items:
        return Classification(Outcome.REJECT, verdict.reason or FALLBACK_REJECTION_MESSAGE)
    if verdict.uncertain or not verdict.accepted:
        return Classification(Outcome.ACCEPT_WITH_WARNING)
    return Classification(Outcome.ACCEPT)
