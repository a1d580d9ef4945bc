"""Value objects produced by the intent classifier."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class UserIntent(str, Enum):
    """What the user is trying to do with a free-text message.

    Declaration order is the classifier's tie-break order.
    """

    EXPLORING = "exploring"
    QUESTIONING = "questioning"
    SUBMITTING = "submitting"
    ELABORATING = "elaborating"
    CONFIRMING = "confirming"
    REFINING = "refining"
    UNCERTAIN = "uncertain"


class ResponseMode(str, Enum):
    """How the assistant should answer the classified message."""

    ENGAGE = "engage"
    CLARIFY = "clarify"
    CONFIRM = "confirm"
    GUIDE = "guide"


@dataclass(frozen=True)
class IntentClassification:
    """The outcome of classifying a user message.

    Attributes:
        intent: Winning intent category.
        confidence: Winner's share of the total score, 0 -- 100.
        suggested_response_mode: Derived from ``intent`` and ``confidence``.
        reasoning: Human-readable summary of the signals that fired.
    """

    intent: UserIntent
    confidence: float
    suggested_response_mode: ResponseMode
    reasoning: str = ""
