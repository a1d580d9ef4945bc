"""Intent classification module.

Classifies a user's free-text message into one of the seven
:class:`~src.core.intent.models.UserIntent` categories.  Scoring is a
transparent rule engine: every lexical pattern in
:data:`~src.core.intent.patterns.INTENT_PATTERNS` that matches adds its
weight, message-structure features add or subtract fixed amounts, and the
conversation context applies multipliers and nudges.  There is no model
call, so identical inputs always yield identical results.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.core.intent.models import IntentClassification, ResponseMode, UserIntent
from src.core.intent.patterns import (
    CLAUSE_CONNECTORS,
    CLOSING_MULTIPLIERS,
    FILLER_OPENING,
    INTENT_PATTERNS,
    INTRODUCTORY_MULTIPLIERS,
    LIST_STRUCTURE,
    LONG_MESSAGE_WORDS,
    SENTENCE_SPLIT,
    SHORT_MESSAGE_WORDS,
    STRUCTURE_ADJUSTMENTS,
)
from src.core.session.models import StepPosition
from src.utils.logging import get_logger

logger = get_logger("intent.classifier")

DEFAULT_CONFIDENCE_THRESHOLD = 50.0

_MODE_BY_INTENT: dict[UserIntent, ResponseMode] = {
    UserIntent.EXPLORING: ResponseMode.ENGAGE,
    UserIntent.ELABORATING: ResponseMode.ENGAGE,
    UserIntent.REFINING: ResponseMode.ENGAGE,
    UserIntent.QUESTIONING: ResponseMode.GUIDE,
    UserIntent.UNCERTAIN: ResponseMode.GUIDE,
    UserIntent.SUBMITTING: ResponseMode.CONFIRM,
    UserIntent.CONFIRMING: ResponseMode.CONFIRM,
}


@dataclass(frozen=True)
class MessageStructure:
    """Structural features of a single message."""

    word_count: int
    sentence_count: int
    has_multiple_clauses: bool
    ends_with_question: bool
    starts_with_filler: bool
    has_list_structure: bool

    @classmethod
    def analyze(cls, message: str) -> "MessageStructure":
        stripped = message.strip()
        sentences = [s for s in SENTENCE_SPLIT.split(message) if s.strip()]
        return cls(
            word_count=len(stripped.split()),
            sentence_count=len(sentences),
            has_multiple_clauses=bool(CLAUSE_CONNECTORS.search(message)),
            ends_with_question=stripped.endswith("?"),
            starts_with_filler=bool(FILLER_OPENING.search(message)),
            has_list_structure=bool(LIST_STRUCTURE.search(message)),
        )

    def features(self) -> list[str]:
        """Names of the active features, as keys of ``STRUCTURE_ADJUSTMENTS``."""
        active: list[str] = []
        if self.ends_with_question:
            active.append("ends_with_question")
        if self.starts_with_filler:
            active.append("starts_with_filler")
        if self.word_count < SHORT_MESSAGE_WORDS:
            active.append("short_message")
        elif self.word_count > LONG_MESSAGE_WORDS:
            active.append("long_message")
        if self.has_multiple_clauses:
            active.append("multiple_clauses")
        if self.has_list_structure:
            active.append("list_structure")
        return active


@dataclass(frozen=True)
class IntentContext:
    """Conversation context the classifier is allowed to look at.

    Attributes:
        stage: Name of the current wizard stage.
        step_position: Whether the active slot is the stage's opening step,
            somewhere in the middle, or the closing step.
        previous_intent: Intent of the user's previous typed message.
        last_assistant_message: Text of the most recent AI reply.
        turn_count: Number of turns already taken in this stage.
    """

    stage: str = ""
    step_position: StepPosition = StepPosition.IN_PROGRESS
    previous_intent: UserIntent | None = None
    last_assistant_message: str | None = None
    turn_count: int = 0


@dataclass
class _Scorecard:
    scores: dict[UserIntent, float] = field(
        default_factory=lambda: {intent: 0.0 for intent in UserIntent}
    )

    def add(self, intent: UserIntent, amount: float) -> None:
        self.scores[intent] += amount

    def scale(self, intent: UserIntent, factor: float) -> None:
        self.scores[intent] *= factor


class IntentClassifier:
    """Classifies user messages into intent categories.

    Parameters
    ----------
    confidence_threshold:
        Winning-share percentage below which the suggested response mode is
        always ``clarify``.
    """

    def __init__(self, confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD):
        self.confidence_threshold = confidence_threshold

    def classify(
        self,
        message: str,
        context: IntentContext | None = None,
    ) -> IntentClassification:
        """Classify *message* and return an :class:`IntentClassification`.

        Never raises.  Empty or whitespace-only input is ``uncertain`` with
        zero confidence.
        """
        if context is None:
            context = IntentContext()

        if not message or not message.strip():
            return IntentClassification(
                intent=UserIntent.UNCERTAIN,
                confidence=0.0,
                suggested_response_mode=ResponseMode.CLARIFY,
                reasoning="empty message",
            )

        structure = MessageStructure.analyze(message)
        card = self._score_patterns(message)
        self._apply_structure(card, structure)
        self._apply_context(card, context)

        # Negative totals would let confidence exceed 100.
        scores = {intent: max(0.0, score) for intent, score in card.scores.items()}

        winner = UserIntent.UNCERTAIN
        best = 0.0
        for intent in UserIntent:
            if scores[intent] > best:
                best = scores[intent]
                winner = intent

        total = sum(scores.values())
        confidence = round(best / total * 100, 1) if total > 0 else 0.0

        result = IntentClassification(
            intent=winner,
            confidence=confidence,
            suggested_response_mode=self.response_mode_for(winner, confidence),
            reasoning=self._reasoning(structure, scores),
        )
        logger.debug(
            "intent_classified",
            intent=result.intent.value,
            confidence=result.confidence,
            mode=result.suggested_response_mode.value,
        )
        return result

    def response_mode_for(self, intent: UserIntent, confidence: float) -> ResponseMode:
        if confidence < self.confidence_threshold:
            return ResponseMode.CLARIFY
        return _MODE_BY_INTENT[intent]

    @staticmethod
    def has_pattern(message: str, intent: UserIntent) -> bool:
        """True when a lexical rule of *intent* matches, ignoring structure and context."""
        return any(pattern.search(message) for pattern, _ in INTENT_PATTERNS[intent])

    # ----- Scoring ----------------------------------------------------------

    @staticmethod
    def _score_patterns(message: str) -> _Scorecard:
        card = _Scorecard()
        for intent, rules in INTENT_PATTERNS.items():
            for pattern, weight in rules:
                if pattern.search(message):
                    card.add(intent, weight)
        return card

    @staticmethod
    def _apply_structure(card: _Scorecard, structure: MessageStructure) -> None:
        for feature in structure.features():
            for intent, delta in STRUCTURE_ADJUSTMENTS[feature].items():
                card.add(intent, delta)

    @staticmethod
    def _apply_context(card: _Scorecard, context: IntentContext) -> None:
        if context.step_position == StepPosition.INTRODUCTORY:
            for intent, factor in INTRODUCTORY_MULTIPLIERS.items():
                card.scale(intent, factor)
        elif context.step_position == StepPosition.CLOSING:
            for intent, factor in CLOSING_MULTIPLIERS.items():
                card.scale(intent, factor)

        if context.previous_intent == UserIntent.QUESTIONING:
            card.add(UserIntent.ELABORATING, 3)
            card.add(UserIntent.EXPLORING, 3)
        elif context.previous_intent == UserIntent.EXPLORING and context.turn_count > 3:
            card.add(UserIntent.SUBMITTING, 5)

        if context.last_assistant_message:
            last = context.last_assistant_message.lower()
            # The user is answering the assistant, not asking.
            if "?" in last:
                card.add(UserIntent.QUESTIONING, -5)
                card.add(UserIntent.SUBMITTING, 3)
            if "is this" in last or "correct" in last:
                card.add(UserIntent.CONFIRMING, 10)
            if "refine" in last or "adjust" in last:
                card.add(UserIntent.REFINING, 5)

    @staticmethod
    def _reasoning(structure: MessageStructure, scores: dict[UserIntent, float]) -> str:
        reasons: list[str] = []
        if structure.ends_with_question:
            reasons.append("ends with a question")
        if structure.starts_with_filler:
            reasons.append("starts with filler words")
        if structure.word_count < 10:
            reasons.append("brief response")
        elif structure.word_count > LONG_MESSAGE_WORDS:
            reasons.append("detailed response")
        ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)[:2]
        for intent, score in ranked:
            if score > 10:
                reasons.append(f"strong {intent.value} indicators")
        return ", ".join(reasons)


def format_classification(result: IntentClassification) -> str:
    """One-line summary for debug output."""
    line = (
        f"{result.intent.value} ({result.confidence:.1f}%) "
        f"-> {result.suggested_response_mode.value}"
    )
    if result.reasoning:
        line += f": {result.reasoning}"
    return line
