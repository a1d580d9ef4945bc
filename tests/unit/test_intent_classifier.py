"""Tests for the heuristic intent classifier."""
import pytest

from src.core.intent.classifier import (
    IntentClassifier,
    IntentContext,
    MessageStructure,
    format_classification,
)
from src.core.intent.models import ResponseMode, UserIntent
from src.core.intent.patterns import INTENT_PATTERNS, PATTERN_WEIGHT
from src.core.session.models import StepPosition


@pytest.fixture
def classifier():
    return IntentClassifier()


@pytest.fixture
def intro_context():
    return IntentContext(stage="Ideation", step_position=StepPosition.INTRODUCTORY)


class TestClassify:
    @pytest.mark.parametrize("message", ["", "   ", "\n\t"])
    def test_empty_message_is_uncertain(self, classifier, message):
        result = classifier.classify(message)
        assert result.intent == UserIntent.UNCERTAIN
        assert result.confidence == 0.0
        assert result.suggested_response_mode == ResponseMode.CLARIFY

    def test_food_waste_question_at_introductory_step(self, classifier, intro_context):
        result = classifier.classify("How might we reduce food waste at school?", intro_context)
        assert result.intent == UserIntent.QUESTIONING
        assert result.confidence == 76.4
        assert result.suggested_response_mode == ResponseMode.GUIDE

    def test_food_waste_question_is_never_confirming(self, classifier, intro_context):
        result = classifier.classify("How might we reduce food waste at school?", intro_context)
        assert result.intent in (UserIntent.QUESTIONING, UserIntent.EXPLORING)
        assert result.suggested_response_mode in (ResponseMode.GUIDE, ResponseMode.ENGAGE)

    def test_repeated_calls_are_identical(self, classifier, intro_context):
        message = "Maybe something like a school garden, or maybe a compost program..."
        first = classifier.classify(message, intro_context)
        for _ in range(5):
            again = classifier.classify(message, intro_context)
            assert (again.intent, again.confidence) == (first.intent, first.confidence)

    def test_short_agreement_is_confirming(self, classifier):
        result = classifier.classify("Yes, sounds good")
        assert result.intent == UserIntent.CONFIRMING
        assert result.confidence == 100.0
        assert result.suggested_response_mode == ResponseMode.CONFIRM

    def test_tie_resolves_in_enumeration_order(self, classifier):
        # "help" scores uncertain, "maybe" scores exploring: 10 each.
        result = classifier.classify("Help me, maybe")
        assert result.intent == UserIntent.EXPLORING
        assert result.confidence == 40.0

    def test_low_confidence_always_clarifies(self):
        strict = IntentClassifier(confidence_threshold=90.0)
        context = IntentContext(stage="Ideation", step_position=StepPosition.INTRODUCTORY)
        result = strict.classify("How might we reduce food waste at school?", context)
        assert result.intent == UserIntent.QUESTIONING
        assert result.suggested_response_mode == ResponseMode.CLARIFY

    def test_assistant_question_lowers_questioning(self, classifier):
        message = "What about energy?"
        plain = classifier.classify(message)
        answering = classifier.classify(
            message, IntentContext(last_assistant_message="Which idea fits best?")
        )
        assert plain.intent == UserIntent.QUESTIONING
        assert answering.intent == UserIntent.QUESTIONING
        assert answering.confidence < plain.confidence

    def test_previous_question_favours_elaboration(self, classifier):
        message = "Because students care about the river"
        context = IntentContext(previous_intent=UserIntent.QUESTIONING)
        assert classifier.classify(message).intent == UserIntent.ELABORATING
        assert classifier.classify(message, context).intent == UserIntent.ELABORATING

    def test_refinement_phrasing(self, classifier):
        result = classifier.classify("Actually, let's change the audience to younger students")
        assert result.intent == UserIntent.REFINING

    def test_confidence_stays_within_bounds(self, classifier):
        for message in ["ok", "Hmm... not sure, maybe?", "1. plan 2. build 3. share", "x" * 400]:
            result = classifier.classify(message)
            assert 0.0 <= result.confidence <= 100.0


class TestMessageStructure:
    def test_features(self):
        structure = MessageStructure.analyze("So, first we plan and then we build")
        assert set(structure.features()) == {
            "starts_with_filler",
            "multiple_clauses",
            "list_structure",
        }

    def test_short_and_long_are_exclusive(self):
        assert "short_message" in MessageStructure.analyze("ok").features()
        long_features = MessageStructure.analyze("word " * 60).features()
        assert "long_message" in long_features
        assert "short_message" not in long_features


def test_pattern_table_covers_every_intent():
    assert set(INTENT_PATTERNS) == set(UserIntent)
    for rules in INTENT_PATTERNS.values():
        assert rules
        assert all(weight == PATTERN_WEIGHT for _, weight in rules)


def test_format_classification(classifier):
    line = format_classification(classifier.classify("Yes, sounds good"))
    assert line.startswith("confirming (100.0%) -> confirm")


def test_has_pattern_ignores_structure(classifier):
    assert classifier.has_pattern("Maybe something about water cycles", UserIntent.EXPLORING)
    assert not classifier.has_pattern("Water cycles and human impact", UserIntent.EXPLORING)
