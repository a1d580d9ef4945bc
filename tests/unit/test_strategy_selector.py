"""Tests for the branching strategy selector."""
import pytest

from src.core.intent.models import UserIntent
from src.core.strategy.selector import (
    age_band,
    cross_subject_prompts,
    guidance_style_for,
    scaffolding_for,
    select_strategy,
    subject_domain,
)


@pytest.mark.parametrize(
    "subject, expected",
    [
        ("AP Biology", "stem"),
        ("Environmental Science", "stem"),
        ("US History", "humanities"),
        ("Ceramics", "arts"),
        ("Culinary Arts", "arts"),
        ("Cooking", "general"),
        ("", "general"),
    ],
)
def test_subject_domain(subject, expected):
    assert subject_domain(subject) == expected


@pytest.mark.parametrize(
    "age_group, expected",
    [
        ("Kindergarten", "elementary"),
        ("Ages 8-10", "elementary"),
        ("7th grade", "middle"),
        ("Middle school", "middle"),
        ("Ages 14-16", "high"),
        ("High school juniors", "high"),
        ("Undergraduate seminar", "college"),
        ("Adult learners", "adult"),
        ("", "middle"),
        ("mixed", "middle"),
    ],
)
def test_age_band(age_group, expected):
    assert age_band(age_group) == expected


class TestSelectStrategy:
    def test_examples_are_templated_with_subject(self):
        strategy = select_strategy("bigIdea", "exploring", "Environmental Science", "7th grade")
        assert strategy.domain == "stem"
        assert strategy.age_band == "middle"
        assert any("Environmental Science" in s for s in strategy.suggestions)
        assert "Big Idea" in strategy.copy_template
        assert strategy.copy_template.startswith("Let's follow that thread")

    def test_accepts_enum_intent(self):
        by_value = select_strategy("challenge", "questioning", "History", "9th grade")
        by_enum = select_strategy("challenge", UserIntent.QUESTIONING, "History", "9th grade")
        assert by_value.copy_template == by_enum.copy_template

    def test_journey_steps_use_step_examples(self):
        strategy = select_strategy("resources", "submitting", "Chemistry", "high school")
        assert strategy.suggestions
        assert "Chemistry" in strategy.suggestions[0]
        assert strategy.copy_template.startswith("That works as your Resources")

    def test_missing_subject(self):
        strategy = select_strategy("bigIdea", "refining", "", "")
        assert strategy.domain == "general"
        assert "your subject" in strategy.copy_template

    def test_feedback_follows_age_band(self):
        young = select_strategy("bigIdea", "exploring", "Art", "Kindergarten")
        assert "young learners" in young.feedback.too_abstract


def test_cross_subject_prompts():
    prompts = cross_subject_prompts("Biology", "Art")
    assert prompts
    assert all("Biology" in p and "Art" in p for p in prompts)
    assert cross_subject_prompts("Biology", "") == ()
    assert cross_subject_prompts("Biology", "biology") == ()


@pytest.mark.parametrize(
    "label, level, count, unsolicited",
    [
        ("novice", "high", 3, True),
        ("Intermediate", "moderate", 2, False),
        ("expert", "light", 1, False),
        ("something else", "high", 3, True),
    ],
)
def test_scaffolding(label, level, count, unsolicited):
    profile = scaffolding_for(label)
    assert profile.guidance_level == level
    assert profile.example_count == count
    assert profile.offer_unsolicited_examples is unsolicited


def test_guidance_style():
    assert guidance_style_for("elementary") == "directive"
    assert guidance_style_for("college") == "socratic"
    assert guidance_style_for("unknown") == "balanced"
