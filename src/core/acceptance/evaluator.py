"""Slot acceptance evaluators.

One evaluator per slot archetype decides whether a raw answer lets the
conversation move on.  The rule is accept-and-build: anything non-empty is
acceptable, and a missing quality signal only sets ``needs_refinement`` so
the caller can offer "keep as is" next to "refine".  The only rejection is
an empty answer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping

from src.core.acceptance import markers


@dataclass(frozen=True)
class AcceptanceResult:
    """Verdict on one candidate slot value.

    Attributes:
        is_acceptable: The conversation may advance with this value.
        needs_refinement: Offer a keep/refine choice before capturing.
        message: Coaching text for the user.
    """

    is_acceptable: bool
    needs_refinement: bool
    message: str


class SlotEvaluator(ABC):
    """Base class for one slot archetype."""

    archetype: str = ""
    min_words: int = 1
    label: str = "answer"

    def evaluate(
        self,
        candidate: str,
        upstream: Mapping[str, str] | None = None,
    ) -> AcceptanceResult:
        upstream = upstream or {}
        text = (candidate or "").strip()
        if not text:
            return AcceptanceResult(
                is_acceptable=False,
                needs_refinement=False,
                message=f"I didn't catch a {self.label} there. Share whatever you have so far.",
            )

        if markers.word_count(text) < self.min_words:
            return AcceptanceResult(
                is_acceptable=True,
                needs_refinement=True,
                message=(
                    f"That's a start. Could you add a little more detail to your {self.label}? "
                    "You can also keep it as is."
                ),
            )

        coaching = self.coach(text, upstream)
        if coaching:
            return AcceptanceResult(is_acceptable=True, needs_refinement=True, message=coaching)
        return AcceptanceResult(
            is_acceptable=True,
            needs_refinement=False,
            message=self.affirm(text, upstream),
        )

    @abstractmethod
    def coach(self, text: str, upstream: Mapping[str, str]) -> str | None:
        """Return coaching text when *text* lacks this archetype's quality signal."""

    def affirm(self, text: str, upstream: Mapping[str, str]) -> str:
        return f"Great, your {self.label} is captured."


class ConceptEvaluator(SlotEvaluator):
    archetype = "concept"
    min_words = 2
    label = "Big Idea"

    def coach(self, text, upstream):
        if markers.looks_like_activity(text):
            return (
                f'"{text}" sounds like something students will do. A Big Idea is the '
                "theme underneath it. What lasting concept does this activity reveal?"
            )
        if markers.looks_like_question(text):
            return (
                "That reads like a question. Hold onto it for the Essential Question; "
                "for the Big Idea, try stating the core concept as a short phrase."
            )
        return None

    def affirm(self, text, upstream):
        return "Big Idea captured. Next up: craft an Essential Question that invites inquiry."


class QuestionEvaluator(SlotEvaluator):
    archetype = "question"
    min_words = 3
    label = "Essential Question"

    def coach(self, text, upstream):
        big_idea = upstream.get("bigIdea")
        anchor = f' around "{big_idea}"' if big_idea else ""
        if not markers.is_open_ended(text):
            return (
                "This could be answered with a yes, a no, or a single fact. Try opening "
                f"with how, why, or to what extent so students keep investigating{anchor}."
            )
        if not text.endswith("?"):
            return "Nice direction. Consider phrasing it as a question, ending with a question mark."
        return None

    def affirm(self, text, upstream):
        return "Excellent Essential Question. Let's define the authentic Challenge."


class ChallengeEvaluator(SlotEvaluator):
    archetype = "challenge"
    min_words = 4
    label = "Challenge"

    def coach(self, text, upstream):
        if not markers.ACTION_VERBS.search(text):
            return (
                "What will students actually produce or do? Start the challenge with an "
                "action such as design, create, or propose."
            )
        if not markers.AUDIENCE_MARKERS.search(text):
            question = upstream.get("essentialQuestion")
            tail = f' while answering "{question}"' if question else ""
            return (
                "Who is this for? Naming a real audience, like the city council or "
                f"younger students, makes the challenge authentic{tail}."
            )
        return None

    def affirm(self, text, upstream):
        return "Challenge locked in. Outline the journey phases so we can see the path."


class ProcessEvaluator(SlotEvaluator):
    archetype = "process"
    min_words = 3
    label = "plan"

    def coach(self, text, upstream):
        if markers.looks_like_list(text):
            return (
                "That looks like a list of content topics. How will students move through "
                "them? Describe what happens first, next, and at the end."
            )
        return None


class ProductEvaluator(SlotEvaluator):
    archetype = "product"
    min_words = 2
    label = "deliverable"

    def coach(self, text, upstream):
        if not markers.PRODUCT_MARKERS.search(text):
            return (
                "Can you name something concrete here? A specific artifact, resource, "
                "or assessment tool helps students picture the work."
            )
        return None


EVALUATORS: dict[str, SlotEvaluator] = {
    "concept": ConceptEvaluator(),
    "question": QuestionEvaluator(),
    "challenge": ChallengeEvaluator(),
    "process": ProcessEvaluator(),
    "product": ProductEvaluator(),
}

SLOT_ARCHETYPES: dict[str, str] = {
    "bigIdea": "concept",
    "essentialQuestion": "question",
    "challenge": "challenge",
    "phases": "process",
    "activities": "process",
    "milestones": "process",
    "resources": "product",
    "artifacts": "product",
    "assessment": "product",
}


def evaluator_for_slot(slot: str | None) -> SlotEvaluator:
    """Return the evaluator for *slot*; unknown slots use the process rules."""
    return EVALUATORS[SLOT_ARCHETYPES.get(slot or "", "process")]


def evaluate(
    slot: str | None,
    candidate: str,
    upstream: Mapping[str, str] | None = None,
) -> AcceptanceResult:
    return evaluator_for_slot(slot).evaluate(candidate, upstream)
