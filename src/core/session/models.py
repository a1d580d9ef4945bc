"""Session-level data models for the project-design conversation.

A :class:`ConversationSession` holds everything needed to resume a
conversation: the wizard stage, the slot currently being collected, the
confirmed slot values, the navigation counters for the active slot, and the
append-only turn history.  Every model here round-trips through
``model_dump_json`` / ``model_validate_json`` so any key/value store can
persist it.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.core.intent.models import IntentClassification
from src.utils.exceptions import InvalidSlotError, SlotLockedError, StageTransitionError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Stage(str, Enum):
    """Wizard stages, in the only order the conversation may visit them."""

    IDEATION = "Ideation"
    LEARNING_JOURNEY = "LearningJourney"
    DELIVERABLES = "Deliverables"
    COMPLETE = "Complete"


STAGE_ORDER: list[Stage] = [
    Stage.IDEATION,
    Stage.LEARNING_JOURNEY,
    Stage.DELIVERABLES,
    Stage.COMPLETE,
]

STAGE_SLOTS: dict[Stage, list[str]] = {
    Stage.IDEATION: ["bigIdea", "essentialQuestion", "challenge"],
    Stage.LEARNING_JOURNEY: ["phases", "activities", "resources"],
    Stage.DELIVERABLES: ["milestones", "artifacts", "assessment"],
    Stage.COMPLETE: [],
}

SLOT_LABELS: dict[str, str] = {
    "bigIdea": "Big Idea",
    "essentialQuestion": "Essential Question",
    "challenge": "Challenge",
    "phases": "Learning Phases",
    "activities": "Activities",
    "resources": "Resources",
    "milestones": "Milestones",
    "artifacts": "Final Artifacts",
    "assessment": "Assessment",
}


class StepPosition(str, Enum):
    """Where the active slot sits inside its stage."""

    INTRODUCTORY = "introductory"
    IN_PROGRESS = "in_progress"
    CLOSING = "closing"


class NavigationKind(str, Enum):
    EXPLORATION = "exploration"
    EXAMPLES = "examples"
    SELECTION = "selection"
    REFINEMENT = "refinement"
    HELP = "help"


class Affordance(str, Enum):
    """UI controls the user can click instead of typing."""

    EXPLORE = "explore"
    EXAMPLES = "examples"
    HELP = "help"
    KEEP = "keep"
    REFINE = "refine"
    SELECT = "select"


class ProjectContext(BaseModel):
    """What the educator told the onboarding wizard about the project."""

    subject: str = ""
    age_group: str = ""
    experience_level: str = "novice"
    secondary_subject: str | None = None


class NavigationEvent(BaseModel):
    choice: str
    kind: NavigationKind
    depth: int = 0
    timestamp: datetime = Field(default_factory=utcnow)


class NavigationState(BaseModel):
    """Per-slot exploration counters; reset whenever the slot changes."""

    depth: int = 0
    interaction_count: int = 0
    events: list[NavigationEvent] = []


class Turn(BaseModel):
    """One user/AI exchange.  Immutable once appended to the history.

    ``affordance`` is set when the "input" was a click on a chip or a
    Keep/Refine button rather than freely typed text; ``user_text`` then
    carries the clicked label (or the suggestion text for ``select``).
    """

    model_config = ConfigDict(frozen=True)

    user_text: str
    affordance: Affordance | None = None
    stage: Stage
    slot: str | None = None
    intent: IntentClassification | None = None
    raw_envelope: Any = None
    repaired_envelope: dict[str, Any] = {}
    diagnostics: list[str] = []
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def is_affordance(self) -> bool:
        return self.affordance is not None

    @property
    def assistant_text(self) -> str:
        return str(self.repaired_envelope.get("chatResponse") or "")


class ConversationSession(BaseModel):
    """State of one in-progress project design.

    Attributes:
        project_id: Key used by the session store.
        stage: Current wizard stage; only ever moves forward.
        current_slot: Slot being collected, ``None`` once the stage's slots
            are all confirmed (or the wizard is complete).
        captured_values: Confirmed slot values.  Write-once unless the slot
            has been reopened with :meth:`reopen`.
        pending_value: An accepted answer awaiting the Keep/Refine decision.
        navigation_state: Depth/interaction counters for ``current_slot``.
        history: Append-only list of turns.
    """

    project_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    project: ProjectContext = Field(default_factory=ProjectContext)
    stage: Stage = Stage.IDEATION
    current_slot: str | None = STAGE_SLOTS[Stage.IDEATION][0]
    captured_values: dict[str, str] = {}
    pending_value: str | None = None
    reopened_slots: list[str] = []
    navigation_state: NavigationState = Field(default_factory=NavigationState)
    history: list[Turn] = []
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # ----- Slots ------------------------------------------------------------

    def required_slots(self, stage: Stage | None = None) -> list[str]:
        return list(STAGE_SLOTS[stage or self.stage])

    def is_stage_complete(self, stage: Stage | None = None) -> bool:
        """Return ``True`` when every required slot of *stage* is non-empty."""
        stage = stage or self.stage
        if stage == Stage.COMPLETE:
            return True
        return all(
            self.captured_values.get(slot, "").strip()
            and slot not in self.reopened_slots
            for slot in STAGE_SLOTS[stage]
        )

    def next_open_slot(self) -> str | None:
        """First slot of the current stage still lacking a confirmed value."""
        for slot in STAGE_SLOTS[self.stage]:
            if slot in self.reopened_slots or not self.captured_values.get(slot, "").strip():
                return slot
        return None

    def capture(self, slot: str, value: str) -> None:
        """Confirm *value* for *slot*.

        Raises :class:`SlotLockedError` when the slot already holds a value
        and has not been reopened.
        """
        text = value.strip()
        if not text:
            raise ValueError(f"Cannot capture an empty value for '{slot}'")
        if slot in self.captured_values and slot not in self.reopened_slots:
            raise SlotLockedError(slot)
        self.captured_values[slot] = text
        if slot in self.reopened_slots:
            self.reopened_slots.remove(slot)
        self.pending_value = None
        self.updated_at = utcnow()

    def reopen(self, slot: str) -> None:
        """Allow a confirmed slot to be rewritten and make it the active slot."""
        if slot not in SLOT_LABELS:
            raise InvalidSlotError(slot, "unknown slot")
        if slot not in self.captured_values:
            raise InvalidSlotError(slot, "nothing confirmed yet to reopen")
        if slot not in self.reopened_slots:
            self.reopened_slots.append(slot)
        self.current_slot = slot
        self.pending_value = None
        self.navigation_state = NavigationState()
        self.updated_at = utcnow()

    def advance_slot(self) -> str | None:
        """Move to the next open slot and reset the navigation counters."""
        self.current_slot = self.next_open_slot()
        self.pending_value = None
        self.navigation_state = NavigationState()
        self.updated_at = utcnow()
        return self.current_slot

    # ----- Stages -----------------------------------------------------------

    def advance_stage(self) -> Stage:
        """Move to the next stage once the current one is complete."""
        index = STAGE_ORDER.index(self.stage)
        if self.stage == Stage.COMPLETE:
            raise StageTransitionError(self.stage.value, self.stage.value)
        target = STAGE_ORDER[index + 1]
        if not self.is_stage_complete():
            raise StageTransitionError(self.stage.value, target.value)
        self.stage = target
        slots = STAGE_SLOTS[target]
        self.current_slot = slots[0] if slots else None
        self.pending_value = None
        self.navigation_state = NavigationState()
        self.updated_at = utcnow()
        return self.stage

    def turns_in_stage(self, stage: Stage | None = None) -> list[Turn]:
        stage = stage or self.stage
        return [turn for turn in self.history if turn.stage == stage]

    def step_position(self) -> StepPosition:
        """Classify the active step as introductory, in progress, or closing."""
        slots = STAGE_SLOTS[self.stage]
        if self.current_slot is None or self.is_stage_complete():
            return StepPosition.CLOSING
        if not self.turns_in_stage():
            return StepPosition.INTRODUCTORY
        if slots and self.current_slot == slots[-1] and self.pending_value is not None:
            return StepPosition.CLOSING
        return StepPosition.IN_PROGRESS

    def append_turn(self, turn: Turn) -> None:
        self.history.append(turn)
        self.updated_at = utcnow()
