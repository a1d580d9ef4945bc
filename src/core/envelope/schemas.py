"""Per-stage field schemas for the AI's structured reply.

Each stage maps envelope field names (camelCase, as they travel on the wire)
to a :class:`FieldSpec` naming the shape check the validator applies and
the value used when the field is missing or unusable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from src.core.session.models import Stage

INTERACTION_TYPES: tuple[str, ...] = (
    "conversationalIdeation",
    "Standard",
    "Welcome",
    "Framework",
    "Guide",
)

MAX_LIST_ITEMS = 4

ASSIGNMENT_FIELDS: tuple[str, ...] = ("title", "description", "requirements")


@dataclass(frozen=True)
class FieldSpec:
    """Shape check for one envelope field.

    ``kind`` is one of ``interaction_type``, ``stage``, ``message``,
    ``bool``, ``string_list``, ``text``, ``object``, ``assignment`` or
    ``any``.
    """

    kind: str
    default: Any = None


_COMMON: dict[str, FieldSpec] = {
    "interactionType": FieldSpec("interaction_type"),
    "currentStage": FieldSpec("stage"),
    "chatResponse": FieldSpec("message"),
    "isStageComplete": FieldSpec("bool", False),
    "suggestions": FieldSpec("string_list"),
    "buttons": FieldSpec("string_list"),
}

# Fields that are always validated, whatever the configured field list says.
CORE_FIELDS: tuple[str, ...] = ("interactionType", "currentStage", "chatResponse", "isStageComplete")

STAGE_SCHEMAS: dict[Stage, dict[str, FieldSpec]] = {
    Stage.IDEATION: {
        **_COMMON,
        "currentStep": FieldSpec("text"),
        "ideationProgress": FieldSpec("object"),
        "dataToStore": FieldSpec("any"),
    },
    Stage.LEARNING_JOURNEY: {
        **_COMMON,
        "curriculumDraft": FieldSpec("text"),
        "guestSpeakerHints": FieldSpec("string_list"),
    },
    Stage.DELIVERABLES: {
        **_COMMON,
        "newAssignment": FieldSpec("assignment"),
        "assessmentMethods": FieldSpec("string_list"),
    },
    Stage.COMPLETE: {
        **_COMMON,
        "summary": FieldSpec("object"),
    },
}

KNOWN_FIELDS: dict[str, FieldSpec] = {
    name: field_spec for schema in STAGE_SCHEMAS.values() for name, field_spec in schema.items()
}

DEFAULT_INTERACTION_TYPE: dict[Stage, str] = {
    Stage.IDEATION: "conversationalIdeation",
    Stage.LEARNING_JOURNEY: "Standard",
    Stage.DELIVERABLES: "Standard",
    Stage.COMPLETE: "Standard",
}

FALLBACK_MESSAGES: dict[Stage, str] = {
    Stage.IDEATION: (
        "I'm here to help you design a meaningful project! Let's explore how to "
        "transform your vision into an engaging learning experience. What aspects "
        "of your project idea would you like to develop first?"
    ),
    Stage.LEARNING_JOURNEY: (
        "Now let's build the learning journey for your students! I'll help you "
        "create activities that prepare them for success. What key skills should "
        "students develop in this project?"
    ),
    Stage.DELIVERABLES: (
        "Time to design authentic assessments! Let's create ways for students to "
        "demonstrate their learning through real-world application. What would be "
        "the most meaningful way for students to show their mastery?"
    ),
    Stage.COMPLETE: (
        "Your project design is complete. You can review the blueprint or reopen "
        "any part of it to keep refining."
    ),
}

RECOVERY_PREFIX = "Let's continue where we left off."


def schema_for(
    stage: Stage,
    required_fields: dict[str, list[str]] | None = None,
) -> dict[str, FieldSpec]:
    """Return the field schema for *stage*.

    *required_fields* may override the field list for a stage by name; the
    core fields are kept regardless and unfamiliar names pass through
    unchecked.
    """
    override = (required_fields or {}).get(stage.value)
    if override is None:
        return STAGE_SCHEMAS[stage]
    schema = {name: STAGE_SCHEMAS[stage][name] for name in CORE_FIELDS}
    for name in override:
        schema.setdefault(name, KNOWN_FIELDS.get(name, FieldSpec("any")))
    return schema
