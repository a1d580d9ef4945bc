"""Validation and repair of the AI's structured reply.

:class:`ResponseValidator` checks a raw envelope against the schema for the
session's stage and repairs it field by field: missing fields get defaults,
wrong shapes are coerced or nulled, unknown fields are dropped.  Every
repair is recorded as a diagnostic string.  A raw value that is not an
object at all is replaced by the stage's fallback envelope.  The validator
never raises.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from src.core.envelope.schemas import (
    ASSIGNMENT_FIELDS,
    DEFAULT_INTERACTION_TYPE,
    FALLBACK_MESSAGES,
    INTERACTION_TYPES,
    MAX_LIST_ITEMS,
    RECOVERY_PREFIX,
    FieldSpec,
    schema_for,
)
from src.core.session.models import Stage
from src.utils.logging import get_logger

logger = get_logger("envelope.validator")


@dataclass
class ValidationResult:
    """Outcome of :meth:`ResponseValidator.validate`.

    Attributes:
        is_valid: ``True`` when the raw envelope needed no repair.
        errors: One diagnostic per repair, in the order they were made.
        envelope: The repaired envelope; always structurally valid.
        used_fallback: The raw value was unusable and the stage fallback
            was substituted wholesale.
    """

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    envelope: dict[str, Any] = field(default_factory=dict)
    used_fallback: bool = False


def fallback_envelope(
    stage: Stage,
    message: str | None = None,
    required_fields: dict[str, list[str]] | None = None,
) -> dict[str, Any]:
    """Complete, stage-appropriate envelope used when the AI reply is unusable."""
    envelope: dict[str, Any] = {}
    for name, field_spec in schema_for(stage, required_fields).items():
        envelope[name] = copy.deepcopy(field_spec.default)
    envelope["interactionType"] = DEFAULT_INTERACTION_TYPE[stage]
    envelope["currentStage"] = stage.value
    envelope["chatResponse"] = message or FALLBACK_MESSAGES[stage]
    envelope["isStageComplete"] = False
    return envelope


def recovery_message(stage: Stage) -> str:
    """User-facing text for an AI failure or timeout."""
    return f"{RECOVERY_PREFIX} {FALLBACK_MESSAGES[stage]}"


def _looks_like_json(text: str) -> bool:
    stripped = text.strip()
    return stripped[:1] in ("{", "[")


class ResponseValidator:
    """Validates raw envelopes against per-stage schemas.

    Parameters
    ----------
    required_fields:
        Optional per-stage field-name overrides, keyed by stage name.
    """

    def __init__(self, required_fields: dict[str, list[str]] | None = None):
        self.required_fields = required_fields or {}

    def validate(self, raw: Any, expected_stage: Stage) -> ValidationResult:
        try:
            if not isinstance(raw, dict):
                return self._fallback(
                    expected_stage,
                    f"raw envelope is {type(raw).__name__}, not an object; used stage fallback",
                )
            return self._repair(raw, expected_stage)
        except Exception as exc:
            logger.error("envelope_validation_crashed", stage=expected_stage.value, error=str(exc))
            return self._fallback(expected_stage, f"validation failed ({exc}); used stage fallback")

    # ----- Internals ----------------------------------------------------------

    def _fallback(self, stage: Stage, reason: str) -> ValidationResult:
        logger.warning("envelope_fallback", stage=stage.value, reason=reason)
        return ValidationResult(
            is_valid=False,
            errors=[reason],
            envelope=fallback_envelope(stage, required_fields=self.required_fields),
            used_fallback=True,
        )

    def _repair(self, raw: dict[str, Any], stage: Stage) -> ValidationResult:
        schema = schema_for(stage, self.required_fields)
        errors: list[str] = []
        envelope: dict[str, Any] = {}

        for name, field_spec in schema.items():
            if name not in raw:
                errors.append(f"missing field '{name}'")
                envelope[name] = self._default(name, field_spec, stage)
                continue
            envelope[name] = self._check(name, field_spec, raw[name], stage, errors)

        for name in raw:
            if name not in schema:
                errors.append(f"dropped unknown field '{name}'")

        if errors:
            logger.info("envelope_repaired", stage=stage.value, repairs=len(errors))
        return ValidationResult(is_valid=not errors, errors=errors, envelope=envelope)

    @staticmethod
    def _default(name: str, field_spec: FieldSpec, stage: Stage) -> Any:
        if field_spec.kind == "interaction_type":
            return DEFAULT_INTERACTION_TYPE[stage]
        if field_spec.kind == "stage":
            return stage.value
        if field_spec.kind == "message":
            return FALLBACK_MESSAGES[stage]
        return copy.deepcopy(field_spec.default)

    def _check(
        self,
        name: str,
        field_spec: FieldSpec,
        value: Any,
        stage: Stage,
        errors: list[str],
    ) -> Any:
        kind = field_spec.kind

        if kind == "stage":
            if value != stage.value:
                errors.append(f"currentStage {value!r} forced to '{stage.value}'")
            return stage.value

        if kind == "interaction_type":
            if value not in INTERACTION_TYPES:
                errors.append(
                    f"interactionType {value!r} not recognised; "
                    f"using '{DEFAULT_INTERACTION_TYPE[stage]}'"
                )
                return DEFAULT_INTERACTION_TYPE[stage]
            return value

        if kind == "message":
            if not isinstance(value, str) or not value.strip():
                errors.append(f"{name} was not a non-empty string; used stage message")
                return FALLBACK_MESSAGES[stage]
            return value

        if kind == "bool":
            if not isinstance(value, bool):
                errors.append(f"{name} {value!r} coerced to false")
            return value is True

        if kind == "string_list":
            return self._string_list(name, value, errors)

        if kind == "text":
            if value is None:
                return None
            if not isinstance(value, str):
                errors.append(f"{name} was {type(value).__name__}; coerced to empty string")
                value = ""
            if not value.strip():
                return None
            return value

        if kind == "object":
            if value is None or isinstance(value, dict):
                return value
            errors.append(f"{name} was {type(value).__name__}, not an object; set to null")
            return None

        if kind == "assignment":
            return self._assignment(name, value, errors)

        return value

    @staticmethod
    def _string_list(name: str, value: Any, errors: list[str]) -> list[str] | None:
        if value is None:
            return None
        if not isinstance(value, list):
            errors.append(f"{name} was {type(value).__name__}, not a list; set to null")
            return None

        items: list[str] = []
        for item in value:
            if isinstance(item, dict) and isinstance(item.get("text"), str):
                item = item["text"]
            if not isinstance(item, str) or not item.strip():
                errors.append(f"{name}: dropped non-text item")
                continue
            if _looks_like_json(item):
                errors.append(f"{name}: dropped JSON-looking item")
                continue
            items.append(item.strip())

        if len(items) > MAX_LIST_ITEMS:
            errors.append(f"{name}: capped at {MAX_LIST_ITEMS} items")
            items = items[:MAX_LIST_ITEMS]
        return items or None

    @staticmethod
    def _assignment(name: str, value: Any, errors: list[str]) -> dict[str, Any] | None:
        if value is None:
            return None
        if not isinstance(value, dict):
            errors.append(f"{name} was {type(value).__name__}, not an object; set to null")
            return None
        missing = [key for key in ASSIGNMENT_FIELDS if value.get(key) in (None, "", [])]
        if missing:
            errors.append(f"{name} missing {', '.join(missing)}; discarded")
            return None
        return dict(value)
