"""Request/response schemas for the session endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from src.core.orchestrator import BUTTON_AFFORDANCES, TurnOutcome
from src.core.session.models import Affordance, ConversationSession, ProjectContext

_AFFORDANCE_NAMES = {a.value for a in Affordance} | set(BUTTON_AFFORDANCES)


class CreateSessionRequest(BaseModel):
    """Onboarding answers for a new project design."""

    project_id: str | None = Field(
        default=None,
        min_length=1,
        max_length=64,
        description="Optional caller-chosen id; generated when omitted",
    )
    project: ProjectContext = Field(default_factory=ProjectContext)


class NavigationSummary(BaseModel):
    depth: int
    interaction_count: int


class SessionResponse(BaseModel):
    project_id: str
    project: ProjectContext
    stage: str
    current_slot: str | None
    captured_values: dict[str, str]
    pending_value: str | None
    reopened_slots: list[str]
    is_stage_complete: bool
    turn_count: int
    navigation: NavigationSummary

    @classmethod
    def from_session(cls, session: ConversationSession) -> "SessionResponse":
        return cls(
            project_id=session.project_id,
            project=session.project,
            stage=session.stage.value,
            current_slot=session.current_slot,
            captured_values=dict(session.captured_values),
            pending_value=session.pending_value,
            reopened_slots=list(session.reopened_slots),
            is_stage_complete=session.is_stage_complete(),
            turn_count=len(session.history),
            navigation=NavigationSummary(
                depth=session.navigation_state.depth,
                interaction_count=session.navigation_state.interaction_count,
            ),
        )


class TurnRequest(BaseModel):
    """One educator turn: typed text, a clicked affordance, or both.

    ``affordance`` takes an affordance name (``explore``, ``select`` ...) or
    a button key from a previous response (``ideas``, ``write_own`` ...).
    For ``select`` the chosen suggestion goes in ``text``.
    """

    text: str = Field(default="", max_length=10000)
    affordance: str | None = None

    @field_validator("affordance")
    @classmethod
    def _known_affordance(cls, value: str | None) -> str | None:
        if value is not None and value not in _AFFORDANCE_NAMES:
            raise ValueError(f"unknown affordance '{value}'")
        return value

    @model_validator(mode="after")
    def _text_or_affordance(self) -> "TurnRequest":
        if not self.text.strip() and self.affordance is None:
            raise ValueError("either text or affordance is required")
        return self


class ButtonSchema(BaseModel):
    key: str
    label: str


class TurnResponse(BaseModel):
    envelope: dict[str, Any]
    intent: dict[str, Any] | None = None
    acceptance: dict[str, Any] | None = None
    buttons: list[ButtonSchema]
    show_help: bool = False
    next_action: dict[str, str]
    diagnostics: list[str] = []
    used_fallback: bool = False
    session: SessionResponse

    @classmethod
    def from_outcome(cls, outcome: TurnOutcome) -> "TurnResponse":
        options = outcome.buttons
        intent = None
        if outcome.intent is not None:
            intent = {
                "intent": outcome.intent.intent.value,
                "confidence": outcome.intent.confidence,
                "suggested_response_mode": outcome.intent.suggested_response_mode.value,
                "reasoning": outcome.intent.reasoning,
            }
        acceptance = None
        if outcome.acceptance is not None:
            acceptance = {
                "is_acceptable": outcome.acceptance.is_acceptable,
                "needs_refinement": outcome.acceptance.needs_refinement,
                "message": outcome.acceptance.message,
            }

        return cls(
            envelope=outcome.envelope,
            intent=intent,
            acceptance=acceptance,
            buttons=[ButtonSchema(key=key, label=label) for key, label in options.items()],
            show_help=options.show_help,
            next_action={
                "suggestion": outcome.next_action.suggestion,
                "reason": outcome.next_action.reason,
                "message": outcome.next_action.message,
            },
            diagnostics=list(outcome.diagnostics),
            used_fallback=outcome.used_fallback,
            session=SessionResponse.from_session(outcome.session),
        )
