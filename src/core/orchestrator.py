"""Conversation session orchestrator.

Runs one educator turn end to end::

    classify -> evaluate / capture -> track navigation -> build prompt
    -> generate (timeout) -> parse -> validate / repair -> enforce length
    -> reconcile stage -> buttons -> append turn -> publish events

All decisions are made on a deep copy of the session.  The copy is returned
as :attr:`TurnOutcome.session` only after a usable model reply, so a
cancelled, failed or timed-out call leaves the session exactly as it was.
The model call is the only ``await`` inside a turn.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from src.core import events
from src.core.acceptance.evaluator import AcceptanceResult, evaluator_for_slot
from src.core.envelope.parser import extract_envelope
from src.core.envelope.validator import (
    ResponseValidator,
    ValidationResult,
    fallback_envelope,
    recovery_message,
)
from src.core.events import TurnEventBus
from src.core.intent.classifier import IntentClassifier, IntentContext, format_classification
from src.core.intent.models import IntentClassification, ResponseMode, UserIntent
from src.core.length.enforcer import ResponseLengthEnforcer, context_for
from src.core.llm.client import PromptMessage
from src.core.navigation.controller import ButtonOptions, DepthController, NextAction
from src.core.prompts.builder import PromptBuilder, TurnPlan
from src.core.prompts.stages import PENDING_CONFIRMATION, SLOT_PROMPTS
from src.core.session.models import (
    SLOT_LABELS,
    Affordance,
    ConversationSession,
    NavigationKind,
    Stage,
    Turn,
)
from src.core.session.store import SessionStore
from src.core.strategy.selector import StrategySelection, scaffolding_for, select_strategy
from src.utils.exceptions import LLMError
from src.utils.logging import get_logger

logger = get_logger("orchestrator")

GenerateFn = Callable[[list[PromptMessage]], Awaitable[Any]]

DEFAULT_TIMEOUT_SECONDS = 30.0

# Button keys from ButtonOptions -> the affordance a click on them means.
BUTTON_AFFORDANCES: dict[str, Affordance] = {
    "ideas": Affordance.EXPLORE,
    "examples": Affordance.EXAMPLES,
    "help": Affordance.HELP,
    "write_own": Affordance.REFINE,
    "refine": Affordance.REFINE,
    "keep": Affordance.KEEP,
}

_NAVIGATION_BY_INTENT: dict[UserIntent, NavigationKind] = {
    UserIntent.EXPLORING: NavigationKind.EXPLORATION,
    UserIntent.QUESTIONING: NavigationKind.HELP,
    UserIntent.UNCERTAIN: NavigationKind.HELP,
    UserIntent.REFINING: NavigationKind.REFINEMENT,
}

_NAVIGATION_BY_AFFORDANCE: dict[Affordance, NavigationKind] = {
    Affordance.EXPLORE: NavigationKind.EXPLORATION,
    Affordance.EXAMPLES: NavigationKind.EXAMPLES,
    Affordance.HELP: NavigationKind.HELP,
    Affordance.REFINE: NavigationKind.REFINEMENT,
    Affordance.SELECT: NavigationKind.SELECTION,
}

_MODE_BY_AFFORDANCE: dict[Affordance, ResponseMode] = {
    Affordance.EXPLORE: ResponseMode.ENGAGE,
    Affordance.EXAMPLES: ResponseMode.GUIDE,
    Affordance.HELP: ResponseMode.GUIDE,
    Affordance.KEEP: ResponseMode.CONFIRM,
    Affordance.SELECT: ResponseMode.CONFIRM,
    Affordance.REFINE: ResponseMode.ENGAGE,
}

_INTENT_BY_AFFORDANCE: dict[Affordance, UserIntent] = {
    Affordance.EXPLORE: UserIntent.EXPLORING,
    Affordance.EXAMPLES: UserIntent.QUESTIONING,
    Affordance.HELP: UserIntent.UNCERTAIN,
    Affordance.KEEP: UserIntent.CONFIRMING,
    Affordance.SELECT: UserIntent.SUBMITTING,
    Affordance.REFINE: UserIntent.REFINING,
}


def resolve_affordance(value: str | Affordance | None) -> Affordance | None:
    """Accept an affordance value or a button key such as ``write_own``."""
    if value is None or isinstance(value, Affordance):
        return value
    if value in BUTTON_AFFORDANCES:
        return BUTTON_AFFORDANCES[value]
    return Affordance(value)


@dataclass
class TurnOutcome:
    """Everything the rendering layer needs after a turn.

    Attributes:
        session: The updated session; the input session is never mutated.
        envelope: Repaired envelope, safe to render.
        intent: Classification of typed input; ``None`` for clicks.
        buttons: Affordances to offer next.
        acceptance: Verdict on the input when it was evaluated as an answer.
        next_action: Depth controller's suggestion for the active slot.
        diagnostics: Repairs and decisions made during the turn.
        used_fallback: The model reply was unusable or the call failed.
    """

    session: ConversationSession
    envelope: dict[str, Any]
    intent: IntentClassification | None
    buttons: ButtonOptions
    acceptance: AcceptanceResult | None
    next_action: NextAction
    diagnostics: list[str] = field(default_factory=list)
    used_fallback: bool = False


class ConversationOrchestrator:
    """Composition root for the conversation engine.

    Parameters
    ----------
    generate:
        Coroutine taking prompt messages and returning model text (or an
        already-parsed object).  ``None`` runs the rule-based offline mode.
    store:
        Session store used by :meth:`submit_turn` and friends.
    event_bus:
        Receives turn events; a private bus is created when omitted.
    """

    def __init__(
        self,
        generate: GenerateFn | None = None,
        *,
        store: SessionStore | None = None,
        max_depth: int = 2,
        max_interactions: int = 5,
        confidence_threshold: float = 50.0,
        length_budgets: dict[str, tuple[int, int]] | None = None,
        required_fields: dict[str, list[str]] | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        event_bus: TurnEventBus | None = None,
    ):
        self.generate = generate
        self.store = store
        self.max_depth = max_depth
        self.max_interactions = max_interactions
        self.timeout_seconds = timeout_seconds
        self.required_fields = required_fields or {}
        self.classifier = IntentClassifier(confidence_threshold)
        self.validator = ResponseValidator(self.required_fields)
        self.length_enforcer = ResponseLengthEnforcer(length_budgets)
        self.prompts = PromptBuilder(required_fields=self.required_fields)
        self.events = event_bus or TurnEventBus()

    @classmethod
    def from_settings(cls, settings, generate=None, store=None, event_bus=None):
        return cls(
            generate,
            store=store,
            max_depth=settings.max_depth,
            max_interactions=settings.max_interactions,
            confidence_threshold=settings.intent_confidence_threshold,
            length_budgets=settings.length_budgets,
            required_fields=settings.stage_required_fields,
            timeout_seconds=settings.llm_timeout_seconds,
            event_bus=event_bus,
        )

    # ----- Store-backed entry points ----------------------------------------

    async def start_session(self, session: ConversationSession) -> ConversationSession:
        return await self._require_store().create(session)

    async def submit_turn(
        self,
        project_id: str,
        user_text: str,
        affordance: str | Affordance | None = None,
    ) -> TurnOutcome:
        """Load, run and save one turn while holding the session's lock."""
        store = self._require_store()
        async with store.lock_for(project_id):
            session = await store.get(project_id)
            outcome = await self.handle_turn(session, user_text, resolve_affordance(affordance))
            await store.save(outcome.session)
            return outcome

    async def reopen_slot(self, project_id: str, slot: str) -> ConversationSession:
        store = self._require_store()
        async with store.lock_for(project_id):
            session = await store.get(project_id)
            session.reopen(slot)
            await store.save(session)
            logger.info("slot_reopened", project_id=project_id, slot=slot)
            return session

    def _require_store(self) -> SessionStore:
        if self.store is None:
            raise RuntimeError("ConversationOrchestrator was created without a session store")
        return self.store

    # ----- Turn processing ----------------------------------------------------

    async def handle_turn(
        self,
        session: ConversationSession,
        user_text: str,
        affordance: Affordance | None = None,
    ) -> TurnOutcome:
        working = session.model_copy(deep=True)
        stage = working.stage
        slot = working.current_slot
        text = (user_text or "").strip()
        diagnostics: list[str] = []
        is_first_turn = not working.history

        controller = self._controller(working)
        converging_before = controller.is_converging

        classification: IntentClassification | None = None
        if affordance is None:
            classification = self.classifier.classify(text, self._intent_context(working))
            intent = classification.intent
            mode = classification.suggested_response_mode
            kind = _NAVIGATION_BY_INTENT.get(intent) if classification.confidence > 0 else None
        else:
            intent = _INTENT_BY_AFFORDANCE[affordance]
            mode = _MODE_BY_AFFORDANCE[affordance]
            kind = _NAVIGATION_BY_AFFORDANCE.get(affordance)

        acceptance, captured = self._decide_capture(
            working, text, affordance, classification, converging_before, diagnostics
        )

        # An answer attempt is not a branch; a held selection is still recorded.
        answered = acceptance is not None and kind != NavigationKind.SELECTION
        if kind is not None and slot is not None and captured is None and not answered:
            choice = text or (affordance.value if affordance else "")
            controller.track_navigation(choice, kind)

        # Capturing moves to a new slot with fresh counters.
        controller = self._controller(working)
        converging = controller.is_converging and working.current_slot == slot

        strategy = self._strategy(working, intent)
        show_examples = converging or affordance in (Affordance.EXAMPLES, Affordance.HELP) or (
            mode == ResponseMode.GUIDE
            and scaffolding_for(working.project.experience_level).offer_unsolicited_examples
        )
        budget_context = context_for(mode, is_first_turn)
        plan = TurnPlan(
            user_text=text or (f"[clicked: {affordance.value}]" if affordance else ""),
            classification=classification,
            strategy=strategy,
            converging=converging,
            budget=self.length_enforcer.budget_for(budget_context),
            acceptance=acceptance,
            captured=captured,
            show_examples=show_examples,
        )

        raw, validation = await self._respond(working, plan, stage)
        if validation.used_fallback:
            return self._failed_turn(session, stage, slot, classification, validation)

        envelope = validation.envelope
        repairs: list[str] = list(validation.errors)
        length = self.length_enforcer.enforce(envelope["chatResponse"], budget_context)
        if length.was_modified:
            repairs.append(f"chatResponse truncated to {length.word_count} words")
            envelope["chatResponse"] = length.text

        if envelope.get("suggestions") is None and show_examples and strategy and strategy.suggestions:
            envelope["suggestions"] = list(strategy.suggestions[:4])

        advanced_to = self._reconcile_stage(working, stage, envelope, repairs)
        diagnostics.extend(repairs)

        controller = self._controller(working)
        buttons = controller.button_options(pending_value=working.pending_value is not None)
        next_action = controller.suggest_next_action()

        working.append_turn(
            Turn(
                user_text=text,
                affordance=affordance,
                stage=stage,
                slot=slot,
                intent=classification,
                raw_envelope=raw if isinstance(raw, (str, dict, list, type(None))) else repr(raw),
                repaired_envelope=envelope,
                diagnostics=list(diagnostics),
            )
        )

        outcome = TurnOutcome(
            session=working,
            envelope=envelope,
            intent=classification,
            buttons=buttons,
            acceptance=acceptance,
            next_action=next_action,
            diagnostics=diagnostics,
            used_fallback=validation.used_fallback,
        )
        self._publish(outcome, stage, slot, captured, repairs, converging_before, converging, advanced_to)
        return outcome

    # ----- Steps --------------------------------------------------------------

    def _controller(self, session: ConversationSession) -> DepthController:
        return DepthController(session.navigation_state, self.max_depth, self.max_interactions)

    @staticmethod
    def _intent_context(session: ConversationSession) -> IntentContext:
        previous = next(
            (turn.intent.intent for turn in reversed(session.history) if turn.intent is not None),
            None,
        )
        last_assistant = session.history[-1].assistant_text if session.history else None
        return IntentContext(
            stage=session.stage.value,
            step_position=session.step_position(),
            previous_intent=previous,
            last_assistant_message=last_assistant,
            turn_count=len(session.turns_in_stage()),
        )

    def _decide_capture(
        self,
        session: ConversationSession,
        text: str,
        affordance: Affordance | None,
        classification: IntentClassification | None,
        converging: bool,
        diagnostics: list[str],
    ) -> tuple[AcceptanceResult | None, tuple[str, str] | None]:
        """Apply the capture rules to *session* in place.

        Returns the acceptance verdict (when the input was evaluated as an
        answer) and the ``(slot, value)`` captured on this turn, if any.
        """
        slot = session.current_slot
        if slot is None:
            return None, None

        if affordance == Affordance.KEEP:
            if session.pending_value is None:
                diagnostics.append("keep clicked with nothing pending")
                return None, None
            return None, self._capture(session, slot, session.pending_value)

        if (
            classification is not None
            and classification.intent == UserIntent.CONFIRMING
            and session.pending_value is not None
        ):
            return None, self._capture(session, slot, session.pending_value)

        if affordance is not None and affordance != Affordance.SELECT:
            return None, None

        if classification is not None and not self._is_answer(classification, text, converging):
            return None, None

        result = evaluator_for_slot(slot).evaluate(text, session.captured_values)
        if not result.is_acceptable:
            return result, None

        clarify = (
            classification is not None
            and classification.suggested_response_mode == ResponseMode.CLARIFY
            and classification.confidence > 0
        )
        if result.needs_refinement or clarify:
            session.pending_value = text
            return result, None
        return result, self._capture(session, slot, text)

    def _is_answer(self, classification: IntentClassification, text: str, converging: bool) -> bool:
        intent = classification.intent
        if intent == UserIntent.QUESTIONING:
            return False
        # A message with no signals at all is a plain statement.
        if intent == UserIntent.UNCERTAIN:
            return classification.confidence == 0
        # Structure alone (an "and", a long message) does not make a branch;
        # tentative phrasing below the threshold may still be a draft answer.
        if intent == UserIntent.EXPLORING:
            return (
                converging
                or classification.suggested_response_mode == ResponseMode.CLARIFY
                or not self.classifier.has_pattern(text, UserIntent.EXPLORING)
            )
        return True

    @staticmethod
    def _capture(session: ConversationSession, slot: str, value: str) -> tuple[str, str]:
        session.capture(slot, value)
        session.advance_slot()
        logger.info("slot_captured", project_id=session.project_id, slot=slot)
        return slot, value.strip()

    @staticmethod
    def _strategy(session: ConversationSession, intent: UserIntent) -> StrategySelection | None:
        if session.current_slot is None:
            return None
        return select_strategy(
            session.current_slot,
            intent.value,
            session.project.subject,
            session.project.age_group,
        )

    async def _respond(
        self,
        session: ConversationSession,
        plan: TurnPlan,
        stage: Stage,
    ) -> tuple[Any, ValidationResult]:
        if self.generate is None:
            raw = self._offline_envelope(session, plan, stage)
            return raw, self.validator.validate(raw, stage)

        messages = self.prompts.build(session, plan)
        try:
            raw = await asyncio.wait_for(self.generate(messages), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            return None, self._ai_failure(session, stage, f"AI call timed out after {self.timeout_seconds}s")
        except LLMError as exc:
            return None, self._ai_failure(session, stage, str(exc))
        except Exception as exc:
            return None, self._ai_failure(session, stage, f"AI call failed: {exc}")

        parsed = extract_envelope(raw)
        if parsed is None:
            return raw, self._ai_failure(session, stage, "AI reply contained no usable envelope")

        validation = self.validator.validate(parsed, stage)
        if validation.used_fallback:
            validation.envelope["chatResponse"] = recovery_message(stage)
        return raw, validation

    def _ai_failure(self, session: ConversationSession, stage: Stage, reason: str) -> ValidationResult:
        logger.warning("ai_call_failed", project_id=session.project_id, reason=reason)
        self.events.publish(events.AI_FAILED, session.project_id, stage=stage.value, reason=reason)
        return ValidationResult(
            is_valid=False,
            errors=[reason],
            envelope=fallback_envelope(stage, recovery_message(stage), self.required_fields),
            used_fallback=True,
        )

    def _failed_turn(
        self,
        session: ConversationSession,
        stage: Stage,
        slot: str | None,
        classification: IntentClassification | None,
        validation: ValidationResult,
    ) -> TurnOutcome:
        """Outcome for an unusable model reply.

        Nothing decided during the turn is kept: the session comes back as it
        was handed in, so a retry re-enters the same slot and depth.
        """
        restored = session.model_copy(deep=True)
        envelope = validation.envelope
        envelope["isStageComplete"] = restored.is_stage_complete(stage)
        controller = self._controller(restored)
        outcome = TurnOutcome(
            session=restored,
            envelope=envelope,
            intent=classification,
            buttons=controller.button_options(pending_value=restored.pending_value is not None),
            acceptance=None,
            next_action=controller.suggest_next_action(),
            diagnostics=list(validation.errors),
            used_fallback=True,
        )
        self._publish(outcome, stage, slot, None, [], False, False, None)
        return outcome

    def _offline_envelope(
        self,
        session: ConversationSession,
        plan: TurnPlan,
        stage: Stage,
    ) -> dict[str, Any]:
        """Rule-based reply used when no model is configured."""
        parts: list[str] = []
        if plan.captured is not None:
            slot, value = plan.captured
            parts.append(evaluator_for_slot(slot).affirm(value, session.captured_values))
        elif plan.acceptance is not None:
            verdict = plan.acceptance
            if not verdict.is_acceptable or verdict.needs_refinement or not session.pending_value:
                parts.append(verdict.message)
            else:
                # Acceptable, but held back because the intent was unclear.
                slot = session.current_slot or ""
                parts.append(
                    PENDING_CONFIRMATION.format(
                        value=session.pending_value, slot_label=SLOT_LABELS.get(slot, slot)
                    )
                )
        if plan.strategy is not None and plan.show_examples:
            parts.append(plan.strategy.copy_template)
        if session.current_slot and not session.pending_value:
            parts.append(SLOT_PROMPTS.get(session.current_slot, ""))

        envelope = fallback_envelope(stage, " ".join(p for p in parts if p) or None, self.required_fields)
        envelope["isStageComplete"] = session.is_stage_complete(stage)
        if plan.strategy is not None and plan.show_examples:
            envelope["suggestions"] = list(plan.strategy.suggestions[:4]) or None
        return envelope

    def _reconcile_stage(
        self,
        session: ConversationSession,
        stage: Stage,
        envelope: dict[str, Any],
        repairs: list[str],
    ) -> Stage | None:
        """Make ``isStageComplete`` agree with the session and advance if done."""
        complete = session.is_stage_complete(stage)
        if envelope["isStageComplete"] != complete:
            repairs.append(
                f"isStageComplete {envelope['isStageComplete']} overridden to {complete}"
            )
            envelope["isStageComplete"] = complete
        if complete and session.stage == stage and stage != Stage.COMPLETE:
            return session.advance_stage()
        return None

    def _publish(
        self,
        outcome: TurnOutcome,
        stage: Stage,
        slot: str | None,
        captured: tuple[str, str] | None,
        repairs: list[str],
        converging_before: bool,
        converging: bool,
        advanced_to: Stage | None,
    ) -> None:
        project_id = outcome.session.project_id
        if captured is not None:
            self.events.publish(events.SLOT_CAPTURED, project_id, slot=captured[0])
        if converging and not converging_before:
            self.events.publish(
                events.NAVIGATION_CONVERGED,
                project_id,
                slot=slot,
                reason=outcome.next_action.reason,
            )
        if repairs:
            self.events.publish(events.ENVELOPE_REPAIRED, project_id, repairs=list(repairs))
        if advanced_to is not None:
            self.events.publish(
                events.STAGE_ADVANCED, project_id, previous=stage.value, stage=advanced_to.value
            )
        self.events.publish(
            events.TURN_COMPLETED,
            project_id,
            stage=stage.value,
            slot=slot,
            intent=outcome.intent.intent.value if outcome.intent else None,
            used_fallback=outcome.used_fallback,
        )
        logger.info(
            "turn_completed",
            project_id=project_id,
            stage=stage.value,
            slot=slot,
            captured=captured[0] if captured else None,
            intent=format_classification(outcome.intent) if outcome.intent else None,
            repairs=len(outcome.diagnostics),
            fallback=outcome.used_fallback,
        )
