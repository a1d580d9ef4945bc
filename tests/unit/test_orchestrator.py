"""Tests for the conversation session orchestrator."""
import asyncio
import json

import pytest
from structlog.testing import capture_logs

from src.core import events
from src.core.envelope.schemas import RECOVERY_PREFIX
from src.core.intent.models import ResponseMode, UserIntent
from src.core.orchestrator import ConversationOrchestrator, resolve_affordance
from src.core.session.models import Affordance, Stage
from src.core.session.store import InMemorySessionStore
from src.utils.exceptions import InvalidSlotError, LLMError, SessionNotFoundError

ANSWER = "Ecosystems are interconnected systems"


def recorder(orchestrator):
    seen = []
    orchestrator.events.subscribe(seen.append)
    return seen


def types(seen):
    return [event.event_type for event in seen]


class TestOfflineTurns:
    @pytest.mark.asyncio
    async def test_plain_answer_is_captured(self, session):
        orchestrator = ConversationOrchestrator()
        seen = recorder(orchestrator)

        outcome = await orchestrator.handle_turn(session, ANSWER)

        assert outcome.intent.intent == UserIntent.CONFIRMING
        assert outcome.acceptance.is_acceptable is True
        assert outcome.session.captured_values == {"bigIdea": ANSWER}
        assert outcome.session.current_slot == "essentialQuestion"
        assert outcome.envelope["currentStage"] == "Ideation"
        assert outcome.envelope["chatResponse"].startswith("Big Idea captured")
        assert outcome.used_fallback is False
        assert outcome.buttons.primary == "ideas"
        assert types(seen) == [events.SLOT_CAPTURED, events.TURN_COMPLETED]

    @pytest.mark.asyncio
    async def test_input_session_is_never_mutated(self, session):
        before = session.model_dump()
        await ConversationOrchestrator().handle_turn(session, ANSWER)
        assert session.model_dump() == before

    @pytest.mark.asyncio
    async def test_turn_is_recorded(self, session):
        outcome = await ConversationOrchestrator().handle_turn(session, ANSWER)
        turn = outcome.session.history[-1]
        assert turn.user_text == ANSWER
        assert turn.slot == "bigIdea"
        assert turn.stage == Stage.IDEATION
        assert turn.intent == outcome.intent
        assert turn.repaired_envelope == outcome.envelope

    @pytest.mark.asyncio
    async def test_turn_log_summarises_intent(self, session):
        with capture_logs() as logs:
            await ConversationOrchestrator().handle_turn(session, ANSWER)
        completed = [entry for entry in logs if entry["event"] == "turn_completed"]
        assert completed[0]["intent"].startswith("confirming (")
        assert completed[0]["captured"] == "bigIdea"

    @pytest.mark.asyncio
    async def test_question_is_answered_not_captured(self, session):
        outcome = await ConversationOrchestrator().handle_turn(
            session, "How might we reduce food waste at school?"
        )
        assert outcome.intent.intent == UserIntent.QUESTIONING
        assert outcome.acceptance is None
        assert outcome.session.captured_values == {}
        assert outcome.session.navigation_state.interaction_count == 1
        # Novice educators get examples with guidance.
        assert outcome.envelope["suggestions"]

    @pytest.mark.asyncio
    async def test_empty_text_is_rejected(self, session):
        outcome = await ConversationOrchestrator().handle_turn(session, "   ")
        assert outcome.acceptance.is_acceptable is False
        assert outcome.session.captured_values == {}
        assert outcome.session.current_slot == "bigIdea"

    @pytest.mark.asyncio
    async def test_answer_needing_polish_waits_for_keep(self, session):
        orchestrator = ConversationOrchestrator()
        first = await orchestrator.handle_turn(session, "Students will build a garden")
        assert first.acceptance.needs_refinement is True
        assert first.session.pending_value == "Students will build a garden"
        assert first.session.captured_values == {}
        assert (first.buttons.primary, first.buttons.secondary) == ("keep", "refine")

        kept = await orchestrator.handle_turn(first.session, "", Affordance.KEEP)
        assert kept.session.captured_values["bigIdea"] == "Students will build a garden"
        assert kept.session.pending_value is None
        assert kept.session.current_slot == "essentialQuestion"

    @pytest.mark.asyncio
    async def test_typed_yes_keeps_pending_value(self, session):
        orchestrator = ConversationOrchestrator()
        first = await orchestrator.handle_turn(session, "Students will build a garden")
        confirmed = await orchestrator.handle_turn(first.session, "Yes")
        assert confirmed.intent.intent == UserIntent.CONFIRMING
        assert confirmed.session.captured_values["bigIdea"] == "Students will build a garden"

    @pytest.mark.asyncio
    async def test_keep_without_pending_value(self, session):
        outcome = await ConversationOrchestrator().handle_turn(session, "", Affordance.KEEP)
        assert "keep clicked with nothing pending" in outcome.diagnostics
        assert outcome.session.captured_values == {}

    @pytest.mark.asyncio
    async def test_selected_suggestion_is_captured(self, session):
        chip = "Systems in Environmental Science are connected: changing one part changes the whole"
        outcome = await ConversationOrchestrator().handle_turn(session, chip, Affordance.SELECT)
        assert outcome.intent is None
        assert outcome.session.captured_values["bigIdea"] == chip
        assert outcome.session.history[-1].is_affordance

    @pytest.mark.asyncio
    async def test_unclear_answers_are_held_not_counted_as_branches(self, session):
        orchestrator = ConversationOrchestrator()
        first = await orchestrator.handle_turn(session, "Sustainability and systems thinking")
        assert first.intent.intent == UserIntent.EXPLORING
        assert first.intent.suggested_response_mode == ResponseMode.CLARIFY
        assert first.session.pending_value == "Sustainability and systems thinking"
        assert first.session.navigation_state.depth == 0
        assert first.envelope["chatResponse"].startswith("Just to check")

        second = await orchestrator.handle_turn(first.session, "Water cycles and human impact")
        assert second.session.pending_value == "Water cycles and human impact"
        assert second.session.navigation_state.depth == 0
        assert second.session.navigation_state.interaction_count == 0

        kept = await orchestrator.handle_turn(second.session, "", Affordance.KEEP)
        assert kept.session.captured_values == {"bigIdea": "Water cycles and human impact"}

    @pytest.mark.asyncio
    async def test_connector_alone_does_not_make_a_branch(self, session):
        outcome = await ConversationOrchestrator().handle_turn(session, "Water cycles and human impact")
        assert outcome.intent.intent == UserIntent.EXPLORING
        assert outcome.intent.suggested_response_mode == ResponseMode.ENGAGE
        assert outcome.session.captured_values == {"bigIdea": "Water cycles and human impact"}
        assert outcome.session.navigation_state.depth == 0

    @pytest.mark.asyncio
    async def test_thinking_out_loud_is_a_branch(self, session):
        outcome = await ConversationOrchestrator().handle_turn(
            session, "Maybe something about water cycles"
        )
        assert outcome.intent.intent == UserIntent.EXPLORING
        assert outcome.acceptance is None
        assert outcome.session.captured_values == {}
        assert outcome.session.pending_value is None
        assert outcome.session.navigation_state.depth == 1

    @pytest.mark.asyncio
    async def test_exploration_converges_at_max_depth(self, session):
        orchestrator = ConversationOrchestrator()
        seen = recorder(orchestrator)

        first = await orchestrator.handle_turn(session, "", Affordance.EXPLORE)
        assert first.session.navigation_state.depth == 1
        assert (first.buttons.primary, first.buttons.secondary) == ("examples", "refine")
        assert events.NAVIGATION_CONVERGED not in types(seen)

        second = await orchestrator.handle_turn(first.session, "", Affordance.EXPLORE)
        assert second.session.navigation_state.depth == 2
        assert (second.buttons.primary, second.buttons.secondary) == ("examples", "write_own")
        assert second.next_action.reason == "max_depth_reached"
        assert 0 < len(second.envelope["suggestions"]) <= 4
        assert any("Environmental Science" in s for s in second.envelope["suggestions"])

        third = await orchestrator.handle_turn(second.session, "", Affordance.EXPLORE)
        assert third.session.navigation_state.depth == 2
        assert types(seen).count(events.NAVIGATION_CONVERGED) == 1

    @pytest.mark.asyncio
    async def test_last_slot_completes_and_advances_stage(self, session):
        session.capture("bigIdea", "Systems are interconnected")
        session.capture("essentialQuestion", "How might we reduce waste?")
        session.current_slot = "challenge"
        orchestrator = ConversationOrchestrator()
        seen = recorder(orchestrator)

        outcome = await orchestrator.handle_turn(session, "Design a compost plan for the city council")

        assert outcome.envelope["isStageComplete"] is True
        assert outcome.envelope["currentStage"] == "Ideation"
        assert outcome.session.stage == Stage.LEARNING_JOURNEY
        assert outcome.session.current_slot == "phases"
        assert outcome.session.history[-1].stage == Stage.IDEATION
        assert types(seen) == [events.SLOT_CAPTURED, events.STAGE_ADVANCED, events.TURN_COMPLETED]

    @pytest.mark.asyncio
    async def test_reopened_slot_can_be_rewritten(self, session):
        orchestrator = ConversationOrchestrator()
        first = await orchestrator.handle_turn(session, ANSWER)
        first.session.reopen("bigIdea")
        again = await orchestrator.handle_turn(first.session, "Systems are interconnected")
        assert again.session.captured_values["bigIdea"] == "Systems are interconnected"
        assert again.session.reopened_slots == []


class TestModelCalls:
    @pytest.mark.asyncio
    async def test_json_reply_is_used(self, session, fake_generate, ideation_envelope):
        reply = ideation_envelope(chatResponse="Love it. What question could students chase next?")
        generate = fake_generate(json.dumps(reply))
        outcome = await ConversationOrchestrator(generate).handle_turn(session, ANSWER)

        assert outcome.envelope == reply
        assert outcome.used_fallback is False
        assert outcome.diagnostics == []
        messages = generate.calls[0]
        assert messages[0].role == "system"
        assert messages[-1].role == "user"
        assert ANSWER in messages[-1].content
        assert outcome.session.history[-1].raw_envelope == json.dumps(reply)

    @pytest.mark.asyncio
    async def test_history_is_replayed_to_the_model(self, session, fake_generate, ideation_envelope):
        generate = fake_generate(ideation_envelope(chatResponse="Tell me more?"))
        orchestrator = ConversationOrchestrator(generate)
        first = await orchestrator.handle_turn(session, "", Affordance.EXPLORE)
        await orchestrator.handle_turn(first.session, ANSWER)

        roles = [m.role for m in generate.calls[1]]
        assert roles == ["system", "user", "assistant", "user"]
        assert generate.calls[1][1].content == "[clicked: explore]"

    @pytest.mark.asyncio
    async def test_malformed_reply_is_repaired(self, session, fake_generate):
        generate = fake_generate(
            {"chatResponse": "Sure.", "currentStage": "Deliverables", "isStageComplete": True}
        )
        orchestrator = ConversationOrchestrator(generate)
        seen = recorder(orchestrator)

        outcome = await orchestrator.handle_turn(session, "", Affordance.EXPLORE)

        assert outcome.used_fallback is False
        assert outcome.envelope["currentStage"] == "Ideation"
        assert outcome.envelope["isStageComplete"] is False
        assert "isStageComplete True overridden to False" in outcome.diagnostics
        repaired = [e for e in seen if e.event_type == events.ENVELOPE_REPAIRED]
        assert len(repaired) == 1
        assert repaired[0].payload["repairs"] == outcome.diagnostics

    @pytest.mark.asyncio
    async def test_long_reply_is_truncated(self, session, fake_generate, ideation_envelope):
        generate = fake_generate(ideation_envelope(chatResponse="This is sentence number one. " * 60))
        outcome = await ConversationOrchestrator(generate).handle_turn(session, ANSWER)
        assert len(outcome.envelope["chatResponse"].split()) == 250
        assert outcome.envelope["chatResponse"].endswith("one.")
        assert "chatResponse truncated to 250 words" in outcome.diagnostics

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reply, reason",
        [
            (LLMError("anthropic", "overloaded"), "LLM error (anthropic): overloaded"),
            (RuntimeError("socket closed"), "AI call failed: socket closed"),
            ("Sorry, I can't help with that.", "AI reply contained no usable envelope"),
            (42, "AI reply contained no usable envelope"),
        ],
    )
    async def test_failures_use_recovery_envelope(self, session, fake_generate, reply, reason):
        orchestrator = ConversationOrchestrator(fake_generate(reply))
        seen = recorder(orchestrator)

        outcome = await orchestrator.handle_turn(session, ANSWER)

        assert outcome.used_fallback is True
        assert outcome.envelope["chatResponse"].startswith(RECOVERY_PREFIX)
        assert outcome.envelope["currentStage"] == "Ideation"
        assert outcome.diagnostics[0] == reason
        assert events.AI_FAILED in types(seen)
        assert events.ENVELOPE_REPAIRED not in types(seen)
        assert events.SLOT_CAPTURED not in types(seen)
        assert outcome.session.model_dump() == session.model_dump()
        assert outcome.session.captured_values == {}
        assert outcome.session.history == []

    @pytest.mark.asyncio
    async def test_retry_after_timeout_sees_the_same_state(self, session, fake_generate, ideation_envelope):
        async def slow(messages):
            await asyncio.sleep(5)

        orchestrator = ConversationOrchestrator(slow, timeout_seconds=0.01)
        seen = recorder(orchestrator)

        explored = await orchestrator.handle_turn(session, "", Affordance.EXPLORE)
        assert explored.session.navigation_state.depth == 0

        failed = await orchestrator.handle_turn(explored.session, ANSWER)
        assert failed.used_fallback is True
        assert failed.session.captured_values == {}
        assert failed.session.current_slot == "bigIdea"
        assert failed.session.pending_value is None
        assert failed.session.history == []
        assert events.SLOT_CAPTURED not in types(seen)

        orchestrator.generate = fake_generate(ideation_envelope())
        retried = await orchestrator.handle_turn(failed.session, ANSWER)
        assert retried.used_fallback is False
        assert retried.session.captured_values == {"bigIdea": ANSWER}
        assert retried.session.current_slot == "essentialQuestion"

    @pytest.mark.asyncio
    async def test_pending_value_survives_failed_keep(self, session, fake_generate, ideation_envelope):
        generate = fake_generate(
            ideation_envelope(), LLMError("openai", "rate limited"), ideation_envelope()
        )
        orchestrator = ConversationOrchestrator(generate)

        first = await orchestrator.handle_turn(session, "Students will build a garden")
        assert first.session.pending_value == "Students will build a garden"

        failed = await orchestrator.handle_turn(first.session, "", Affordance.KEEP)
        assert failed.used_fallback is True
        assert failed.session.pending_value == "Students will build a garden"
        assert failed.session.captured_values == {}
        assert (failed.buttons.primary, failed.buttons.secondary) == ("keep", "refine")

        kept = await orchestrator.handle_turn(failed.session, "", Affordance.KEEP)
        assert kept.session.captured_values == {"bigIdea": "Students will build a garden"}

    @pytest.mark.asyncio
    async def test_timeout_uses_recovery_envelope(self, session):
        async def slow(messages):
            await asyncio.sleep(5)

        orchestrator = ConversationOrchestrator(slow, timeout_seconds=0.01)
        outcome = await orchestrator.handle_turn(session, "", Affordance.EXPLORE)
        assert outcome.used_fallback is True
        assert outcome.diagnostics[0].startswith("AI call timed out")
        assert outcome.envelope["chatResponse"].startswith(RECOVERY_PREFIX)

    @pytest.mark.asyncio
    async def test_cancellation_leaves_session_untouched(self, session):
        started = asyncio.Event()

        async def hang(messages):
            started.set()
            await asyncio.Event().wait()

        orchestrator = ConversationOrchestrator(hang)
        seen = recorder(orchestrator)
        before = session.model_dump()

        task = asyncio.create_task(orchestrator.handle_turn(session, ANSWER))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert session.model_dump() == before
        assert events.TURN_COMPLETED not in types(seen)

    @pytest.mark.asyncio
    async def test_broken_listener_does_not_break_turn(self, session):
        orchestrator = ConversationOrchestrator()

        def broken(event):
            raise RuntimeError("metrics down")

        orchestrator.events.subscribe(broken)
        outcome = await orchestrator.handle_turn(session, ANSWER)
        assert outcome.session.captured_values == {"bigIdea": ANSWER}


class TestStoreBackedTurns:
    @pytest.mark.asyncio
    async def test_submit_turn_persists(self, session):
        store = InMemorySessionStore()
        orchestrator = ConversationOrchestrator(store=store)
        await orchestrator.start_session(session)

        await orchestrator.submit_turn("proj-1", ANSWER)
        stored = await store.get("proj-1")
        assert stored.captured_values == {"bigIdea": ANSWER}
        assert len(stored.history) == 1

    @pytest.mark.asyncio
    async def test_button_keys_are_accepted(self, session):
        store = InMemorySessionStore()
        orchestrator = ConversationOrchestrator(store=store)
        await orchestrator.start_session(session)

        await orchestrator.submit_turn("proj-1", "", "ideas")
        assert (await store.get("proj-1")).navigation_state.depth == 1

    @pytest.mark.asyncio
    async def test_turns_are_serialised_per_session(self, session, fake_generate, ideation_envelope):
        async def yielding(messages):
            await asyncio.sleep(0.01)
            return ideation_envelope()

        store = InMemorySessionStore()
        orchestrator = ConversationOrchestrator(yielding, store=store)
        await orchestrator.start_session(session)

        await asyncio.gather(
            orchestrator.submit_turn("proj-1", "", "ideas"),
            orchestrator.submit_turn("proj-1", "", "ideas"),
        )
        stored = await store.get("proj-1")
        assert len(stored.history) == 2
        assert stored.navigation_state.depth == 2

    @pytest.mark.asyncio
    async def test_unknown_session(self):
        store = InMemorySessionStore()
        orchestrator = ConversationOrchestrator(store=store)
        with pytest.raises(SessionNotFoundError):
            await orchestrator.submit_turn("missing", ANSWER)
        with pytest.raises(SessionNotFoundError):
            await orchestrator.reopen_slot("missing", "bigIdea")
        assert "missing" not in store._locks

    @pytest.mark.asyncio
    async def test_reopen_slot(self, session):
        store = InMemorySessionStore()
        orchestrator = ConversationOrchestrator(store=store)
        await orchestrator.start_session(session)
        await orchestrator.submit_turn("proj-1", ANSWER)

        reopened = await orchestrator.reopen_slot("proj-1", "bigIdea")
        assert reopened.current_slot == "bigIdea"
        assert (await store.get("proj-1")).reopened_slots == ["bigIdea"]
        with pytest.raises(InvalidSlotError):
            await orchestrator.reopen_slot("proj-1", "challenge")

    @pytest.mark.asyncio
    async def test_requires_store(self, session):
        with pytest.raises(RuntimeError):
            await ConversationOrchestrator().submit_turn("proj-1", ANSWER)


def test_resolve_affordance():
    assert resolve_affordance("write_own") == Affordance.REFINE
    assert resolve_affordance("select") == Affordance.SELECT
    assert resolve_affordance(Affordance.HELP) == Affordance.HELP
    assert resolve_affordance(None) is None
    with pytest.raises(ValueError):
        resolve_affordance("dance")


def test_from_settings():
    from src.config import Settings

    settings = Settings(max_depth=3, length_budgets={"help": (1, 10)}, llm_timeout_seconds=5.0)
    orchestrator = ConversationOrchestrator.from_settings(settings)
    assert orchestrator.max_depth == 3
    assert orchestrator.timeout_seconds == 5.0
    assert orchestrator.length_enforcer.budget_for("help") == (1, 10)
    assert orchestrator.generate is None
