"""Assemble the messages sent to the text-generation model for one turn."""

from __future__ import annotations

from dataclasses import dataclass

from src.core.acceptance.evaluator import AcceptanceResult
from src.core.envelope.schemas import INTERACTION_TYPES, schema_for
from src.core.intent.models import IntentClassification, ResponseMode
from src.core.llm.client import PromptMessage
from src.core.prompts.stages import (
    CAPTURED_INSTRUCTION,
    CONVERGE_INSTRUCTION,
    ENVELOPE_INSTRUCTIONS,
    EXAMPLES_INSTRUCTION,
    MODE_INSTRUCTIONS,
    PENDING_CONFIRMATION,
    REFINEMENT_INSTRUCTION,
    SLOT_PROMPTS,
    STAGE_GUIDANCE,
    SYSTEM_PROMPT,
)
from src.core.session.models import SLOT_LABELS, ConversationSession
from src.core.strategy.selector import (
    StrategySelection,
    cross_subject_prompts,
    guidance_style_for,
    scaffolding_for,
)

DEFAULT_HISTORY_WINDOW = 6


@dataclass
class TurnPlan:
    """Decisions made before the model call that the prompt must reflect.

    Attributes:
        user_text: What the educator typed, or the label they clicked.
        classification: Intent of typed input; ``None`` for clicks.
        strategy: Examples and copy for the active step.
        converging: The depth controller has stopped further branching.
        budget: ``(min_words, max_words)`` for the reply.
        acceptance: Verdict on the input when it was evaluated as an answer.
        captured: ``(slot, value)`` confirmed on this turn.
        show_examples: Include the strategy's examples in the prompt.
    """

    user_text: str
    classification: IntentClassification | None
    strategy: StrategySelection | None
    converging: bool
    budget: tuple[int, int]
    acceptance: AcceptanceResult | None = None
    captured: tuple[str, str] | None = None
    show_examples: bool = False


class PromptBuilder:
    """Builds the chat messages for a turn.

    Parameters
    ----------
    history_window:
        Number of previous turns replayed to the model.
    required_fields:
        Per-stage field-name overrides, so the requested JSON shape matches
        what the validator will enforce.
    """

    def __init__(
        self,
        history_window: int = DEFAULT_HISTORY_WINDOW,
        required_fields: dict[str, list[str]] | None = None,
    ):
        self.history_window = history_window
        self.required_fields = required_fields

    def build(self, session: ConversationSession, plan: TurnPlan) -> list[PromptMessage]:
        messages = [PromptMessage("system", self._system(session, plan))]
        recent = session.history[-self.history_window:] if self.history_window > 0 else []
        for turn in recent:
            user = turn.user_text
            if turn.is_affordance:
                user = f"[clicked: {turn.user_text or turn.affordance.value}]"
            messages.append(PromptMessage("user", user))
            if turn.assistant_text:
                messages.append(PromptMessage("assistant", turn.assistant_text))
        messages.append(PromptMessage("user", self._turn_message(session, plan)))
        return messages

    # ----- Sections -----------------------------------------------------------

    def _system(self, session: ConversationSession, plan: TurnPlan) -> str:
        project = session.project
        scaffolding = scaffolding_for(project.experience_level)
        band = plan.strategy.age_band if plan.strategy else "middle"
        bridges = cross_subject_prompts(project.subject, project.secondary_subject or "")
        cross_subject = ""
        if bridges:
            cross_subject = "- Cross-subject connections to weave in:\n" + "\n".join(
                f"  - {line}" for line in bridges
            ) + "\n"

        system = SYSTEM_PROMPT.format(
            subject=project.subject or "not specified",
            age_group=project.age_group or "not specified",
            age_band=band,
            experience_level=scaffolding.label,
            cross_subject=cross_subject,
            guidance_style=guidance_style_for(band),
            guidance_level=scaffolding.guidance_level,
            pacing=scaffolding.pacing,
            min_words=plan.budget[0],
            max_words=plan.budget[1],
        )
        fields = "\n".join(
            f'- "{name}"' for name in schema_for(session.stage, self.required_fields)
        )
        envelope = ENVELOPE_INSTRUCTIONS.format(
            fields=fields,
            stage=session.stage.value,
            interaction_types=", ".join(INTERACTION_TYPES),
        )
        return "\n".join([system, STAGE_GUIDANCE[session.stage.value], "", envelope])

    def _turn_message(self, session: ConversationSession, plan: TurnPlan) -> str:
        lines: list[str] = []
        slot = session.current_slot
        if slot:
            label = SLOT_LABELS.get(slot, slot)
            lines.append(f"Current item: {label}. {SLOT_PROMPTS.get(slot, '')}".strip())
        if session.captured_values:
            confirmed = "; ".join(
                f"{SLOT_LABELS.get(name, name)}: {value}"
                for name, value in session.captured_values.items()
            )
            lines.append(f"Confirmed so far: {confirmed}")

        if plan.captured:
            captured_slot, value = plan.captured
            lines.append(
                CAPTURED_INSTRUCTION.format(
                    value=value, slot_label=SLOT_LABELS.get(captured_slot, captured_slot)
                )
            )
        elif plan.acceptance and plan.acceptance.needs_refinement and session.pending_value:
            lines.append(
                REFINEMENT_INSTRUCTION.format(
                    pending=session.pending_value,
                    slot_label=SLOT_LABELS.get(slot or "", slot or "this item"),
                    coaching=plan.acceptance.message,
                )
            )
        elif plan.acceptance and session.pending_value:
            prompt = PENDING_CONFIRMATION.format(
                value=session.pending_value,
                slot_label=SLOT_LABELS.get(slot or "", slot or "this item"),
            )
            lines.append(f"Check with the educator before saving. {prompt}")

        mode = (
            plan.classification.suggested_response_mode
            if plan.classification
            else ResponseMode.ENGAGE
        )
        lines.append(MODE_INSTRUCTIONS[mode.value])
        if plan.converging:
            lines.append(CONVERGE_INSTRUCTION)

        if plan.strategy and plan.show_examples and plan.strategy.suggestions:
            count = scaffolding_for(session.project.experience_level).example_count
            if plan.converging:
                count = max(count, 3)
            examples = "\n".join(f"- {s}" for s in plan.strategy.suggestions[:count])
            lines.append(
                EXAMPLES_INSTRUCTION.format(copy=plan.strategy.copy_template, examples=examples)
            )

        lines.append(f"Educator: {plan.user_text}")
        return "\n".join(lines)
