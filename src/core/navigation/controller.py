"""Per-slot depth controller.

Bounds how far a user can branch through "explore more" suggestions before
the conversation is steered toward concrete examples.  The controller
mutates the :class:`~src.core.session.models.NavigationState` it wraps; the
orchestrator hands it a state belonging to a working copy of the session,
so nothing changes on the caller's session until the turn commits.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.core.session.models import NavigationEvent, NavigationKind, NavigationState
from src.utils.logging import get_logger

logger = get_logger("navigation.controller")

DEFAULT_MAX_DEPTH = 2
DEFAULT_MAX_INTERACTIONS = 5

BUTTON_LABELS: dict[str, str] = {
    "ideas": "Give me ideas",
    "examples": "Show me examples",
    "help": "Help me understand",
    "write_own": "I'll write my own",
    "refine": "Let me refine this",
    "keep": "Keep it as is",
}


@dataclass(frozen=True)
class NextAction:
    suggestion: str
    reason: str
    message: str = ""


@dataclass(frozen=True)
class ButtonOptions:
    """UI affordances to offer for the current depth state."""

    primary: str
    secondary: str
    tertiary: str | None = None
    show_help: bool = False
    labels: dict[str, str] = field(default_factory=dict)

    def items(self) -> list[tuple[str, str]]:
        """(key, label) pairs in display order."""
        keys = [self.primary, self.secondary]
        if self.tertiary:
            keys.append(self.tertiary)
        return [(key, self.labels.get(key, key)) for key in keys]


class DepthController:
    """Tracks exploration depth for the active slot.

    Parameters
    ----------
    state:
        Navigation counters for the slot; mutated in place.
    max_depth:
        Exploration depth at which further branching stops.
    max_interactions:
        Interaction count above which further branching stops.
    """

    def __init__(
        self,
        state: NavigationState,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_interactions: int = DEFAULT_MAX_INTERACTIONS,
    ):
        self.state = state
        self.max_depth = max_depth
        self.max_interactions = max_interactions

    @property
    def depth(self) -> int:
        return self.state.depth

    @property
    def interaction_count(self) -> int:
        return self.state.interaction_count

    def track_navigation(self, choice: str, kind: NavigationKind) -> None:
        if kind == NavigationKind.EXPLORATION:
            self.state.depth = min(self.state.depth + 1, self.max_depth)
            self.state.interaction_count += 1
        elif kind in (NavigationKind.REFINEMENT, NavigationKind.HELP):
            self.state.interaction_count += 1

        self.state.events.append(
            NavigationEvent(choice=choice, kind=kind, depth=self.state.depth)
        )
        logger.debug(
            "navigation_tracked",
            choice=choice,
            kind=kind.value,
            depth=self.state.depth,
            interactions=self.state.interaction_count,
        )

    def should_show_more_options(self) -> bool:
        if self.state.depth >= self.max_depth:
            return False
        return self.state.interaction_count <= self.max_interactions

    @property
    def is_converging(self) -> bool:
        return not self.should_show_more_options()

    def suggest_next_action(self) -> NextAction:
        if not self.state.events:
            return NextAction("explore", "just_started")
        if self.state.depth >= self.max_depth:
            return NextAction(
                "show_examples", "max_depth_reached", "Let's make this more concrete:"
            )
        if self.state.interaction_count > self.max_interactions:
            return NextAction(
                "show_examples",
                "interaction_limit",
                "Based on your interests, here are some concrete options:",
            )
        return NextAction("continue_exploring", "still_exploring")

    def button_options(self, pending_value: bool = False) -> ButtonOptions:
        if pending_value:
            return ButtonOptions("keep", "refine", labels=dict(BUTTON_LABELS))
        if self.suggest_next_action().suggestion == "show_examples":
            return ButtonOptions("examples", "write_own", labels=dict(BUTTON_LABELS))
        if self.state.depth == 0:
            return ButtonOptions(
                "ideas", "examples", "help", show_help=True, labels=dict(BUTTON_LABELS)
            )
        return ButtonOptions("examples", "refine", labels=dict(BUTTON_LABELS))

    def reset_for_next_slot(self) -> None:
        self.state.depth = 0
        self.state.interaction_count = 0
        self.state.events.clear()
