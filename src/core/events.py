"""Turn events published by the orchestrator.

Observers (metrics, UI hints, stuck detection) subscribe to the bus owned
by an orchestrator instance.  Listener failures are logged and never reach
the turn that published the event.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from src.core.session.models import utcnow
from src.utils.logging import get_logger

logger = get_logger("events")

TURN_COMPLETED = "turn.completed"
ENVELOPE_REPAIRED = "envelope.repaired"
NAVIGATION_CONVERGED = "navigation.converged"
AI_FAILED = "ai.failed"
SLOT_CAPTURED = "slot.captured"
STAGE_ADVANCED = "stage.advanced"


@dataclass(frozen=True)
class TurnEvent:
    event_type: str
    project_id: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: Any = field(default_factory=utcnow)


EventListener = Callable[[TurnEvent], None]


class TurnEventBus:
    """Fan-out of :class:`TurnEvent` objects to local subscribers."""

    def __init__(self) -> None:
        self._listeners: list[EventListener] = []

    def subscribe(self, listener: EventListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, event_type: str, project_id: str, **payload: Any) -> TurnEvent:
        event = TurnEvent(event_type=event_type, project_id=project_id, payload=payload)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("event_listener_failed", event_type=event_type)
        return event
