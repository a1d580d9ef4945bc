class FlowEngineError(Exception):
    """Base exception for the project-design conversation engine."""


class SessionNotFoundError(FlowEngineError):
    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Session not found: {project_id}")


class SessionExistsError(FlowEngineError):
    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Session already exists: {project_id}")


class StageTransitionError(FlowEngineError):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move from stage '{current}' to '{requested}'")


class SlotLockedError(FlowEngineError):
    def __init__(self, slot: str):
        self.slot = slot
        super().__init__(
            f"Slot '{slot}' already has a confirmed value; reopen it before changing it",
        )


class LLMError(FlowEngineError):
    def __init__(self, provider: str, detail: str):
        self.provider = provider
        super().__init__(f"LLM error ({provider}): {detail}")


class InvalidSlotError(FlowEngineError):
    def __init__(self, slot: str, detail: str):
        self.slot = slot
        super().__init__(f"Invalid slot '{slot}': {detail}")
