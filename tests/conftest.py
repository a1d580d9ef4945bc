import pytest

from src.core.session.models import ConversationSession, ProjectContext, Stage


@pytest.fixture
def project():
    return ProjectContext(
        subject="Environmental Science",
        age_group="7th grade",
        experience_level="novice",
    )


@pytest.fixture
def session(project):
    return ConversationSession(project_id="proj-1", project=project)


@pytest.fixture
def ideation_envelope():
    """A complete, schema-valid Ideation envelope."""

    def _make(**overrides):
        envelope = {
            "interactionType": "conversationalIdeation",
            "currentStage": Stage.IDEATION.value,
            "chatResponse": "Great start. What concept sits underneath that idea?",
            "isStageComplete": False,
            "suggestions": None,
            "buttons": None,
            "currentStep": None,
            "ideationProgress": None,
            "dataToStore": None,
        }
        envelope.update(overrides)
        return envelope

    return _make


class FakeGenerate:
    """Stand-in for the model call: records prompts and replays replies."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def __call__(self, messages):
        self.calls.append(messages)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def fake_generate():
    return FakeGenerate
