"""Tests for extracting envelopes from raw model text."""
import json

import pytest

from src.core.envelope.parser import extract_envelope

ENVELOPE = {"chatResponse": "Nice idea!", "isStageComplete": False, "suggestions": ["A", "B"]}


def test_plain_json():
    assert extract_envelope(json.dumps(ENVELOPE)) == ENVELOPE


def test_dict_passes_through():
    assert extract_envelope(ENVELOPE) is ENVELOPE


def test_fenced_json():
    text = "Here you go:\n```json\n" + json.dumps(ENVELOPE) + "\n```\nEnjoy."
    assert extract_envelope(text) == ENVELOPE


def test_json_inside_prose():
    text = "Sure! " + json.dumps(ENVELOPE) + " Let me know."
    assert extract_envelope(text) == ENVELOPE


def test_broken_json_recovers_known_fields():
    text = '{"chatResponse": "Let\'s think about \\"systems\\".", "isStageComplete": true, "buttons": ["Keep", "Refine"], '
    envelope = extract_envelope(text)
    assert envelope == {
        "chatResponse": "Let's think about \"systems\".",
        "isStageComplete": True,
        "buttons": ["Keep", "Refine"],
    }


def test_single_quoted_chat_response():
    assert extract_envelope("{'chatResponse': 'Hello there'")["chatResponse"] == "Hello there"


@pytest.mark.parametrize("raw", [None, 42, ["a"], "", "   ", "Sorry, I can't help with that.", "[1, 2]"])
def test_unusable_input_returns_none(raw):
    assert extract_envelope(raw) is None
