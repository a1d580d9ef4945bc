"""Lexical pattern table for the heuristic intent classifier.

Each intent owns a list of ``(compiled pattern, weight)`` pairs.  A message
earns the weight once for every pattern that matches anywhere in it.  The
table is plain data so tests can enumerate every rule.

The phrase lists are tuned to English, US-classroom phrasing; they are an
approximation, not a language model.
"""

from __future__ import annotations

import re

from src.core.intent.models import UserIntent

PATTERN_WEIGHT = 10

_I = re.IGNORECASE


def _rules(*patterns: str) -> list[tuple[re.Pattern[str], int]]:
    return [(re.compile(p, _I), PATTERN_WEIGHT) for p in patterns]


INTENT_PATTERNS: dict[UserIntent, list[tuple[re.Pattern[str], int]]] = {
    UserIntent.EXPLORING: _rules(
        # Thinking out loud
        r"\b(maybe|perhaps|possibly|might|could be|thinking about|wondering if)\b",
        r"\b(not sure|unsure|don't know|trying to|figuring out)\b",
        r"\b(exploring|considering|pondering|contemplating)\b",
        # Brainstorming phrases
        r"\b(one idea|an idea|thinking maybe|we could try)\b",
        r"\b(something like|along the lines of|sort of|kind of)\b",
        r"\b(i'm thinking|i've been thinking|what if we)\b",
        # Stream of consciousness
        r"\.\.\.",
        r"\band\s+also\b",
        r"\bor\s+maybe\b",
        r"\b(another idea|also thinking|what about|or we could)\b",
    ),
    UserIntent.QUESTIONING: _rules(
        r"\?\s*$",
        r"^\s*(what|when|where|who|why|how|which|can|could|should|would|will|is|are|do|does|did)\s",
        r"\b(wondering|curious|asking|question|unclear|confused)\b",
        r"^\s*(tell me|explain|help me understand|clarify|what does)\b",
        r"\b(example|for instance|such as|like what)\b",
        r"\b(show me|can you give|could you provide)\b",
    ),
    UserIntent.SUBMITTING: _rules(
        r"^\s*(my|our|the)\s+(idea|question|challenge|answer)\s+(is|will be|would be)\b",
        r"^\s*(here's|here is|this is)\s+(my|our|the)\b",
        r"\b(definitely|certainly|absolutely|for sure)\b",
        r"^\s*(done|finished|complete|that's it|final answer)\b",
        r"\b(ready to move|let's go with|i'll go with|decided on)\b",
    ),
    UserIntent.ELABORATING: _rules(
        r"^\s*(also|additionally|furthermore|moreover|plus)\b",
        r"^\s*(to add|building on|expanding on|more specifically)\b",
        r"\b(because|since|due to|the reason)\b",
        r"^\s*(what i mean|to clarify|in other words|specifically)\b",
        r"^\s*(by that|when i say|i meant)\b",
    ),
    UserIntent.CONFIRMING: _rules(
        r"^\s*(yes|yeah|yep|correct|exactly|right|that's it|perfect)\b",
        r"^\s*(sounds good|looks good|works for me|let's do it)\b",
        r"^\s*(i agree|confirmed|approved|go ahead)\b",
    ),
    UserIntent.REFINING: _rules(
        r"^\s*(actually|wait|hold on|scratch that|no wait)\b",
        r"^\s*(let me rephrase|i meant to say|correction)\b",
        r"\b(change|modify|adjust|revise|edit)\b",
        r"^\s*(instead|rather than|different idea)\b",
    ),
    UserIntent.UNCERTAIN: _rules(
        r"^\s*(i don't know|not sure|confused|lost)\b",
        r"\b(help|stuck|difficult|struggling)\b",
        r"^\s*(um+|uh+|hmm+)\b",
        r"\b(is this right|am i on track|does this make sense)\b",
    ),
}

FILLER_OPENING = re.compile(r"^\s*(so|well|um|uh|like|you know)\b", _I)
CLAUSE_CONNECTORS = re.compile(r"\b(and|but|or|because|since|although|while)\b", _I)
LIST_STRUCTURE = re.compile(r"(\d+\.|\n\s*[-*•]|\b(first|second|third)\b)", _I)
SENTENCE_SPLIT = re.compile(r"[.!?]+")

# Structural score adjustments: feature -> {intent: delta}
STRUCTURE_ADJUSTMENTS: dict[str, dict[UserIntent, int]] = {
    "ends_with_question": {UserIntent.QUESTIONING: 15},
    "starts_with_filler": {UserIntent.EXPLORING: 5, UserIntent.UNCERTAIN: 3},
    "short_message": {UserIntent.CONFIRMING: 5, UserIntent.SUBMITTING: -5},
    "long_message": {UserIntent.EXPLORING: 8, UserIntent.ELABORATING: 5},
    "multiple_clauses": {UserIntent.EXPLORING: 5, UserIntent.ELABORATING: 3},
    "list_structure": {UserIntent.SUBMITTING: 8, UserIntent.EXPLORING: -3},
}

SHORT_MESSAGE_WORDS = 5
LONG_MESSAGE_WORDS = 50

# Step-position multipliers
INTRODUCTORY_MULTIPLIERS: dict[UserIntent, float] = {
    UserIntent.EXPLORING: 1.3,
    UserIntent.QUESTIONING: 1.2,
}
CLOSING_MULTIPLIERS: dict[UserIntent, float] = {
    UserIntent.CONFIRMING: 1.25,
    UserIntent.REFINING: 1.2,
}
