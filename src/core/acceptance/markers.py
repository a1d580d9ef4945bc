"""Phrase tables used by the slot acceptance evaluators.

These are short, fixed lists tuned to English, US-classroom phrasing.  They
misfire on unusual wording; the evaluators treat a miss as "offer a polish",
never as a rejection, so a false negative only costs one extra button.
"""

from __future__ import annotations

import re

_I = re.IGNORECASE

# A Big Idea phrased as something students do rather than a theme.
ACTIVITY_OPENERS = re.compile(
    r"^\s*(students will|we will|kids will|have students|build|make|create|design|"
    r"write|do|plan|visit|go to|take a|conduct|research|watch|read)\b",
    _I,
)
ACTIVITY_PHRASES = re.compile(
    r"\b(field trip|worksheet|lab activity|hands-on activity|project where|"
    r"a lesson on|an activity)\b",
    _I,
)

INTERROGATIVES = re.compile(
    r"\b(how|why|what|which|who|where|when|to what extent|in what ways)\b",
    _I,
)
# Questions answerable with yes/no (or a single fact).
CLOSED_OPENERS = re.compile(
    r"^\s*(is|are|was|were|do|does|did|can|could|will|would|should|has|have|had)\b",
    _I,
)
FACTUAL_OPENERS = re.compile(r"^\s*(when did|who was|what year|how many)\b", _I)

ACTION_VERBS = re.compile(
    r"\b(design|create|build|develop|propose|produce|present|pitch|write|plan|"
    r"launch|organize|make|invent|redesign|solve|improve|advocate|publish|"
    r"curate|teach|persuade|prototype)\b",
    _I,
)
AUDIENCE_MARKERS = re.compile(
    r"\b(for|to|with)\s+(the\s+|our\s+|local\s+|younger\s+)?"
    r"(community|city council|council|parents|families|school board|principal|"
    r"students|classmates|peers|younger|residents|neighbors|neighbours|"
    r"business(es)?|museum|mayor|experts|visitors|audience|public|"
    r"organization|organisation|nonprofit|library|town|district)\b",
    _I,
)

SEQUENCE_MARKERS = re.compile(
    r"\b(first|then|next|after|afterwards|finally|before|phase|stage|step|week|"
    r"begin|start|launch|end with|followed by|leading to|culminat\w*)\b|->|→",
    _I,
)

PRODUCT_MARKERS = re.compile(
    r"\b(rubric|portfolio|presentation|exhibit(ion)?|model|prototype|report|"
    r"podcast|video|poster|website|journal|essay|proposal|checklist|quiz|"
    r"reflection|book|article|interview|guest speaker|expert|kit|software|"
    r"dataset|map|brochure|performance|showcase|demo(nstration)?|self-assessment|"
    r"peer review|feedback|library|museum|lab|field guide|template)s?\b",
    _I,
)

WORD = re.compile(r"[A-Za-z0-9']+")


def word_count(text: str) -> int:
    return len(WORD.findall(text))


def looks_like_activity(text: str) -> bool:
    return bool(ACTIVITY_OPENERS.search(text) or ACTIVITY_PHRASES.search(text))


def looks_like_question(text: str) -> bool:
    return text.strip().endswith("?") or bool(CLOSED_OPENERS.search(text))


def is_open_ended(text: str) -> bool:
    if CLOSED_OPENERS.search(text) or FACTUAL_OPENERS.search(text):
        return False
    return bool(INTERROGATIVES.search(text))


def looks_like_list(text: str) -> bool:
    """Comma/semicolon separated items with no sequencing language."""
    items = [part for part in re.split(r"[,;\n]", text) if part.strip()]
    return len(items) >= 3 and not SEQUENCE_MARKERS.search(text)
