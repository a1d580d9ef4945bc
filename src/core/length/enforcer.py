"""Word-count budgets for AI replies."""

from __future__ import annotations

import re
from dataclasses import dataclass

from src.core.intent.models import ResponseMode
from src.utils.logging import get_logger

logger = get_logger("length.enforcer")

DEFAULT_BUDGETS: dict[str, tuple[int, int]] = {
    "confirmation": (5, 60),
    "clarification": (10, 80),
    "brainstorming": (20, 150),
    "help": (30, 200),
    "grounding": (40, 250),
}

DEFAULT_CONTEXT = "brainstorming"

ELLIPSIS = "..."

_WORD = re.compile(r"\S+")

# Sentence-ending punctuation, optionally followed by closing quotes/brackets.
_SENTENCE_END = re.compile(r"[.!?][\"')\]]*$")


@dataclass(frozen=True)
class LengthResult:
    text: str
    word_count: int
    was_modified: bool
    under_length: bool = False


def context_for(mode: ResponseMode, is_first_turn: bool = False) -> str:
    """Pick a budget context for a response mode."""
    if is_first_turn:
        return "grounding"
    if mode == ResponseMode.CONFIRM:
        return "confirmation"
    if mode == ResponseMode.CLARIFY:
        return "clarification"
    if mode == ResponseMode.GUIDE:
        return "help"
    return "brainstorming"


class ResponseLengthEnforcer:
    """Trims replies that run over budget and flags ones that run short.

    Parameters
    ----------
    budgets:
        ``{context: (min_words, max_words)}``; entries override the
        built-in budgets of the same name.
    """

    def __init__(self, budgets: dict[str, tuple[int, int]] | None = None):
        self.budgets = dict(DEFAULT_BUDGETS)
        for context, (low, high) in (budgets or {}).items():
            self.budgets[context] = (int(low), int(high))

    def budget_for(self, context: str) -> tuple[int, int]:
        return self.budgets.get(context) or self.budgets[DEFAULT_CONTEXT]

    def enforce(self, text: str, context: str) -> LengthResult:
        low, high = self.budget_for(context)
        spans = [m.span() for m in _WORD.finditer(text)]
        count = len(spans)

        if count > high:
            trimmed = self._truncate(text, spans, high)
            new_count = len(trimmed.split())
            logger.info(
                "response_truncated",
                context=context,
                original_words=count,
                words=new_count,
            )
            return LengthResult(text=trimmed, word_count=new_count, was_modified=True)

        if count < low:
            logger.info("response_under_length", context=context, words=count, minimum=low)
            return LengthResult(text=text, word_count=count, was_modified=False, under_length=True)

        return LengthResult(text=text, word_count=count, was_modified=False)

    @staticmethod
    def _truncate(text: str, spans: list[tuple[int, int]], limit: int) -> str:
        if limit <= 0:
            return ""
        kept = spans[:limit]
        for start, end in reversed(kept):
            if _SENTENCE_END.search(text[start:end]):
                return text[:end]
        start, end = kept[-1]
        return text[:start] + text[start:end].rstrip(".,;:!?") + ELLIPSIS
