"""Branching strategy selection.

Pure lookup and templating over :mod:`src.core.strategy.catalog`.  Every
entry point takes plain strings and returns frozen values, so results are
memoised by content with :func:`functools.lru_cache` and can be shared
between concurrent sessions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

from src.core.session.models import SLOT_LABELS
from src.core.strategy import catalog

_NUMBER = re.compile(r"\d+")
_GRADE = re.compile(r"\b(?:grades?\s*(\d+)|(\d+)(?:st|nd|rd|th)\s*grade)\b", re.IGNORECASE)


@dataclass(frozen=True)
class AgeFeedback:
    too_abstract: str
    too_complex: str
    good_fit: str


@dataclass(frozen=True)
class StrategySelection:
    """Coaching copy and examples for one step.

    Attributes:
        suggestions: Example phrases templated with the subject.
        copy_template: Framing sentence shown above the suggestions.
        domain: Matched subject domain.
        age_band: Matched age band.
        feedback: Age-band phrasing for too-abstract/too-complex/good-fit.
    """

    suggestions: tuple[str, ...]
    copy_template: str
    domain: str
    age_band: str
    feedback: AgeFeedback


@dataclass(frozen=True)
class ScaffoldingProfile:
    label: str
    guidance_level: str
    example_count: int
    pacing: str
    offer_unsolicited_examples: bool


# ----- Taxonomy matching ------------------------------------------------------


@lru_cache(maxsize=256)
def subject_domain(subject: str) -> str:
    text = (subject or "").lower()
    for domain, keywords in catalog.SUBJECT_DOMAINS.items():
        if any(re.search(rf"\b{re.escape(keyword)}\b", text) for keyword in keywords):
            return domain
    return catalog.DEFAULT_DOMAIN


def _band_for_age(age: int) -> str:
    if age <= 10:
        return "elementary"
    if age <= 13:
        return "middle"
    if age <= 18:
        return "high"
    return "adult"


@lru_cache(maxsize=256)
def age_band(age_group: str) -> str:
    """Map free-text age descriptions ("Ages 8-10", "9th grade") to a band."""
    text = (age_group or "").lower()
    if any(term in text for term in catalog.COLLEGE_TERMS):
        return "college"
    if any(term in text for term in catalog.ADULT_TERMS):
        return "adult"
    if any(term in text for term in catalog.ELEMENTARY_TERMS):
        return "elementary"
    if any(term in text for term in catalog.MIDDLE_TERMS):
        return "middle"
    if any(term in text for term in catalog.HIGH_TERMS):
        return "high"

    grade = _GRADE.search(text)
    if grade:
        return _band_for_age(int(grade.group(1) or grade.group(2)) + 5)
    number = _NUMBER.search(text)
    if number:
        return _band_for_age(int(number.group()))
    return catalog.DEFAULT_AGE_BAND


# ----- Entry points -----------------------------------------------------------


def _copy_key(intent: str) -> str:
    if intent in ("questioning", "uncertain"):
        return "explain"
    if intent == "exploring":
        return "what_if"
    if intent in ("submitting", "confirming"):
        return "affirm"
    return "default"


@lru_cache(maxsize=512)
def select_strategy(step: str, intent: str, subject: str, age_group: str) -> StrategySelection:
    """Choose examples and framing copy for *step*.

    *intent* is a :class:`~src.core.intent.models.UserIntent` value; plain
    strings are accepted so the result can be cached by content.
    """
    intent = getattr(intent, "value", intent)
    domain = subject_domain(subject)
    band = age_band(age_group)
    subject_name = (subject or "").strip() or "your subject"

    templates = catalog.EXAMPLES[domain].get(step) or catalog.STEP_EXAMPLES.get(step, ())
    suggestions = tuple(t.format(subject=subject_name) for t in templates)

    copy_template = catalog.COPY_TEMPLATES[_copy_key(intent)].format(
        step_label=SLOT_LABELS.get(step, step),
        subject=subject_name,
        focus=catalog.STEP_FOCUS.get(step, "what matters most to your students"),
    )
    return StrategySelection(
        suggestions=suggestions,
        copy_template=copy_template,
        domain=domain,
        age_band=band,
        feedback=AgeFeedback(*catalog.AGE_FEEDBACK[band]),
    )


@lru_cache(maxsize=128)
def cross_subject_prompts(primary: str, secondary: str) -> tuple[str, ...]:
    """Connection prompts for a project that spans two subjects."""
    primary = (primary or "").strip()
    secondary = (secondary or "").strip()
    if not primary or not secondary or primary.lower() == secondary.lower():
        return ()
    return tuple(
        t.format(primary=primary, secondary=secondary)
        for t in catalog.CROSS_SUBJECT_TEMPLATES
    )


@lru_cache(maxsize=32)
def scaffolding_for(experience_label: str) -> ScaffoldingProfile:
    label = (experience_label or "").strip().lower()
    label = catalog.EXPERIENCE_ALIASES.get(label, label)
    if label not in catalog.SCAFFOLDING:
        label = catalog.DEFAULT_EXPERIENCE
    guidance, count, pacing, unsolicited = catalog.SCAFFOLDING[label]
    return ScaffoldingProfile(label, guidance, count, pacing, unsolicited)


def guidance_style_for(band: str) -> str:
    return catalog.GUIDANCE_STYLES.get(band, catalog.GUIDANCE_STYLES[catalog.DEFAULT_AGE_BAND])
