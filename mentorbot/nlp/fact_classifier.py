"""Deterministic classifier for durable personal facts.

Intent classification logic:
- `classify` lowercases the input and runs fixed multilingual cue patterns
  (EN/PL/DE/ES) in priority order: name > location > preference > other.
- The first category with a matching cue wins; no match means not durable.
- The input is split into clauses at sentence and comma breaks. Clauses that
  read as questions are ignored, so "where do I live?" is not durable while
  "I live in Warsaw, and you?" still is.

Interaction with memory:
- Used by `mentorbot.memory.long_term.LongTermMemoryStore.remember` as the gate
  that decides whether a user message reaches long-term storage.
- No imports from core, retrieval, or LLM layers.

Determinism:
- Pure function of the input string. No model fallback, no side effects.

Failure handling:
- Empty, blank, or non-string input returns `(False, "other")`. The function
  never raises.
"""

import re
from dataclasses import dataclass

from mentorbot.memory.models import (
    CATEGORY_LOCATION,
    CATEGORY_NAME,
    CATEGORY_OTHER,
    CATEGORY_PREFERENCE,
)


@dataclass(frozen=True)
class FactClassification:
    """Classifier verdict for one text."""

    is_durable: bool
    category: str = CATEGORY_OTHER


NOT_DURABLE = FactClassification(is_durable=False, category=CATEGORY_OTHER)


# =========================================================
# CUE PATTERNS
# =========================================================

NAME_CUES = [
    r"\bmy name is\b", r"\bmy name's\b", r"\bi am called\b", r"\bi'm called\b",
    r"\b(?:you can|please) call me\b",
    r"\bnazywam si[eę]\b", r"\bmam na imi[eę]\b", r"\bmoje imi[eę] to\b",
    r"\bich hei(?:ß|ss)e\b", r"\bmein name ist\b",
    r"\bme llamo\b", r"\bmi nombre es\b",
]

LOCATION_CUES = [
    r"\bi live (?:in|at|near)\b", r"\bi(?: am|'m) living in\b",
    r"\bi(?: am|'m) from\b", r"\bi come from\b", r"\bi moved to\b",
    r"\bi(?: am|'m) based in\b", r"\bmy hometown\b",
    r"\bmieszkam (?:w|we|na)\b", r"\bpochodz[eę] z\b",
    r"\bprzeprowadzi(?:łem|łam) si[eę] do\b",
    r"\bich wohne in\b", r"\bich lebe in\b", r"\bich komme aus\b",
    r"\bvivo en\b", r"\bsoy de\b",
]

PREFERENCE_CUES = [
    r"\bi (?:really )?(?:like|love|enjoy|prefer|hate|dislike)\b",
    r"\bi (?:don't|do not) like\b", r"\bmy favou?rite\b",
    r"\blubi[eę]\b", r"\bkocham\b", r"\bwol[eę]\b", r"\bnie znosz[eę]\b",
    r"\bm[oó]j ulubiony\b", r"\bmoja ulubiona\b", r"\bmoje ulubione\b",
    r"\bich mag\b", r"\bich liebe\b", r"\bich bevorzuge\b", r"\blieblings\w*",
    r"\bme gusta\b", r"\bme encanta\b", r"\bprefiero\b",
]

OTHER_CUES = [
    r"\bi work (?:as|at|for|in)\b",
    r"\bi(?: am|'m) an? (?:\w+ )?(?:developer|engineer|designer|programmer|freelancer|student|teacher|manager)\b",
    r"\bi(?: am|'m) \d{1,3} years old\b",
    r"\bmy (?:wife|husband|son|daughter|partner|girlfriend|boyfriend|dog|cat|birthday|job)\b",
    r"\bi have (?:a|an|one|two|three) (?:kids?|children|sons?|daughters?|dogs?|cats?)\b",
    r"\bpracuj[eę] (?:jako|w|dla)\b", r"\bmam \d{1,3} lat\b",
    r"\bjestem (?:programist[aąę]|freelancerem|studentem|studentk[aąę]|grafikiem)\b",
    r"\bich arbeite (?:als|bei|in)\b", r"\bich bin \d{1,3} jahre alt\b",
    r"\btrabajo (?:como|en|para)\b", r"\btengo \d{1,3} años\b",
]

# Priority order matters: the first category with a match wins.
CATEGORY_CUES = (
    (CATEGORY_NAME, [re.compile(p) for p in NAME_CUES]),
    (CATEGORY_LOCATION, [re.compile(p) for p in LOCATION_CUES]),
    (CATEGORY_PREFERENCE, [re.compile(p) for p in PREFERENCE_CUES]),
    (CATEGORY_OTHER, [re.compile(p) for p in OTHER_CUES]),
)

QUESTION_OPENER = re.compile(
    r"^(?:what|where|who|whom|whose|when|why|how|which"
    r"|do you|does|did you|can you|could you|would you|will you"
    r"|czy|gdzie|kto|kiedy|dlaczego|jak"
    r"|wo|wer|wann|warum|wie"
    r"|d[oó]nde|qui[eé]n|cu[aá]ndo|c[oó]mo|por qu[eé])\b"
)

CLAUSE_BREAK = re.compile(r"(?<=[.!?;,…])\s+")


def _normalize(text: str) -> str:
    text = text.strip().lower()
    text = text.replace("’", "'").replace("‘", "'")
    return re.sub(r"\s+", " ", text)


def is_question(text: str) -> bool:
    """Detect interrogative input via trailing `?`, leading `¿` or an opener word."""
    lower = _normalize(text)
    if not lower:
        return False
    return lower.endswith("?") or lower.startswith("¿") or bool(QUESTION_OPENER.match(lower))


def classify(text) -> FactClassification:
    """
    Decide whether `text` is a durable personal fact and assign a category.

    Edge cases:
    - Non-string, empty, or whitespace-only input -> not durable.
    - Question clauses -> ignored, even when they mention a cue phrase.
      A statement clause next to a question still counts.
    - Several matching categories -> the highest-priority one is returned.
    """
    if not isinstance(text, str):
        return NOT_DURABLE

    lower = _normalize(text)
    if not lower:
        return NOT_DURABLE

    statements = [c for c in CLAUSE_BREAK.split(lower) if c and not is_question(c)]
    if not statements:
        return NOT_DURABLE

    for category, patterns in CATEGORY_CUES:
        if any(p.search(clause) for p in patterns for clause in statements):
            return FactClassification(is_durable=True, category=category)

    return NOT_DURABLE
