"""Department classifier — keyword heuristic over ticket title + description.

Each known department key (``ti``, ``financeiro``, ``rh``, ``producao``)
owns a list of keywords from ``helpdesk.config.DEPARTMENT_KEYWORDS``.  At
import time every keyword is normalised like ticket text and tagged as a
*phrase* (contains a space, matched as a substring of the flattened text)
or a *word* (matched against the token set, with a naive plural/singular
fallback worth half the points).

Scoring per candidate department:

* phrase found in text              → +2
* word found as a token             → +2
* word plural/singular found        → +1
* department name itself as a token → +3

The highest score wins; ties keep the department listed first.  Candidates
whose name has no entry in the table are ignored, so callers can pass the
full remote directory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Sequence

from helpdesk.config import DEPARTMENT_KEYWORDS
from helpdesk.preprocessing.text_cleaner import clean, combine_fields, department_key, tokenize
from helpdesk.schemas import Department

logger = logging.getLogger(__name__)

PHRASE_POINTS = 2
WORD_POINTS = 2
NEAR_WORD_POINTS = 1
DIRECT_MENTION_POINTS = 3


class KeywordKind(Enum):
    PHRASE = "phrase"
    WORD = "word"


@dataclass(frozen=True)
class Keyword:
    text: str
    kind: KeywordKind

    @classmethod
    def parse(cls, raw: str) -> "Keyword | None":
        text = clean(raw)
        if not text:
            return None
        kind = KeywordKind.PHRASE if " " in text else KeywordKind.WORD
        return cls(text, kind)


def build_keyword_table(raw: Mapping[str, Iterable[str]]) -> dict[str, tuple[Keyword, ...]]:
    """Normalise a ``{department_key: [keyword, ...]}`` mapping, keeping order."""
    table: dict[str, tuple[Keyword, ...]] = {}
    for key, words in raw.items():
        parsed = (Keyword.parse(w) for w in words)
        table[department_key(key)] = tuple(k for k in parsed if k is not None)
    return table


KEYWORD_TABLE = build_keyword_table(DEPARTMENT_KEYWORDS)


def _keyword_points(keyword: Keyword, flat: str, tokens: frozenset[str]) -> int:
    if keyword.kind is KeywordKind.PHRASE:
        return PHRASE_POINTS if keyword.text in flat else 0

    word = keyword.text
    if word in tokens:
        return WORD_POINTS
    near = word[:-1] if word.endswith("s") else f"{word}s"
    if near and near in tokens:
        return NEAR_WORD_POINTS
    return 0


def score_department(
    name: str,
    flat: str,
    tokens: frozenset[str],
    table: Mapping[str, tuple[Keyword, ...]] = KEYWORD_TABLE,
) -> int | None:
    """Score one department name, or ``None`` if it has no keyword entry."""
    key = department_key(name)
    keywords = table.get(key)
    if keywords is None:
        return None
    score = sum(_keyword_points(k, flat, tokens) for k in keywords)
    if key in tokens:
        score += DIRECT_MENTION_POINTS
    return score


def score_departments(
    title: str,
    description: str,
    departments: Sequence[Department],
    table: Mapping[str, tuple[Keyword, ...]] = KEYWORD_TABLE,
) -> list[tuple[Department, int]]:
    """Scores for every eligible department, in input order."""
    raw = combine_fields(title, description)
    if not raw:
        return []
    flat, tokens = tokenize(raw)
    scored = []
    for dept in departments:
        score = score_department(dept.name, flat, tokens, table)
        if score is not None:
            scored.append((dept, score))
    return scored


def classify(
    title: str,
    description: str,
    departments: Sequence[Department],
    table: Mapping[str, tuple[Keyword, ...]] = KEYWORD_TABLE,
) -> Department | None:
    """Return the best-matching department for the ticket text, or ``None``."""
    if not departments:
        return None

    best: tuple[Department, int] | None = None
    for dept, score in score_departments(title, description, departments, table):
        if best is None or score > best[1]:
            best = (dept, score)

    if best is None or best[1] <= 0:
        logger.debug("No department matched (%d candidates)", len(departments))
        return None

    logger.debug("Classified as %s (score=%d)", best[0].name, best[1])
    return best[0]
