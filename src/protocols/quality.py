from __future__ import annotations

import re

from .rules import RuleSet

_WS_RE = re.compile(r"\s")

TARGET_CHARS_PER_PAGE = 2000.0
LENGTH_WEIGHT = 0.4
KEYWORD_WEIGHT = 0.4
DENSITY_WEIGHT = 0.2


def keyword_coverage(text: str, ruleset: RuleSet) -> float:
    """Share (0..100) of quality keywords present, any spelling variant counting."""

    if not ruleset.quality_keywords:
        return 0.0
    low = text.lower()
    found = sum(1 for variants in ruleset.quality_keywords if any(v.lower() in low for v in variants))
    return found / len(ruleset.quality_keywords) * 100.0


def quality_score(text: str, page_count: int, ruleset: RuleSet) -> float:
    """
    Extraction quality in [0, 100]: text density per page, coverage of the
    standard protocol section keywords, and the non-whitespace ratio.

    Empty text scores 0. Independent of parser confidence.
    """

    if not text:
        return 0.0
    pages = max(1, int(page_count))

    length_score = min(100.0, (len(text) / pages) / TARGET_CHARS_PER_PAGE * 100.0)
    density_score = len(_WS_RE.sub("", text)) / len(text) * 100.0
    score = (
        LENGTH_WEIGHT * length_score
        + KEYWORD_WEIGHT * keyword_coverage(text, ruleset)
        + DENSITY_WEIGHT * density_score
    )
    return max(0.0, min(100.0, score))
