from __future__ import annotations

import logging
from collections.abc import Iterable

from contracts.protocols import Candidate

from .cleanup import normalize_ws
from .codes import is_valid_code

_log = logging.getLogger(__name__)


def merge_candidates(*candidate_lists: Iterable[Candidate]) -> list[Candidate]:
    """
    Deduplicate by code across strategies.

    Lists are consumed in the order given. A later candidate replaces the kept
    one only with strictly higher confidence, so ties keep the first seen. The
    winner is kept verbatim (fields are never blended). Output is sorted by code.
    """

    by_code: dict[str, Candidate] = {}
    for cands in candidate_lists:
        for c in cands:
            kept = by_code.get(c.code)
            if kept is None or c.confidence > kept.confidence:
                by_code[c.code] = c
    return [by_code[code] for code in sorted(by_code)]


def validate_candidates(
    candidates: Iterable[Candidate],
    *,
    min_confidence: float = 25.0,
    logger: logging.Logger | None = None,
) -> list[Candidate]:
    """
    Drop implausible candidates and normalize title whitespace. Does not deduplicate.
    """

    logger = logger or _log
    out: list[Candidate] = []
    for c in candidates:
        title = normalize_ws(c.title)
        if not is_valid_code(c.code):
            reason = "invalid_code"
        elif len(title) < 3:
            reason = "title_too_short"
        elif title == c.code:
            reason = "title_is_code"
        elif c.confidence < min_confidence:
            reason = "low_confidence"
        else:
            out.append(c if title == c.title else c.evolve(title=title))
            continue
        logger.debug("dropping candidate %s %r: %s", c.code, c.title, reason)
    return out
