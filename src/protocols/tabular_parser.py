from __future__ import annotations

import logging
import re
from typing import Any

from contracts.protocols import Candidate, SourceStrategy
from contracts.tables import Row, Table

from .cleanup import LETTERS_RE, clean_title, is_punctuation_only, normalize_ws, split_dci
from .codes import find_code, is_valid_code
from .rules import RuleSet

_log = logging.getLogger(__name__)

# Cell-level labels that are never titles on their own.
_LABEL_START_RE = re.compile(r"^(DCI|cod\s*[\(:)])", re.IGNORECASE)
_PREV_CELL_REJECT_RE = re.compile(r"^(DCI|cod|nr\.|poziţiei|poziției|\d+)", re.IGNORECASE)
_NUMERIC_START_RE = re.compile(r"^\d")

BASE_CONFIDENCE = 70.0


def _pick_title(row: Row, code: str, ruleset: RuleSet, row_text: str) -> str:
    cells = row.cells
    code_idx = next((i for i, c in enumerate(cells) if code in c.text), None)

    if code_idx is not None:
        cell_text = normalize_ws(cells[code_idx].text)
        after = cell_text[cell_text.index(code) + len(code):].strip() if code in cell_text else ""
        if (
            len(after) > 3
            and not is_punctuation_only(after)
            and not ruleset.is_junk_start(after)
            and _LABEL_START_RE.match(after) is None
        ):
            return after

        if code_idx + 1 < len(cells):
            nxt = normalize_ws(cells[code_idx + 1].text)
            if (
                len(nxt) > 2
                and not ruleset.is_junk_start(nxt)
                and _LABEL_START_RE.match(nxt) is None
                and _NUMERIC_START_RE.match(nxt) is None
                and not is_punctuation_only(nxt)
            ):
                return nxt

        if code_idx > 0:
            prev = normalize_ws(cells[code_idx - 1].text)
            if len(prev) > 2 and not ruleset.is_junk_start(prev) and _PREV_CELL_REJECT_RE.match(prev) is None:
                return prev

    for c in cells:
        t = normalize_ws(c.text)
        if len(t) < 3 or is_valid_code(t):
            continue
        if ruleset.is_junk_start(t) or _LABEL_START_RE.match(t) is not None or is_punctuation_only(t):
            continue
        return t

    return normalize_ws(row_text.replace(code, "", 1))


def score_tabular_title(code: str, title: str, ruleset: RuleSet) -> float:
    """
    70 base, +10 valid code, +10 plausible length, +10 real words, +5 clean. Not clamped.
    """

    confidence = BASE_CONFIDENCE
    if is_valid_code(code):
        confidence += 10
    if 5 <= len(title) < 300:
        confidence += 10
    if LETTERS_RE.search(title):
        confidence += 10
    if not ruleset.has_corruption_fragment(title):
        confidence += 5
    return confidence


def parse_row(row: Row, *, page_num: int, ruleset: RuleSet) -> Candidate | None:
    """
    One table row -> one candidate, or None when the row carries no protocol code
    or no usable title.
    """

    row_text = normalize_ws(row.text())
    if len(row_text) < 3:
        return None

    m = find_code(row_text)
    if m is None:
        return None
    code = m.group(1)

    title = clean_title(_pick_title(row, code, ruleset, row_text))
    if ruleset.is_junk_start(title) or len(title) < 3:
        return None

    title, dci = split_dci(title)
    extra = normalize_ws(" ".join(c.text for c in row.cells[2:]))

    return Candidate(
        code=code,
        title=title,
        dci=dci,
        additional_info=extra or None,
        content=row_text,
        page_number=page_num,
        confidence=score_tabular_title(code, title, ruleset),
        source_strategy=SourceStrategy.TABLE,
    )


def parse_table_candidates(
    tables: list[Table],
    *,
    ruleset: RuleSet,
    logger: logging.Logger | None = None,
) -> tuple[list[Candidate], list[dict[str, Any]]]:
    """
    Run `parse_row` over every row of every table.

    A row that raises is logged and reported as a ROW_PARSE_FAILED warning; the
    remaining rows are still parsed.
    """

    logger = logger or _log
    out: list[Candidate] = []
    warnings: list[dict[str, Any]] = []
    for table in tables:
        for row in table.rows:
            try:
                cand = parse_row(row, page_num=table.page_num, ruleset=ruleset)
            except Exception as e:
                logger.warning("Row %d on page %d could not be parsed: %r", row.row_index, table.page_num, e)
                warnings.append(
                    {
                        "code": "ROW_PARSE_FAILED",
                        "page_num": table.page_num,
                        "row_index": row.row_index,
                        "error": repr(e),
                    }
                )
                continue
            if cand is not None:
                logger.debug("table candidate %s %r (%.0f)", cand.code, cand.title, cand.confidence)
                out.append(cand)
    return out, warnings
