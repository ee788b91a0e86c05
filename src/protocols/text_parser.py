from __future__ import annotations

import logging
import re
from typing import Any

from contracts.layout import LayoutDocument
from contracts.protocols import Candidate, SourceStrategy

from .cleanup import clean_title, split_dci
from .codes import CODE_PATTERN, line_starts_with_code
from .rules import RuleSet

_log = logging.getLogger(__name__)

_ENTRY_RE = re.compile(rf"^({CODE_PATTERN})\s+(.+)$")

TEXT_CONFIDENCE = 60.0
MAX_CONTINUATION_LINES = 2


def parse_text_lines(lines: list[str], *, page_num: int, ruleset: RuleSet) -> list[Candidate]:
    """
    Find `CODE title` entries in a block of plain-text lines.

    Up to two following lines are absorbed as title continuation; a blank line
    or a line starting with another code ends the entry.
    """

    out: list[Candidate] = []
    for i, raw in enumerate(lines):
        line = raw.strip()
        m = _ENTRY_RE.match(line)
        if not m:
            continue
        code, title = m.group(1), m.group(2).strip()
        if ruleset.is_junk_start(title):
            continue

        consumed = [line]
        for nxt_raw in lines[i + 1 : i + 1 + MAX_CONTINUATION_LINES]:
            nxt = nxt_raw.strip()
            if not nxt or line_starts_with_code(nxt) is not None:
                break
            if ruleset.is_junk_start(nxt):
                continue
            title = f"{title} {nxt}"
            consumed.append(nxt)

        title = clean_title(title)
        if ruleset.has_corruption_fragment(title) or len(title) < 3:
            continue
        title, dci = split_dci(title)

        out.append(
            Candidate(
                code=code,
                title=title,
                dci=dci,
                content="\n".join(consumed),
                page_number=page_num,
                confidence=TEXT_CONFIDENCE,
                source_strategy=SourceStrategy.TEXT,
            )
        )
    return out


def parse_text_candidates(
    document: LayoutDocument,
    *,
    ruleset: RuleSet,
    logger: logging.Logger | None = None,
) -> tuple[list[Candidate], list[dict[str, Any]]]:
    """
    Run `parse_text_lines` over every page.

    A page that raises is logged and reported as a LINE_PARSE_FAILED warning;
    the remaining pages are still parsed.
    """

    logger = logger or _log
    out: list[Candidate] = []
    warnings: list[dict[str, Any]] = []
    for page in sorted(document.pages, key=lambda p: p.page_num):
        try:
            found = parse_text_lines(page.text.split("\n"), page_num=page.page_num, ruleset=ruleset)
        except Exception as e:
            logger.warning("Text on page %d could not be parsed: %r", page.page_num, e)
            warnings.append({"code": "LINE_PARSE_FAILED", "page_num": page.page_num, "error": repr(e)})
            continue
        for c in found:
            logger.debug("text candidate %s %r (page %d)", c.code, c.title, c.page_number)
        out.extend(found)
    return out, warnings
