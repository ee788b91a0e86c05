from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from contracts.layout import LayoutDocument
from contracts.protocols import DocumentKind

from .codes import distinct_codes, line_starts_with_code
from .rules import RuleSet

_WIDE_GAP_RE = re.compile(r"\s{4,}")

MIN_DISTINCT_CODES = 5  # strictly more than this -> list
MIN_CODE_LINES = 10
MIN_WIDE_GAP_LINES = 20
MIN_TABULAR_CODES = 2
LARGE_DOCUMENT_PAGES = 50
MIN_LARGE_DOCUMENT_CODES = 3
INTRO_LINES = 20


@dataclass(frozen=True, slots=True)
class Classification:
    kind: DocumentKind
    reasons: tuple[str, ...]
    distinct_code_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "reasons": list(self.reasons),
            "distinct_code_count": self.distinct_code_count,
        }


def classify_document(
    document: LayoutDocument,
    *,
    ruleset: RuleSet,
    title: str | None = None,
) -> Classification:
    """
    Decide whether a document is a multi-protocol list or a single protocol.

    Every rule that fires is reported; any one of them makes the document a list.
    """

    text = document.plain_text
    lines = text.split("\n")
    codes = distinct_codes(text)
    reasons: list[str] = []

    t = (title or "").lower()
    if t and any(k in t for k in ruleset.list_keywords):
        reasons.append("title_keyword")

    if len(codes) > MIN_DISTINCT_CODES:
        reasons.append("many_codes")

    code_lines = sum(1 for ln in lines if line_starts_with_code(ln) is not None)
    wide_gap_lines = sum(1 for ln in lines if _WIDE_GAP_RE.search(ln.strip()))
    if (code_lines >= MIN_CODE_LINES or wide_gap_lines >= MIN_WIDE_GAP_LINES) and len(codes) > MIN_TABULAR_CODES:
        reasons.append("tabular_layout")

    if document.page_count > LARGE_DOCUMENT_PAGES and len(codes) > MIN_LARGE_DOCUMENT_CODES:
        reasons.append("large_document")

    intro = "\n".join(lines[:INTRO_LINES]).lower()
    if any(k in intro for k in ruleset.list_intro_keywords):
        reasons.append("intro_mentions_list")

    kind = DocumentKind.LIST if reasons else DocumentKind.SINGLE
    return Classification(kind=kind, reasons=tuple(reasons), distinct_code_count=len(codes))
