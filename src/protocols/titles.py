"""
Title validation and correction.

Layout extraction regularly hands us titles that are really fragments of the
surrounding table header ("...corespunzător poziţiei nr."), of the section
text, or of a neighbouring column. Such titles are detected with named
signatures from the rule set and replaced from the most trustworthy source
available. Titles that match no signature are never touched.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from contracts.protocols import TitleStatus

from .cleanup import clean_title, normalize_ws
from .codes import is_valid_code
from .rules import RuleSet

_VOWELS = set("AEIOUĂÂÎ")

_NU_SUFFIX_RE = re.compile(r"\s+NU\s*$", re.IGNORECASE)
_SUBLIST_REF_RE = re.compile(r"\s+C\d+-[A-Z]\d+.*$", re.IGNORECASE)
_SUBLIST_REF_END_RE = re.compile(r"\s*\bC\d+-[A-Z]\d+(?:\.\d+)?$", re.IGNORECASE)
_DCI_LABEL_RE = re.compile(r"^DCI[:\s]+", re.IGNORECASE)
_PAGE_LABEL_RE = re.compile(r"^Pagina:\s*\d+\s*", re.IGNORECASE)
_PROTOCOL_PREFIX_RE = re.compile(r"Protocol\s+terapeutic", re.IGNORECASE)

_SECTION_NUMBER_RE = re.compile(r"^([IVX]+|\d+)\.")
_SKIP_WORDS = ("protocol", "criterii", "definit", "indicat")
_DRUG_SUFFIX_RE = re.compile(r"\b([A-Z][A-Z]+(?:UM|IN|INE|OLUM|INUM|IDUM))\b")
_UPPER_LINE_RE = re.compile(r"^[A-Z][A-Z\s,\-\(\)]{5,100}$")
_UPPER_NEXT_LINE_RE = re.compile(r"^[A-Z][A-Z\s,\-\(\)]+$")
_DESCRIPTIVE_RE = re.compile(r"^[A-Z][a-zăâîșț][A-Za-zăâîșțĂÂÎȘȚ\s\-]{10,100}$")
_DESCRIPTIVE_SKIP_RE = re.compile(r"^(Defini|Criterii|Indicat|Protocol|Introducere|Obiective)", re.IGNORECASE)

HEADER_SCAN_LINES = 20
BODY_SCAN_LINES = 30
MAX_TITLE_LEN = 150


def _is_acronym_like(title: str) -> bool:
    letters = [ch for ch in title if ch.isalpha()]
    if not letters or len(letters) >= 5:
        return False
    if any(not ch.isupper() for ch in letters):
        return False
    has_digit = any(ch.isdigit() for ch in title)
    no_vowel = not any(ch in _VOWELS for ch in letters)
    code_shaped = is_valid_code(title.replace(" ", ""))
    return has_digit or no_vowel or code_shaped


def title_signatures(title: str, ruleset: RuleSet) -> tuple[str, ...]:
    """Names of every corruption signature the title matches (empty = valid)."""

    t = (title or "").strip()
    names: list[str] = []
    if len(t) < 3:
        names.append("too_short")
    names.extend(s.name for s in ruleset.signatures if s.matches(t))
    if _is_acronym_like(t):
        names.append("acronym_like")
    return tuple(names)


def is_title_corrupted(title: str, ruleset: RuleSet) -> bool:
    return len(title_signatures(title, ruleset)) > 0


def _clean_header_title(text: str) -> str:
    t = _DCI_LABEL_RE.sub("", text.strip())
    t = _NU_SUFFIX_RE.sub("", t)
    t = _SUBLIST_REF_RE.sub("", t)
    return t.strip()


def _title_from_header(code: str, lines: list[str]) -> str | None:
    inline = re.compile(
        rf"Protocol\s+terapeutic.*?cod\s*\({re.escape(code)}\):\s*(?:DCI\s+)?(.+?)$", re.IGNORECASE
    )
    dci_next = re.compile(rf"Protocol\s+terapeutic.*?cod\s*\({re.escape(code)}\).*DCI\s*$", re.IGNORECASE)

    for i, raw in enumerate(lines[:HEADER_SCAN_LINES]):
        line = raw.strip()
        m = inline.search(line)
        if m:
            t = _clean_header_title(m.group(1))
            if 3 < len(t) < MAX_TITLE_LEN:
                return t
        if dci_next.search(line) and i + 1 < len(lines):
            nxt = lines[i + 1].strip()
            if 3 < len(nxt) < MAX_TITLE_LEN and _UPPER_NEXT_LINE_RE.match(nxt):
                return nxt
    return None


def _title_from_drug_name(lines: list[str]) -> str | None:
    for raw in lines[:BODY_SCAN_LINES]:
        line = raw.strip()
        if _SECTION_NUMBER_RE.match(line):
            continue
        low = line.lower()
        if any(w in low for w in _SKIP_WORDS):
            continue
        m = _DRUG_SUFFIX_RE.search(line)
        if m and len(m.group(1)) > 5:
            return m.group(1)
        if _UPPER_LINE_RE.match(line) and "PROTOCOL" not in line:
            return line
    return None


def _title_from_description(lines: list[str]) -> str | None:
    for raw in lines[:BODY_SCAN_LINES]:
        line = raw.strip()
        if _DESCRIPTIVE_RE.match(line) and not _DESCRIPTIVE_SKIP_RE.match(line):
            return line
    return None


def content_titles(code: str, content: str) -> Iterator[tuple[str, str]]:
    """
    Titles found in a record's content, each with the name of the strategy that found it.

    Yielded in priority order: the code's own section header, a drug-like word
    or uppercase line, a descriptive sentence (non-drug protocols).
    """

    if not content:
        return
    lines = content.split("\n")

    t = _title_from_header(code, lines)
    if t:
        yield normalize_ws(t), "content_header"
    t = _title_from_drug_name(lines)
    if t:
        yield normalize_ws(t), "content_drug_name"
    t = _title_from_description(lines)
    if t:
        yield normalize_ws(t), "content_description"


def extract_title_from_content(code: str, content: str) -> tuple[str, str] | None:
    """Best title found in a record's content (first of `content_titles`)."""

    return next(content_titles(code, content), None)


@dataclass(frozen=True, slots=True)
class TitleResolution:
    title: str
    status: TitleStatus
    source: str | None
    signatures: tuple[str, ...] = ()


def resolve_title(
    *,
    code: str,
    title: str,
    dci: str | None,
    content: str,
    ruleset: RuleSet,
) -> TitleResolution:
    """
    Validate a title and correct it when it is corrupted.

    Correction priority: known-title table, content extraction, then the
    record's own DCI. A replacement that is itself corrupted is skipped. A
    corrupted title with no usable replacement is kept and reported as
    uncorrected.
    """

    sigs = title_signatures(title, ruleset)
    if not sigs:
        return TitleResolution(title=title, status=TitleStatus.VALID, source=None)

    replacements: list[tuple[str, str]] = []
    known = ruleset.known_titles.get(code)
    if known:
        replacements.append((known, "known_title"))
    replacements.extend(content_titles(code, content))
    if dci:
        replacements.append((dci, "dci"))

    for new_title, source in replacements:
        if not is_title_corrupted(new_title, ruleset):
            return TitleResolution(title=new_title, status=TitleStatus.CORRECTED, source=source, signatures=sigs)

    return TitleResolution(title=title, status=TitleStatus.UNCORRECTED, source=None, signatures=sigs)


def clean_title_hint(expected_title: str | None) -> str | None:
    """
    Normalize a caller-supplied title such as
    `Protocol terapeutic corespunzător poziţiei nr. 7 cod (A008E): IMIGLUCERASUM NU C2-P6.3`.
    """

    if not expected_title:
        return None
    t = normalize_ws(expected_title)
    if _PROTOCOL_PREFIX_RE.search(t) and ":" in t:
        t = t.rsplit(":", 1)[1]
    t = _PAGE_LABEL_RE.sub("", t.strip())
    t = _DCI_LABEL_RE.sub("", t.strip())
    t = _SUBLIST_REF_END_RE.sub("", t)
    t = _NU_SUFFIX_RE.sub("", t)
    t = clean_title(t)
    return t if len(t) >= 3 else None
