"""
Content stitching: attach the full protocol section to a summary-table entry.

Bundled protocol lists carry a summary table up front and the full text of
each protocol later, each section opening with a header line such as
`Protocol terapeutic corespunzător poziţiei nr. 12 cod (A001E): DCI ORLISTATUM`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from contracts.layout import LayoutDocument
from contracts.protocols import Candidate, StitchInfo, StitchMethod

from .codes import CODE_RE, header_pattern
from .rules import RuleSet

_log = logging.getLogger(__name__)

_ANY_HEADER_RE = header_pattern(None)
_HEADER_START_RE = re.compile(r"Protocol\s+terapeutic.*?cod\s*\(", re.IGNORECASE)

_SAME_LINE_DCI_RE = re.compile(r":\s*DCI[:\s]*(.+?)$", re.IGNORECASE)
_BARE_DCI_RE = re.compile(r"^DCI\s*$", re.IGNORECASE)
_UPPER_NAME_RE = re.compile(r"^[A-ZĂÂÎȘȚŞŢ][A-ZĂÂÎȘȚŞŢ\s,]+$")
_NEAR_DCI_RE = re.compile(r"DCI[:\s]*\n?\s*([A-Z][A-Za-z\s,]+?)(?:\n|$)", re.IGNORECASE)
_CONTENT_DCI_RE = re.compile(r"DCI[:\s]+([^,\n]+)", re.IGNORECASE)

SECTION_BOOST = 20.0
FALLBACK_PENALTY = 10.0
FALLBACK_FLOOR = 40.0


@dataclass(frozen=True, slots=True)
class Section:
    code: str
    start_line: int
    end_line: int  # exclusive
    window_capped: bool
    content: str


@dataclass(frozen=True, slots=True)
class SectionIndex:
    lines: list[str]
    line_pages: list[int]
    sections: dict[str, Section]
    window_lines: int

    def page_span(self, start_line: int, end_line: int) -> tuple[int | None, int | None]:
        if not self.line_pages or start_line >= len(self.line_pages):
            return None, None
        last = max(start_line, min(end_line, len(self.line_pages)) - 1)
        return self.line_pages[start_line], self.line_pages[last]


def find_sections(lines: list[str], *, ruleset: RuleSet, window_lines: int = 500) -> dict[str, Section]:
    """
    One pass over the plain-text lines collecting `Protocol terapeutic ... cod (CODE)` sections.

    A section ends (exclusive) at the next header of any code or at an explicit
    end marker line, searched within `window_lines`; with neither, it is capped
    at `window_lines` lines and marked `window_capped`. The first header of a
    code wins.
    """

    sections: dict[str, Section] = {}
    n = len(lines)
    for i, raw in enumerate(lines):
        m = _ANY_HEADER_RE.search(raw.strip())
        if not m:
            continue
        code = m.group(1).upper()
        if code in sections:
            continue

        limit = min(n, i + window_lines)
        end = None
        for j in range(i + 1, limit):
            s = lines[j].strip()
            if _HEADER_START_RE.search(s) or ruleset.is_section_end(s):
                end = j
                break
        capped = end is None and i + window_lines < n
        if end is None:
            end = limit

        sections[code] = Section(
            code=code,
            start_line=i,
            end_line=end,
            window_capped=capped,
            content="\n".join(lines[i:end]).strip(),
        )
    return sections


def build_section_index(document: LayoutDocument, *, ruleset: RuleSet, window_lines: int = 500) -> SectionIndex:
    lines = document.plain_text.split("\n")
    return SectionIndex(
        lines=lines,
        line_pages=document.line_page_index(),
        sections=find_sections(lines, ruleset=ruleset, window_lines=window_lines),
        window_lines=window_lines,
    )


def derive_dci_from_section(section_text: str) -> str | None:
    """
    DCI from a section header: same line (`...): DCI X`), else an uppercase
    drug-name line right after the header, else a `DCI` label in the first 5 lines.
    """

    lines = section_text.split("\n")
    first = lines[0].strip() if lines else ""
    second = lines[1].strip() if len(lines) > 1 else ""

    dci: str | None = None
    m = _SAME_LINE_DCI_RE.search(first)
    if m and len(m.group(1).strip()) > 2:
        dci = m.group(1).strip()

    if (dci is None or _BARE_DCI_RE.match(dci)) and len(second) > 2 and _UPPER_NAME_RE.match(second):
        dci = second

    if dci is None:
        m = _NEAR_DCI_RE.search("\n".join(lines[:5]))
        dci = m.group(1).strip() if m else None

    return dci or None


def fallback_content(code: str, lines: list[str], *, max_lines: int = 200) -> tuple[str, int, int, bool] | None:
    """
    Lines after the first mention of `code`, up to a line mentioning another code.

    Returns `(content, start_line, end_line, capped)` or None when the code is
    never mentioned. `capped` is set when `max_lines` cut the excerpt short.
    """

    start = next((i for i, ln in enumerate(lines) if code in ln), None)
    if start is None:
        return None

    out = [lines[start].strip()]
    end = start + 1
    capped = False
    for after, raw in enumerate(lines[start + 1 :], start=1):
        if after > max_lines:
            capped = True
            break
        line = raw.strip()
        if code not in line and CODE_RE.search(line):
            break
        out.append(line)
        end = start + 1 + after
    return "\n".join(out).strip(), start, end, capped


def stitch_candidate(
    cand: Candidate,
    index: SectionIndex,
    *,
    ruleset: RuleSet,
    min_section_gain_chars: int = 100,
    fallback_window_lines: int = 200,
    logger: logging.Logger | None = None,
) -> Candidate:
    """
    Replace a candidate's content with its full section (or a fallback excerpt).

    Content never shrinks. A section boosts confidence by 20 (capped at 100,
    never lowered); a fallback excerpt lowers it by 10 (floor 40, never raised).
    With neither, the candidate is returned with `stitch.method == "none"`.
    """

    logger = logger or _log
    section = index.sections.get(cand.code)

    if section is not None and len(section.content) - len(cand.content) > min_section_gain_chars:
        title, dci = cand.title, cand.dci
        derived = derive_dci_from_section(section.content)
        if derived and len(derived) > 2:
            if ruleset.header_fragment.search(title):
                title, dci = derived, derived
            elif not dci:
                dci = derived

        start_page, end_page = index.page_span(section.start_line, section.end_line)
        stitched = cand.evolve(
            title=title,
            dci=dci,
            content=section.content,
            stitch=StitchInfo(
                method=StitchMethod.SECTION,
                start_line=section.start_line,
                end_line=section.end_line,
                window_lines=index.window_lines,
                window_capped=section.window_capped,
                start_page=start_page,
                end_page=end_page,
            ),
        )
        boosted = max(cand.confidence, min(100.0, cand.confidence + SECTION_BOOST))
        logger.debug("%s: matched full section (%d chars)", cand.code, len(section.content))
        return stitched.with_confidence(boosted, stage="stitch", reason="full_section_found")

    fb = fallback_content(cand.code, index.lines, max_lines=fallback_window_lines)
    if fb is not None and len(fb[0]) > len(cand.content):
        content, start, end, capped = fb
        start_page, end_page = index.page_span(start, end)
        stitched = cand.evolve(
            content=content,
            stitch=StitchInfo(
                method=StitchMethod.FALLBACK,
                start_line=start,
                end_line=end,
                window_lines=fallback_window_lines,
                window_capped=capped,
                start_page=start_page,
                end_page=end_page,
            ),
        )
        penalized = min(cand.confidence, max(FALLBACK_FLOOR, cand.confidence - FALLBACK_PENALTY))
        logger.debug("%s: using fallback excerpt (%d chars)", cand.code, len(content))
        return stitched.with_confidence(penalized, stage="stitch", reason="fallback_content")

    logger.debug("%s: no section found, keeping table content (%d chars)", cand.code, len(cand.content))
    return cand.evolve(stitch=StitchInfo(method=StitchMethod.NONE, window_lines=index.window_lines))


def fill_dci_from_content(cand: Candidate) -> Candidate:
    if cand.dci or not cand.content:
        return cand
    m = _CONTENT_DCI_RE.search(cand.content)
    if not m or not m.group(1).strip():
        return cand
    return cand.evolve(dci=m.group(1).strip())
