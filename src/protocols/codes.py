from __future__ import annotations

import re

# Protocol codes as printed in the published lists:
#   A001E, B002C      letter(s) + digits + letter(s)
#   A10AE06, J07BM03  ATC-style with a trailing 2-digit group
#   CI01I-HTP         with a dashed suffix
CODE_PATTERN = r"[A-Z]{1,2}\d{2,4}[A-Z]{0,3}(?:\d{2})?(?:-[A-Z]+)?"

CODE_RE = re.compile(rf"\b({CODE_PATTERN})\b")
_CODE_FULL_RE = re.compile(CODE_PATTERN)
_LINE_CODE_RE = re.compile(rf"^({CODE_PATTERN})\s")


def find_code(text: str) -> re.Match[str] | None:
    """First word-bounded protocol code in `text`, or None."""

    return CODE_RE.search(text or "")


def find_codes(text: str) -> list[str]:
    return [m.group(1) for m in CODE_RE.finditer(text or "")]


def distinct_codes(text: str) -> set[str]:
    return set(find_codes(text))


def is_valid_code(code: str) -> bool:
    return bool(code) and _CODE_FULL_RE.fullmatch(code) is not None


def line_starts_with_code(line: str) -> str | None:
    """
    Code at the start of a (stripped) line when it is followed by whitespace.
    """

    m = _LINE_CODE_RE.match(line.strip() + " ")
    return m.group(1) if m else None


def header_pattern(code: str | None = None) -> re.Pattern[str]:
    """
    `Protocol terapeutic ... cod (CODE)` header, for one code or for any code.
    """

    inner = re.escape(code) if code else CODE_PATTERN
    return re.compile(rf"Protocol\s+terapeutic.*?cod\s*\(({inner})\)", re.IGNORECASE)
