from __future__ import annotations

import re

_WS_RE = re.compile(r"\s+")
_LEAD_PUNCT_RE = re.compile(r"^[\s\-–—:]+")
_TRAIL_PUNCT_RE = re.compile(r"[\s\-–—:]+$")
_WRAP_PARENS_RE = re.compile(r"^\((.*)\)$")
_DCI_LABEL_RE = re.compile(r"^DCI[:\s]+", re.IGNORECASE)
_TRAILING_DCI_LABEL_RE = re.compile(r"\s*\bDCI[:\s]*$", re.IGNORECASE)
_DCI_RE = re.compile(r"\(([^)]+)\)|DCI[:\s]+([^,\n]+)", re.IGNORECASE)
_PUNCT_ONLY_RE = re.compile(r"^[\s\-–—:()]+$")

LETTERS_RE = re.compile(r"[a-zA-ZăâîșțĂÂÎȘȚşţŞŢ]{3,}")


def normalize_ws(text: str) -> str:
    return _WS_RE.sub(" ", text or "").strip()


def is_punctuation_only(text: str) -> bool:
    return _PUNCT_ONLY_RE.match(text) is not None


def clean_title(title: str) -> str:
    """
    Strip edge punctuation, wrapping parentheses and a leading `DCI:` label.
    """

    t = _LEAD_PUNCT_RE.sub("", title or "")
    t = _TRAIL_PUNCT_RE.sub("", t)
    m = _WRAP_PARENS_RE.match(t)
    if m is not None and "(" not in m.group(1) and ")" not in m.group(1):
        t = m.group(1).strip()
    t = _DCI_LABEL_RE.sub("", t)
    return normalize_ws(t)


def split_dci(title: str) -> tuple[str, str | None]:
    """
    Pull the active-substance name out of a title.

    The first parenthetical segment or `DCI: X` segment is the DCI; it is
    removed from the title together with any parentheses. When nothing usable
    would remain, the DCI doubles as the title.
    """

    m = _DCI_RE.search(title)
    if not m:
        return title, None
    dci = normalize_ws(m.group(1) or m.group(2) or "")
    if not dci:
        return title, None

    rest = title.replace(dci, "", 1) if dci in title else title
    rest = rest.replace("(", "").replace(")", "")
    rest = _TRAILING_DCI_LABEL_RE.sub("", rest)
    rest = normalize_ws(_TRAIL_PUNCT_RE.sub("", _LEAD_PUNCT_RE.sub("", rest)))
    if len(rest) < 3:
        return dci, dci
    return rest, dci
