from __future__ import annotations

import re
from dataclasses import dataclass

from .rules import RuleSet

_SUBLIST_RE = re.compile(r"sublist[aă]\s*([A-Z0-9\-\/]+)", re.IGNORECASE)
_LATIN_NAME_RE = re.compile(r"([A-Z][a-z]+[a-z]+um)\b")


@dataclass(frozen=True, slots=True)
class ProtocolMetadata:
    sublists: tuple[str, ...]
    prescribers: tuple[str, ...]
    categories: tuple[str, ...]
    keywords: tuple[str, ...]


def _unique(values) -> tuple[str, ...]:
    # Ordered de-dup; first occurrence wins.
    return tuple(dict.fromkeys(values))


def extract_metadata(text: str, ruleset: RuleSet) -> ProtocolMetadata:
    """
    Sublists, prescriber specialties, categories and Latin drug-like keywords
    mentioned in a protocol's text.
    """

    text = text or ""
    low = text.lower()
    return ProtocolMetadata(
        sublists=_unique(m.group(1) for m in _SUBLIST_RE.finditer(text)),
        prescribers=tuple(s for s in ruleset.prescriber_specialties if s.lower() in low),
        categories=tuple(c.category for c in ruleset.categories if c.pattern.search(text)),
        keywords=_unique(m.group(1) for m in _LATIN_NAME_RE.finditer(text))[: ruleset.max_keywords],
    )
