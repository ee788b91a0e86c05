"""
Versioned rule sets: the static vocabularies and patterns the heuristics run on.

A rule set is plain JSON shipped as package data (`rulesets/*.json`) so it can
be reviewed, diffed and swapped without touching code. It is read once and is
read-only afterwards.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

_RULESET_DIR = Path(__file__).resolve().parent / "rulesets"
DEFAULT_RULESET_PATH = _RULESET_DIR / "ro_protocols_v1.json"


@dataclass(frozen=True, slots=True)
class CorruptionSignature:
    name: str
    pattern: re.Pattern[str]

    def matches(self, title: str) -> bool:
        return self.pattern.search(title) is not None


@dataclass(frozen=True, slots=True)
class CategoryRule:
    category: str
    pattern: re.Pattern[str]


@dataclass(frozen=True, slots=True)
class RuleSet:
    version: str
    junk_fragment: re.Pattern[str]  # anchored at the start of a title/cell
    corruption_fragment: re.Pattern[str]  # anywhere in a title
    header_fragment: re.Pattern[str]  # titles that are really protocol header text
    signatures: tuple[CorruptionSignature, ...]
    known_titles: dict[str, str]
    drug_name_expansions: dict[str, str]
    list_keywords: tuple[str, ...]
    list_intro_keywords: tuple[str, ...]
    quality_keywords: tuple[tuple[str, ...], ...]  # one entry per keyword, with spelling variants
    prescriber_specialties: tuple[str, ...]
    categories: tuple[CategoryRule, ...]
    section_end_patterns: tuple[re.Pattern[str], ...]
    max_keywords: int = 20

    def is_junk_start(self, text: str) -> bool:
        return self.junk_fragment.match(text.strip()) is not None

    def has_corruption_fragment(self, text: str) -> bool:
        return self.corruption_fragment.search(text) is not None

    def is_section_end(self, line: str) -> bool:
        s = line.strip()
        return any(p.search(s) for p in self.section_end_patterns)

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "RuleSet":
        def _strings(key: str) -> tuple[str, ...]:
            values = d.get(key) or []
            for v in values:
                if not isinstance(v, str):
                    raise TypeError(f"ruleset:{key} contains non-string value {v!r}")
            return tuple(values)

        def _mapping(key: str) -> dict[str, str]:
            m = d.get(key) or {}
            for k, v in m.items():
                if not isinstance(k, str) or not isinstance(v, str):
                    raise TypeError(f"ruleset:{key} contains non-string entry {k!r}: {v!r}")
            return dict(m)

        signatures = tuple(
            CorruptionSignature(
                name=str(s["name"]),
                pattern=re.compile(s["pattern"], re.IGNORECASE if s.get("ignore_case", True) else 0),
            )
            for s in (d.get("corruption_signatures") or [])
        )
        categories = tuple(
            CategoryRule(category=str(c["category"]), pattern=re.compile(c["pattern"], re.IGNORECASE))
            for c in (d.get("categories") or [])
        )
        quality_keywords = tuple(
            tuple(str(v) for v in (variants if isinstance(variants, list) else [variants]))
            for variants in (d.get("quality_keywords") or [])
        )

        return RuleSet(
            version=str(d["version"]),
            junk_fragment=re.compile(d["junk_fragment_pattern"], re.IGNORECASE),
            corruption_fragment=re.compile(d["corruption_fragment_pattern"], re.IGNORECASE),
            header_fragment=re.compile(d["header_fragment_pattern"], re.IGNORECASE),
            signatures=signatures,
            known_titles=_mapping("known_titles"),
            drug_name_expansions=_mapping("drug_name_expansions"),
            list_keywords=_strings("list_keywords"),
            list_intro_keywords=_strings("list_intro_keywords"),
            quality_keywords=quality_keywords,
            prescriber_specialties=_strings("prescriber_specialties"),
            categories=categories,
            section_end_patterns=tuple(
                re.compile(p, re.IGNORECASE) for p in _strings("section_end_patterns")
            ),
            max_keywords=int(d.get("max_keywords", 20)),
        )


def load_ruleset(path: Path | str | None = None) -> RuleSet:
    """
    Load a rule set from JSON. `None` loads the bundled default.

    Malformed files raise (KeyError / TypeError / re.error / json.JSONDecodeError);
    a bad rule set is a deployment error, not a per-document one.
    """

    p = Path(path) if path is not None else DEFAULT_RULESET_PATH
    raw = json.loads(p.read_text(encoding="utf-8"))
    return RuleSet.from_dict(raw)


@lru_cache(maxsize=1)
def default_ruleset() -> RuleSet:
    return load_ruleset(None)
