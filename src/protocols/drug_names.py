from __future__ import annotations

import re
from dataclasses import dataclass

from .rules import RuleSet


def _match_case(matched: str, full: str) -> str:
    if matched == matched.upper():
        return full.upper()
    if matched[:1] == matched[:1].upper():
        return full[:1].upper() + full[1:].lower()
    return full.lower()


@dataclass(frozen=True, slots=True)
class DrugNameCanonicalizer:
    """
    Expands short drug names (`LISPRO`) to their full names (`INSULINUM LISPRO`).

    All short names are matched in a single whole-word, case-insensitive pass,
    longest first. A short name already preceded by its class prefix
    (`INSULINUM`) is left alone, which keeps the expansion idempotent.
    """

    expansions: dict[str, str]  # upper-cased short name -> full name
    pattern: re.Pattern[str] | None

    @staticmethod
    def from_ruleset(ruleset: RuleSet) -> "DrugNameCanonicalizer":
        expansions = {k.upper(): v for k, v in ruleset.drug_name_expansions.items()}
        if not expansions:
            return DrugNameCanonicalizer(expansions={}, pattern=None)
        names = sorted(expansions, key=lambda s: (-len(s), s))
        pattern = re.compile(r"\b(" + "|".join(re.escape(n) for n in names) + r")\b", re.IGNORECASE)
        return DrugNameCanonicalizer(expansions=expansions, pattern=pattern)

    def _already_prefixed(self, m: re.Match[str]) -> bool:
        full = self.expansions[m.group(1).upper()]
        if " " not in full:
            return False
        prefix = full.rsplit(" ", 1)[0]
        before = m.string[: m.start()]
        return re.search(rf"{re.escape(prefix)}\s+$", before, re.IGNORECASE) is not None

    def expand(self, text: str | None) -> str | None:
        if not text or self.pattern is None:
            return text

        def _sub(m: re.Match[str]) -> str:
            if self._already_prefixed(m):
                return m.group(0)
            return _match_case(m.group(0), self.expansions[m.group(1).upper()])

        return self.pattern.sub(_sub, text)

    def has_short_drug_names(self, text: str | None) -> bool:
        if not text or self.pattern is None:
            return False
        return any(not self._already_prefixed(m) for m in self.pattern.finditer(text))
