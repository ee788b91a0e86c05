from __future__ import annotations

import logging
from dataclasses import dataclass, field

from read_pdf.contracts import ReadPdfConfig
from tables.config import TableConfig

from .rules import RuleSet, default_ruleset


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """
    Protocol extraction parameters.

    All thresholds are explicit constants; `ruleset=None` uses the bundled
    default rule set. `logger` scopes pipeline logging to the caller.
    """

    read: ReadPdfConfig = field(default_factory=ReadPdfConfig)
    tables: TableConfig = field(default_factory=TableConfig)
    ruleset: RuleSet | None = field(default=None, compare=False)

    # Run the free-text parser on list documents even when tables produced candidates
    # (default: only as a fallback when they produced none).
    always_run_free_text: bool = False

    section_window_lines: int = 500
    fallback_window_lines: int = 200
    # A full section replaces the table content only when it adds more than this.
    min_section_gain_chars: int = 100
    min_candidate_confidence: float = 25.0

    review_confidence_threshold: float = 50.0
    review_quality_threshold: float = 30.0

    logger: logging.Logger | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        self.tables.validate()
        if self.section_window_lines < 1:
            raise ValueError("section_window_lines must be >= 1")
        if self.fallback_window_lines < 0:
            raise ValueError("fallback_window_lines must be >= 0")
        if self.min_section_gain_chars < 0:
            raise ValueError("min_section_gain_chars must be >= 0")
        if self.min_candidate_confidence < 0:
            raise ValueError("min_candidate_confidence must be >= 0")
        if not (0.0 <= self.review_quality_threshold <= 100.0):
            raise ValueError("review_quality_threshold must be within [0, 100]")

    def get_ruleset(self) -> RuleSet:
        return self.ruleset if self.ruleset is not None else default_ruleset()

    def get_logger(self) -> logging.Logger:
        return self.logger if self.logger is not None else logging.getLogger("protocols")
