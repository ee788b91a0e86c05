"""
Protocol extraction (layout -> deduplicated, enriched protocol records).

Stages, in order: list/single classification, tabular and free-text candidate
parsing, merge + validation, content stitching, title correction, drug-name
canonicalization, quality scoring and metadata extraction. Heuristic
vocabularies live in versioned rule sets (`rulesets/*.json`).
"""

from .artifacts import serialize_pipeline_result, write_pipeline_result_json
from .config import PipelineConfig
from .pipeline import run_protocol_pipeline, run_protocol_pipeline_on_layout
from .rules import RuleSet, default_ruleset, load_ruleset

__all__ = [
    "PipelineConfig",
    "RuleSet",
    "default_ruleset",
    "load_ruleset",
    "run_protocol_pipeline",
    "run_protocol_pipeline_on_layout",
    "serialize_pipeline_result",
    "write_pipeline_result_json",
]
