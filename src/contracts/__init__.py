"""
Canonical, authoritative pipeline contracts.

These models are the schema boundary between stages:
- layout: what the PDF layout reader produces (plain text + positioned runs)
- tables: what table reconstruction produces (columns, rows, cells)
- protocols: candidates, final records and the per-document pipeline result

Stage code should consume/produce these contract objects (not ad-hoc dicts).
"""

from .layout import BBox, LayoutDocument, LayoutPage, PositionedTextItem
from .tables import Cell, Column, Row, Table
from .protocols import (
    Candidate,
    ConfidenceAdjustment,
    DocumentKind,
    PipelineError,
    PipelineResult,
    ProtocolHints,
    Record,
    ReviewFlag,
    SourceStrategy,
    StitchInfo,
    StitchMethod,
    TitleStatus,
)

__all__ = [
    "BBox",
    "PositionedTextItem",
    "LayoutPage",
    "LayoutDocument",
    "Column",
    "Cell",
    "Row",
    "Table",
    "SourceStrategy",
    "DocumentKind",
    "StitchMethod",
    "TitleStatus",
    "ReviewFlag",
    "ProtocolHints",
    "ConfidenceAdjustment",
    "StitchInfo",
    "Candidate",
    "Record",
    "PipelineError",
    "PipelineResult",
]
