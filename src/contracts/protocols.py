from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class SourceStrategy(str, Enum):
    TABLE = "table"
    TEXT = "text"
    DOCUMENT = "document"  # single-protocol document, no candidate parsing


class DocumentKind(str, Enum):
    LIST = "list"
    SINGLE = "single"


class StitchMethod(str, Enum):
    SECTION = "section"
    FALLBACK = "fallback"
    NONE = "none"


class TitleStatus(str, Enum):
    VALID = "valid"
    CORRECTED = "corrected"
    UNCORRECTED = "uncorrected"


class ReviewFlag(str, Enum):
    """
    Reasons a record should be looked at by a human. Never blocks output.
    """

    LOW_CONFIDENCE = "LOW_CONFIDENCE"
    LOW_QUALITY = "LOW_QUALITY"
    TITLE_UNCORRECTED = "TITLE_UNCORRECTED"
    STITCHING_MISS = "STITCHING_MISS"
    STITCH_WINDOW_CAPPED = "STITCH_WINDOW_CAPPED"
    FALLBACK_CONTENT = "FALLBACK_CONTENT"


@dataclass(frozen=True, slots=True)
class ProtocolHints:
    expected_title: str | None = None
    known_code: str | None = None
    # File name or other label of the source; only used to recognise list documents.
    source_name: str | None = None


@dataclass(frozen=True, slots=True)
class ConfidenceAdjustment:
    stage: str
    before: float
    after: float
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"stage": self.stage, "before": self.before, "after": self.after, "reason": self.reason}


@dataclass(frozen=True, slots=True)
class StitchInfo:
    """
    Where a record's content came from in the document plain text.

    Line numbers index `LayoutDocument.plain_text.split("\\n")`, end exclusive.
    `window_capped` means the section hit the window size rather than a boundary,
    so the content may be truncated.
    """

    method: StitchMethod = StitchMethod.NONE
    start_line: int | None = None
    end_line: int | None = None
    window_lines: int | None = None
    window_capped: bool = False
    start_page: int | None = None
    end_page: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method.value,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "window_lines": self.window_lines,
            "window_capped": self.window_capped,
            "start_page": self.start_page,
            "end_page": self.end_page,
        }


@dataclass(frozen=True, slots=True)
class Candidate:
    """
    In-progress protocol entry. Stages derive new instances; `code` is fixed at creation.
    """

    code: str
    title: str
    content: str
    page_number: int  # 1-indexed; 0 when unknown
    confidence: float  # parser scale, may exceed 100 (not clamped)
    source_strategy: SourceStrategy
    dci: str | None = None
    additional_info: str | None = None  # text of table cells past the second one
    adjustments: tuple[ConfidenceAdjustment, ...] = ()
    stitch: StitchInfo = field(default_factory=StitchInfo)

    def evolve(self, **changes: Any) -> "Candidate":
        if "code" in changes and changes["code"] != self.code:
            raise ValueError(f"candidate code is immutable: {self.code!r} -> {changes['code']!r}")
        return replace(self, **changes)

    def with_confidence(self, value: float, *, stage: str, reason: str) -> "Candidate":
        if value == self.confidence:
            return self
        adj = ConfidenceAdjustment(stage=stage, before=self.confidence, after=value, reason=reason)
        return replace(self, confidence=value, adjustments=self.adjustments + (adj,))

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "title": self.title,
            "dci": self.dci,
            "additional_info": self.additional_info,
            "content": self.content,
            "page_number": self.page_number,
            "confidence": self.confidence,
            "source_strategy": self.source_strategy.value,
            "adjustments": [a.to_dict() for a in self.adjustments],
            "stitch": self.stitch.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class Record:
    """
    Final, immutable pipeline output for one protocol.

    `confidence` is the parser/stitcher confidence; `quality_score` is the
    extraction-quality score (0..100). Combining them is the caller's decision.
    """

    code: str
    title: str
    dci: str | None
    content: str
    page_number: int
    confidence: float
    source_strategy: SourceStrategy
    quality_score: float
    title_status: TitleStatus
    title_source: str | None
    review_flags: tuple[ReviewFlag, ...]
    adjustments: tuple[ConfidenceAdjustment, ...]
    stitch: StitchInfo
    sublists: tuple[str, ...] = ()
    prescribers: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    additional_info: str | None = None

    @property
    def needs_review(self) -> bool:
        return len(self.review_flags) > 0

    @property
    def start_page(self) -> int:
        return self.stitch.start_page if self.stitch.start_page is not None else self.page_number

    @property
    def end_page(self) -> int:
        return self.stitch.end_page if self.stitch.end_page is not None else self.page_number

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "title": self.title,
            "dci": self.dci,
            "content": self.content,
            "page_number": self.page_number,
            "start_page": self.start_page,
            "end_page": self.end_page,
            "confidence": self.confidence,
            "source_strategy": self.source_strategy.value,
            "quality_score": self.quality_score,
            "title_status": self.title_status.value,
            "title_source": self.title_source,
            "review_flags": [f.value for f in self.review_flags],
            "adjustments": [a.to_dict() for a in self.adjustments],
            "stitch": self.stitch.to_dict(),
            "sublists": list(self.sublists),
            "prescribers": list(self.prescribers),
            "categories": list(self.categories),
            "keywords": list(self.keywords),
            "additional_info": self.additional_info,
        }


@dataclass(frozen=True, slots=True)
class PipelineError:
    code: str
    message: str
    detail: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "detail": self.detail}


@dataclass(frozen=True, slots=True)
class PipelineResult:
    """
    Machine-readable, auditable output for one document.

    `ok` is False only when the document itself could not be read. An empty
    `records` list with `ok=True` means no protocol structure was found.
    """

    ok: bool
    document_kind: DocumentKind | None
    method: str  # "table" | "text" | "hybrid" | "document" | "none"
    records: list[Record]
    errors: list[PipelineError]
    meta: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "document_kind": None if self.document_kind is None else self.document_kind.value,
            "method": self.method,
            "records": [r.to_dict() for r in self.records],
            "errors": [e.to_dict() for e in self.errors],
            "meta": dict(self.meta),
        }
