from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from contracts.layout import LayoutDocument


class LayoutEngineName(str, Enum):
    """
    Layout backend identifiers.
    """

    PYPDFIUM2 = "pypdfium2"


@dataclass(frozen=True, slots=True)
class ReadPdfError:
    code: str
    message: str
    detail: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "detail": self.detail}


class ExtractionFailure(Exception):
    """
    Raised by the strict reader entrypoint when a PDF cannot be read at all.
    """

    def __init__(self, error: ReadPdfError) -> None:
        super().__init__(f"{error.code}: {error.message}")
        self.error = error


@dataclass(frozen=True, slots=True)
class ReadPdfResult:
    ok: bool
    engine: LayoutEngineName
    document: LayoutDocument | None
    errors: list[ReadPdfError]
    meta: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "engine": self.engine.value,
            "document": None if self.document is None else self.document.to_dict(),
            "errors": [e.to_dict() for e in self.errors],
            "meta": dict(self.meta),
        }


@dataclass(frozen=True, slots=True)
class ReadPdfConfig:
    """
    Layout reader configuration.

    `min_glyph_height` drops runs at or below that height (page numbers,
    footnote markers, rendering artifacts). `logger` scopes all reader
    logging to the caller; the reader never touches global logging state.
    """

    engine: LayoutEngineName = LayoutEngineName.PYPDFIUM2
    min_glyph_height: float = 5.0
    logger: logging.Logger | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.min_glyph_height < 0:
            raise ValueError("min_glyph_height must be >= 0")

    def get_logger(self) -> logging.Logger:
        return self.logger if self.logger is not None else logging.getLogger("read_pdf")
