from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class EngineTextRun:
    # Native PDF user space: origin bottom-left, y grows upward.
    text: str
    left: float
    bottom: float
    right: float
    top: float


@dataclass(frozen=True, slots=True)
class EnginePage:
    page_num: int  # 1-indexed
    width: float
    height: float
    text: str  # page text as reported by the backend
    runs: list[EngineTextRun]


class PdfLayoutEngine(ABC):
    """
    Layout reading engine abstraction.

    Engines must:
    - Read text and text-run rectangles from PDF bytes
    - Be deterministic for identical bytes
    - Perform NO OCR, filtering, clustering or interpretation
    """

    @abstractmethod
    def backend_id(self) -> str:
        raise NotImplementedError

    def backend_version(self) -> str | None:
        return None

    @abstractmethod
    def read_pages(self, *, pdf_bytes: bytes, logger: logging.Logger) -> list[EnginePage]:
        """
        Return every page in document order. Raise on unreadable input.
        """

        raise NotImplementedError

    def read_document_info(self, *, pdf_bytes: bytes, logger: logging.Logger) -> dict[str, str]:
        """
        Raw entries of the PDF info dictionary (Title, Author, CreationDate, ...).
        """

        return {}
