"""
Layout reading (PDF bytes -> plain text + positioned text runs).

This package is intentionally limited to reading:
- It extracts page text and per-run positions deterministically.
- It performs NO OCR, table reconstruction or protocol interpretation.
- It is the ONLY stage that touches PDF bytes.
"""

from .contracts import (
    ExtractionFailure,
    LayoutEngineName,
    ReadPdfConfig,
    ReadPdfError,
    ReadPdfResult,
)
from .module import read_pdf_bytes, read_pdf_bytes_or_raise

__all__ = [
    "ExtractionFailure",
    "LayoutEngineName",
    "ReadPdfConfig",
    "ReadPdfError",
    "ReadPdfResult",
    "read_pdf_bytes",
    "read_pdf_bytes_or_raise",
]
