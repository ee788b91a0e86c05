from __future__ import annotations

import hashlib
import logging
import re
from typing import Any

from contracts.layout import LayoutDocument, LayoutPage, PositionedTextItem

from .contracts import ExtractionFailure, LayoutEngineName, ReadPdfConfig, ReadPdfError, ReadPdfResult
from .engines import EnginePage, Pypdfium2Engine

_INFO_KEYS = (
    ("Title", "title"),
    ("Author", "author"),
    ("CreationDate", "creation_date"),
    ("ModDate", "modification_date"),
)
_PDF_DATE_RE = re.compile(r"^D:(\d{4})(\d{2})?(\d{2})?(\d{2})?(\d{2})?(\d{2})?")


def _get_engine(engine: LayoutEngineName):
    if engine == LayoutEngineName.PYPDFIUM2:
        return Pypdfium2Engine()
    raise ValueError(f"Unsupported layout engine: {engine}")


def _normalize_page_text(text: str) -> str:
    # Backends report CRLF (and occasionally bare CR) line breaks.
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _items_for_page(page: EnginePage, *, min_glyph_height: float) -> tuple[list[PositionedTextItem], dict[str, int]]:
    """
    Convert backend runs (bottom-left origin) into top-left positioned items.

    Runs with blank text or a height at/below `min_glyph_height` are dropped.
    """

    items: list[PositionedTextItem] = []
    dropped = {"blank": 0, "below_min_height": 0}
    for run in page.runs:
        text = run.text.replace("\r", " ").replace("\n", " ")
        if text.strip() == "":
            dropped["blank"] += 1
            continue
        height = float(run.top - run.bottom)
        if height <= min_glyph_height:
            dropped["below_min_height"] += 1
            continue
        items.append(
            PositionedTextItem(
                text=text,
                page_num=page.page_num,
                x=float(run.left),
                y=float(page.height - run.top),
                width=float(run.right - run.left),
                height=height,
            )
        )
    # Reading order: top-to-bottom, then left-to-right.
    items.sort(key=lambda i: (i.y, i.x))
    return items, dropped


def _pdf_date(value: str) -> str:
    """`D:YYYYMMDDHHmmSS...` as `YYYY-MM-DDTHH:mm:SS`; other values are kept as given."""

    m = _PDF_DATE_RE.match(value)
    if not m:
        return value
    y, mo, d, h, mi, s = m.groups()
    return f"{y}-{mo or '01'}-{d or '01'}T{h or '00'}:{mi or '00'}:{s or '00'}"


def _document_info(engine, *, pdf_bytes: bytes, logger: logging.Logger) -> dict[str, str]:
    # Engines without info support report nothing.
    read_info = getattr(engine, "read_document_info", None)
    if read_info is None:
        return {}
    try:
        raw = read_info(pdf_bytes=pdf_bytes, logger=logger)
    except Exception as e:
        logger.warning("PDF document info could not be read: %r", e)
        return {}

    info: dict[str, str] = {}
    for src, dst in _INFO_KEYS:
        value = str(raw.get(src) or "").strip()
        if not value:
            continue
        info[dst] = _pdf_date(value) if dst.endswith("_date") else value
    return info


def read_pdf_bytes(pdf_bytes: bytes, *, config: ReadPdfConfig | None = None) -> ReadPdfResult:
    """
    Read plain text and positioned text runs from PDF bytes.

    One-shot and deterministic in the bytes; no retries. Unreadable input is
    reported as `ok=False` with a READ_PDF_* error; callers decide whether to
    skip or retry.
    """

    config = config or ReadPdfConfig()
    logger = config.get_logger()
    engine = _get_engine(config.engine)

    meta: dict[str, Any] = {
        "backend": engine.backend_id(),
        "backend_version": engine.backend_version(),
        "min_glyph_height": config.min_glyph_height,
        "source_sha256": hashlib.sha256(pdf_bytes or b"").hexdigest(),
    }

    if not pdf_bytes:
        logger.warning("Refusing to read empty PDF input")
        return ReadPdfResult(
            ok=False,
            engine=config.engine,
            document=None,
            errors=[ReadPdfError(code="READ_PDF_EMPTY_INPUT", message="PDF input is empty")],
            meta=meta,
        )

    try:
        engine_pages = engine.read_pages(pdf_bytes=pdf_bytes, logger=logger)
    except Exception as e:
        logger.warning("PDF extraction failed: %r", e)
        return ReadPdfResult(
            ok=False,
            engine=config.engine,
            document=None,
            errors=[
                ReadPdfError(
                    code="READ_PDF_EXTRACTION_FAILURE",
                    message="PDF could not be read",
                    detail={"error": repr(e)},
                )
            ],
            meta=meta,
        )

    pages: list[LayoutPage] = []
    counts: dict[str, Any] = {}
    for ep in sorted(engine_pages, key=lambda p: p.page_num):
        items, dropped = _items_for_page(ep, min_glyph_height=config.min_glyph_height)
        pages.append(
            LayoutPage(
                page_num=ep.page_num,
                width=ep.width,
                height=ep.height,
                text=_normalize_page_text(ep.text),
                items=items,
            )
        )
        counts[f"page_{ep.page_num:03d}"] = {
            "runs_in": len(ep.runs),
            "items": len(items),
            "dropped_blank": dropped["blank"],
            "dropped_below_min_height": dropped["below_min_height"],
        }

    meta["counts"] = counts
    meta["document_info"] = _document_info(engine, pdf_bytes=pdf_bytes, logger=logger)
    document = LayoutDocument(page_count=len(pages), pages=pages)
    logger.info(
        "Read %d pages, %d positioned items, %d chars of text",
        document.page_count,
        sum(len(p.items) for p in pages),
        len(document.plain_text),
    )
    return ReadPdfResult(ok=True, engine=config.engine, document=document, errors=[], meta=meta)


def read_pdf_bytes_or_raise(pdf_bytes: bytes, *, config: ReadPdfConfig | None = None) -> LayoutDocument:
    result = read_pdf_bytes(pdf_bytes, config=config)
    if not result.ok or result.document is None:
        raise ExtractionFailure(
            result.errors[0]
            if result.errors
            else ReadPdfError(code="READ_PDF_EXTRACTION_FAILURE", message="PDF could not be read")
        )
    return result.document
