from __future__ import annotations

import logging

from .base import EnginePage, EngineTextRun, PdfLayoutEngine


class Pypdfium2Engine(PdfLayoutEngine):
    def backend_id(self) -> str:
        return "pypdfium2"

    def backend_version(self) -> str | None:
        try:
            import pypdfium2 as pdfium  # type: ignore

            return getattr(pdfium, "__version__", None)
        except Exception:
            return None

    def _require_pdfium(self):
        try:
            import pypdfium2 as pdfium  # type: ignore

            return pdfium
        except ImportError as e:
            raise RuntimeError(
                "Missing dependency: pypdfium2 is required for PDF layout reading."
            ) from e

    def read_pages(self, *, pdf_bytes: bytes, logger: logging.Logger) -> list[EnginePage]:
        pdfium = self._require_pdfium()
        # A fresh document handle per call; nothing is cached between documents.
        doc = pdfium.PdfDocument(pdf_bytes)
        try:
            page_count = len(doc)
            logger.debug("pypdfium2 opened document with %d pages", page_count)

            pages: list[EnginePage] = []
            for idx in range(page_count):
                page = doc[idx]
                textpage = page.get_textpage()
                try:
                    width, height = page.get_size()
                    text = textpage.get_text_range()

                    runs: list[EngineTextRun] = []
                    for r in range(textpage.count_rects()):
                        left, bottom, right, top = textpage.get_rect(r)
                        run_text = textpage.get_text_bounded(left=left, bottom=bottom, right=right, top=top)
                        runs.append(
                            EngineTextRun(
                                text=run_text,
                                left=float(left),
                                bottom=float(bottom),
                                right=float(right),
                                top=float(top),
                            )
                        )
                finally:
                    textpage.close()
                    page.close()

                pages.append(
                    EnginePage(
                        page_num=idx + 1,
                        width=float(width),
                        height=float(height),
                        text=text,
                        runs=runs,
                    )
                )
            return pages
        finally:
            doc.close()

    def read_document_info(self, *, pdf_bytes: bytes, logger: logging.Logger) -> dict[str, str]:
        pdfium = self._require_pdfium()
        doc = pdfium.PdfDocument(pdf_bytes)
        try:
            info = doc.get_metadata_dict(skip_empty=True)
            logger.debug("pypdfium2 document info keys: %s", sorted(info))
            return dict(info)
        finally:
            doc.close()
