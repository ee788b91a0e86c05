from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class BBox:
    """
    PDF-point coordinates with a top-left origin:
    - (x0, y0) is top-left
    - (x1, y1) is bottom-right
    """

    x0: float
    y0: float
    x1: float
    y1: float

    def width(self) -> float:
        return float(self.x1 - self.x0)

    def height(self) -> float:
        return float(self.y1 - self.y0)

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "BBox":
        return BBox(x0=float(d["x0"]), y0=float(d["y0"]), x1=float(d["x1"]), y1=float(d["y1"]))

    def to_dict(self) -> dict[str, Any]:
        return {"x0": self.x0, "y0": self.y0, "x1": self.x1, "y1": self.y1}


@dataclass(frozen=True, slots=True)
class PositionedTextItem:
    """
    One text run as reported by the layout backend.

    `text` is kept exactly as extracted; x/y is the top-left corner of the run.
    """

    text: str
    page_num: int  # 1-indexed
    x: float
    y: float
    width: float
    height: float

    def bbox(self) -> BBox:
        return BBox(x0=self.x, y0=self.y, x1=self.x + self.width, y1=self.y + self.height)

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "PositionedTextItem":
        return PositionedTextItem(
            text=str(d.get("text", "")),
            page_num=int(d["page_num"]),
            x=float(d["x"]),
            y=float(d["y"]),
            width=float(d.get("width", 0.0)),
            height=float(d.get("height", 0.0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "page_num": self.page_num,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True, slots=True)
class LayoutPage:
    page_num: int  # 1-indexed
    width: float
    height: float
    text: str  # plain text of the page, LF line endings
    items: list[PositionedTextItem]

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "LayoutPage":
        return LayoutPage(
            page_num=int(d["page_num"]),
            width=float(d.get("width", 0.0)),
            height=float(d.get("height", 0.0)),
            text=str(d.get("text", "")),
            items=[PositionedTextItem.from_dict(x) for x in (d.get("items") or [])],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "page_num": self.page_num,
            "width": self.width,
            "height": self.height,
            "text": self.text,
            "items": [i.to_dict() for i in self.items],
        }


@dataclass(frozen=True, slots=True)
class LayoutDocument:
    """
    Everything later stages know about a PDF: per-page plain text and positioned runs.

    `plain_text` is the page texts joined with a single LF, in page order.
    """

    page_count: int
    pages: list[LayoutPage]

    @property
    def plain_text(self) -> str:
        return "\n".join(p.text for p in self.pages)

    def line_page_index(self) -> list[int]:
        """
        Page number for every line of `plain_text` (same indexing as `plain_text.split("\\n")`).
        """

        out: list[int] = []
        for p in self.pages:
            out.extend([p.page_num] * len(p.text.split("\n")))
        return out

    @staticmethod
    def from_texts(texts: list[str]) -> "LayoutDocument":
        pages = [
            LayoutPage(page_num=i + 1, width=0.0, height=0.0, text=t, items=[])
            for i, t in enumerate(texts)
        ]
        return LayoutDocument(page_count=len(pages), pages=pages)

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "LayoutDocument":
        pages = [LayoutPage.from_dict(p) for p in (d.get("pages") or [])]
        return LayoutDocument(page_count=int(d.get("page_count", len(pages))), pages=pages)

    def to_dict(self) -> dict[str, Any]:
        return {
            "page_count": self.page_count,
            "pages": [p.to_dict() for p in self.pages],
        }
