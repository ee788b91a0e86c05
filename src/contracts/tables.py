from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .layout import BBox


@dataclass(frozen=True, slots=True)
class Column:
    index: int
    x: float
    width: float

    def span(self, margin: float) -> tuple[float, float]:
        return (self.x - margin, self.x + self.width + margin)

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "x": self.x, "width": self.width}

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Column":
        return Column(index=int(d["index"]), x=float(d["x"]), width=float(d["width"]))


@dataclass(frozen=True, slots=True)
class Cell:
    text: str  # whitespace-normalized; "" for an empty cell
    column_index: int
    row_index: int
    bbox: BBox  # column span x row extent the text was assigned from

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "column_index": self.column_index,
            "row_index": self.row_index,
            "bbox": self.bbox.to_dict(),
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Cell":
        return Cell(
            text=str(d.get("text", "")),
            column_index=int(d["column_index"]),
            row_index=int(d["row_index"]),
            bbox=BBox.from_dict(d["bbox"]),
        )


@dataclass(frozen=True, slots=True)
class Row:
    row_index: int
    y: float
    height: float
    cells: list[Cell]  # one per column, ordered by column index

    def text(self) -> str:
        return " ".join(c.text for c in self.cells).strip()

    def to_dict(self) -> dict[str, Any]:
        return {
            "row_index": self.row_index,
            "y": self.y,
            "height": self.height,
            "cells": [c.to_dict() for c in self.cells],
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Row":
        return Row(
            row_index=int(d["row_index"]),
            y=float(d["y"]),
            height=float(d["height"]),
            cells=[Cell.from_dict(c) for c in (d.get("cells") or [])],
        )


@dataclass(frozen=True, slots=True)
class Table:
    page_num: int
    columns: list[Column]
    rows: list[Row]

    def to_dict(self) -> dict[str, Any]:
        return {
            "page_num": self.page_num,
            "columns": [c.to_dict() for c in self.columns],
            "rows": [r.to_dict() for r in self.rows],
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Table":
        return Table(
            page_num=int(d["page_num"]),
            columns=[Column.from_dict(c) for c in (d.get("columns") or [])],
            rows=[Row.from_dict(r) for r in (d.get("rows") or [])],
        )
