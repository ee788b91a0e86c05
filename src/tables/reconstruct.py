from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from contracts.layout import BBox, LayoutDocument, LayoutPage, PositionedTextItem
from contracts.tables import Cell, Column, Row, Table

from .config import TableConfig

_WS_RE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class _Cluster:
    center: float
    count: int


def _cluster_positions(positions: list[float], *, tolerance: float) -> list[_Cluster]:
    """
    1-D single-linkage clustering: sorted positions whose consecutive gap is
    within `tolerance` share a cluster.
    """

    if not positions:
        return []
    ordered = sorted(positions)
    clusters: list[_Cluster] = []
    cur = [ordered[0]]
    for prev, x in zip(ordered, ordered[1:]):
        if x - prev <= tolerance:
            cur.append(x)
        else:
            clusters.append(_Cluster(center=sum(cur) / len(cur), count=len(cur)))
            cur = [x]
    clusters.append(_Cluster(center=sum(cur) / len(cur), count=len(cur)))
    return clusters


def detect_columns(items: list[PositionedTextItem], config: TableConfig) -> list[Column]:
    """
    Infer column x-ranges for one page from item x positions.

    Falls back to a single full-width column when no cluster is large enough.
    """

    if not items:
        return []

    xs = [i.x for i in items]
    clusters = [
        c
        for c in _cluster_positions(xs, tolerance=config.column_tolerance_px)
        if c.count >= config.min_column_members
    ]

    if not clusters:
        x0 = min(xs)
        x1 = max(i.x + i.width for i in items)
        return [Column(index=0, x=x0, width=max(0.0, x1 - x0))]

    spans: list[tuple[float, float]] = []
    for c in clusters:
        member_xs = [x for x in xs if abs(x - c.center) < config.column_tolerance_px]
        lo = min(member_xs)
        hi = max(member_xs)
        spans.append((lo, max(hi - lo, config.min_column_width_px)))

    spans.sort()
    return [Column(index=idx, x=x, width=w) for idx, (x, w) in enumerate(spans)]


def _group_items_into_row_bins(items: list[PositionedTextItem], *, tolerance: float) -> list[list[PositionedTextItem]]:
    # Deterministic sweep: y, then x, then text.
    sweep = sorted(items, key=lambda i: (i.y, i.x, i.text))
    bins: list[list[PositionedTextItem]] = []
    cur: list[PositionedTextItem] = []
    for it in sweep:
        if cur and abs(it.y - cur[-1].y) > tolerance:
            bins.append(cur)
            cur = []
        cur.append(it)
    if cur:
        bins.append(cur)
    return bins


def _cell_text(items: list[PositionedTextItem]) -> str:
    joined = " ".join(i.text for i in sorted(items, key=lambda i: (i.x, i.y)))
    return _WS_RE.sub(" ", joined).strip()


def build_rows(items: list[PositionedTextItem], columns: list[Column], config: TableConfig) -> list[Row]:
    """
    Group items into rows and assign them to every column whose margin-extended span contains them.
    """

    rows: list[Row] = []
    for row_index, group in enumerate(_group_items_into_row_bins(items, tolerance=config.row_tolerance_px)):
        y = min(i.y for i in group)
        height = max(i.height for i in group)
        cells: list[Cell] = []
        for col in columns:
            lo, hi = col.span(config.column_margin_px)
            col_items = [i for i in group if lo <= i.x <= hi]
            cells.append(
                Cell(
                    text=_cell_text(col_items),
                    column_index=col.index,
                    row_index=row_index,
                    bbox=BBox(x0=col.x, y0=y, x1=col.x + col.width, y1=y + height),
                )
            )
        rows.append(Row(row_index=row_index, y=y, height=height, cells=cells))
    return rows


def _reindex(rows: list[Row]) -> list[Row]:
    out: list[Row] = []
    for idx, r in enumerate(rows):
        cells = [
            Cell(text=c.text, column_index=c.column_index, row_index=idx, bbox=c.bbox) for c in r.cells
        ]
        out.append(Row(row_index=idx, y=r.y, height=r.height, cells=cells))
    return out


def split_rows_on_gaps(rows: list[Row], *, gap: float | None) -> list[list[Row]]:
    """
    Split a page's rows into tables at vertical gaps larger than `gap`.

    `gap=None` keeps the whole page as a single table.
    """

    if not rows:
        return []
    if gap is None:
        return [rows]
    groups: list[list[Row]] = [[rows[0]]]
    for prev, r in zip(rows, rows[1:]):
        if r.y - (prev.y + prev.height) > gap:
            groups.append([])
        groups[-1].append(r)
    return [_reindex(g) for g in groups]


def reconstruct_tables_for_page(page: LayoutPage, config: TableConfig) -> list[Table]:
    config.validate()

    items = [i for i in page.items if i.text.strip() != ""]
    if not items:
        return []

    columns = detect_columns(items, config)
    if not columns:
        return []

    rows = build_rows(items, columns, config)
    return [
        Table(page_num=page.page_num, columns=list(columns), rows=group)
        for group in split_rows_on_gaps(rows, gap=config.table_gap_px)
    ]


def reconstruct_tables(document: LayoutDocument, config: TableConfig) -> tuple[list[Table], dict[str, Any]]:
    """
    Reconstruct tables for every page, in page order.

    Returns the tables plus JSON-ready meta (params + per-page counts).
    """

    config.validate()

    meta: dict[str, Any] = {
        "params": {
            "column_tolerance_px": config.column_tolerance_px,
            "min_column_members": config.min_column_members,
            "row_tolerance_px": config.row_tolerance_px,
            "column_margin_px": config.column_margin_px,
            "min_column_width_px": config.min_column_width_px,
            "table_gap_px": config.table_gap_px,
        },
        "counts": {},
    }

    tables: list[Table] = []
    for page in sorted(document.pages, key=lambda p: p.page_num):
        page_tables = reconstruct_tables_for_page(page, config)
        tables.extend(page_tables)
        meta["counts"][f"page_{page.page_num:03d}"] = {
            "items": len(page.items),
            "tables": len(page_tables),
            "columns": 0 if not page_tables else len(page_tables[0].columns),
            "rows": sum(len(t.rows) for t in page_tables),
        }

    return tables, meta
