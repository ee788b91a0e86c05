from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TableConfig:
    """
    Deterministic table reconstruction parameters (PDF points).

    Defaults are explicit constants tuned on the published protocol lists.
    """

    # x positions closer than this (consecutive, after sorting) share a column.
    column_tolerance_px: float = 40.0
    # Column clusters with fewer members are treated as noise.
    min_column_members: int = 3
    # Consecutive items (sorted by y) closer than this share a row.
    row_tolerance_px: float = 8.0
    # An item belongs to a column if its x lies within the column span +/- margin.
    column_margin_px: float = 30.0
    min_column_width_px: float = 50.0
    # None => one table per page. Otherwise a vertical gap between consecutive
    # rows larger than this starts a new table on the same page.
    table_gap_px: float | None = None

    def validate(self) -> None:
        if self.column_tolerance_px <= 0:
            raise ValueError("column_tolerance_px must be > 0")
        if self.min_column_members < 1:
            raise ValueError("min_column_members must be >= 1")
        if self.row_tolerance_px < 0:
            raise ValueError("row_tolerance_px must be >= 0")
        if self.column_margin_px < 0:
            raise ValueError("column_margin_px must be >= 0")
        if self.min_column_width_px < 0:
            raise ValueError("min_column_width_px must be >= 0")
        if self.table_gap_px is not None and self.table_gap_px <= 0:
            raise ValueError("table_gap_px must be > 0 when set")
