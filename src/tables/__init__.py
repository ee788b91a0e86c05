from .config import TableConfig
from .reconstruct import (
    build_rows,
    detect_columns,
    reconstruct_tables,
    reconstruct_tables_for_page,
    split_rows_on_gaps,
)

__all__ = [
    "TableConfig",
    "build_rows",
    "detect_columns",
    "reconstruct_tables",
    "reconstruct_tables_for_page",
    "split_rows_on_gaps",
]
