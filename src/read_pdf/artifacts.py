from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from contracts.tables import Table

from .contracts import ReadPdfResult


def serialize_layout_dump(result: ReadPdfResult, tables: list[Table], table_meta: dict[str, Any]) -> str:
    payload: dict[str, Any] = result.to_dict()
    payload["tables"] = [t.to_dict() for t in tables]
    payload["tables_meta"] = table_meta
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"


def write_layout_dump_json(
    *,
    result: ReadPdfResult,
    tables: list[Table],
    table_meta: dict[str, Any],
    out_file: Path,
) -> None:
    out_file.parent.mkdir(parents=True, exist_ok=True)
    out_file.write_text(serialize_layout_dump(result, tables, table_meta), encoding="utf-8")
