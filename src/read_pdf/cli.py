from __future__ import annotations

import argparse
import json
from pathlib import Path

from tables.config import TableConfig
from tables.reconstruct import reconstruct_tables

from .artifacts import write_layout_dump_json
from .contracts import ReadPdfConfig
from .module import read_pdf_bytes


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ro-protocols-layout",
        description="Debug dump: PDF -> plain text, positioned runs and reconstructed tables (JSON).",
    )
    p.add_argument("--pdf", required=True, type=Path, help="Source PDF file.")
    p.add_argument("--out", required=True, type=Path, help="Output JSON file.")
    p.add_argument("--min-glyph-height", type=float, default=5.0, help="Drop runs at or below this height.")
    p.add_argument(
        "--table-gap",
        type=float,
        default=None,
        help="Split a page into several tables at vertical gaps larger than this (PDF points).",
    )
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    result = read_pdf_bytes(args.pdf.read_bytes(), config=ReadPdfConfig(min_glyph_height=args.min_glyph_height))
    tables, table_meta = [], {}
    if result.document is not None:
        tables, table_meta = reconstruct_tables(result.document, TableConfig(table_gap_px=args.table_gap))

    write_layout_dump_json(result=result, tables=tables, table_meta=table_meta, out_file=args.out)

    summary = {
        "ok": result.ok,
        "pages": 0 if result.document is None else result.document.page_count,
        "items": 0 if result.document is None else sum(len(p.items) for p in result.document.pages),
        "tables": len(tables),
    }
    print(json.dumps(summary, sort_keys=True, separators=(",", ":"), ensure_ascii=False))

    return 0 if result.ok else 2


if __name__ == "__main__":
    raise SystemExit(main())
