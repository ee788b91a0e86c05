from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from contracts.protocols import ProtocolHints

from .artifacts import write_pipeline_result_json
from .config import PipelineConfig
from .pipeline import run_protocol_pipeline
from .rules import load_ruleset


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ro-protocols-extract",
        description="Extract therapeutic protocol records from a PDF into a JSON artifact.",
    )
    p.add_argument("--pdf", required=True, type=Path, help="Source PDF file.")
    p.add_argument("--out", required=True, type=Path, help="Output JSON file.")
    p.add_argument("--expected-title", default=None, help="Title hint (document title or list name).")
    p.add_argument("--known-code", default=None, help="Protocol code hint for single-protocol PDFs.")
    p.add_argument("--ruleset", type=Path, default=None, help="Rule set JSON (default: bundled v1).")
    p.add_argument(
        "--always-run-free-text",
        action="store_true",
        help="Also run the free-text parser when tables produced candidates.",
    )
    p.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for this run.",
    )
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")
    logger = logging.getLogger("protocols")

    config = PipelineConfig(
        ruleset=load_ruleset(args.ruleset) if args.ruleset is not None else None,
        always_run_free_text=args.always_run_free_text,
        logger=logger,
    )
    hints = ProtocolHints(expected_title=args.expected_title, known_code=args.known_code, source_name=args.pdf.name)

    result = run_protocol_pipeline(args.pdf.read_bytes(), hints=hints, config=config)
    write_pipeline_result_json(result=result, out_file=args.out)

    summary = {
        "ok": result.ok,
        "document_kind": None if result.document_kind is None else result.document_kind.value,
        "method": result.method,
        "records": len(result.records),
        "needs_review": sum(1 for r in result.records if r.needs_review),
    }
    print(json.dumps(summary, sort_keys=True, separators=(",", ":"), ensure_ascii=False))

    return 0 if result.ok else 2


if __name__ == "__main__":
    raise SystemExit(main())
