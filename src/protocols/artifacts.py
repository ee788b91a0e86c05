from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from contracts.protocols import PipelineResult


def serialize_pipeline_result(result: PipelineResult) -> str:
    payload: dict[str, Any] = result.to_dict()
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"


def write_pipeline_result_json(*, result: PipelineResult, out_file: Path) -> None:
    out_file.parent.mkdir(parents=True, exist_ok=True)
    out_file.write_text(serialize_pipeline_result(result), encoding="utf-8")
