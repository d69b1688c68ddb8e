"""Plain-text summaries of plan execution results."""
from __future__ import annotations

import json
import typing as t
from dataclasses import asdict, is_dataclass


def to_jsonable(value: t.Any) -> t.Any:
    """Convert dataclass results (and containers of them) into JSON-friendly data."""
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, dict):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


def summarize_result(result: t.Any) -> str:
    """One-line view of a step result: its ``status`` field if it has one."""
    data = to_jsonable(result)
    if isinstance(data, dict) and data.get("status"):
        return str(data["status"])
    if isinstance(data, (dict, list)):
        return json.dumps(data, indent=2, default=str)
    return str(data)


def format_plan_outputs(results: t.Mapping[str, t.Any], failed_step: t.Optional[str] = None, error: t.Optional[str] = None) -> str:
    """Human-readable report of a (possibly aborted) plan run."""
    attempted = len(results) + (1 if failed_step else 0)
    lines = [f"Executed {len(results)}/{attempted} step(s) successfully.", ""]
    for step_id, result in results.items():
        lines.append(f"✅ {step_id}: {summarize_result(result)}")
    if failed_step:
        lines.append("")
        lines.append("Errors:")
        lines.append(f"❌ {failed_step}: {error or 'failed'}")
    return "\n".join(lines)
