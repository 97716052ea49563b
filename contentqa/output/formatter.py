"""Output formatting for check passes."""

import dataclasses
import json
from typing import Any, Literal

from ..checks.base import Pass, Result


def format_passes(
    passes: list[Pass],
    format: Literal["text", "json"] = "text",
) -> str:
    """Format check passes for output.

    Args:
        passes: The completed passes to format.
        format: Output format ("text" or "json").

    Returns:
        Formatted string representation.
    """
    if format == "json":
        return _format_json(passes)
    return _format_text(passes)


def _format_text(passes: list[Pass]) -> str:
    """Format passes as human-readable text."""
    lines: list[str] = []

    for pass_ in passes:
        lines.append(f"{pass_.check.id}: {pass_.check.label}")
        results = [pass_.summary] if pass_.summary else list(pass_.results.values())
        recorded = {r.step_id for r in results}

        for result in results:
            lines.append(f"  {_symbol(result)} {result.step_id}")
            lines.extend(f"    {line}" for line in _format_result_text(result))

        # Declared steps without a result had nothing to report
        for step_id in pass_.check.step_ids:
            if step_id not in recorded:
                lines.append(f"  - {step_id} (no findings)")

        if not results and not pass_.check.step_ids:
            lines.append("  (nothing checked)")
        lines.append("")

    failed = [p for p in passes if not p.passed]
    if failed:
        lines.append(f"Checks failed: {len(failed)} of {len(passes)}")
    else:
        lines.append("All checks passed")

    return "\n".join(lines)


def _symbol(result: Result) -> str:
    return "✔" if result.passed else "✘"


def _format_result_text(result: Result) -> list[str]:
    """Format the findings of a single result."""
    lines = [f"error: {message}" for message in result.errors.values()]
    payload = result.payload

    if isinstance(payload, dict) and "summary" in payload:
        lines.append(payload["summary"])
        for row in payload.get("rows", []):
            bin_name, cid, length, preview = row
            if cid or length:
                lines.append(f"{bin_name} {cid} ({length} bytes): {preview}")
        return lines

    if isinstance(payload, dict):
        # entity_type -> id -> field -> delta -> target_id
        for entity_type, entities in payload.items():
            for entity_id, fields in entities.items():
                for field_name, deltas in fields.items():
                    for delta, target_id in deltas.items():
                        lines.append(
                            f"{entity_type} {entity_id}: {field_name}[{delta}] -> {target_id}"
                        )
        return lines

    if isinstance(payload, list):
        for item in payload:
            if dataclasses.is_dataclass(item):
                lines.append(f"{item.cid} ({item.length} bytes): {item.preview}")

    return lines


def _to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    return str(value)


def _format_json(passes: list[Pass]) -> str:
    """Format passes as JSON."""
    data = {
        "passed": all(p.passed for p in passes),
        "checks": [
            {
                "id": pass_.check.id,
                "label": pass_.check.label,
                "passed": pass_.passed,
                "steps": pass_.check.steps,
                "results": [
                    {
                        "step_id": result.step_id,
                        "passed": result.passed,
                        "payload": result.payload,
                        "errors": result.errors,
                    }
                    for result in pass_.results.values()
                ],
                "summary": (
                    {
                        "passed": pass_.summary.passed,
                        "payload": pass_.summary.payload,
                        "errors": pass_.summary.errors,
                    }
                    if pass_.summary
                    else None
                ),
            }
            for pass_ in passes
        ],
    }
    return json.dumps(data, indent=2, default=_to_jsonable)
