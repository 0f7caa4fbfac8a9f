"""Text/JSON output helpers.

The CLI renders ServiceResult for humans (key-value text) or machines
(--json).  The formatter layer adapts ServiceResult to the requested mode.
"""

from __future__ import annotations

import json as _json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from meshctl.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def _format_data_human(data: dict[str, Any]) -> str:
    """Format result data as indented key-value pairs."""
    lines: list[str] = []
    for key, value in data.items():
        if isinstance(value, (dict, list)):
            lines.append(f"  {key}: {_json.dumps(value, separators=(',', ':'))}")
        elif isinstance(value, str) and "\n" in value:
            indented = value.strip("\n").replace("\n", "\n    ")
            lines.append(f"  {key}:\n    {indented}")
        else:
            lines.append(f"  {key}: {value}")
    return "\n".join(lines)


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display.

    * ``json_output`` — the full result as indented JSON.
    * ``quiet`` — a single status line.
    * default — status line plus data; ``verbose`` adds meta.
    """
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)

    if not result.ok:
        error_msg = result.error.message if result.error else "Unknown error"
        line = f"ERROR: {result.op} — {error_msg}"
        if settings.verbose and result.error is not None:
            line += f"\n  code: {result.error.code}"
            if result.error.detail:
                line += "\n" + _format_data_human(result.error.detail)
        return line

    parts = [f"OK: {result.op}"]
    if settings.quiet:
        return parts[0]
    if result.data:
        parts.append(_format_data_human(result.data))
    if settings.verbose and result.meta:
        parts.append(_format_data_human(result.meta))
    return "\n".join(parts)
