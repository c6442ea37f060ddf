"""Output helpers for bofh."""

from __future__ import annotations

import json
import re
import xmlrpc.client
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .context import ShellContext

_FORMAT_CALL = re.compile(r"^\w+\((\w+)\)$")
NOT_SET = "<not set>"


def _json_dump(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, indent=2, sort_keys=True, default=_json_default)


def _json_default(value: Any) -> Any:
    if isinstance(value, xmlrpc.client.DateTime):
        return _display(value)
    if isinstance(value, (bytes, xmlrpc.client.Binary)):
        return repr(value)
    return str(value)


def emit_result(ctx: ShellContext, *, message: str, data: Optional[Any] = None) -> None:
    """Emit a successful command result."""
    if ctx.json_output:
        payload: Dict[str, Any] = {"status": "ok"}
        if data is not None:
            payload["result"] = data
        else:
            payload["message"] = message
        print(_json_dump(payload))
    elif message:
        print(message)


def emit_error(ctx: ShellContext, *, message: str, data: Optional[Mapping[str, Any]] = None) -> None:
    """Emit an error message respecting JSON mode."""
    payload: Dict[str, Any] = {"status": "error", "error": message}
    if data:
        payload["details"] = dict(data)
    if ctx.json_output:
        print(_json_dump(payload))
    else:
        print(f"error: {message}")


def _display(value: Any) -> str:
    if value is None:
        return NOT_SET
    if isinstance(value, xmlrpc.client.DateTime):
        try:
            return datetime.strptime(value.value, "%Y%m%dT%H:%M:%S").strftime("%Y-%m-%d %H:%M:%S")
        except ValueError:
            return str(value.value)
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    return str(value)


def _variable(name: str) -> str:
    # Format suggestions may wrap variables in helpers like format_day(expire).
    match = _FORMAT_CALL.match(name)
    return match.group(1) if match else name


def format_plain(result: Any) -> List[str]:
    """Render a result without a format suggestion."""
    if result is None:
        return []
    if isinstance(result, str):
        return result.splitlines() or [""]
    if isinstance(result, Mapping):
        width = max((len(str(key)) for key in result), default=0)
        return [f"{str(key):<{width}} : {_display(value)}" for key, value in result.items()]
    if isinstance(result, Sequence):
        lines: List[str] = []
        for entry in result:
            if isinstance(entry, Mapping):
                lines.append(", ".join(f"{key}={_display(value)}" for key, value in entry.items()))
            else:
                lines.append(_display(entry))
        return lines
    return [_display(result)]


def format_with_suggestion(result: Any, suggestion: Mapping[str, Any]) -> List[str]:
    """Render *result* with a bofhd format suggestion.

    A suggestion has an optional ``hdr`` line and a list ``str_vars`` of
    ``(format, variables[, sub_header])`` entries.  Each entry is applied to
    every row that carries all of its variables.
    """
    str_vars = suggestion.get("str_vars")
    if not isinstance(str_vars, (list, tuple)):
        return format_plain(result)
    rows = list(result) if isinstance(result, (list, tuple)) else [result]
    lines: List[str] = []
    header = suggestion.get("hdr")
    if header:
        lines.append(str(header))
    for entry in str_vars:
        if not isinstance(entry, (list, tuple)) or len(entry) < 2:
            continue
        fmt, names = str(entry[0]), [_variable(str(name)) for name in entry[1]]
        sub_header = entry[2] if len(entry) > 2 else None
        printed_header = False
        for row in rows:
            if not isinstance(row, Mapping) or not all(name in row for name in names):
                continue
            if sub_header and not printed_header:
                lines.append(str(sub_header))
                printed_header = True
            values = tuple(_display(row[name]) for name in names)
            try:
                lines.append(fmt % values)
            except (TypeError, ValueError):
                lines.append(" ".join(values))
    if not lines:
        return format_plain(result)
    return lines


def render_result(ctx: ShellContext, result: Any, suggestion: Optional[Mapping[str, Any]] = None) -> None:
    """Print a remote command result."""
    if ctx.json_output:
        emit_result(ctx, message="", data=result if result is not None else {})
        return
    if suggestion and not isinstance(result, str):
        lines = format_with_suggestion(result, suggestion)
    else:
        lines = format_plain(result)
    for line in lines:
        print(line)


__all__ = [
    "emit_result",
    "emit_error",
    "format_plain",
    "format_with_suggestion",
    "render_result",
]
