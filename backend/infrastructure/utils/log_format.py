from __future__ import annotations

import json
from typing import Any

# Long free text (queries, model output) is cut so one event stays on one readable line.
DEFAULT_MAX_VALUE_CHARS = 200


def _shorten(value: str, max_chars: int) -> str:
    if max_chars <= 0 or len(value) <= max_chars:
        return value
    return value[: max_chars - 1] + "…"


def _format_value(value: Any, max_chars: int) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if hasattr(value, "value") and isinstance(getattr(value, "value"), str):
        # str-valued enums (watch status, error type)
        return json.dumps(value.value, ensure_ascii=False)
    if isinstance(value, str):
        return json.dumps(_shorten(value, max_chars), ensure_ascii=False)
    if isinstance(value, (list, tuple, dict)):
        return _shorten(json.dumps(value, ensure_ascii=False, default=str), max_chars)
    return json.dumps(_shorten(str(value), max_chars), ensure_ascii=False)


def format_kv(*, max_value_chars: int = DEFAULT_MAX_VALUE_CHARS, **fields: Any) -> str:
    """
    Render a compact single-line key=value log string.

    Example:
      seq=1 event="step" node="gradeDocuments" elapsed_seconds=0.12
    """
    parts: list[str] = []
    for key, value in fields.items():
        if value is None:
            continue
        parts.append(f"{key}={_format_value(value, max_value_chars)}")
    return " ".join(parts)
