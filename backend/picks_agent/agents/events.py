from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple


def content_to_text(content: Any) -> str:
    """Flatten chat message content (plain string or list of parts) into text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "".join(parts)
    return str(content)


def message_to_dict(message: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "type": str(getattr(message, "type", "unknown") or "unknown"),
        "content": content_to_text(getattr(message, "content", "")),
    }
    name = getattr(message, "name", None)
    if name:
        payload["name"] = name
    tool_calls = getattr(message, "tool_calls", None)
    if tool_calls:
        payload["tool_calls"] = [dict(call) for call in tool_calls]
    tool_call_id = getattr(message, "tool_call_id", None)
    if tool_call_id:
        payload["tool_call_id"] = tool_call_id
    return payload


@dataclass(frozen=True)
class StepEvent:
    """One graph state transition: the node that ran and the last message it produced."""

    node: str
    type: str
    content: str
    tool_calls: Optional[List[Dict[str, Any]]] = None

    @property
    def is_error(self) -> bool:
        return self.type == "error"

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "node": self.node,
            "type": self.type,
            "content": self.content,
        }
        if self.tool_calls:
            payload["tool_calls"] = self.tool_calls
        return payload


@dataclass(frozen=True)
class FinalStateEvent:
    """Emitted exactly once after the graph reaches a terminal state."""

    messages: Tuple[Any, ...]
    skip_web_search: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "final_state": {
                "messages": [message_to_dict(m) for m in self.messages],
                "skip_web_search": self.skip_web_search,
            }
        }


__all__ = ["StepEvent", "FinalStateEvent", "content_to_text", "message_to_dict"]
