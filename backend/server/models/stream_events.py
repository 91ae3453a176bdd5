from __future__ import annotations

from typing import Any, Dict

from picks_agent.agents.events import FinalStateEvent, StepEvent


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def normalize_stream_event(event: Any) -> Dict[str, Any]:
    """
    Normalize runner events and raw dicts into a stable SSE payload contract.

    Contract:
      - step frames always carry node, type, content (tool_calls only when present)
      - error frames always carry a non-empty string `message`
      - the final frame carries `final_state` exactly once per run
    """
    if isinstance(event, StepEvent):
        if event.is_error:
            return {
                "status": "error",
                "node": event.node,
                "message": event.content.strip() or "unknown error",
            }
        return {"status": "step", **event.to_dict()}

    if isinstance(event, FinalStateEvent):
        return {"status": "final", **event.to_dict()}

    if not isinstance(event, dict):
        return {"status": "step", "node": "", "type": "unknown", "content": str(event)}

    status = str(event.get("status") or "")
    if not status:
        return {"status": "step", "node": "", "type": "unknown", "content": str(event)}

    if status == "error":
        message = event.get("message")
        if isinstance(message, str) and message.strip():
            return {"status": "error", "message": message.strip()}

        content = event.get("content")
        if isinstance(content, str) and content.strip():
            return {"status": "error", "message": content.strip()}

        nested = _as_dict(content).get("message")
        if isinstance(nested, str) and nested.strip():
            return {"status": "error", "message": nested.strip()}
        return {"status": "error", "message": "unknown error"}

    # Pass-through for other statuses (start/done/...).
    return event
