from __future__ import annotations

import json
import logging
import time
from typing import Any

from langchain_core.messages import ToolMessage

from picks_agent.config import settings as core_settings
from picks_agent.ports.web_search import get_web_search_tool

logger = logging.getLogger(__name__)


def _truncate_text(value: str, limit: int) -> str:
    if limit <= 0:
        return ""
    if len(value) <= limit:
        return value
    return value[: max(limit - 1, 0)] + "…"


def _stringify_results(results: Any) -> str:
    if results is None:
        return ""
    if isinstance(results, str):
        return results
    if isinstance(results, dict) and isinstance(results.get("results"), list):
        results = results["results"]
    try:
        return json.dumps(results, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(results)


class WebSearchTool:
    """Web-search fallback that always answers with a tool-role message.

    Provider failures are converted into a `ToolMessage(status="error")` carrying the
    error text, so the graph can still reach generation.
    """

    def __init__(self, tool: Any | None = None, *, max_chars: int | None = None) -> None:
        self._tool = tool
        self.max_chars = int(
            max_chars
            if max_chars is not None
            else core_settings.RECOMMENDATION_SETTINGS["web_search_max_chars"]
        )

    @property
    def tool(self) -> Any:
        if self._tool is None:
            self._tool = get_web_search_tool(core_settings.WEB_SEARCH_MAX_RESULTS)
        return self._tool

    async def asearch(self, query: str) -> ToolMessage:
        stamp = int(time.time() * 1000)
        try:
            raw = await self.tool.ainvoke({"query": query})
        except Exception as exc:
            logger.warning("web search failed query=%r", query, exc_info=True)
            return ToolMessage(
                content=f"Web search failed: {exc}",
                name=core_settings.WEB_SEARCH_NODE_NAME,
                tool_call_id=f"web_search_error_{stamp}",
                status="error",
            )

        content = _truncate_text(_stringify_results(raw), self.max_chars)
        logger.info("web search done query=%r chars=%s", query, len(content))
        return ToolMessage(
            content=content,
            name=core_settings.WEB_SEARCH_NODE_NAME,
            tool_call_id=f"web_search_{stamp}",
        )


__all__ = ["WebSearchTool"]
