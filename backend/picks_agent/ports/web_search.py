from __future__ import annotations

from typing import Any, Protocol


class WebSearchProvider(Protocol):
    def get_web_search_tool(self, max_results: int) -> Any:
        """Return a runnable that accepts `{"query": str}` and returns result snippets."""
        ...


_web_search_provider: WebSearchProvider | None = None


def set_web_search_provider(provider: WebSearchProvider) -> None:
    global _web_search_provider
    _web_search_provider = provider


def _resolve_web_search_provider() -> WebSearchProvider:
    if _web_search_provider is None:
        raise RuntimeError(
            "Web search provider not configured. "
            "Call picks_agent.ports.set_web_search_provider(...) before using web search."
        )
    return _web_search_provider


def get_web_search_tool(max_results: int) -> Any:
    return _resolve_web_search_provider().get_web_search_tool(max_results)


__all__ = [
    "WebSearchProvider",
    "set_web_search_provider",
    "get_web_search_tool",
]
