from __future__ import annotations

"""Web search provider for picks_agent ports (Tavily via langchain_community).

Injected via `backend/infrastructure/bootstrap.py`.
"""

from typing import Any

from langchain_community.tools.tavily_search import TavilySearchResults
from langchain_community.utilities.tavily_search import TavilySearchAPIWrapper

from infrastructure.config.settings import TAVILY_API_KEY


def get_web_search_tool(max_results: int) -> Any:
    if TAVILY_API_KEY:
        return TavilySearchResults(
            max_results=max_results,
            api_wrapper=TavilySearchAPIWrapper(tavily_api_key=TAVILY_API_KEY),
        )
    # Falls back to TAVILY_API_KEY read by the wrapper itself.
    return TavilySearchResults(max_results=max_results)


__all__ = ["get_web_search_tool"]
