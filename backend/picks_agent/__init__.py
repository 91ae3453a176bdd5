"""
Picks Agent - mood-driven movie/TV recommendation core.

- Stable public import path is `picks_agent.*`
- Repo convention: all backend code lives under `backend/`; this package is the
  installable core (graph runner, usage tracking, ports), service layers stay outside.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, Tuple

__version__ = "0.1.0"

_LAZY_IMPORTS: Dict[str, Tuple[str, str]] = {
    # ============ 1. Recommendation graph ============
    "RecommendationGraph": ("picks_agent.agents.recommendation_graph", "RecommendationGraph"),
    "RecommendationRunner": ("picks_agent.agents.runner", "RecommendationRunner"),
    "StepEvent": ("picks_agent.agents.events", "StepEvent"),
    "FinalStateEvent": ("picks_agent.agents.events", "FinalStateEvent"),
    # ============ 2. Tools ============
    "build_retriever_tool": ("picks_agent.search.tool", "build_retriever_tool"),
    "WebSearchTool": ("picks_agent.search.tool", "WebSearchTool"),
    # ============ 3. Usage governance ============
    "UsageTracker": ("picks_agent.usage", "UsageTracker"),
    "estimate_tokens": ("picks_agent.usage", "estimate_tokens"),
}


def __getattr__(name: str) -> Any:
    if name not in _LAZY_IMPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_path, attr_name = _LAZY_IMPORTS[name]
    module = import_module(module_path)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


def __dir__() -> Any:
    return sorted(set(list(globals().keys()) + list(_LAZY_IMPORTS.keys())))


__all__ = [
    "__version__",
    "RecommendationGraph",
    "RecommendationRunner",
    "StepEvent",
    "FinalStateEvent",
    "build_retriever_tool",
    "WebSearchTool",
    "UsageTracker",
    "estimate_tokens",
]
