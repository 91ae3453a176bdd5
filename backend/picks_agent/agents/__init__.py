"""
Recommendation agents.

Events are plain dataclasses and import without extras; the graph and runner
need the optional langchain stack.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, Tuple

from picks_agent.agents.events import FinalStateEvent, StepEvent

_LAZY_IMPORTS: Dict[str, Tuple[str, str]] = {
    "RecommendationGraph": ("picks_agent.agents.recommendation_graph", "RecommendationGraph"),
    "MissingToolMessageError": ("picks_agent.agents.recommendation_graph", "MissingToolMessageError"),
    "next_node": ("picks_agent.agents.recommendation_graph", "next_node"),
    "RecommendationRunner": ("picks_agent.agents.runner", "RecommendationRunner"),
}

_INSTALL_HINT = (
    "Optional dependencies required. "
    "Install one of: `pip install 'picks-agent[langchain]'` or "
    "`pip install 'picks-agent[full]'`."
)


def __getattr__(name: str) -> Any:
    if name not in _LAZY_IMPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_path, attr_name = _LAZY_IMPORTS[name]
    try:
        module = import_module(module_path)
    except ModuleNotFoundError as exc:
        if exc.name and exc.name.startswith("picks_agent"):
            raise
        raise ImportError(f"{_INSTALL_HINT} Missing: {exc.name}") from exc
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


def __dir__() -> Any:
    return sorted(set(list(globals().keys()) + list(_LAZY_IMPORTS.keys())))


__all__ = ["StepEvent", "FinalStateEvent", *_LAZY_IMPORTS.keys()]
