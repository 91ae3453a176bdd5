"""
Search tools package.

Keep this package importable in a core-only install (minimal deps).
Concrete tools require the optional langchain stack.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, Tuple


_LAZY_IMPORTS: Dict[str, Tuple[str, str]] = {
    "build_retriever_tool": ("picks_agent.search.tool.retriever_tool", "build_retriever_tool"),
    "build_default_retriever": ("picks_agent.search.tool.retriever_tool", "build_default_retriever"),
    "WebSearchTool": ("picks_agent.search.tool.web_search_tool", "WebSearchTool"),
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


__all__ = list(_LAZY_IMPORTS.keys())
