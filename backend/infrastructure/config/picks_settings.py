from __future__ import annotations

import os
from typing import Any, Optional

from dotenv import load_dotenv

from picks_agent.config import settings as core_settings

# 统一加载环境变量，确保配置来源一致。
load_dotenv(override=True)

_APPLIED = False
_LAST_OVERRIDES: dict[str, Any] | None = None


def _get_env_int(key: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"环境变量 {key} 需要整数值，但当前为 {raw}") from exc


def _get_env_float(key: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"环境变量 {key} 需要浮点值，但当前为 {raw}") from exc


def _get_env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    return raw.lower() in {"1", "true", "yes", "y", "on"}


def _positive(value: Optional[int], default: int) -> int:
    return value if value is not None and value > 0 else default


def build_core_overrides() -> dict[str, Any]:
    defaults = core_settings.get_default_settings()
    graph_defaults = dict(defaults["RECOMMENDATION_SETTINGS"])

    recommendation_settings = {
        "grade_min_chars": _positive(
            _get_env_int("GRADE_MIN_CHARS", graph_defaults["grade_min_chars"]),
            graph_defaults["grade_min_chars"],
        ),
        "web_search_max_chars": _positive(
            _get_env_int("WEB_SEARCH_MAX_CHARS", graph_defaults["web_search_max_chars"]),
            graph_defaults["web_search_max_chars"],
        ),
        "generate_context_max_chars": _positive(
            _get_env_int("GENERATE_CONTEXT_MAX_CHARS", graph_defaults["generate_context_max_chars"]),
            graph_defaults["generate_context_max_chars"],
        ),
        "max_recommendations": _positive(
            _get_env_int("MAX_RECOMMENDATIONS", graph_defaults["max_recommendations"]),
            graph_defaults["max_recommendations"],
        ),
        "enable_query_rewrite": _get_env_bool(
            "ENABLE_QUERY_REWRITE", graph_defaults["enable_query_rewrite"]
        ),
        "recursion_limit": _positive(
            _get_env_int("GRAPH_RECURSION_LIMIT", graph_defaults["recursion_limit"]),
            graph_defaults["recursion_limit"],
        ),
    }

    usage_model = (os.getenv("USAGE_MODEL_NAME") or "").strip() or defaults["USAGE_DEFAULT_MODEL"]
    if usage_model not in defaults["USAGE_LIMITS"]:
        raise ValueError(
            f"环境变量 USAGE_MODEL_NAME 必须为 {', '.join(sorted(defaults['USAGE_LIMITS']))} 之一，"
            f"但当前为 {usage_model}"
        )

    near_limit_ratio = _get_env_float("USAGE_NEAR_LIMIT_RATIO", defaults["USAGE_NEAR_LIMIT_RATIO"])
    if near_limit_ratio is None or not 0 < near_limit_ratio <= 1:
        raise ValueError(f"环境变量 USAGE_NEAR_LIMIT_RATIO 需要 (0, 1] 之间的值，但当前为 {near_limit_ratio}")

    return {
        "RETRIEVER_TOP_K": _positive(
            _get_env_int("RETRIEVER_TOP_K", defaults["RETRIEVER_TOP_K"]), defaults["RETRIEVER_TOP_K"]
        ),
        "VECTOR_INDEX_NAME": (os.getenv("VECTOR_INDEX_NAME") or "").strip() or defaults["VECTOR_INDEX_NAME"],
        "WEB_SEARCH_MAX_RESULTS": _positive(
            _get_env_int("WEB_SEARCH_MAX_RESULTS", defaults["WEB_SEARCH_MAX_RESULTS"]),
            defaults["WEB_SEARCH_MAX_RESULTS"],
        ),
        "RECOMMENDATION_SETTINGS": recommendation_settings,
        "USAGE_DEFAULT_MODEL": usage_model,
        "USAGE_NEAR_LIMIT_RATIO": near_limit_ratio,
    }


def apply_core_settings_overrides() -> dict[str, Any]:
    global _APPLIED, _LAST_OVERRIDES
    if _APPLIED and _LAST_OVERRIDES is not None:
        return _LAST_OVERRIDES

    overrides = build_core_overrides()
    core_settings.apply_runtime_overrides(overrides)
    _APPLIED = True
    _LAST_OVERRIDES = overrides
    return overrides
