from __future__ import annotations

from typing import Any, Mapping

# ===== 检索工具（向量索引）=====

RETRIEVER_TOOL_NAME = "recommend_tv_shows_and_movies"
RETRIEVER_TOOL_DESCRIPTION = "Search and return relevant tv shows and movies."

# Cost-optimized retrieval: only the top 3 documents are fed to grading/generation.
RETRIEVER_TOP_K = 3
VECTOR_INDEX_NAME = "movie_vector"

# ===== 相关性评分 =====

RELEVANCE_TOOL_NAME = "give_relevance_score"
RELEVANCE_TOOL_DESCRIPTION = "Give a relevance score to the retrieved documents."

# ===== Web 搜索兜底 =====

WEB_SEARCH_NODE_NAME = "webSearch"
WEB_SEARCH_MAX_RESULTS = 5

# ===== 推荐图配置 =====

RECOMMENDATION_SETTINGS = {
    # Tool output longer than this is assumed relevant without a grading call.
    # Cost shortcut, not a correctness guarantee.
    "grade_min_chars": 50,
    # Web search output is truncated before it reaches generation.
    "web_search_max_chars": 1500,
    # The tool message handed to the generation prompt is truncated to this size.
    "generate_context_max_chars": 3000,
    "max_recommendations": 5,
    "enable_query_rewrite": False,
    "recursion_limit": 12,
}

# ===== 用量治理（免费额度）=====

USAGE_DEFAULT_MODEL = "gemini-2.0-flash"
USAGE_NEAR_LIMIT_RATIO = 0.8
USAGE_WINDOW_MINUTE_S = 60.0
USAGE_WINDOW_DAY_S = 24 * 60 * 60.0

USAGE_LIMITS = {
    "gemini-2.0-flash": {
        "tokens_per_minute": 1_000_000,
        "requests_per_minute": 15,
        "requests_per_day": 200,
    },
    "gemini-2.5-flash": {
        "tokens_per_minute": 250_000,
        "requests_per_minute": 10,
        "requests_per_day": 250,
    },
}

# Rough approximation used for token accounting (~4 characters per token).
CHARS_PER_TOKEN = 4

_DEFAULT_KEYS = [
    "RETRIEVER_TOOL_NAME",
    "RETRIEVER_TOOL_DESCRIPTION",
    "RETRIEVER_TOP_K",
    "VECTOR_INDEX_NAME",
    "RELEVANCE_TOOL_NAME",
    "RELEVANCE_TOOL_DESCRIPTION",
    "WEB_SEARCH_NODE_NAME",
    "WEB_SEARCH_MAX_RESULTS",
    "RECOMMENDATION_SETTINGS",
    "USAGE_DEFAULT_MODEL",
    "USAGE_NEAR_LIMIT_RATIO",
    "USAGE_WINDOW_MINUTE_S",
    "USAGE_WINDOW_DAY_S",
    "USAGE_LIMITS",
    "CHARS_PER_TOKEN",
]

_DEFAULT_SETTINGS = {key: globals()[key] for key in _DEFAULT_KEYS}


def get_default_settings() -> dict[str, Any]:
    return {key: value for key, value in _DEFAULT_SETTINGS.items()}


def apply_runtime_overrides(overrides: Mapping[str, Any]) -> None:
    for key, value in overrides.items():
        if key in _DEFAULT_SETTINGS:
            globals()[key] = value
