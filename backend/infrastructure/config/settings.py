import os
from typing import Optional

from dotenv import load_dotenv

from infrastructure.config.picks_settings import apply_core_settings_overrides

# 统一加载环境变量，确保配置来源一致。
# 注意：本项目以项目根目录的 .env 为主要开发配置来源，优先级应高于外部 shell 环境变量，
# 否则容易出现“明明改了 .env 但运行仍读到旧值”的情况。
load_dotenv(override=True)

# 应用基础设施侧的配置注入，确保 core settings 获取运行时值。
apply_core_settings_overrides()


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


# ===== Neo4j 向量索引（电影/剧集元数据）=====

NEO4J_URI = os.getenv("NEO4J_URI", "")
NEO4J_USERNAME = os.getenv("NEO4J_USERNAME", "")
NEO4J_PASSWORD = os.getenv("NEO4J_PASSWORD", "")

NEO4J_CONFIG = {
    "uri": NEO4J_URI,
    "username": NEO4J_USERNAME,
    "password": NEO4J_PASSWORD,
}

VECTOR_TEXT_NODE_PROPERTIES = [
    p.strip()
    for p in (os.getenv("VECTOR_TEXT_NODE_PROPERTIES") or "").split(",")
    if p.strip()
]


# ===== LLM 与嵌入模型配置 =====

# 模型类型选择：openai 或 gemini
MODEL_TYPE = os.getenv("MODEL_TYPE", "openai").strip().lower()

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "")
OPENAI_EMBEDDINGS_MODEL = os.getenv("OPENAI_EMBEDDINGS_MODEL") or None
OPENAI_LLM_MODEL = os.getenv("OPENAI_LLM_MODEL") or None
LLM_TEMPERATURE = _get_env_float("TEMPERATURE", 0.1)
LLM_MAX_TOKENS = _get_env_int("MAX_TOKENS", None)

OPENAI_EMBEDDING_CONFIG = {
    "model": OPENAI_EMBEDDINGS_MODEL,
    "api_key": OPENAI_API_KEY,
    "base_url": OPENAI_BASE_URL,
    "check_embedding_ctx_length": False,
}

OPENAI_LLM_CONFIG = {
    "model": OPENAI_LLM_MODEL,
    "temperature": LLM_TEMPERATURE,
    "max_tokens": LLM_MAX_TOKENS,
    "api_key": OPENAI_API_KEY,
    "base_url": OPENAI_BASE_URL,
}


# ===== Gemini 配置 =====

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "").strip()
GEMINI_LLM_MODEL = os.getenv("GEMINI_LLM_MODEL", "gemini-2.0-flash").strip()
GEMINI_EMBEDDINGS_MODEL = os.getenv("GEMINI_EMBEDDINGS_MODEL", "models/text-embedding-004").strip()
GEMINI_TEMPERATURE = _get_env_float("GEMINI_TEMPERATURE", 0.1)
GEMINI_MAX_TOKENS = _get_env_int("GEMINI_MAX_TOKENS", 1000)


# ===== Web 搜索兜底（Tavily）=====

TAVILY_API_KEY = os.getenv("TAVILY_API_KEY", "").strip()


# ===== Watchlist 存储 =====

WATCHLIST_STORAGE_PATH = (os.getenv("WATCHLIST_STORAGE_PATH") or "").strip() or None
WATCHLIST_STORAGE_QUOTA_BYTES = _get_env_int("WATCHLIST_STORAGE_QUOTA_BYTES", 5 * 1024 * 1024) or 5 * 1024 * 1024
