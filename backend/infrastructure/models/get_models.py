from typing import Literal

from langchain_openai import ChatOpenAI, OpenAIEmbeddings

from infrastructure.config.settings import (
    GEMINI_API_KEY,
    GEMINI_EMBEDDINGS_MODEL,
    GEMINI_LLM_MODEL,
    GEMINI_MAX_TOKENS,
    GEMINI_TEMPERATURE,
    MODEL_TYPE,
    OPENAI_EMBEDDING_CONFIG,
    OPENAI_LLM_CONFIG,
)


def _get_gemini_llm_model():
    """获取 Gemini LLM 模型（API Key 认证）"""
    try:
        from langchain_google_genai import ChatGoogleGenerativeAI
    except ImportError as exc:
        raise ImportError(
            "使用 Gemini 模型需要安装 langchain-google-genai。"
            "请运行: pip install langchain-google-genai"
        ) from exc

    if not GEMINI_API_KEY:
        raise ValueError("Gemini 模型需要设置 GEMINI_API_KEY 环境变量")

    config = {
        "model": GEMINI_LLM_MODEL,
        "temperature": GEMINI_TEMPERATURE,
        "max_tokens": GEMINI_MAX_TOKENS,
        "api_key": GEMINI_API_KEY,
    }
    return ChatGoogleGenerativeAI(**{k: v for k, v in config.items() if v is not None})


def _get_gemini_embeddings_model():
    try:
        from langchain_google_genai import GoogleGenerativeAIEmbeddings
    except ImportError as exc:
        raise ImportError(
            "使用 Gemini 嵌入模型需要安装 langchain-google-genai。"
            "请运行: pip install langchain-google-genai"
        ) from exc

    if not GEMINI_API_KEY:
        raise ValueError("Gemini 嵌入模型需要设置 GEMINI_API_KEY 环境变量")
    return GoogleGenerativeAIEmbeddings(model=GEMINI_EMBEDDINGS_MODEL, google_api_key=GEMINI_API_KEY)


def get_embeddings_model(model_type: Literal["openai", "gemini"] | None = None):
    """获取嵌入模型（向量索引检索使用），支持 OpenAI 和 Gemini"""
    if model_type is None:
        model_type = MODEL_TYPE

    if model_type == "gemini":
        return _get_gemini_embeddings_model()

    config = {k: v for k, v in OPENAI_EMBEDDING_CONFIG.items() if v}
    return OpenAIEmbeddings(**config)


def get_llm_model(model_type: Literal["openai", "gemini"] | None = None):
    """获取 LLM 模型，支持 OpenAI 和 Gemini

    Args:
        model_type: 模型类型，"openai" 或 "gemini"。为 None 时使用环境变量 MODEL_TYPE

    Returns:
        LLM 模型实例（需支持 bind_tools / ainvoke）
    """
    if model_type is None:
        model_type = MODEL_TYPE

    if model_type == "gemini":
        return _get_gemini_llm_model()

    config = {k: v for k, v in OPENAI_LLM_CONFIG.items() if v is not None and v != ""}
    return ChatOpenAI(**config)
