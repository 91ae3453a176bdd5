"""Ports for core dependencies (models, vector store, web search)."""

from picks_agent.ports.models import set_model_provider
from picks_agent.ports.vector_store import set_vector_store_provider
from picks_agent.ports.web_search import set_web_search_provider

__all__ = [
    "set_model_provider",
    "set_vector_store_provider",
    "set_web_search_provider",
]
