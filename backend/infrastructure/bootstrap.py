from __future__ import annotations

from infrastructure.config.picks_settings import apply_core_settings_overrides

from picks_agent.ports import (
    set_model_provider,
    set_vector_store_provider,
    set_web_search_provider,
)


def bootstrap_core_ports() -> None:
    """Wire infrastructure providers into picks_agent ports."""
    # Apply infra-side env overrides before importing any infra modules.
    apply_core_settings_overrides()

    from infrastructure.providers import models as infra_models
    from infrastructure.providers import vector_store as infra_vector_store
    from infrastructure.providers import web_search as infra_web_search

    set_model_provider(infra_models)
    set_vector_store_provider(infra_vector_store)
    set_web_search_provider(infra_web_search)
