"""Infrastructure-side configuration (env loading, core settings overrides)."""
