"""Rolling usage accounting for hosted model quotas."""

from picks_agent.usage.token_tracker import (
    UsageLimits,
    UsageStats,
    UsageTracker,
    estimate_tokens,
    get_usage_warning,
)

__all__ = [
    "UsageLimits",
    "UsageStats",
    "UsageTracker",
    "estimate_tokens",
    "get_usage_warning",
]
