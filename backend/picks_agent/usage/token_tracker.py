from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional

from picks_agent.config import settings as core_settings

logger = logging.getLogger(__name__)


def estimate_tokens(text: str) -> int:
    """Approximate token count from text length (characters / 4, rounded up)."""
    if not text:
        return 0
    return int(math.ceil(len(text) / float(core_settings.CHARS_PER_TOKEN)))


@dataclass(frozen=True)
class UsageLimits:
    tokens_per_minute: int
    requests_per_minute: int
    requests_per_day: int

    @classmethod
    def from_mapping(cls, raw: Mapping[str, int]) -> "UsageLimits":
        return cls(
            tokens_per_minute=int(raw["tokens_per_minute"]),
            requests_per_minute=int(raw["requests_per_minute"]),
            requests_per_day=int(raw["requests_per_day"]),
        )


@dataclass(frozen=True)
class UsageEntry:
    timestamp: float
    tokens: int
    model: str


@dataclass(frozen=True)
class NearLimit:
    tokens: bool
    requests_minute: bool
    requests_day: bool

    @property
    def any(self) -> bool:
        return self.tokens or self.requests_minute or self.requests_day


@dataclass(frozen=True)
class UsageStats:
    model: str
    tokens_last_minute: int
    requests_last_minute: int
    requests_last_day: int
    limits: UsageLimits
    is_near_limit: NearLimit

    def to_dict(self) -> dict:
        return {
            "model": self.model,
            "tokens_last_minute": self.tokens_last_minute,
            "requests_last_minute": self.requests_last_minute,
            "requests_last_day": self.requests_last_day,
            "limits": {
                "tokens_per_minute": self.limits.tokens_per_minute,
                "requests_per_minute": self.limits.requests_per_minute,
                "requests_per_day": self.limits.requests_per_day,
            },
            "is_near_limit": {
                "tokens": self.is_near_limit.tokens,
                "requests_minute": self.is_near_limit.requests_minute,
                "requests_day": self.is_near_limit.requests_day,
            },
        }


class UsageTracker:
    """Rolling per-model usage log used to refuse runs before a provider quota is hit.

    Construct once per process and inject it where needed. Entries older than a day
    are pruned on every write. Writers may interleave; each entry is independent, so
    the stats stay a fair approximation without stronger ordering.
    """

    def __init__(
        self,
        *,
        limits: Optional[Mapping[str, Mapping[str, int]]] = None,
        default_model: Optional[str] = None,
        near_limit_ratio: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        raw_limits = limits if limits is not None else core_settings.USAGE_LIMITS
        self._limits = {name: UsageLimits.from_mapping(v) for name, v in raw_limits.items()}
        self.default_model = default_model or core_settings.USAGE_DEFAULT_MODEL
        if self.default_model not in self._limits:
            raise ValueError(f"no usage limits configured for default model {self.default_model!r}")
        self._ratio = float(
            near_limit_ratio if near_limit_ratio is not None else core_settings.USAGE_NEAR_LIMIT_RATIO
        )
        self._clock = clock
        self._lock = threading.Lock()
        self._usage: List[UsageEntry] = []

    def limits_for(self, model: Optional[str] = None) -> UsageLimits:
        name = model or self.default_model
        return self._limits.get(name) or self._limits[self.default_model]

    def add_usage(self, tokens: int, model: Optional[str] = None) -> None:
        now = self._clock()
        entry = UsageEntry(timestamp=now, tokens=max(int(tokens), 0), model=model or self.default_model)
        day_ago = now - core_settings.USAGE_WINDOW_DAY_S
        with self._lock:
            self._usage.append(entry)
            self._usage = [e for e in self._usage if e.timestamp > day_ago]

    def get_usage_stats(self, model: Optional[str] = None) -> UsageStats:
        name = model or self.default_model
        now = self._clock()
        minute_ago = now - core_settings.USAGE_WINDOW_MINUTE_S
        day_ago = now - core_settings.USAGE_WINDOW_DAY_S
        with self._lock:
            entries = [e for e in self._usage if e.model == name]

        last_minute = [e for e in entries if e.timestamp > minute_ago]
        last_day = [e for e in entries if e.timestamp > day_ago]
        tokens_last_minute = sum(e.tokens for e in last_minute)

        limits = self.limits_for(name)
        near = NearLimit(
            tokens=tokens_last_minute > limits.tokens_per_minute * self._ratio,
            requests_minute=len(last_minute) > limits.requests_per_minute * self._ratio,
            requests_day=len(last_day) > limits.requests_per_day * self._ratio,
        )
        return UsageStats(
            model=name,
            tokens_last_minute=tokens_last_minute,
            requests_last_minute=len(last_minute),
            requests_last_day=len(last_day),
            limits=limits,
            is_near_limit=near,
        )

    def should_throttle(self, model: Optional[str] = None) -> bool:
        stats = self.get_usage_stats(model)
        if stats.is_near_limit.any:
            logger.warning(
                "usage near limit model=%s tokens_last_minute=%s requests_last_minute=%s requests_last_day=%s",
                stats.model,
                stats.tokens_last_minute,
                stats.requests_last_minute,
                stats.requests_last_day,
            )
            return True
        return False

    def reset(self) -> None:
        with self._lock:
            self._usage = []


def get_usage_warning(stats: UsageStats) -> Optional[str]:
    if stats.is_near_limit.requests_day:
        return (
            f"Approaching daily request limit: "
            f"{stats.requests_last_day}/{stats.limits.requests_per_day}"
        )
    if stats.is_near_limit.requests_minute:
        return (
            f"Approaching per-minute request limit: "
            f"{stats.requests_last_minute}/{stats.limits.requests_per_minute}"
        )
    if stats.is_near_limit.tokens:
        return (
            f"Approaching token limit: "
            f"{stats.tokens_last_minute}/{stats.limits.tokens_per_minute} tokens/min"
        )
    return None


__all__ = [
    "UsageLimits",
    "UsageEntry",
    "UsageStats",
    "NearLimit",
    "UsageTracker",
    "estimate_tokens",
    "get_usage_warning",
]
