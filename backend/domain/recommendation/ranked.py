from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

_NUMBERED_LINE_RE = re.compile(r"^\s*(\d+)[.)]\s*(.+?)\s*$")
_DASH_SEPARATOR_RE = re.compile(r"\s+[-–—]\s+")
_COLON_SEPARATOR_RE = re.compile(r":\s+")


@dataclass(frozen=True)
class RankedRecommendation:
    rank: int
    title: str
    reason: str = ""

    def to_dict(self) -> dict:
        return {"rank": self.rank, "title": self.title, "reason": self.reason}


def _clean(text: str) -> str:
    return text.replace("**", "").strip()


def parse_ranked_recommendations(text: str) -> List[RankedRecommendation]:
    """Parse `1. Title - reason` lines; unnumbered lines extend the previous reason."""
    results: List[RankedRecommendation] = []
    for line in (text or "").splitlines():
        if not line.strip():
            continue
        match = _NUMBERED_LINE_RE.match(line)
        if match is None:
            if results:
                last = results[-1]
                extra = _clean(line)
                reason = f"{last.reason} {extra}".strip() if extra else last.reason
                results[-1] = RankedRecommendation(rank=last.rank, title=last.title, reason=reason)
            continue
        body = _clean(match.group(2))
        parts = _DASH_SEPARATOR_RE.split(body, maxsplit=1)
        if len(parts) == 1:
            parts = _COLON_SEPARATOR_RE.split(body, maxsplit=1)
        title = parts[0].strip()
        reason = parts[1].strip() if len(parts) > 1 else ""
        if title:
            results.append(RankedRecommendation(rank=int(match.group(1)), title=title, reason=reason))
    return results


__all__ = ["RankedRecommendation", "parse_ranked_recommendations"]
