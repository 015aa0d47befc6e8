from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from src.constants import (
    DEFAULT_DAILY_LIMIT,
    DEFAULT_MODEL,
    DEFAULT_PER_MINUTE_LIMIT,
    DEFAULT_WARNING_THRESHOLD,
)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class RateLimitConfig:
    """Quota settings, fixed for the lifetime of the process."""

    daily_limit: int = DEFAULT_DAILY_LIMIT
    per_minute_limit: int = DEFAULT_PER_MINUTE_LIMIT
    warning_threshold: float = DEFAULT_WARNING_THRESHOLD

    def __post_init__(self) -> None:
        for name in ("daily_limit", "per_minute_limit"):
            value = getattr(self, name)
            if not _is_int(value) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        threshold = self.warning_threshold
        if not (_is_number(threshold) and 0 < threshold <= 1):
            raise ValueError(f"warning_threshold must be in (0, 1], got {threshold!r}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RateLimitConfig":
        env = os.environ if environ is None else environ
        try:
            return cls(
                daily_limit=int(env.get("RADAR_DAILY_LIMIT", DEFAULT_DAILY_LIMIT)),
                per_minute_limit=int(env.get("RADAR_PER_MINUTE_LIMIT", DEFAULT_PER_MINUTE_LIMIT)),
                warning_threshold=float(env.get("RADAR_WARNING_THRESHOLD", DEFAULT_WARNING_THRESHOLD)),
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid rate limit configuration: {e}") from e


def gemini_model(environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    return env.get("GEMINI_MODEL") or DEFAULT_MODEL
