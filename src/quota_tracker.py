"""Advisory request governor for Gemini briefing calls.

Tracks two limits in the shared key/value store:

- a daily count, reset at local midnight (calendar-date comparison only);
- a true sliding 60 second window of call timestamps.

The governor never blocks anything itself. Callers ask ``check()`` before a
fetch and must ``record()`` every real call they make, successful or not.
Sessions inside one process are serialised on a lock. Counters are not locked
across processes; two server processes can both be allowed and
overshoot the limit by one call each.
"""
from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, time, timedelta, tzinfo
from typing import Callable, List, Optional

from src.config import RateLimitConfig
from src.constants import (
    MINUTE_WINDOW_MS,
    STORAGE_KEY_DAILY_COUNT,
    STORAGE_KEY_LAST_RESET,
    STORAGE_KEY_MINUTE_CALLS,
    STORAGE_KEYS,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuotaStatus:
    allowed: bool
    daily_count: int
    daily_limit: int
    remaining: int
    minute_remaining: int
    is_warning: bool
    reset_at: datetime

    @property
    def usage_percentage(self) -> float:
        return self.daily_count / self.daily_limit * 100

    @property
    def limited_by(self) -> Optional[str]:
        """'daily', 'minute' or None. Daily wins when both are exhausted."""
        if self.remaining == 0:
            return "daily"
        if self.minute_remaining == 0:
            return "minute"
        return None


def _local_now() -> datetime:
    return datetime.now().astimezone()


def _epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


class QuotaGovernor:
    def __init__(
        self,
        store,
        config: Optional[RateLimitConfig] = None,
        clock: Callable[[], datetime] = _local_now,
        tz: Optional[tzinfo] = None,
    ) -> None:
        self.store = store
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._tz = tz
        # Streamlit sessions share one governor across threads.
        self._lock = threading.RLock()

    # -- clock ---------------------------------------------------------------

    def _now(self) -> datetime:
        # astimezone(None) converts to the host's local zone.
        return self._clock().astimezone(self._tz)

    def _next_midnight(self, now: datetime) -> datetime:
        midnight = datetime.combine(now.date() + timedelta(days=1), time.min)
        if self._tz is None:
            # Resolve the offset at midnight itself, not the current one.
            return midnight.astimezone()
        return midnight.replace(tzinfo=self._tz)

    # -- persisted counters --------------------------------------------------

    def _ensure_today(self, now: datetime) -> None:
        """Zero the counters if the stored date is not today."""
        today = now.date().isoformat()
        if self.store.get(STORAGE_KEY_LAST_RESET) != today:
            self.store.set(STORAGE_KEY_DAILY_COUNT, "0")
            self.store.set(STORAGE_KEY_LAST_RESET, today)
            self.store.remove(STORAGE_KEY_MINUTE_CALLS)

    def _daily_count(self, now: datetime) -> int:
        self._ensure_today(now)
        raw = self.store.get(STORAGE_KEY_DAILY_COUNT)
        if not raw:
            return 0
        try:
            return max(0, int(raw))
        except ValueError:
            logger.warning("Corrupt daily count %r; treating as 0", raw)
            return 0

    def _load_minute_calls(self) -> List[int]:
        raw = self.store.get(STORAGE_KEY_MINUTE_CALLS)
        if not raw:
            return []
        try:
            calls = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Corrupt minute call list; treating as empty")
            return []
        if not isinstance(calls, list) or not all(
            isinstance(ts, int) and not isinstance(ts, bool) for ts in calls
        ):
            logger.warning("Unexpected minute call list shape; treating as empty")
            return []
        return calls

    def _minute_calls(self, now: datetime) -> List[int]:
        calls = self._load_minute_calls()
        now_ms = _epoch_ms(now)
        recent = [ts for ts in calls if now_ms - ts < MINUTE_WINDOW_MS]
        if len(recent) != len(calls):
            self.store.set(STORAGE_KEY_MINUTE_CALLS, json.dumps(recent))
        return recent

    # -- public API ----------------------------------------------------------

    def check(self) -> QuotaStatus:
        with self._lock:
            now = self._now()
            daily_count = self._daily_count(now)
            minute_count = len(self._minute_calls(now))
        cfg = self.config
        return QuotaStatus(
            allowed=daily_count < cfg.daily_limit and minute_count < cfg.per_minute_limit,
            daily_count=daily_count,
            daily_limit=cfg.daily_limit,
            remaining=max(0, cfg.daily_limit - daily_count),
            minute_remaining=max(0, cfg.per_minute_limit - minute_count),
            is_warning=daily_count >= cfg.daily_limit * cfg.warning_threshold,
            reset_at=self._next_midnight(now),
        )

    def stats(self) -> QuotaStatus:
        return self.check()

    def record(self) -> None:
        """Charge one call against both limits. Does not consult check()."""
        with self._lock:
            now = self._now()
            count = self._daily_count(now)
            self.store.set(STORAGE_KEY_DAILY_COUNT, str(count + 1))
            calls = self._minute_calls(now)
            calls.append(_epoch_ms(now))
            self.store.set(STORAGE_KEY_MINUTE_CALLS, json.dumps(calls))

    def reset(self) -> None:
        with self._lock:
            for key in STORAGE_KEYS:
                self.store.remove(key)

    def usage_percentage(self) -> float:
        return self.check().usage_percentage
