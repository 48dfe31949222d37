"""
In-process memoization of balance summaries.

Summaries are keyed by (user_id, data_version, month_start). The data version
is read from the database by the caller, so any committed write, from this
process or another, produces a new key and the old entry ages out of the LRU.
"""
import logging
import threading
from collections import OrderedDict
from datetime import datetime
from typing import Callable, Hashable, Tuple
from app.core.config import settings
from app.core.utils import first_day_of_month
from app.schemas.balance import BalanceSummary

logger = logging.getLogger(__name__)

CacheKey = Tuple[int, Hashable, datetime]


class BalanceCache:
    """Small LRU cache of BalanceSummary objects guarded by a lock."""

    def __init__(self, max_size: int):
        self.max_size = max_size
        self._entries: "OrderedDict[CacheKey, BalanceSummary]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def key_for(user_id: int, data_version: Hashable, now: datetime) -> CacheKey:
        return (user_id, data_version, first_day_of_month(now))

    def get_or_compute(
        self,
        user_id: int,
        data_version: Hashable,
        now: datetime,
        compute: Callable[[], BalanceSummary]
    ) -> BalanceSummary:
        if self.max_size <= 0:
            return compute()

        key = self.key_for(user_id, data_version, now)
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self._entries.move_to_end(key)
                logger.debug(f"Balance cache hit for user {user_id}")
                return cached

        # Computed outside the lock; concurrent misses each build their own snapshot
        summary = compute()

        with self._lock:
            self._entries[key] = summary
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)
        return summary

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


balance_cache = BalanceCache(settings.BALANCE_CACHE_SIZE)
