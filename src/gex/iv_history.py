"""
Intraday IV History

Keeps a bounded log of ATM / wall IV snapshots per symbol and exchange day in
a key-value store. The key changes every trading day, so logs never carry
over; old logs disappear through the store's TTL and are purged once per day.
"""

import json
from datetime import date, datetime
from typing import Callable, List, Optional

from src.gex.gex_metrics import IVHistoryRecord
from src.storage import KVStore
from src.utils import get_logger
from src.utils.market_clock import et_time_label, now_et, trading_day

logger = get_logger(__name__)

KEY_PREFIX = 'iv2'
DEFAULT_HISTORY_CAP = 96
DEFAULT_HISTORY_TTL = 86400 * 2

ZERO_DTE_SUFFIX = '_doom'


def history_key(symbol: str, day: date) -> str:
    """Store key for a (symbol, exchange day) log, e.g. 'iv2:SPY:2026-02-20'"""
    return f"{KEY_PREFIX}:{symbol}:{day.isoformat()}"


class IVHistoryRecorder:
    """Append and read day-scoped IV history logs"""

    def __init__(self, store: KVStore, cap: int = DEFAULT_HISTORY_CAP,
                 ttl_seconds: int = DEFAULT_HISTORY_TTL,
                 clock: Callable[[], datetime] = now_et):
        """
        Args:
            store: Key-value store holding the logs
            cap: Maximum records kept per log (oldest dropped first)
            ttl_seconds: Expiration applied on every write
            clock: Returns the current aware datetime
        """
        if cap < 1:
            raise ValueError(f"History cap must be positive: {cap}")

        self.store = store
        self.cap = cap
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._purged_day: Optional[date] = None

    def _load(self, key: str) -> List[IVHistoryRecord]:
        raw = self.store.get(key)
        if not raw:
            return []

        try:
            return [IVHistoryRecord.from_dict(item) for item in json.loads(raw)]
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Discarding unreadable IV history at {key}: {e}")
            return []

    def get(self, symbol: str) -> List[IVHistoryRecord]:
        """Today's log for a symbol, oldest first ([] when none exists)"""
        return self._load(history_key(symbol, trading_day(self.clock())))

    def record(self, symbol: str, atm_iv: Optional[float],
               call_wall_iv: Optional[float], put_wall_iv: Optional[float]) -> List[IVHistoryRecord]:
        """
        Append a snapshot to today's log

        Concurrent writers may overwrite each other; the last write wins.

        Returns:
            The log after trimming to the cap
        """
        now = self.clock()
        day = trading_day(now)
        key = history_key(symbol, day)

        if day != self._purged_day:
            self.store.purge_expired()
            self._purged_day = day

        history = self._load(key)
        history.append(IVHistoryRecord(
            time=et_time_label(now),
            timestamp=int(now.timestamp() * 1000),
            atm_iv=atm_iv,
            call_wall_iv=call_wall_iv,
            put_wall_iv=put_wall_iv,
        ))

        trimmed = history[-self.cap:]
        self.store.put(key, json.dumps([r.to_dict() for r in trimmed]), self.ttl_seconds)

        logger.debug(f"Recorded IV snapshot for {symbol} ({len(trimmed)}/{self.cap})")
        return trimmed
