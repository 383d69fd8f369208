"""
Fix Analytics
=============
Rolling statistics over engine runs, persisted to a KeyValueStore.

Lifecycle:
    init (load from storage) → record(...) → persist after every write

Tracked:
    - per-category counters             (import, syntax, ...)
    - per-strategy / fix-type counters  (local-simple, ai-quick, ...)
    - per-(category, strategy) counters
    - ring buffer of the last MAX_RECENT_FIXES records

Storage failures are logged as warnings and otherwise ignored: analytics is
best-effort and must never break a fix run.
"""
import logging
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from autofix.core.config import ANALYTICS_STORAGE_KEY, MAX_RECENT_FIXES
from autofix.core.constants import STRATEGY_ORDER
from autofix.models.analytics import AnalyticsSummary, FixRecord, StrategyStats
from autofix.services.storage import InMemoryStore, KeyValueStore
from autofix.utils.error_signature import get_error_signature

logger = logging.getLogger(__name__)

MIN_ATTEMPTS_FOR_RANKING = 3
RECENT_SUMMARY_SIZE = 20


def _pair_key(category: str, strategy: str) -> str:
    return f"{category}:{strategy}"


class FixAnalytics:
    """
    Success-rate tracker for categories and strategies.

    Usage:
        analytics = FixAnalytics(JsonFileStore("fix_analytics.json"))
        analytics.record(error, "import", "local-simple", True, 12)
        analytics.get_success_rate("import")
        analytics.get_best_strategy("import")
    """

    def __init__(
        self,
        storage: Optional[KeyValueStore] = None,
        storage_key: str = ANALYTICS_STORAGE_KEY,
        max_records: int = MAX_RECENT_FIXES,
        time_func: Callable[[], float] = time.time,
    ) -> None:
        self.storage = storage if storage is not None else InMemoryStore()
        self.storage_key = storage_key
        self._now = time_func
        self._records: Deque[FixRecord] = deque(maxlen=max_records)
        self._category_stats: Dict[str, StrategyStats] = {}
        self._type_stats: Dict[str, StrategyStats] = {}
        self._pair_stats: Dict[str, StrategyStats] = {}
        self._total_time_ms = 0
        self._load()

    # -----------------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------------
    def record(
        self,
        error_message: str,
        category: str,
        fix_type: str,
        success: bool,
        time_ms: int,
    ) -> None:
        """
        Record one engine run and persist.

        Parameters
        ----------
        error_message : str
            Raw error; stored as its signature.
        category : str
            Analyzer category of the error.
        fix_type : str
            Strategy (or local fix type) that succeeded, or the last one tried.
        success : bool
            Outcome of the run.
        time_ms : int
            Wall-clock duration of the run.
        """
        self._records.append(FixRecord(
            timestamp=self._now(),
            error_signature=get_error_signature(error_message),
            category=category,
            fix_type=fix_type,
            success=success,
            time_ms=time_ms,
        ))
        self._total_time_ms += time_ms

        for table, key in (
            (self._category_stats, category),
            (self._type_stats, fix_type),
            (self._pair_stats, _pair_key(category, fix_type)),
        ):
            stats = table.setdefault(key, StrategyStats())
            stats.attempts += 1
            if success:
                stats.successes += 1

        self._save()

    def reset(self) -> None:
        self._records.clear()
        self._category_stats.clear()
        self._type_stats.clear()
        self._pair_stats.clear()
        self._total_time_ms = 0
        self._save()

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------
    def get_analytics(self) -> AnalyticsSummary:
        total = len(self._records)
        successes = sum(1 for r in self._records if r.success)
        return AnalyticsSummary(
            total_attempts=total,
            successful_fixes=successes,
            failed_fixes=total - successes,
            fixes_by_category={k: v.model_copy() for k, v in self._category_stats.items()},
            fixes_by_type={k: v.model_copy() for k, v in self._type_stats.items()},
            average_fix_time=self._total_time_ms / total if total else 0.0,
            recent_fixes=list(self._records)[-RECENT_SUMMARY_SIZE:],
        )

    def get_success_rate(self, category: str) -> float:
        stats = self._category_stats.get(category)
        return stats.success_rate if stats else 0.0

    def get_best_strategy(self, category: Optional[str] = None) -> Optional[str]:
        """
        Strategy with the highest observed success rate.

        Only strategies with at least MIN_ATTEMPTS_FOR_RANKING attempts are
        considered; ties go to the earlier strategy in STRATEGY_ORDER. With a
        category, only runs for that category count.

        Returns
        -------
        str | None
            Best strategy, or None if nothing qualifies or every qualifying
            strategy has a zero success rate.
        """
        best, best_rate = None, 0.0
        for strategy in STRATEGY_ORDER:
            if category is None:
                stats = self._type_stats.get(strategy)
            else:
                stats = self._pair_stats.get(_pair_key(category, strategy))
            if not stats or stats.attempts < MIN_ATTEMPTS_FOR_RANKING:
                continue
            if stats.success_rate > best_rate:
                best, best_rate = strategy, stats.success_rate
        return best

    # -----------------------------------------------------------------------
    # Persistence
    # -----------------------------------------------------------------------
    def _snapshot(self) -> dict:
        return {
            "records": [r.model_dump() for r in self._records],
            "category_stats": {k: v.model_dump() for k, v in self._category_stats.items()},
            "type_stats": {k: v.model_dump() for k, v in self._type_stats.items()},
            "pair_stats": {k: v.model_dump() for k, v in self._pair_stats.items()},
            "total_time_ms": self._total_time_ms,
        }

    def _save(self) -> None:
        try:
            self.storage.set(self.storage_key, self._snapshot())
        except Exception as e:
            logger.warning("Failed to persist fix analytics: %s", e)

    def _load(self) -> None:
        try:
            data = self.storage.get(self.storage_key)
        except Exception as e:
            logger.warning("Failed to load fix analytics: %s", e)
            return
        if not data:
            return

        try:
            self._records.extend(FixRecord(**r) for r in data.get("records", []))
            self._category_stats = {
                k: StrategyStats(**v) for k, v in data.get("category_stats", {}).items()
            }
            self._type_stats = {k: StrategyStats(**v) for k, v in data.get("type_stats", {}).items()}
            self._pair_stats = {k: StrategyStats(**v) for k, v in data.get("pair_stats", {}).items()}
            self._total_time_ms = int(data.get("total_time_ms", 0))
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("Ignoring malformed fix analytics: %s", e)
            self._records.clear()
            self._category_stats, self._type_stats, self._pair_stats = {}, {}, {}
            self._total_time_ms = 0
        else:
            logger.debug("Loaded %d fix analytics records", len(self._records))
