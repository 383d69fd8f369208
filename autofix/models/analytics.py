"""
Analytics Models
================
Records and summaries produced by FixAnalytics.

FixRecord       — one engine run: signature, category, strategy / fix type,
                  outcome and elapsed time
StrategyStats   — attempts / successes counter
AnalyticsSummary — totals, per-category / per-strategy counters, average
                  fix time and the 20 most recent records
"""
from typing import Dict, List
from pydantic import BaseModel


class FixRecord(BaseModel):
    timestamp: float
    error_signature: str
    category: str
    fix_type: str
    success: bool
    time_ms: int


class StrategyStats(BaseModel):
    attempts: int = 0
    successes: int = 0

    @property
    def success_rate(self) -> float:
        return self.successes / self.attempts if self.attempts else 0.0


class AnalyticsSummary(BaseModel):
    total_attempts: int
    successful_fixes: int
    failed_fixes: int
    fixes_by_category: Dict[str, StrategyStats]
    fixes_by_type: Dict[str, StrategyStats]
    average_fix_time: float
    recent_fixes: List[FixRecord]
