"""
Fix State
=========
Deduplication and attempt accounting for fix runs, keyed by error signature.

Tracks:
    - attempt counts per signature
    - "recently fixed" timestamps per signature (short cooldown)
    - bounded ring buffer of FixAttempt history (oldest evicted)

Skip rules (should_skip):
    - signature fixed less than RECENT_FIX_WINDOW seconds ago → "Recently fixed"
    - attempts for the signature ≥ MAX_ATTEMPTS_PER_ERROR   → "Max attempts (N) reached"

Recent-fix stamps older than SIGNATURE_CACHE_TTL are evicted on every write.
In-memory only; one instance per host session, injected into the engine.
"""
import logging
import time
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Tuple

from autofix.core.config import (
    MAX_ATTEMPTS_PER_ERROR,
    MAX_HISTORY_SIZE,
    RECENT_FIX_WINDOW,
    SIGNATURE_CACHE_TTL,
)
from autofix.models.agent_log import FixAttempt
from autofix.utils.error_signature import get_error_signature, signature_hash

logger = logging.getLogger(__name__)


class FixState:
    """
    In-memory attempt tracker.

    Usage:
        state = FixState()
        skip, reason = state.should_skip(error)
        if not skip:
            ...
            state.record_attempt(error, "local-simple", success=True)
    """

    def __init__(
        self,
        max_history: int = MAX_HISTORY_SIZE,
        max_attempts: int = MAX_ATTEMPTS_PER_ERROR,
        recent_window: float = RECENT_FIX_WINDOW,
        cache_ttl: float = SIGNATURE_CACHE_TTL,
        time_func: Callable[[], float] = time.time,
    ) -> None:
        self.max_attempts = max_attempts
        self.recent_window = recent_window
        self.cache_ttl = cache_ttl
        self._now = time_func
        self._history: Deque[FixAttempt] = deque(maxlen=max_history)
        self._recent_fixes: Dict[str, float] = {}
        self._attempt_counts: Dict[str, int] = {}

    def record_attempt(self, error_message: str, fix_applied: Optional[str], success: bool) -> None:
        """
        Record one engine run for an error.

        Parameters
        ----------
        error_message : str
            Raw error message; normalized to its signature.
        fix_applied : str | None
            Strategy that produced the fix, or the last one tried.
        success : bool
            Only successful attempts start the recent-fix cooldown.
        """
        signature = get_error_signature(error_message)
        now = self._now()

        self._attempt_counts[signature] = self._attempt_counts.get(signature, 0) + 1
        if success:
            self._recent_fixes[signature] = now

        self._history.append(FixAttempt(
            error_message=error_message,
            timestamp=now,
            fix_applied=fix_applied,
            success=success,
        ))
        self._clean_old_entries(now)
        logger.debug(
            "Recorded %s attempt %d for error %s",
            "successful" if success else "failed",
            self._attempt_counts[signature],
            signature_hash(error_message),
        )

    def was_recently_fixed(self, error_message: str) -> bool:
        last_fix = self._recent_fixes.get(get_error_signature(error_message))
        if last_fix is None:
            return False
        return self._now() - last_fix < self.recent_window

    def should_skip(self, error_message: str) -> Tuple[bool, Optional[str]]:
        """
        Decide whether the engine should decline to try.

        Returns
        -------
        tuple[bool, str | None]
            (skip, reason). The reason is None when not skipping.
        """
        if self.was_recently_fixed(error_message):
            logger.debug("Error %s was fixed recently", signature_hash(error_message))
            return True, "Recently fixed"

        attempts = self.get_attempt_count(error_message)
        if attempts >= self.max_attempts:
            return True, f"Max attempts ({attempts}) reached"

        return False, None

    def get_attempt_count(self, error_message: str) -> int:
        return self._attempt_counts.get(get_error_signature(error_message), 0)

    def reset_error(self, error_message: str) -> None:
        """Forget counts and cooldown for one error."""
        signature = get_error_signature(error_message)
        self._attempt_counts.pop(signature, None)
        self._recent_fixes.pop(signature, None)

    def reset(self) -> None:
        self._history.clear()
        self._recent_fixes.clear()
        self._attempt_counts.clear()
        logger.debug("Fix state cleared")

    def get_history(self) -> List[FixAttempt]:
        """Copy of the attempt history, oldest first."""
        return list(self._history)

    def _clean_old_entries(self, now: float) -> None:
        expired = [sig for sig, ts in self._recent_fixes.items() if now - ts > self.cache_ttl]
        for signature in expired:
            del self._recent_fixes[signature]
