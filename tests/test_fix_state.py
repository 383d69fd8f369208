"""
Fix State Tests
===============
Attempt accounting and dedup, driven by a fake clock.

Covers:
    - Recent-fix cooldown
    - Max attempts per error signature
    - Signature-based grouping
    - Bounded history
    - Eviction of stale recent-fix stamps
    - Resets
    - Debug log lines carry the signature hash
"""
import logging

from autofix.services.fix_state import FixState
from autofix.utils.error_signature import signature_hash


class _Clock:
    """Manually advanced time source."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _make_state(**overrides) -> FixState:
    clock = overrides.pop("clock", _Clock())
    kwargs = dict(max_history=50, max_attempts=3, recent_window=5.0, cache_ttl=30.0, time_func=clock)
    kwargs.update(overrides)
    return FixState(**kwargs)


ERROR = "ReferenceError: Search is not defined"


class TestShouldSkip:

    def test_fresh_error_is_not_skipped(self):
        assert _make_state().should_skip(ERROR) == (False, None)

    def test_recently_fixed(self):
        clock = _Clock()
        state = _make_state(clock=clock)
        state.record_attempt(ERROR, "local-simple", True)
        assert state.was_recently_fixed(ERROR)
        assert state.should_skip(ERROR) == (True, "Recently fixed")

        clock.now += 6
        assert not state.was_recently_fixed(ERROR)
        assert state.should_skip(ERROR) == (False, None)

    def test_failures_do_not_start_cooldown(self):
        state = _make_state()
        state.record_attempt(ERROR, "ai-quick", False)
        assert not state.was_recently_fixed(ERROR)

    def test_max_attempts(self):
        state = _make_state(max_attempts=2)
        state.record_attempt(ERROR, "local-simple", False)
        assert state.should_skip(ERROR) == (False, None)
        state.record_attempt(ERROR, "local-simple", False)
        assert state.should_skip(ERROR) == (True, "Max attempts (2) reached")

    def test_recent_fix_checked_before_attempts(self):
        state = _make_state(max_attempts=1)
        state.record_attempt(ERROR, "local-simple", True)
        assert state.should_skip(ERROR) == (True, "Recently fixed")


class TestSignatures:

    def test_positions_share_a_count(self):
        state = _make_state()
        state.record_attempt("Error at src/App.tsx:1:1", None, False)
        state.record_attempt("Error at src/App.tsx:9:14", None, False)
        assert state.get_attempt_count("Error at src/App.tsx:30:2") == 2

    def test_different_errors_are_independent(self):
        state = _make_state()
        state.record_attempt(ERROR, None, False)
        assert state.get_attempt_count("ReferenceError: Button is not defined") == 0


class TestHistory:

    def test_bounded_oldest_evicted(self):
        state = _make_state(max_history=3)
        for i in range(5):
            state.record_attempt(f"Error number {chr(65 + i)}", "local-simple", False)
        history = state.get_history()
        assert [a.error_message for a in history] == ["Error number C", "Error number D", "Error number E"]

    def test_history_records_fields(self):
        clock = _Clock(now=42.0)
        state = _make_state(clock=clock)
        state.record_attempt(ERROR, "ai-full", True)
        attempt = state.get_history()[0]
        assert attempt.timestamp == 42.0
        assert attempt.fix_applied == "ai-full"
        assert attempt.success is True

    def test_history_is_a_copy(self):
        state = _make_state()
        state.record_attempt(ERROR, None, False)
        state.get_history().clear()
        assert len(state.get_history()) == 1


class TestEviction:

    def test_stale_recent_fix_evicted_on_write(self):
        clock = _Clock()
        state = _make_state(clock=clock, recent_window=100.0, cache_ttl=10.0)
        state.record_attempt(ERROR, "local-simple", True)
        clock.now += 20
        state.record_attempt("Some other error", None, False)
        assert not state.was_recently_fixed(ERROR)


class TestReset:

    def test_reset_error(self):
        state = _make_state()
        state.record_attempt(ERROR, "local-simple", True)
        state.reset_error(ERROR)
        assert state.get_attempt_count(ERROR) == 0
        assert state.should_skip(ERROR) == (False, None)
        assert len(state.get_history()) == 1

    def test_reset(self):
        state = _make_state()
        state.record_attempt(ERROR, "local-simple", True)
        state.reset()
        assert state.get_attempt_count(ERROR) == 0
        assert state.get_history() == []
        assert not state.was_recently_fixed(ERROR)


class TestLogging:

    def test_attempts_logged_by_signature_hash(self, caplog):
        state = _make_state()
        with caplog.at_level(logging.DEBUG, logger="autofix.services.fix_state"):
            state.record_attempt("Error at src/App.tsx:1:1", "local-simple", False)
            state.record_attempt("Error at src/App.tsx:9:4", "local-simple", True)
            state.should_skip("Error at src/App.tsx:2:2")

        digest = signature_hash("Error at src/App.tsx:1:1")
        messages = [r.getMessage() for r in caplog.records]
        assert messages == [
            f"Recorded failed attempt 1 for error {digest}",
            f"Recorded successful attempt 2 for error {digest}",
            f"Error {digest} was fixed recently",
        ]
