"""
Fix Agent
=========
Stateful wrapper that drives fix engine runs for one fix session and keeps
the structured log a UI can render or reconnect to.

State machine:
    idle → analyzing → fixing → (local-fix | ai-fix) → applying → verifying → success
                                                   ↘ next attempt … → max_attempts_reached
    stop() from any state → idle

Loop:
    - at most ``max_attempts`` engine runs
    - the stop event is checked at the top of every attempt
    - each attempt uses the most recently reported error
    - a successful run applies every returned file through ``on_file_update``,
      then waits ``settle_delay`` seconds for the preview to recompile
    - report_success() from the preview ends the loop in the success state

The agent owns its cancellation event; callers never share it.
"""
import asyncio
import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Dict, List, Mapping, Optional

from autofix.core.config import AGENT_MAX_ATTEMPTS, AGENT_SETTLE_DELAY
from autofix.core.constants import AgentState, LogEntryType
from autofix.agents.fix_engine import FixEngine
from autofix.llm.client import LLMClient
from autofix.models.agent_log import AgentLogEntry
from autofix.parser.analyzer import ErrorAnalyzer, error_analyzer
from autofix.services.analytics import FixAnalytics
from autofix.services.fix_state import FixState
from autofix.utils.timeouts import TIMED_OUT, race_with_timeout

logger = logging.getLogger(__name__)


@dataclass
class AgentConfig:
    """Callbacks and limits for one agent session."""
    on_file_update: Optional[Callable[[str, str], None]] = None
    on_complete: Optional[Callable[[bool, str], None]] = None
    on_log: Optional[Callable[[AgentLogEntry], None]] = None
    on_state_change: Optional[Callable[[str], None]] = None
    max_attempts: int = AGENT_MAX_ATTEMPTS


class FixAgent:
    """
    Bounded, cancellable fix loop around FixEngine.

    Usage:
        agent = FixAgent(llm=client, fix_state=state, analytics=analytics)
        await agent.start(error, None, "src/App.tsx", files, AgentConfig(on_file_update=write))
        agent.get_full_state()

    Parameters
    ----------
    llm, fix_state, analytics, analyzer :
        Passed to every FixEngine the agent creates.
    settle_delay : float
        Seconds to wait after applying a fix.
    """

    def __init__(
        self,
        llm: Optional[LLMClient] = None,
        fix_state: Optional[FixState] = None,
        analytics: Optional[FixAnalytics] = None,
        analyzer: Optional[ErrorAnalyzer] = None,
        settle_delay: float = AGENT_SETTLE_DELAY,
    ) -> None:
        self.llm = llm
        self.fix_state = fix_state if fix_state is not None else FixState()
        self.analytics = analytics if analytics is not None else FixAnalytics()
        self.analyzer = analyzer or error_analyzer
        self.settle_delay = settle_delay

        self.state: AgentState = "idle"
        self.config: Optional[AgentConfig] = None
        self.current_attempt = 0
        self.max_attempts = AGENT_MAX_ATTEMPTS
        self.is_running = False
        self.completion_message: Optional[str] = None
        self.current_error: Optional[str] = None
        self.current_target_file: Optional[str] = None
        self._logs: List[AgentLogEntry] = []
        self._stop_event = asyncio.Event()
        self._engine: Optional[FixEngine] = None

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------
    async def start(
        self,
        error_message: str,
        error_stack: Optional[str],
        target_file: str,
        files: Mapping[str, str],
        config: AgentConfig,
    ) -> None:
        """Run the fix loop until success, exhaustion or stop()."""
        self.config = config
        self.current_attempt = 0
        self.max_attempts = config.max_attempts
        self.is_running = True
        self.completion_message = None
        self.current_error = error_message
        self.current_target_file = target_file
        self._logs = []
        self._stop_event = asyncio.Event()

        self._log("info", "Agent Started", f"Starting fix for: {target_file}")
        self._log("error", "Error Detected", error_message, file=target_file)

        await self._run_fix_loop(error_stack, target_file, dict(files))

    def stop(self) -> None:
        """Cancel the running session; a finished session keeps its outcome."""
        if not self.is_running:
            return
        self._stop_event.set()
        if self._engine is not None:
            self._engine.abort()
        self._log("warning", "Agent Stopped", "Agent was stopped by user")
        self._set_state("idle")
        self.is_running = False
        self.completion_message = "Stopped by user"
        self._complete(False, self.completion_message)

    def report_error(self, error_message: str) -> None:
        """New error from the preview; used by the next attempt."""
        if not self.is_running:
            return
        self.current_error = error_message
        self._log("error", "New Error", error_message)

    def report_success(self) -> None:
        """The preview recovered; finish in the success state."""
        if not self.is_running:
            return
        self._stop_event.set()
        self._set_state("success")
        self.is_running = False
        self.completion_message = "Error fixed successfully"
        self._log("success", "Success", "Error has been resolved")
        self._complete(True, self.completion_message)

    def get_state(self) -> AgentState:
        return self.state

    def get_logs(self) -> List[AgentLogEntry]:
        return list(self._logs)

    def get_full_state(self) -> Dict[str, Any]:
        """Everything a reconnecting UI needs."""
        return {
            "state": self.state,
            "logs": list(self._logs),
            "is_running": self.is_running,
            "completion_message": self.completion_message,
            "current_attempt": self.current_attempt,
            "max_attempts": self.max_attempts,
            "current_error": self.current_error,
        }

    def reconnect(self, **callbacks: Any) -> None:
        """Swap in new callbacks without restarting the session."""
        if self.config is None:
            return
        known = {f.name for f in fields(AgentConfig)}
        self.config = replace(self.config, **{k: v for k, v in callbacks.items() if k in known})

    # -----------------------------------------------------------------------
    # Fix loop
    # -----------------------------------------------------------------------
    async def _run_fix_loop(
        self,
        error_stack: Optional[str],
        target_file: str,
        files: Dict[str, str],
    ) -> None:
        while self.current_attempt < self.max_attempts:
            if self._stop_event.is_set():
                return

            self.current_attempt += 1
            self._log(
                "info",
                f"Attempt {self.current_attempt}/{self.max_attempts}",
                "Starting fix attempt...",
            )
            error_message = self.current_error or ""

            try:
                self._set_state("analyzing")
                parsed = self.analyzer.analyze(error_message, error_stack, files)
                self._log(
                    "info",
                    "Error Analysis",
                    f"Type: {parsed.type}\nCategory: {parsed.category}\n"
                    f"Confidence: {parsed.confidence * 100:.0f}%",
                )

                self._set_state("fixing")
                self._engine = FixEngine(
                    files,
                    error_message,
                    error_stack=error_stack or "",
                    target_file=target_file,
                    on_progress=lambda stage, percent: self._log("info", stage, f"Progress: {percent}%"),
                    on_strategy_change=self._on_strategy_change,
                    llm=self.llm,
                    fix_state=self.fix_state,
                    analytics=self.analytics,
                    analyzer=self.analyzer,
                )
                result = await self._engine.fix()
                self._engine = None

                if self._stop_event.is_set():
                    return

                if result.success and result.fixed_files:
                    self._set_state("applying")
                    for path, content in result.fixed_files.items():
                        self._log("fix", "Applying Fix", f"Updating {path}", file=path)
                        self._apply(path, content)
                        files[path] = content

                    self._set_state("verifying")
                    self._log("info", "Verifying", "Waiting for preview to compile...")
                    settled = await race_with_timeout(self._stop_event.wait(), self.settle_delay)
                    if settled is not TIMED_OUT:
                        return

                    applied = list(result.fixed_files)
                    file_list = applied[0] if len(applied) == 1 else f"{len(applied)} files"
                    self._log("success", "Fix Applied", f"Fixed {file_list} using {result.strategy}")
                    self._set_state("success")
                    self.is_running = False
                    self.completion_message = f"Fixed {file_list} after {self.current_attempt} attempt(s)"
                    self._complete(True, self.completion_message)
                    return

                self._log("warning", "Fix Failed", result.error or "No fix found")

            except Exception as e:
                logger.error("Fix attempt %d failed: %s", self.current_attempt, e, exc_info=True)
                self._log("error", "Error in Fix Attempt", str(e))
                self._engine = None

        self._set_state("max_attempts_reached")
        self.is_running = False
        self.completion_message = f"Failed after {self.max_attempts} attempts"
        self._log("error", "Max Attempts Reached", self.completion_message)
        self._complete(False, self.completion_message)

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------
    def _on_strategy_change(self, strategy: str) -> None:
        if strategy.startswith("local"):
            self._set_state("local-fix")
        elif strategy.startswith("ai"):
            self._set_state("ai-fix")

    def _set_state(self, state: AgentState) -> None:
        self.state = state
        self._callback("on_state_change", state)

    def _log(self, entry_type: LogEntryType, title: str, content: str, **metadata: Any) -> None:
        entry = AgentLogEntry(
            type=entry_type,
            title=title,
            content=content,
            metadata={**metadata, "attempt": self.current_attempt},
        )
        self._logs.append(entry)
        self._callback("on_log", entry)

    def _apply(self, path: str, content: str) -> None:
        self._callback("on_file_update", path, content)

    def _complete(self, success: bool, message: str) -> None:
        logger.info("Fix agent finished: %s", message)
        self._callback("on_complete", success, message)

    def _callback(self, name: str, *args: Any) -> None:
        callback = getattr(self.config, name, None) if self.config else None
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.warning("Agent callback %s failed: %s", name, e)
