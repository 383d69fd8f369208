"""
Fix Engine
==========
Multi-strategy error repair pipeline: cheap local fixers first, then
language-model strategies of increasing cost.

Pipeline (one run):
    1. Fix state gate       — declined errors return "Skipped: <reason>"
    2. Analyze              — ignorable errors return "Ignorable error"
    3. Select strategies    — from the error category
    4. Run strategies       — strictly in order, first valid fix wins
    5. Record               — fix state + analytics, success or failure

Strategy Selection:
    local-simple                       always
    local-multifile                    import errors only
    local-proactive                    always
    ai-quick / ai-full /
    ai-iterative / ai-regenerate       unless transient or network

Timeouts:
    Every strategy is raced against its own timer, capped by whatever is
    left of the overall deadline. A timer that fires yields TIMED_OUT and
    the strategy counts as failed; the loop moves on.

Validation:
    Every file a strategy returns must pass validate_syntax. Language-model
    output is additionally cleaned of markdown and must look like code.
    verify_fix runs on the winning fix and is logged only.

The engine never mutates the caller's file map and fix() never raises:
every outcome is a FixResult.
"""
import logging
import re
import time
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from autofix.core.config import (
    AI_FULL_TIMEOUT,
    AI_ITERATIVE_TIMEOUT,
    AI_QUICK_TIMEOUT,
    AI_REGENERATE_TIMEOUT,
    ENGINE_MAX_ATTEMPTS,
    FIX_TOTAL_TIMEOUT,
    LOCAL_FIX_TIMEOUT,
    MAX_ITERATIVE_ROUNDS,
)
from autofix.core.constants import (
    AI_STRATEGIES,
    DEFAULT_TARGET_FILE,
    NON_AI_CATEGORIES,
    STRATEGY_LABELS,
    STRATEGY_ORDER,
    ErrorCategory,
    FixStrategy,
)
from autofix.fixers.imports import fix_bare_specifier_multi_file
from autofix.fixers.local_fixes import try_local_fix
from autofix.fixers.proactive import try_proactive_fix
from autofix.llm.client import LLMClient, LLMRequest
from autofix.llm.prompts import (
    SYSTEM_INSTRUCTION,
    build_full_prompt,
    build_iterative_prompt,
    build_quick_prompt,
    build_regeneration_prompt,
    extract_component_name,
)
from autofix.models.fix_result import FixResult
from autofix.models.parsed_error import ParsedError
from autofix.models.verification import VerificationOptions
from autofix.parser.analyzer import ErrorAnalyzer, error_analyzer
from autofix.services.analytics import FixAnalytics
from autofix.services.fix_state import FixState
from autofix.utils.code_cleaning import clean_generated_code, is_valid_code
from autofix.utils.error_context import get_related_files
from autofix.utils.timeouts import TIMED_OUT, race_with_timeout
from autofix.validation.validator import validate_syntax, verify_fix

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int], None]
StrategyCallback = Callable[[str], None]

STRATEGY_TIMEOUTS: Dict[str, float] = {
    "local-simple": LOCAL_FIX_TIMEOUT,
    "local-multifile": LOCAL_FIX_TIMEOUT,
    "local-proactive": LOCAL_FIX_TIMEOUT,
    "ai-quick": AI_QUICK_TIMEOUT,
    "ai-full": AI_FULL_TIMEOUT,
    "ai-iterative": AI_ITERATIVE_TIMEOUT,
    "ai-regenerate": AI_REGENERATE_TIMEOUT,
}


# ---------------------------------------------------------------------------
# Module helpers
# ---------------------------------------------------------------------------
_FILE_MENTION_RE = re.compile(r"(?:at\s+)?([^:\s'\"()]+\.tsx?):?\d*")
_BARE_PATH_RE = re.compile(r"[\"']?(src/[\w./-]+)[\"']?", re.I)


def select_strategies(category: ErrorCategory) -> List[FixStrategy]:
    strategies: List[FixStrategy] = ["local-simple"]
    if category == "import":
        strategies.append("local-multifile")
    strategies.append("local-proactive")
    if category not in NON_AI_CATEGORIES:
        strategies.extend(AI_STRATEGIES)
    return strategies


def detect_target_file(error_message: str, files: Mapping[str, str]) -> str:
    """
    Guess which file the error belongs to.

    A file path mentioned in the message wins if it exists; otherwise the
    first file that contains the bare specifier from the message; otherwise
    DEFAULT_TARGET_FILE.
    """
    match = _FILE_MENTION_RE.search(error_message or "")
    if match and files.get(match.group(1)):
        return match.group(1)

    bare = _BARE_PATH_RE.search(error_message or "")
    if bare:
        for path, content in files.items():
            if content and bare.group(1) in content:
                return path

    return DEFAULT_TARGET_FILE


def strategy_progress(strategy: str) -> int:
    """Percent estimate from the strategy's position in STRATEGY_ORDER."""
    return round(STRATEGY_ORDER.index(strategy) / len(STRATEGY_ORDER) * 100)


# ---------------------------------------------------------------------------
# Fix Engine
# ---------------------------------------------------------------------------
class FixEngine:
    """
    One repair run for one error.

    Usage:
        engine = FixEngine(files, "ReferenceError: Search is not defined", llm=client)
        result = await engine.fix()
        if result.success:
            files.update(result.fixed_files)

    Parameters
    ----------
    files : Mapping[str, str]
        Project files (path → content). Read only.
    error_message : str
        Error as reported by the preview or build.
    error_stack : str
        Optional stack trace.
    target_file : str, optional
        File to repair; detected from the message when omitted.
    app_code : str, optional
        Fallback content when ``target_file`` is not in ``files``.
    logs : sequence of mappings, optional
        Recent console entries ({"type", "message"}) for the full prompt.
    system_instruction : str
        Project instructions added to the full prompt.
    on_progress, on_strategy_change : callables, optional
        Progress sinks; exceptions they raise are logged and ignored.
    max_attempts : int
        Upper bound on strategies invoked in one run.
    timeout : float
        Overall deadline in seconds.
    skip_strategies : sequence of str
        Strategies the caller excludes.
    llm : LLMClient, optional
        Language-model client; AI strategies decline without one.
    fix_state : FixState, optional
    analytics : FixAnalytics, optional
    analyzer : ErrorAnalyzer, optional
    clock : callable
        Monotonic clock in seconds.
    """

    def __init__(
        self,
        files: Mapping[str, str],
        error_message: str,
        error_stack: str = "",
        target_file: Optional[str] = None,
        app_code: Optional[str] = None,
        logs: Optional[Sequence[Mapping[str, str]]] = None,
        system_instruction: str = "",
        on_progress: Optional[ProgressCallback] = None,
        on_strategy_change: Optional[StrategyCallback] = None,
        max_attempts: int = ENGINE_MAX_ATTEMPTS,
        timeout: float = FIX_TOTAL_TIMEOUT,
        skip_strategies: Sequence[str] = (),
        llm: Optional[LLMClient] = None,
        fix_state: Optional[FixState] = None,
        analytics: Optional[FixAnalytics] = None,
        analyzer: Optional[ErrorAnalyzer] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.files: Dict[str, str] = dict(files or {})
        self.error_message = error_message or ""
        self.error_stack = error_stack or ""
        self.target_file = target_file or detect_target_file(self.error_message, self.files)
        self.app_code = app_code if app_code is not None else self.files.get(DEFAULT_TARGET_FILE, "")
        self.logs = list(logs or [])
        self.system_instruction = system_instruction
        self.on_progress = on_progress
        self.on_strategy_change = on_strategy_change
        self.max_attempts = max_attempts
        self.timeout = timeout
        self.skip_strategies = frozenset(skip_strategies)
        self.llm = llm
        self.fix_state = fix_state if fix_state is not None else FixState()
        self.analytics = analytics if analytics is not None else FixAnalytics()
        self.analyzer = analyzer or error_analyzer
        self._clock = clock

        self.attempts = 0
        self.current_strategy: FixStrategy = "local-simple"
        self._start = 0.0
        self._aborted = False
        self._parsed: Optional[ParsedError] = None

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------
    async def fix(self) -> FixResult:
        """Run the pipeline. Never raises."""
        self._start = self._clock()
        self._aborted = False
        try:
            return await self._fix()
        except Exception as e:
            logger.error("Fix engine failed unexpectedly: %s", e, exc_info=True)
            return self._no_fix(f"Engine error: {e}")

    def abort(self) -> None:
        """Stop before the next strategy starts."""
        self._aborted = True

    # -----------------------------------------------------------------------
    # Pipeline
    # -----------------------------------------------------------------------
    async def _fix(self) -> FixResult:
        skip, reason = self.fix_state.should_skip(self.error_message)
        if skip:
            logger.info("Skipping fix: %s", reason)
            return self._no_fix(f"Skipped: {reason}")

        parsed = self.analyzer.analyze(self.error_message, self.error_stack, self.files)
        self._parsed = parsed
        if parsed.is_ignorable:
            return self._no_fix("Ignorable error")

        category = parsed.category
        strategies = select_strategies(category)
        logger.info(
            "Fixing %s error in %s with %d strategies", category, self.target_file, len(strategies)
        )

        ran_any = False
        for strategy in strategies:
            if self._aborted:
                logger.info("Fix aborted before %s", strategy)
                return self._no_fix("Aborted")
            if self._remaining() <= 0:
                logger.warning("Fix deadline reached after %d attempts", self.attempts)
                break
            if self.attempts >= self.max_attempts:
                break
            if strategy in self.skip_strategies:
                continue

            self.current_strategy = strategy
            ran_any = True
            self._emit_strategy(strategy)
            self._emit_progress(STRATEGY_LABELS.get(strategy, strategy), strategy_progress(strategy))

            result = await self._run_with_timeout(strategy)
            if result is not None and result.success and result.fixed_files:
                time_ms = self._elapsed_ms()
                self.fix_state.record_attempt(self.error_message, strategy, True)
                self.analytics.record(self.error_message, category, strategy, True, time_ms)
                self._log_verification(result.fixed_files)
                logger.info("Fixed with %s in %dms: %s", strategy, time_ms, result.description)
                return result.model_copy(
                    update={"strategy": strategy, "attempts": self.attempts, "time_ms": time_ms}
                )

        failed_strategy = self.current_strategy if ran_any else "local-simple"
        time_ms = self._elapsed_ms()
        self.fix_state.record_attempt(self.error_message, failed_strategy, False)
        self.analytics.record(self.error_message, category, failed_strategy, False, time_ms)
        return self._no_fix("All strategies exhausted")

    async def _run_with_timeout(self, strategy: FixStrategy) -> Optional[FixResult]:
        self.attempts += 1
        budget = min(STRATEGY_TIMEOUTS[strategy], self._remaining())
        try:
            result = await race_with_timeout(self._run_strategy(strategy), budget)
        except Exception as e:
            logger.error("Strategy %s failed: %s", strategy, e, exc_info=True)
            return None

        if result is TIMED_OUT:
            logger.warning("Strategy %s timed out after %.1fs", strategy, budget)
            return None
        if result.success and not self._all_valid(result.fixed_files):
            logger.warning("Strategy %s produced invalid code, discarding", strategy)
            return None
        if not result.success:
            logger.debug("Strategy %s: %s", strategy, result.error)
        return result

    async def _run_strategy(self, strategy: FixStrategy) -> FixResult:
        runners: Dict[str, Callable[[], Awaitable[FixResult]]] = {
            "local-simple": self._run_local_simple,
            "local-multifile": self._run_local_multifile,
            "local-proactive": self._run_local_proactive,
            "ai-quick": self._run_ai_quick,
            "ai-full": self._run_ai_full,
            "ai-iterative": self._run_ai_iterative,
            "ai-regenerate": self._run_ai_regenerate,
        }
        return await runners[strategy]()

    # -----------------------------------------------------------------------
    # Local strategies
    # -----------------------------------------------------------------------
    async def _run_local_simple(self) -> FixResult:
        code = self._target_code()
        if not code:
            return self._no_fix("No code found")

        result = try_local_fix(self.error_message, code, target_file=self.target_file)
        if result.success and result.fixed_files:
            return self._success(result.fixed_files, result.description)
        return self._no_fix("Local fix failed")

    async def _run_local_multifile(self) -> FixResult:
        result = fix_bare_specifier_multi_file(self.error_message, self.files)
        if result.success and result.fixed_files:
            return self._success(result.fixed_files, result.description)
        return self._no_fix("Multi-file fix failed")

    async def _run_local_proactive(self) -> FixResult:
        result = try_proactive_fix(self.error_message, self.target_file, self.files)
        if result.success and result.fixed_files:
            return self._success(result.fixed_files, result.description)
        return self._no_fix("No proactive fixes found")

    # -----------------------------------------------------------------------
    # AI strategies
    # -----------------------------------------------------------------------
    def _llm_ready(self) -> bool:
        return self.llm is not None and self.llm.is_configured()

    async def _generate(self, prompt: str) -> str:
        response = await self.llm.generate(
            LLMRequest(prompt=prompt, system_instruction=SYSTEM_INSTRUCTION)
        )
        if not response.success:
            logger.warning("LLM request failed: %s", response.error)
            return ""
        return clean_generated_code(response.text)

    def _accept(self, fixed_code: str, original: str, require_change: bool = True) -> Optional[str]:
        """Reason to reject model output, or None if it is acceptable."""
        if not fixed_code:
            return "Empty response"
        if not is_valid_code(fixed_code) or not validate_syntax(fixed_code).valid:
            return "Invalid syntax"
        if require_change and fixed_code == original:
            return "No changes"
        return None

    async def _run_ai_quick(self) -> FixResult:
        code = self._target_code()
        if not code:
            return self._no_fix("No code found")
        if not self._llm_ready():
            return self._no_fix("No AI provider")

        fixed = await self._generate(build_quick_prompt(self.error_message, code, self._parsed))
        if self._accept(fixed, code) is None:
            return self._success({self.target_file: fixed}, "Quick AI fix")
        return self._no_fix("AI fix invalid")

    async def _run_ai_full(self) -> FixResult:
        code = self._target_code()
        if not code:
            return self._no_fix("No code found")
        if not self._llm_ready():
            return self._no_fix("No AI provider")

        prompt = build_full_prompt(
            self.error_message,
            self.target_file,
            code,
            self.files,
            self._parsed,
            tech_stack_context=self.system_instruction,
            logs=self.logs,
        )
        fixed = await self._generate(prompt)
        if self._accept(fixed, code) is None:
            return self._success({self.target_file: fixed}, "AI fix with full context")
        return self._no_fix("AI fix invalid")

    async def _run_ai_iterative(self) -> FixResult:
        code = self._target_code()
        if not code:
            return self._no_fix("No code found")
        if not self._llm_ready():
            return self._no_fix("No AI provider")

        feedback: List[str] = []
        for round_number in range(1, MAX_ITERATIVE_ROUNDS + 1):
            if self._remaining() <= 0:
                break
            self._emit_progress(
                f"AI attempt {round_number}/{MAX_ITERATIVE_ROUNDS}...", 70 + (round_number - 1) * 10
            )

            prompt = build_iterative_prompt(self.error_message, code, feedback)
            try:
                fixed = await race_with_timeout(
                    self._generate(prompt), min(AI_FULL_TIMEOUT, self._remaining())
                )
            except Exception as e:
                feedback.append(str(e))
                continue

            if fixed is TIMED_OUT:
                feedback.append("Timeout")
                continue

            reason = self._accept(fixed, code)
            if reason:
                feedback.append(reason)
                continue

            return self._success({self.target_file: fixed}, f"Fixed after {round_number} iterations")

        logger.debug("Iterative AI feedback: %s", feedback)
        return self._no_fix(f"Failed after {MAX_ITERATIVE_ROUNDS} rounds")

    async def _run_ai_regenerate(self) -> FixResult:
        code = self._target_code()
        if not code:
            return self._no_fix("No code found")
        if not self._llm_ready():
            return self._no_fix("No AI provider")

        component_name = extract_component_name(code)
        related = get_related_files(self.error_message, code, self.files)
        prompt = build_regeneration_prompt(self.error_message, code, component_name, related)

        fixed = await self._generate(prompt)
        if self._accept(fixed, code, require_change=False) is None:
            return self._success(
                {self.target_file: fixed}, f"Regenerated {component_name or 'component'}"
            )
        return self._no_fix("Regeneration failed")

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------
    def _target_code(self) -> str:
        return self.files.get(self.target_file) or self.app_code or ""

    @staticmethod
    def _all_valid(fixed_files: Mapping[str, str]) -> bool:
        return all(content and validate_syntax(content).valid for content in fixed_files.values())

    def _log_verification(self, fixed_files: Mapping[str, str]) -> None:
        verification = verify_fix(VerificationOptions(
            original_error=self.error_message,
            original_files={p: self.files[p] for p in fixed_files if p in self.files},
            fixed_files=dict(fixed_files),
            changed_files=list(fixed_files),
        ))
        for issue in verification.issues:
            logger.warning("Verification %s in %s: %s", issue.type, issue.file, issue.message)
        logger.debug(
            "Verification: valid=%s confidence=%s", verification.is_valid, verification.confidence
        )

    def _remaining(self) -> float:
        return self.timeout - (self._clock() - self._start)

    def _elapsed_ms(self) -> int:
        return int((self._clock() - self._start) * 1000)

    def _emit_progress(self, stage: str, percent: int) -> None:
        if self.on_progress is None:
            return
        try:
            self.on_progress(stage, percent)
        except Exception as e:
            logger.warning("Progress callback failed: %s", e)

    def _emit_strategy(self, strategy: str) -> None:
        if self.on_strategy_change is None:
            return
        try:
            self.on_strategy_change(strategy)
        except Exception as e:
            logger.warning("Strategy callback failed: %s", e)

    def _success(self, fixed_files: Mapping[str, str], description: str) -> FixResult:
        return FixResult(
            success=True,
            fixed_files=dict(fixed_files),
            description=description,
            strategy=self.current_strategy,
            attempts=self.attempts,
            time_ms=self._elapsed_ms(),
        )

    def _no_fix(self, reason: str) -> FixResult:
        return FixResult(
            success=False,
            description=reason,
            strategy=self.current_strategy,
            attempts=self.attempts,
            time_ms=self._elapsed_ms(),
            error=reason,
        )


# ---------------------------------------------------------------------------
# Convenience helpers
# ---------------------------------------------------------------------------
async def quick_fix(error_message: str, files: Mapping[str, str], **options) -> Optional[Dict[str, str]]:
    """Fixed files, or None if no strategy succeeded."""
    result = await FixEngine(files, error_message, **options).fix()
    return result.fixed_files if result.success else None


async def fix_with_progress(
    error_message: str,
    files: Mapping[str, str],
    on_progress: ProgressCallback,
    **options,
) -> FixResult:
    return await FixEngine(files, error_message, on_progress=on_progress, **options).fix()
