"""
Bracket Balance Fixer
=====================
Appends the closers a truncated module is missing.

The scan uses CodeScanner, so brackets inside strings and comments are never
counted. A closer only cancels the opener on top of the stack; stray closers
are left alone. The fix never removes or reorders existing code: it only
appends the missing closers, innermost first, at end of file. Running it on
its own output is a no-op.
"""
import logging
from typing import Optional

from autofix.core.constants import CURRENT_FILE_KEY
from autofix.models.fix_result import LocalFixResult, no_local_fix
from autofix.utils.code_scanner import BRACKET_PAIRS, CLOSING_BRACKETS, CodeScanner

logger = logging.getLogger(__name__)


def _scan(code: str) -> tuple[Optional[str], bool]:
    scanner = CodeScanner(code)
    stack: list[str] = []
    for _, char in scanner:
        if char in BRACKET_PAIRS:
            stack.append(char)
        elif char in CLOSING_BRACKETS and stack and BRACKET_PAIRS[stack[-1]] == char:
            stack.pop()

    if scanner.ended_in_open_region:
        return None, False
    closers = "".join(BRACKET_PAIRS[opener] for opener in reversed(stack))
    return closers, scanner.in_line_comment


def find_missing_closers(code: str) -> Optional[str]:
    """
    Closing brackets needed to balance ``code``, innermost first.

    Returns
    -------
    str | None
        "" when balanced, the closers to append otherwise, or None when the
        code ends inside a string or block comment (appending closers would
        not help).
    """
    return _scan(code)[0]


def _describe(closers: str) -> str:
    counts = {c: closers.count(c) for c in (")", "}", "]") if c in closers}
    return ", ".join(f"{n} closing {c}" for c, n in counts.items())


def fix_missing_closing(error_message: str, code: str, target_file: str = CURRENT_FILE_KEY) -> LocalFixResult:
    """Append missing ) ] } at end of file."""
    closers, ends_in_line_comment = _scan(code)
    if not closers:
        return no_local_fix()

    # A trailing line comment would swallow the closers
    prefix = "\n" if ends_in_line_comment else ""

    logger.debug("Appending %r to balance brackets", closers)
    return LocalFixResult(
        success=True,
        fixed_files={target_file: code + prefix + closers},
        description=f"Added: {_describe(closers)}",
        fix_type="syntax",
    )
