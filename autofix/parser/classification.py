"""
Classification
==============
Coarse, substring-based categorisation of raw error strings.

Used where the full ErrorAnalyzer is too heavy, e.g. picking a strategy list
before parsing. Categories are checked in a fixed order and the first group
whose keywords appear wins:

    transient → syntax → import → react → type → jsx → async → runtime → unknown

Ignorable (transient, non-actionable) errors are detected here too, because
both the analyzer and the quick classifier must agree on them.
"""
import re
from typing import Callable

from autofix.core.constants import ErrorCategory


# ---------------------------------------------------------------------------
# Ignorable Patterns
# ---------------------------------------------------------------------------
# Errors the preview produces on its own (reloads, aborted requests, flaky
# network). They never trigger a fix attempt.
IGNORABLE_PATTERNS: list[re.Pattern] = [
    re.compile(r"Loading chunk \d+ failed", re.I),
    re.compile(r"Failed to fetch dynamically imported module", re.I),
    re.compile(r"ResizeObserver loop", re.I),
    re.compile(r"Script error\.", re.I),
    re.compile(r"Network Error", re.I),
    re.compile(r"timeout", re.I),
    re.compile(r"AbortError", re.I),
    re.compile(r"cancelled", re.I),
    re.compile(r"ERR_CONNECTION", re.I),
]


def is_ignorable(error_message: str) -> bool:
    """Return True if the error is transient / non-actionable."""
    return any(p.search(error_message or "") for p in IGNORABLE_PATTERNS)


# ---------------------------------------------------------------------------
# Category Keyword Table
# ---------------------------------------------------------------------------
def _any_of(*words: str) -> Callable[[str], bool]:
    return lambda text: any(w in text for w in words)


# Each entry: (category, predicate over the lower-cased message).
# Order encodes precedence: the most specific category is checked first.
_CATEGORY_CHECKS: list[tuple[ErrorCategory, Callable[[str], bool]]] = [
    ("syntax", _any_of("syntaxerror", "unexpected token", "unterminated", "expected")),
    ("import", _any_of("is not defined", "cannot find", "bare specifier", "module not found",
                       "failed to resolve")),
    ("react", _any_of("hook", "react", "render", "component")),
    ("type", lambda t: "type" in t or "is not assignable" in t
        or ("property" in t and "does not exist" in t)),
    ("jsx", lambda t: "jsx" in t or "closing tag" in t or ("adjacent" in t and "elements" in t)),
    ("async", _any_of("async", "await", "promise")),
    ("runtime", _any_of("cannot read", "undefined", "null", "is not a function")),
]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def classify(error_message: str) -> ErrorCategory:
    """
    Quick category classification for strategy selection.

    Parameters
    ----------
    error_message : str
        Raw error message.

    Returns
    -------
    ErrorCategory
        "transient" for ignorable errors, otherwise the first category whose
        keywords appear in the message, or "unknown".
    """
    if is_ignorable(error_message):
        return "transient"

    lowered = (error_message or "").lower()
    for category, matches in _CATEGORY_CHECKS:
        if matches(lowered):
            return category
    return "unknown"
