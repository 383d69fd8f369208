"""
Validator
=========
Static checks applied to every candidate fix.

    validate_syntax  — bracket balance + unterminated strings / block comments
    validate_jsx     — paired-tag balance (void and self-closing tags ignored)
    verify_fix       — confidence-scored verification of a candidate fix
                       against the original error

Confidence model (verify_fix):
    Starts at 1.0; each issue deducts a fixed weight:

        missing / empty file       −0.5  error
        very short (< 50 chars)    −0.2  warning
        syntax invalid             −0.5  error
        error not addressed        −0.3  warning (+ suggestion)
        regression (strict mode)   −0.2  warning

    Clamped to [0, 1] and bucketed: high ≥ 0.9, medium ≥ 0.6, else low.
    A fix is valid iff it has no error-level issue and confidence ≥ 0.6.

Nothing here executes the code; every check is a heuristic.
"""
import logging
import re
from typing import Dict, List, Optional

from autofix.fixers.known_symbols import VOID_ELEMENTS
from autofix.models.verification import (
    SyntaxCheck,
    VerificationIssue,
    VerificationOptions,
    VerificationResult,
)
from autofix.utils.code_scanner import BRACKET_PAIRS, CLOSING_BRACKETS, CodeScanner, line_of

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------
MIN_CODE_LENGTH = 50
HIGH_CONFIDENCE_THRESHOLD = 0.9
MEDIUM_CONFIDENCE_THRESHOLD = 0.6

PENALTY_MISSING = 0.5
PENALTY_SHORT = 0.2
PENALTY_SYNTAX = 0.5
PENALTY_NOT_ADDRESSED = 0.3
PENALTY_REGRESSION = 0.2


# ---------------------------------------------------------------------------
# Syntax
# ---------------------------------------------------------------------------
def validate_syntax(code: str) -> SyntaxCheck:
    """
    Single-pass bracket / string / comment check.

    Brackets inside strings and comments are ignored. Reports the first
    problem found: a mismatched or unexpected closer, an unclosed bracket,
    an unterminated string or an unterminated block comment.
    """
    scanner = CodeScanner(code or "")
    stack: list[tuple[str, int]] = []

    for index, char in scanner:
        if char in BRACKET_PAIRS:
            stack.append((BRACKET_PAIRS[char], index))
        elif char in CLOSING_BRACKETS:
            if not stack:
                return SyntaxCheck(valid=False, error=f"Unexpected '{char}'", index=index)
            expected, _ = stack.pop()
            if expected != char:
                return SyntaxCheck(
                    valid=False, error=f"Expected '{expected}' but found '{char}'", index=index
                )

    if scanner.open_string is not None:
        return SyntaxCheck(valid=False, error="Unterminated string", index=scanner.open_string_start)
    if scanner.in_block_comment:
        return SyntaxCheck(
            valid=False, error="Unterminated block comment", index=scanner.block_comment_start
        )
    if stack:
        expected, index = stack[-1]
        return SyntaxCheck(valid=False, error=f"Missing closing '{expected}'", index=index)

    return SyntaxCheck(valid=True)


def is_code_valid(code: str) -> bool:
    return validate_syntax(code).valid


# ---------------------------------------------------------------------------
# Markup
# ---------------------------------------------------------------------------
_TAG_RE = re.compile(r"<(/?)([\w.]+)([^>]*?)(/?)>")
_VOID = frozenset(VOID_ELEMENTS)


def validate_jsx(code: str) -> SyntaxCheck:
    """Check that opening and closing markup tags pair up."""
    open_tags: list[tuple[str, int]] = []

    for match in _TAG_RE.finditer(code or ""):
        is_closing = match.group(1) == "/"
        tag = match.group(2)
        if match.group(4) == "/" or tag.lower() in _VOID:
            continue

        if is_closing:
            if not open_tags or open_tags[-1][0] != tag:
                return SyntaxCheck(
                    valid=False, error=f"Unexpected closing tag </{tag}>", index=match.start()
                )
            open_tags.pop()
        else:
            open_tags.append((tag, match.start()))

    if open_tags:
        tag, index = open_tags[-1]
        return SyntaxCheck(valid=False, error=f"Unclosed tag <{tag}>", index=index)
    return SyntaxCheck(valid=True)


# ---------------------------------------------------------------------------
# Fix verification
# ---------------------------------------------------------------------------
_NOT_DEFINED_RE = re.compile(r"['\"]?(\w+)['\"]?\s+is\s+not\s+defined", re.I)
_BARE_PATH_RE = re.compile(r"[\"']?(src/[\w./-]+)[\"']?", re.I)
_EXPORT_RE = re.compile(r"export\s+(?:const|function|default|class)")
_RETURN_MARKUP_RE = re.compile(r"return\s*\(")


def check_error_addressed(error_message: str, original_code: Optional[str], fixed_code: str) -> Dict[str, Optional[str]]:
    """
    Heuristic: does ``fixed_code`` plausibly address ``error_message``?

    Returns
    -------
    dict
        {"addressed": bool, "reason": str | None, "suggestion": str | None}
    """
    match = _NOT_DEFINED_RE.search(error_message)
    if match:
        name = re.escape(match.group(1))
        has_import = re.search(rf"import.*\b{name}\b.*from", fixed_code, re.I)
        has_declaration = re.search(rf"(?:const|let|var|function)\s+{name}\b", fixed_code)
        if not has_import and not has_declaration:
            return {
                "addressed": False,
                "reason": f"'{match.group(1)}' is still not defined",
                "suggestion": f"Add import for '{match.group(1)}'",
            }
        return {"addressed": True, "reason": None, "suggestion": None}

    lowered = error_message.lower()
    if "bare specifier" in lowered or "was not remapped" in lowered:
        bare = _BARE_PATH_RE.search(error_message)
        if bare:
            path = bare.group(1)
            if f"'{path}'" in fixed_code or f'"{path}"' in fixed_code:
                return {
                    "addressed": False,
                    "reason": f"Bare specifier '{path}' still present",
                    "suggestion": "Convert to relative path",
                }
        return {"addressed": True, "reason": None, "suggestion": None}

    if original_code and fixed_code != original_code:
        return {"addressed": True, "reason": None, "suggestion": None}

    return {
        "addressed": False,
        "reason": "Code appears unchanged",
        "suggestion": "Verify the fix was applied correctly",
    }


def check_for_regression(original_code: Optional[str], fixed_code: str) -> Optional[str]:
    """Description of a likely regression, or None."""
    if not original_code:
        return None

    original_exports = len(_EXPORT_RE.findall(original_code))
    fixed_exports = len(_EXPORT_RE.findall(fixed_code))
    if fixed_exports < original_exports:
        return f"Exports reduced from {original_exports} to {fixed_exports}"

    ratio = len(fixed_code) / len(original_code)
    if ratio < 0.5:
        return f"Code shortened by {round((1 - ratio) * 100)}%"

    if _RETURN_MARKUP_RE.search(original_code) and not _RETURN_MARKUP_RE.search(fixed_code):
        return "Return statement may have been removed"

    return None


def _bucket(confidence: float) -> str:
    if confidence >= HIGH_CONFIDENCE_THRESHOLD:
        return "high"
    if confidence >= MEDIUM_CONFIDENCE_THRESHOLD:
        return "medium"
    return "low"


def verify_fix(options: VerificationOptions) -> VerificationResult:
    """
    Verify a candidate fix file by file.

    Parameters
    ----------
    options : VerificationOptions
        Original error, file maps before / after, paths to check, and
        whether to run the regression heuristics.

    Returns
    -------
    VerificationResult
        Validity, confidence bucket, issues and suggestions.
    """
    issues: List[VerificationIssue] = []
    suggestions: List[str] = []
    confidence = 1.0

    for path in options.changed_files:
        fixed_code = options.fixed_files.get(path)
        original_code = options.original_files.get(path)

        if not fixed_code:
            issues.append(VerificationIssue(
                type="error", message=f"Fixed file {path} is empty or missing", file=path,
            ))
            confidence -= PENALTY_MISSING
            continue

        if len(fixed_code) < MIN_CODE_LENGTH:
            issues.append(VerificationIssue(
                type="warning",
                message=f"Fixed file {path} is very short ({len(fixed_code)} chars)",
                file=path,
            ))
            confidence -= PENALTY_SHORT

        syntax = validate_syntax(fixed_code)
        if not syntax.valid:
            line = line_of(fixed_code, syntax.index) if syntax.index is not None else None
            issues.append(VerificationIssue(
                type="error", message=f"Syntax error: {syntax.error}", file=path, line=line,
            ))
            confidence -= PENALTY_SYNTAX

        addressed = check_error_addressed(options.original_error, original_code, fixed_code)
        if not addressed["addressed"]:
            issues.append(VerificationIssue(
                type="warning",
                message=f"Fix may not address error: {addressed['reason']}",
                file=path,
            ))
            confidence -= PENALTY_NOT_ADDRESSED
            if addressed["suggestion"]:
                suggestions.append(addressed["suggestion"])

        if options.strict_mode:
            regression = check_for_regression(original_code, fixed_code)
            if regression:
                issues.append(VerificationIssue(
                    type="warning", message=f"Potential regression: {regression}", file=path,
                ))
                confidence -= PENALTY_REGRESSION

    confidence = max(0.0, min(1.0, confidence))
    has_errors = any(issue.type == "error" for issue in issues)

    return VerificationResult(
        is_valid=not has_errors and confidence >= MEDIUM_CONFIDENCE_THRESHOLD,
        confidence=_bucket(confidence),
        issues=issues,
        suggestions=suggestions,
    )


def does_fix_resolve_error(error_message: str, original_code: str, fixed_code: str) -> bool:
    """Quick yes/no form of check_error_addressed."""
    return bool(check_error_addressed(error_message, original_code, fixed_code)["addressed"])
