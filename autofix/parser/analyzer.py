"""
Error Analyzer
==============
Parses a raw runtime/build error (+ optional stack, + optional file set) into
a structured ParsedError.

Pipeline:
    1. Ignorable check (classification.IGNORABLE_PATTERNS) — short-circuits
    2. Ordered pattern table — FIRST match wins, table order is precedence
    3. Location extraction from message + stack
    4. Related-file discovery when a file set is supplied

Contract:
    - DETERMINISTIC: same input → same ParsedError.
    - No LLM allowed in this layer.
    - Never raises on malformed input; unknown errors come back as
      type="unknown", category="unknown", confidence=0.
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from autofix.core.constants import ErrorCategory, ErrorType, SOURCE_ROOT
from autofix.models.parsed_error import ParsedError
from autofix.parser.classification import classify as _classify
from autofix.parser.classification import is_ignorable as _is_ignorable

logger = logging.getLogger(__name__)

MAX_RELATED_FILES = 5


# ---------------------------------------------------------------------------
# Pattern Table
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ErrorPattern:
    """One row of the analyzer table: regex → (type, category, priority, extractor)."""
    pattern: re.Pattern
    type: ErrorType
    category: ErrorCategory
    priority: int
    extract: Callable[[re.Match], Dict[str, Any]]


def _p(regex: str) -> re.Pattern:
    return re.compile(regex, re.I)


ERROR_PATTERNS: list[ErrorPattern] = [
    # --- Bare specifiers (most common in generated code) ---
    ErrorPattern(
        _p(r"[\"']([^\"']+)[\"']\s*was\s*a?\s*bare\s*specifier"),
        "bare-specifier", "import", 5,
        lambda m: {
            "import_path": m.group(1),
            "suggested_fix": f'Change import from "{m.group(1)}" to a relative path',
            "is_auto_fixable": True,
            "confidence": 0.95,
        },
    ),
    ErrorPattern(
        _p(r"specifier\s*[\"']([^\"']+)[\"']\s*was\s*not\s*remapped"),
        "bare-specifier", "import", 5,
        lambda m: {"import_path": m.group(1), "is_auto_fixable": True, "confidence": 0.9},
    ),

    # --- Module not found ---
    ErrorPattern(
        _p(r"Cannot find module ['\"]([^'\"]+)['\"]"),
        "module-not-found", "import", 4,
        lambda m: {
            "import_path": m.group(1),
            "is_auto_fixable": m.group(1).startswith(".") or m.group(1).startswith("src/"),
            "confidence": 0.85,
        },
    ),
    ErrorPattern(
        _p(r"Failed to resolve import [\"']([^\"']+)[\"']"),
        "module-not-found", "import", 4,
        lambda m: {"import_path": m.group(1), "is_auto_fixable": True, "confidence": 0.85},
    ),

    # --- Undefined identifiers ---
    ErrorPattern(
        _p(r"ReferenceError:\s*(\w+)\s+is\s+not\s+defined"),
        "undefined-variable", "import", 4,
        lambda m: {"identifier": m.group(1), "is_auto_fixable": True, "confidence": 0.95},
    ),
    ErrorPattern(
        _p(r"['\"]?(\w+)['\"]?\s+is\s+not\s+defined"),
        "undefined-variable", "import", 4,
        lambda m: {
            "identifier": m.group(1),
            "suggested_fix": f'Add import or define "{m.group(1)}"',
            "is_auto_fixable": True,
            "confidence": 0.9,
        },
    ),
    ErrorPattern(
        _p(r"Cannot find name\s+['\"]?(\w+)['\"]?"),
        "undefined-variable", "import", 4,
        lambda m: {"identifier": m.group(1), "is_auto_fixable": True, "confidence": 0.9},
    ),

    # --- Type errors ---
    ErrorPattern(
        _p(r"Type ['\"]([^'\"]+)['\"] is not assignable to type ['\"]([^'\"]+)['\"]"),
        "type-error", "type", 3,
        lambda m: {
            "actual_type": m.group(1),
            "expected_type": m.group(2),
            "is_auto_fixable": False,
            "confidence": 0.8,
        },
    ),
    ErrorPattern(
        _p(r"Property ['\"](\w+)['\"] does not exist on type"),
        "property-error", "type", 3,
        lambda m: {"missing_property": m.group(1), "is_auto_fixable": False, "confidence": 0.75},
    ),

    # --- Syntax errors ---
    ErrorPattern(
        _p(r"SyntaxError:\s*(.+)"),
        "syntax-error", "syntax", 5,
        lambda m: {
            "suggested_fix": f"Fix syntax error: {m.group(1)}",
            "is_auto_fixable": False,
            "confidence": 0.6,
        },
    ),
    ErrorPattern(
        _p(r"Unexpected token\s*['\"]?(\S+)['\"]?"),
        "syntax-error", "syntax", 5,
        lambda m: {"identifier": m.group(1), "is_auto_fixable": False, "confidence": 0.65},
    ),
    ErrorPattern(
        _p(r"Unterminated\s+(string|template)\s+literal"),
        "syntax-error", "syntax", 5,
        lambda m: {
            "suggested_fix": f"Close the unterminated {m.group(1)} literal",
            "is_auto_fixable": False,
            "confidence": 0.7,
        },
    ),

    # --- JSX ---
    ErrorPattern(
        _p(r"JSX element ['\"](\w+)['\"] has no corresponding closing tag"),
        "jsx-error", "jsx", 4,
        lambda m: {
            "identifier": m.group(1),
            "suggested_fix": f"Add closing tag for <{m.group(1)}>",
            "is_auto_fixable": False,
            "confidence": 0.8,
        },
    ),
    ErrorPattern(
        _p(r"Adjacent JSX elements must be wrapped"),
        "jsx-error", "jsx", 4,
        lambda m: {
            "suggested_fix": "Wrap multiple JSX elements in a fragment <></>",
            "is_auto_fixable": False,
            "confidence": 0.85,
        },
    ),

    # --- Hooks ---
    ErrorPattern(
        _p(r"React Hook [\"'](\w+)[\"'] is called conditionally"),
        "hook-error", "react", 4,
        lambda m: {
            "identifier": m.group(1),
            "suggested_fix": f"Move {m.group(1)} to the top level",
            "is_auto_fixable": False,
            "confidence": 0.9,
        },
    ),
    ErrorPattern(
        _p(r"Invalid hook call"),
        "hook-error", "react", 4,
        lambda m: {
            "suggested_fix": "Ensure hooks are only called inside function components",
            "is_auto_fixable": False,
            "confidence": 0.8,
        },
    ),

    # --- Runtime ---
    ErrorPattern(
        _p(r"Cannot read propert(?:y|ies) of (?:undefined|null) \(reading ['\"](\w+)['\"]\)"),
        "runtime-error", "runtime", 3,
        lambda m: {
            "missing_property": m.group(1),
            "suggested_fix": f'Add null check before accessing "{m.group(1)}"',
            "is_auto_fixable": True,
            "confidence": 0.8,
        },
    ),
    ErrorPattern(
        _p(r"Cannot read propert(?:y|ies) (?:of\s+)?['\"]?(\w+)['\"]? (?:of\s+)?(undefined|null)"),
        "runtime-error", "runtime", 3,
        lambda m: {
            "missing_property": m.group(1),
            "suggested_fix": f'Add null check before accessing "{m.group(1)}"',
            "is_auto_fixable": False,
            "confidence": 0.7,
        },
    ),
    ErrorPattern(
        _p(r"(\w+) is not a function"),
        "runtime-error", "runtime", 3,
        lambda m: {"identifier": m.group(1), "is_auto_fixable": False, "confidence": 0.65},
    ),

    # --- Missing export ---
    ErrorPattern(
        _p(r"does not provide an export named ['\"](\w+)['\"]"),
        "module-not-found", "import", 4,
        lambda m: {"identifier": m.group(1), "is_auto_fixable": False, "confidence": 0.8},
    ),

    # --- Network (never fixable by editing code) ---
    ErrorPattern(
        _p(r"Failed to fetch"),
        "network-error", "network", 1,
        lambda m: {
            "suggested_fix": "Check network connection and API endpoint",
            "is_auto_fixable": False,
            "is_ignorable": True,
            "confidence": 0.5,
        },
    ),
    ErrorPattern(
        _p(r"NetworkError|CORS|Cross-Origin"),
        "network-error", "network", 1,
        lambda m: {"is_auto_fixable": False, "is_ignorable": True, "confidence": 0.5},
    ),
]


# ---------------------------------------------------------------------------
# Location Extraction
# ---------------------------------------------------------------------------
_FILE_LINE_COL_RE = re.compile(r"(?:at\s+)?(?:\()?([^()\s]+\.(?:tsx?|jsx?)):(\d+):(\d+)(?:\))?")
_IN_FILE_LINE_RE = re.compile(r"in\s+([^()\s]+\.(?:tsx?|jsx?))\s*\(line\s+(\d+)", re.I)
_URL_PREFIX_RE = re.compile(r"^https?://[^/]+/")

# Directories that live under the source root in generated projects
_SOURCE_DIR_HINTS = ("components/", "utils/", "hooks/")


def normalize_file_path(path: str) -> str:
    """
    Normalize a file path from a stack frame to a project-relative path.

    Strips URL origin, query string and leading slashes; prefixes the source
    root for bare component / util / hook paths.
    """
    normalized = _URL_PREFIX_RE.sub("", path)
    normalized = normalized.split("?")[0]
    normalized = normalized.lstrip("/")

    if not normalized.startswith(f"{SOURCE_ROOT}/") and not normalized.startswith("./"):
        if any(hint in normalized for hint in _SOURCE_DIR_HINTS):
            normalized = f"{SOURCE_ROOT}/{normalized}"
    return normalized


def extract_location(error_message: str, error_stack: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """
    Extract (file, line, column) from the message and stack.

    Returns
    -------
    dict | None
        {"file", "line", "column"} (column may be None), or None if no
        location could be found.
    """
    combined = error_message + ("\n" + error_stack if error_stack else "")

    match = _FILE_LINE_COL_RE.search(combined)
    if match:
        return {
            "file": normalize_file_path(match.group(1)),
            "line": int(match.group(2)),
            "column": int(match.group(3)),
        }

    match = _IN_FILE_LINE_RE.search(combined)
    if match:
        return {
            "file": normalize_file_path(match.group(1)),
            "line": int(match.group(2)),
            "column": None,
        }
    return None


# ---------------------------------------------------------------------------
# Related Files
# ---------------------------------------------------------------------------
def find_related_files(
    import_path: Optional[str],
    identifier: Optional[str],
    origin_file: Optional[str],
    files: Mapping[str, str],
) -> list[str]:
    """
    Files that reference the import path or export/define the identifier.

    Deduplicated (first-seen order), originating file excluded, capped at
    MAX_RELATED_FILES.
    """
    related: list[str] = []

    if import_path:
        for path, content in files.items():
            if content and import_path in content:
                related.append(path)

    if identifier:
        name = re.escape(identifier)
        export_re = re.compile(rf"export\s+(?:default\s+)?(?:const|function|class)?\s*{name}\b")
        define_re = re.compile(rf"(?:function|const)\s+{name}\s*[=(]")
        for path, content in files.items():
            if not content:
                continue
            if export_re.search(content) or define_re.search(content):
                related.append(path)

    unique = list(dict.fromkeys(related))
    return [p for p in unique if p != origin_file][:MAX_RELATED_FILES]


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------
class ErrorAnalyzer:
    """
    Table-driven error analyzer.

    Usage:
        analyzer = ErrorAnalyzer()
        parsed = analyzer.analyze("ReferenceError: Search is not defined")
        parsed.type          # "undefined-variable"
        parsed.identifier    # "Search"
    """

    def __init__(self, patterns: Optional[list[ErrorPattern]] = None):
        self.patterns = patterns if patterns is not None else ERROR_PATTERNS

    def analyze(
        self,
        error_message: str,
        error_stack: Optional[str] = None,
        files: Optional[Mapping[str, str]] = None,
    ) -> ParsedError:
        """
        Parse and classify an error.

        Parameters
        ----------
        error_message : str
            Raw error message.
        error_stack : str, optional
            Stack trace, searched for a file location.
        files : Mapping[str, str], optional
            Project files, used to discover related files.

        Returns
        -------
        ParsedError
            Immutable analysis record. Ignorable errors come back with
            is_ignorable=True and no further classification.
        """
        error_message = error_message or ""
        fields: Dict[str, Any] = {
            "message": error_message,
            "stack": error_stack,
        }

        if self.is_ignorable(error_message):
            logger.debug("Ignorable error: %s", error_message[:80])
            return ParsedError(**fields, is_ignorable=True)

        for entry in self.patterns:
            match = entry.pattern.search(error_message)
            if match:
                fields.update(type=entry.type, category=entry.category, priority=entry.priority)
                fields.update(entry.extract(match))
                break

        location = extract_location(error_message, error_stack)
        if location:
            fields.update(location)

        if files:
            fields["related_files"] = find_related_files(
                fields.get("import_path"),
                fields.get("identifier"),
                fields.get("file"),
                files,
            )

        parsed = ParsedError(**fields)
        logger.debug(
            "Analyzed error: type=%s category=%s confidence=%.2f",
            parsed.type, parsed.category, parsed.confidence,
        )
        return parsed

    def classify(self, error_message: str) -> ErrorCategory:
        """Coarse category without full parsing."""
        return _classify(error_message)

    def is_ignorable(self, error_message: str) -> bool:
        return _is_ignorable(error_message)

    def get_priority(self, parsed: ParsedError) -> int:
        return parsed.priority

    def get_summary(self, error: ParsedError) -> str:
        """Human-readable one-liner for logs and UI."""
        parts: list[str] = []

        if error.type == "bare-specifier":
            parts.append(f'Import "{error.import_path}" needs relative path')
        elif error.type == "module-not-found":
            parts.append(f'Cannot find "{error.import_path or error.identifier}"')
        elif error.type == "undefined-variable":
            parts.append(f'"{error.identifier}" is not defined')
        elif error.type == "type-error":
            if error.expected_type and error.actual_type:
                parts.append(f"Type mismatch: expected {error.expected_type}")
            else:
                parts.append("Type error")
        elif error.type == "syntax-error":
            parts.append("Syntax error")
        elif error.type == "jsx-error":
            parts.append("JSX error")
        elif error.type == "hook-error":
            parts.append(f'Hook "{error.identifier}" used incorrectly')
        elif error.type == "property-error":
            parts.append(f'Property "{error.missing_property}" missing')
        elif error.type == "runtime-error":
            parts.append("Runtime error")
        elif error.type == "network-error":
            parts.append("Network error")
        else:
            parts.append(error.message[:80])

        if error.file:
            parts.append(f"in {error.file}")
            if error.line:
                parts.append(f"at line {error.line}")

        return " ".join(parts)


error_analyzer = ErrorAnalyzer()
