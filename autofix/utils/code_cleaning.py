"""
Code Cleaning
=============
Strips markdown artifacts from language-model output before it is validated.

Models are told to return raw code but regularly wrap it in ``` fences, add a
language tag on the first line, or both. Everything here is a pure string
transformation.
"""
import re

_LANG_TAGS = (
    "javascript|typescript|tsx|jsx|ts|js|react|html|css|json|sql|markdown|md"
    "|plaintext|text|sh|bash|shell"
)

_CODE_FENCE_PATTERNS: list[re.Pattern] = [
    re.compile(rf"^```(?:{_LANG_TAGS})?\s*\n?", re.I | re.M),
    re.compile(r"\n?```\s*$", re.I | re.M),
    re.compile(r"^```\s*\n?", re.I | re.M),
]

_LEADING_LANG_LINE_RE = re.compile(r"^(javascript|typescript|tsx|jsx|ts|js|react)\s*\n", re.I)

_HAS_IMPORT_RE = re.compile(r"import\s+")
_HAS_EXPORT_RE = re.compile(r"export\s+")
_HAS_FUNCTION_RE = re.compile(r"function\s+|const\s+\w+\s*=|=>\s*{")
_HAS_MARKUP_RE = re.compile(r"<\w+")
_HAS_CLASS_RE = re.compile(r"class\s+\w+")

MIN_CODE_LENGTH = 10


def clean_generated_code(code: str) -> str:
    """
    Remove code fences and a stray leading language tag from model output.

    Parameters
    ----------
    code : str
        Raw model response text.

    Returns
    -------
    str
        Trimmed code, or "" for empty input.
    """
    if not code:
        return ""

    cleaned = code
    for pattern in _CODE_FENCE_PATTERNS:
        cleaned = pattern.sub("", cleaned)

    cleaned = _LEADING_LANG_LINE_RE.sub("", cleaned)
    cleaned = cleaned.replace("```", "")
    return cleaned.strip()


def is_valid_code(code: str) -> bool:
    """Cheap plausibility check: does this look like a JS/TS module at all?"""
    if not code or len(code) < MIN_CODE_LENGTH:
        return False

    return bool(
        _HAS_IMPORT_RE.search(code)
        or _HAS_EXPORT_RE.search(code)
        or _HAS_FUNCTION_RE.search(code)
        or _HAS_MARKUP_RE.search(code)
        or _HAS_CLASS_RE.search(code)
    )
