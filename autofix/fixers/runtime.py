"""
Runtime Fixers
==============
Repairs for errors that only show up when the component runs.

    fix_runtime_error      — optional chaining for "cannot read property X"
    fix_undefined_variable — typo correction against declared identifiers
"""
import re
from typing import Optional

from autofix.core.constants import CURRENT_FILE_KEY
from autofix.fixers.known_symbols import is_known_symbol
from autofix.models.fix_result import LocalFixResult, no_local_fix
from autofix.utils.code_scanner import code_mask

SIMILARITY_THRESHOLD = 0.6

# ---------------------------------------------------------------------------
# Optional chaining
# ---------------------------------------------------------------------------
_READ_PROPERTY_PATTERNS: list[re.Pattern] = [
    re.compile(r"cannot read propert(?:y|ies) (?:of (?:undefined|null) \(reading )?['\"](\w+)['\"]", re.I),
    re.compile(r"cannot read ['\"](\w+)['\"] of (?:undefined|null)", re.I),
]

# =, +=, **=, ??=, ... and ++ / -- (but not == or =>)
_ASSIGNMENT = r"\s*(?:(?:\*\*|<<|>>>?|&&|\|\||\?\?|[-+*/%&|^])?=(?![=>])|\+\+|--)"
# rest of the member chain after the access: .a.b[c]
_MEMBER_TAIL = r"(?:\s*\??\.\s*[\w$]+|\[[^\]\n]*\])*"
# ++ / -- / delete applied to the member chain that ends at the access
_PREFIX_MUTATION_RE = re.compile(
    r"(?:\+\+|--|\bdelete\s)\s*[\w$]+(?:\s*\??\.\s*[\w$]+|\[[^\]\n]*\])*\s*$"
)


def extract_read_property(error_message: str) -> Optional[str]:
    for pattern in _READ_PROPERTY_PATTERNS:
        match = pattern.search(error_message)
        if match:
            return match.group(1)
    return None


def add_optional_chaining(code: str, prop: str) -> str:
    """
    Rewrite every ``<expr>.prop`` read in code regions to ``<expr>?.prop``.

    Skipped: accesses that are already optional, accesses inside strings or
    comments, and any access in a chain that is written to
    (``obj.prop = ...``, ``obj.prop.x += 1``, ``++obj.prop``, ``delete obj.prop.x``).
    An optional chain is never a valid assignment target.
    """
    access = re.compile(
        r"(?<=[\w$\])])\s*\.\s*(?=" + re.escape(prop) + r"\b(?!" + _MEMBER_TAIL + _ASSIGNMENT + r"))"
    )
    mask = code_mask(code)

    def _chain(m: re.Match) -> str:
        dot = m.start() + m.group(0).index(".")
        if not mask[dot]:
            return m.group(0)
        line_start = code.rfind("\n", 0, m.start()) + 1
        if _PREFIX_MUTATION_RE.search(code, line_start, m.start()):
            return m.group(0)
        return "?."

    return access.sub(_chain, code)


def fix_runtime_error(error_message: str, code: str, target_file: str = CURRENT_FILE_KEY) -> LocalFixResult:
    prop = extract_read_property(error_message)
    if not prop:
        return no_local_fix()

    new_code = add_optional_chaining(code, prop)
    if new_code == code:
        return no_local_fix()

    return LocalFixResult(
        success=True,
        fixed_files={target_file: new_code},
        description=f"Added optional chaining for '{prop}'",
        fix_type="runtime",
    )


# ---------------------------------------------------------------------------
# Identifier typos
# ---------------------------------------------------------------------------
_NOT_DEFINED_RE = re.compile(r"['\"]?(\w+)['\"]?\s+is not defined", re.I)
_DECLARATION_RE = re.compile(r"\b(?:const|let|var)\s+(\w+)")
_FUNCTION_RE = re.compile(r"\bfunction\s+(\w+)")
_ARRAY_DESTRUCTURE_RE = re.compile(r"\bconst\s+\[(\w+),\s*(\w+)\]")


def extract_defined_variables(code: str) -> list[str]:
    """Identifiers declared with const/let/var/function, plus [a, b] pairs."""
    names: list[str] = []
    names.extend(m.group(1) for m in _DECLARATION_RE.finditer(code))
    names.extend(m.group(1) for m in _FUNCTION_RE.finditer(code))
    for m in _ARRAY_DESTRUCTURE_RE.finditer(code):
        names.extend((m.group(1), m.group(2)))
    return list(dict.fromkeys(names))


def similarity(s1: str, s2: str) -> float:
    """
    Composite identifier similarity in [0, 1].

    50% shared-character-set ratio, 30% length ratio, 20% common-prefix
    bonus; case-insensitive equality scores 0.95. Symmetric in its
    arguments, and similarity(a, a) == 1.
    """
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    lower1, lower2 = s1.lower(), s2.lower()
    if lower1 == lower2:
        return 0.95

    chars1, chars2 = set(lower1), set(lower2)
    char_similarity = len(chars1 & chars2) / len(chars1 | chars2)

    longest = max(len(s1), len(s2))
    length_similarity = 1 - abs(len(s1) - len(s2)) / longest

    prefix = 0
    for a, b in zip(lower1, lower2):
        if a != b:
            break
        prefix += 1
    prefix_bonus = prefix / longest * 0.2

    return char_similarity * 0.5 + length_similarity * 0.3 + prefix_bonus


def best_match(name: str, candidates: list[str], threshold: float = SIMILARITY_THRESHOLD) -> Optional[str]:
    """Highest-scoring candidate above ``threshold``; first wins ties."""
    best, best_score = None, 0.0
    for candidate in candidates:
        if candidate == name:
            continue
        score = similarity(name, candidate)
        if score > best_score and score > threshold:
            best, best_score = candidate, score
    return best


def replace_identifier(code: str, old: str, new: str) -> str:
    """Whole-word replacement of ``old`` by ``new`` in code regions only."""
    mask = code_mask(code)
    return re.sub(
        rf"\b{re.escape(old)}\b",
        lambda m: new if mask[m.start()] else m.group(0),
        code,
    )


def fix_undefined_variable(error_message: str, code: str, target_file: str = CURRENT_FILE_KEY) -> LocalFixResult:
    match = _NOT_DEFINED_RE.search(error_message)
    if not match:
        return no_local_fix()

    undefined = match.group(1)
    if is_known_symbol(undefined):
        return no_local_fix()

    replacement = best_match(undefined, extract_defined_variables(code))
    if not replacement:
        return no_local_fix()

    new_code = replace_identifier(code, undefined, replacement)
    if new_code == code:
        return no_local_fix()

    return LocalFixResult(
        success=True,
        fixed_files={target_file: new_code},
        description=f"Fixed typo: {undefined} → {replacement}",
        fix_type="typo",
    )
