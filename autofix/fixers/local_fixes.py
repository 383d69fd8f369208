"""
Local Fixes
===========
Entry point for the deterministic (non-AI) fixers.

Fix families are tried in a FIXED order and the first success wins:

    1. bare specifier (multi-file first, then single file)
    2. missing import from the known-symbol table
    3. attribute / prop spelling
    4. missing React default import
    5. JSX: fragment wrap, self-closing void elements
    6. bracket balance
    7. optional chaining for "cannot read property"
    8. identifier typo

Contract:
    - PURE: same input → same output, inputs never mutated.
    - Results carry FULL file contents, never patches.
"""
import logging
from typing import Mapping, Optional

from autofix.core.constants import CURRENT_FILE_KEY
from autofix.fixers.brackets import fix_missing_closing
from autofix.fixers.imports import (
    fix_bare_specifier,
    fix_bare_specifier_multi_file,
    fix_missing_import,
    fix_missing_react,
)
from autofix.fixers.markup import fix_jsx_issues, fix_prop_typo
from autofix.fixers.runtime import fix_runtime_error, fix_undefined_variable
from autofix.models.fix_result import LocalFixResult, no_local_fix

logger = logging.getLogger(__name__)

# Fixers tried after the import and React special cases
_SINGLE_FILE_FIXERS = (
    ("jsx", fix_jsx_issues),
    ("brackets", fix_missing_closing),
    ("optional-chaining", fix_runtime_error),
    ("identifier-typo", fix_undefined_variable),
)


def try_local_fix(
    error_message: str,
    code: str,
    files: Optional[Mapping[str, str]] = None,
    target_file: str = CURRENT_FILE_KEY,
) -> LocalFixResult:
    """
    Try every local fixer in order.

    Parameters
    ----------
    error_message : str
        Raw error message.
    code : str
        Content of the file being fixed.
    files : Mapping[str, str], optional
        Whole project, enables the multi-file bare-specifier fix.
    target_file : str
        Key used for the fixed file in single-file results.

    Returns
    -------
    LocalFixResult
        First successful fix, or the no-fix sentinel.
    """
    error_message = error_message or ""
    code = code or ""
    lowered = error_message.lower()

    if "bare specifier" in lowered or "was not remapped" in lowered:
        if files:
            result = fix_bare_specifier_multi_file(error_message, files)
            if result.success:
                return result
        result = fix_bare_specifier(error_message, code, target_file)
        if result.success:
            return result

    result = fix_missing_import(error_message, code, target_file)
    if result.success:
        return result

    result = fix_prop_typo(error_message, code, target_file)
    if result.success:
        return result

    if "react is not defined" in lowered:
        result = fix_missing_react(code, target_file)
        if result.success:
            return result

    for name, fixer in _SINGLE_FILE_FIXERS:
        result = fixer(error_message, code, target_file)
        if result.success:
            logger.debug("Local fixer %s applied: %s", name, result.description)
            return result

    return no_local_fix()
