"""
Proactive Fixes
===============
Project-aware repairs that need the whole file set, not just the failing file.

    fix_undefined_project_export — "X is not defined" where another project
                                   file exports X: import it with the right
                                   relative path (default vs named)
    fix_wrong_relative_module    — "Cannot find module './X'" where exactly one
                                   project file is called X: point the import
                                   at it

Used by the local-proactive strategy after the single-file fixers gave up.
"""
import logging
import posixpath
import re
from typing import Mapping, Optional

from autofix.fixers.imports import (
    calculate_relative_import_path,
    extract_undefined_identifier,
    insert_import,
    is_already_imported,
    strip_source_extension,
)
from autofix.fixers.known_symbols import is_known_symbol
from autofix.models.fix_result import LocalFixResult, no_local_fix

logger = logging.getLogger(__name__)

_SOURCE_FILE_RE = re.compile(r"\.(tsx?|jsx?)$")
_RELATIVE_MODULE_RE = re.compile(r"Cannot find module ['\"](\.{1,2}/[^'\"]+)['\"]", re.I)


def find_export(identifier: str, files: Mapping[str, str], exclude: str) -> Optional[tuple[str, bool]]:
    """
    Locate the project file exporting ``identifier``.

    Returns
    -------
    tuple[str, bool] | None
        (path, is_default_export) for the first exporting file, or None.
    """
    name = re.escape(identifier)
    default_res = (
        re.compile(rf"export\s+default\s+(?:async\s+)?(?:function|class|const)?\s*{name}\b", re.M),
        re.compile(rf"export\s*\{{[^}}]*\b{name}\s+as\s+default\b", re.M),
    )
    named_res = (
        re.compile(rf"export\s+(?:async\s+)?(?:const|let|var|function|class|interface|type|enum)\s+{name}\b", re.M),
        re.compile(rf"export\s*\{{[^}}]*\b{name}\b[^}}]*\}}", re.M),
    )

    for path, content in files.items():
        if path == exclude or not content or not _SOURCE_FILE_RE.search(path):
            continue
        if any(r.search(content) for r in default_res):
            return path, True
        if any(r.search(content) for r in named_res):
            return path, False
    return None


def fix_undefined_project_export(
    error_message: str, target_file: str, files: Mapping[str, str]
) -> LocalFixResult:
    identifier = extract_undefined_identifier(error_message)
    code = files.get(target_file)
    if not identifier or not code or is_known_symbol(identifier):
        return no_local_fix()
    if is_already_imported(code, identifier):
        return no_local_fix()

    found = find_export(identifier, files, exclude=target_file)
    if not found:
        return no_local_fix()

    source_path, is_default = found
    specifier = calculate_relative_import_path(target_file, source_path)
    if is_default:
        statement = f"import {identifier} from '{specifier}';\n"
    else:
        statement = f"import {{ {identifier} }} from '{specifier}';\n"

    logger.info("Importing %s from project file %s", identifier, source_path)
    return LocalFixResult(
        success=True,
        fixed_files={target_file: insert_import(code, statement)},
        description=f"Added import for {identifier} from '{specifier}'",
        fix_type="undefined-var",
    )


def fix_wrong_relative_module(
    error_message: str, target_file: str, files: Mapping[str, str]
) -> LocalFixResult:
    match = _RELATIVE_MODULE_RE.search(error_message)
    code = files.get(target_file)
    if not match or not code:
        return no_local_fix()

    wrong = match.group(1)
    basename = posixpath.basename(strip_source_extension(wrong))
    candidates = [
        path for path in files
        if path != target_file
        and _SOURCE_FILE_RE.search(path)
        and posixpath.basename(strip_source_extension(path)) == basename
    ]
    if len(candidates) != 1:
        return no_local_fix()

    specifier = calculate_relative_import_path(target_file, candidates[0])
    if specifier == wrong:
        return no_local_fix()

    pattern = re.compile(r"(['\"])" + re.escape(wrong) + r"\1")
    new_code = pattern.sub(lambda m: f"{m.group(1)}{specifier}{m.group(1)}", code)
    if new_code == code:
        return no_local_fix()

    return LocalFixResult(
        success=True,
        fixed_files={target_file: new_code},
        description=f'Fixed import path: "{wrong}" → "{specifier}"',
        fix_type="missing-import",
    )


def try_proactive_fix(error_message: str, target_file: str, files: Mapping[str, str]) -> LocalFixResult:
    """Run the project-aware fixers in order; first success wins."""
    for fixer in (fix_undefined_project_export, fix_wrong_relative_module):
        result = fixer(error_message, target_file, files)
        if result.success:
            return result
    return no_local_fix()
