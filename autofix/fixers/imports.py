"""
Import Fixers
=============
Deterministic repairs for import problems in generated modules.

    fix_bare_specifier_multi_file — rewrite "src/..." specifiers in every file
    fix_bare_specifier            — same, for the single file being fixed
    fix_missing_import            — add an import for a known symbol
    fix_missing_react             — add the React default import

Every fixer returns a LocalFixResult holding FULL file contents, or the
no-fix sentinel. None of them mutate their inputs.
"""
import logging
import re
from typing import Mapping, Optional

from autofix.core.constants import CURRENT_FILE_KEY, SOURCE_ROOT
from autofix.fixers.known_symbols import COMMON_IMPORTS, ImportInfo
from autofix.models.fix_result import LocalFixResult, no_local_fix

logger = logging.getLogger(__name__)

_SOURCE_EXT_RE = re.compile(r"\.(tsx?|jsx?)$")

# ---------------------------------------------------------------------------
# Bare specifiers
# ---------------------------------------------------------------------------
_BARE_SPECIFIER_PATTERNS: list[re.Pattern] = [
    re.compile(r"[\"']?(src/[\w./-]+)[\"']?\s*was a bare specifier", re.I),
    re.compile(r"[\"']?(src/[\w./-]+)[\"']?\s*was not remapped", re.I),
    re.compile(r"specifier\s*[\"'](src/[\w./-]+)[\"']", re.I),
    re.compile(r"cannot find module\s*[\"'](src/[\w./-]+)[\"']", re.I),
    re.compile(r"failed to resolve(?: import)?\s*[\"'](src/[\w./-]+)[\"']", re.I),
]


def extract_bare_specifier(error_message: str) -> Optional[str]:
    """Return the "src/..." specifier named in the error, if any."""
    for pattern in _BARE_SPECIFIER_PATTERNS:
        match = pattern.search(error_message)
        if match:
            return match.group(1)
    return None


def strip_source_extension(path: str) -> str:
    return _SOURCE_EXT_RE.sub("", path)


def calculate_relative_import_path(from_file: str, target: str) -> str:
    """
    Relative import specifier from ``from_file`` to ``target``.

    Both paths are project paths; a leading source-root segment is ignored on
    both sides and the target's extension is dropped.

    Examples
    --------
    >>> calculate_relative_import_path("src/components/A.tsx", "src/utils/helpers.ts")
    '../utils/helpers'
    >>> calculate_relative_import_path("src/App.tsx", "src/components/Header.tsx")
    './components/Header'
    """
    from_dir = [p for p in from_file.replace("\\", "/").split("/")[:-1] if p and p != SOURCE_ROOT]

    to_path = target.replace("\\", "/")
    if to_path.startswith(f"{SOURCE_ROOT}/"):
        to_path = to_path[len(SOURCE_ROOT) + 1:]
    to_parts = [p for p in strip_source_extension(to_path).split("/") if p]
    to_dir, to_file = to_parts[:-1], to_parts[-1]

    common = 0
    for a, b in zip(from_dir, to_dir):
        if a != b:
            break
        common += 1

    ascents = len(from_dir) - common
    descent = "/".join(to_dir[common:] + [to_file])
    if ascents == 0:
        return f"./{descent}"
    return "../" * ascents + descent


def _specifier_regex(specifier: str) -> re.Pattern:
    # import/export ... from 'x', and side-effect import 'x'
    return re.compile(
        r"((?:import|export)\s+(?:[\w$,{}\s*]+?\s+from\s*)?)(['\"])"
        + re.escape(specifier)
        + r"\2"
    )


def _rewrite_specifier(content: str, bare: str, replacement: str) -> str:
    candidates = list(dict.fromkeys([bare, strip_source_extension(bare)]))
    for candidate in candidates:
        content = _specifier_regex(candidate).sub(
            lambda m: f"{m.group(1)}{m.group(2)}{replacement}{m.group(2)}", content
        )
    return content


def fix_bare_specifier_multi_file(error_message: str, files: Mapping[str, str]) -> LocalFixResult:
    """
    Rewrite the bare specifier named in the error in every source file.

    Each importing file gets its own relative path, so the same specifier
    becomes "./utils/math" in src/App.tsx and "../utils/math" in
    src/components/Calc.tsx.
    """
    bare = extract_bare_specifier(error_message)
    if not bare:
        return no_local_fix()

    changed: dict[str, str] = {}
    for path, content in files.items():
        if not content or not _SOURCE_EXT_RE.search(path):
            continue
        relative = calculate_relative_import_path(path, bare)
        new_content = _rewrite_specifier(content, bare, relative)
        if new_content != content:
            changed[path] = new_content

    if not changed:
        return no_local_fix()

    logger.info("Rewrote bare specifier %s in %d file(s)", bare, len(changed))
    return LocalFixResult(
        success=True,
        fixed_files=changed,
        description=f"Fixed bare specifier in {len(changed)} file(s)",
        fix_type="bare-specifier",
    )


def fix_bare_specifier(error_message: str, code: str, target_file: str = CURRENT_FILE_KEY) -> LocalFixResult:
    bare = extract_bare_specifier(error_message)
    if not bare:
        return no_local_fix()

    relative = calculate_relative_import_path(target_file, bare)
    new_code = _rewrite_specifier(code, bare, relative)
    if new_code == code:
        return no_local_fix()

    return LocalFixResult(
        success=True,
        fixed_files={target_file: new_code},
        description=f'Fixed import: "{bare}" → "{relative}"',
        fix_type="bare-specifier",
    )


# ---------------------------------------------------------------------------
# Missing imports
# ---------------------------------------------------------------------------
_UNDEFINED_IDENTIFIER_PATTERNS: list[re.Pattern] = [
    re.compile(r"['\"]?(\w+)['\"]?\s+is not defined", re.I),
    re.compile(r"cannot find name\s+['\"]?(\w+)['\"]?", re.I),
    re.compile(r"ReferenceError:\s*['\"]?(\w+)['\"]?\s+is not defined", re.I),
]

# Any import statement, including multi-line named imports and side-effect imports
_IMPORT_STATEMENT_RE = re.compile(
    r"^import\b\s*(?:[^;'\"]*?\bfrom\s*)?['\"][^'\"\n]+['\"];?[ \t]*\n?",
    re.M,
)


def extract_undefined_identifier(error_message: str) -> Optional[str]:
    for pattern in _UNDEFINED_IDENTIFIER_PATTERNS:
        match = pattern.search(error_message)
        if match:
            return match.group(1)
    return None


def is_already_imported(code: str, identifier: str) -> bool:
    """True if ``identifier`` is bound by a named, default or namespace import."""
    name = re.escape(identifier)
    shapes = (
        rf"import\s+(?:type\s+)?(?:[\w$]+\s*,\s*)?\{{[^}}]*\b{name}\b[^}}]*\}}\s*from",
        rf"import\s+{name}\s*(?:,|\s+from)",
        rf"import\s*\*\s*as\s+{name}\s+from",
    )
    return any(re.search(shape, code) for shape in shapes)


def build_import_statement(identifier: str, info: ImportInfo) -> str:
    if info.is_default:
        return f"import {identifier} from '{info.source}';\n"
    if info.is_type:
        return f"import type {{ {identifier} }} from '{info.source}';\n"
    return f"import {{ {identifier} }} from '{info.source}';\n"


def insert_import(code: str, statement: str) -> str:
    """Insert ``statement`` after the last import statement, or at the top."""
    last = None
    for last in _IMPORT_STATEMENT_RE.finditer(code):
        pass
    if last is None:
        return statement + code

    pos = last.end()
    if not code[:pos].endswith("\n"):
        statement = "\n" + statement.rstrip("\n")
    return code[:pos] + statement + code[pos:]


def add_import(code: str, identifier: str, info: ImportInfo) -> str:
    """
    Add an import for ``identifier``.

    Named value imports are merged into an existing ``import { ... } from``
    statement for the same module (keeping its quote style). Default and
    type-only imports always get a statement of their own.
    """
    if not info.is_default and not info.is_type:
        existing = re.compile(
            r"import\s+((?:[\w$]+\s*,\s*)?)\{([^}]*)\}(\s*from\s*)(['\"])"
            + re.escape(info.source)
            + r"\4"
        )
        match = existing.search(code)
        if match:
            names = match.group(2).strip().rstrip(",").strip()
            merged = f"{names}, {identifier}" if names else identifier
            replacement = (
                f"import {match.group(1)}{{ {merged} }}{match.group(3)}"
                f"{match.group(4)}{info.source}{match.group(4)}"
            )
            return code[:match.start()] + replacement + code[match.end():]

    return insert_import(code, build_import_statement(identifier, info))


def fix_missing_import(error_message: str, code: str, target_file: str = CURRENT_FILE_KEY) -> LocalFixResult:
    identifier = extract_undefined_identifier(error_message)
    if not identifier or is_already_imported(code, identifier):
        return no_local_fix()

    info = COMMON_IMPORTS.get(identifier)
    if info is None:
        return no_local_fix()

    return LocalFixResult(
        success=True,
        fixed_files={target_file: add_import(code, identifier, info)},
        description=f"Added import: {identifier} from '{info.source}'",
        fix_type="missing-import",
    )


_REACT_IMPORT_RE = re.compile(r"import\s+React\b|import\s*\*\s*as\s*React\b")


def fix_missing_react(code: str, target_file: str = CURRENT_FILE_KEY) -> LocalFixResult:
    if _REACT_IMPORT_RE.search(code):
        return no_local_fix()

    return LocalFixResult(
        success=True,
        fixed_files={target_file: f"import React from 'react';\n{code}"},
        description="Added React import",
        fix_type="missing-import",
    )
