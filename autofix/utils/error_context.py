"""
Error Context
=============
Builds the file context that accompanies an error into a language-model prompt.

    parse_stack_trace     — best-effort (file, line, column) from transpiler /
                            runtime messages
    extract_local_imports — project files a module imports relatively
    get_related_files     — the small set of files worth sending alongside
                            the file being fixed
"""
import re
from typing import Any, Dict, List, Mapping

from autofix.core.constants import SOURCE_ROOT

MAX_LOCAL_IMPORTS = 5
MAX_RELATED_CONTEXT_FILES = 6
TYPES_FILE = f"{SOURCE_ROOT}/types.ts"

_TRANSPILE_RE = re.compile(r"(?:Transpilation failed for|failed for)\s+(src/[\w./]+\.tsx?)[\s:]", re.I)
_PAREN_LINE_COL_RE = re.compile(r"\((\d+):(\d+)\)")
_STACK_FRAME_RE = re.compile(r"at\s+(?:\w+\s+\()?([\w./]+\.tsx?):(\d+):(\d+)")
_ERROR_IN_RE = re.compile(r"(?:Error in|at)\s+(src/[\w./]+\.tsx?):?(\d+)?", re.I)
_ABSOLUTE_SRC_RE = re.compile(r"/(src/[\w./]+\.tsx?):")

_LOCAL_IMPORT_RE = re.compile(
    r"import\s+(?:(?:\{[^}]*\}|[^{}\s,]+|\*\s+as\s+\w+)(?:\s*,\s*)?)+\s+from\s+['\"]\.\.?/([^'\"]+)['\"]"
)
_SUBJECT_RE = re.compile(
    r"(?:Element type|'|\")(\w+)(?:'|\")|(?:cannot read|undefined)\s+(?:property\s+)?['\"]?(\w+)['\"]?",
    re.I,
)


def parse_stack_trace(error_message: str) -> Dict[str, Any]:
    """
    Locate the failing file in an error message.

    Returns
    -------
    dict
        Any of "file", "line", "column"; empty when nothing matched.
    """
    match = _TRANSPILE_RE.search(error_message)
    if match:
        location: Dict[str, Any] = {"file": match.group(1)}
        line_col = _PAREN_LINE_COL_RE.search(error_message)
        if line_col:
            location.update(line=int(line_col.group(1)), column=int(line_col.group(2)))
        return location

    match = _STACK_FRAME_RE.search(error_message)
    if match:
        return {"file": match.group(1), "line": int(match.group(2)), "column": int(match.group(3))}

    match = _ERROR_IN_RE.search(error_message)
    if match:
        location = {"file": match.group(1)}
        if match.group(2):
            location["line"] = int(match.group(2))
        return location

    match = _ABSOLUTE_SRC_RE.search(error_message)
    if match:
        location = {"file": match.group(1)}
        line_col = _PAREN_LINE_COL_RE.search(error_message)
        if line_col:
            location.update(line=int(line_col.group(1)), column=int(line_col.group(2)))
        return location

    return {}


def extract_local_imports(code: str, files: Mapping[str, str]) -> List[str]:
    """Project paths of the modules ``code`` imports with ./ or ../ specifiers."""
    imports: List[str] = []
    for match in _LOCAL_IMPORT_RE.finditer(code or ""):
        import_path = match.group(1)
        candidates = (
            f"{SOURCE_ROOT}/{import_path}.tsx",
            f"{SOURCE_ROOT}/{import_path}.ts",
            f"{SOURCE_ROOT}/{import_path}/index.tsx",
            f"{SOURCE_ROOT}/{import_path}/index.ts",
            f"{import_path}.tsx",
            f"{import_path}.ts",
        )
        for candidate in candidates:
            if files.get(candidate):
                imports.append(candidate)
                break
    return list(dict.fromkeys(imports))


def get_related_files(error_message: str, main_code: str, files: Mapping[str, str]) -> Dict[str, str]:
    """
    Select the files to send to the model alongside the file being fixed.

    Order of inclusion:
        1. up to MAX_LOCAL_IMPORTS local imports of the main file
        2. files named after, or exporting, the component in the message
        3. the shared types file, if present
        4. the file named in the stack trace
    """
    related: Dict[str, str] = {}

    for path in extract_local_imports(main_code, files)[:MAX_LOCAL_IMPORTS]:
        related[path] = files[path]

    match = _SUBJECT_RE.search(error_message)
    if match:
        name = match.group(1) or match.group(2)
        for path, content in files.items():
            if path in related or len(related) >= MAX_RELATED_CONTEXT_FILES:
                continue
            if (
                name.lower() in path.lower()
                or f"export const {name}" in content
                or f"export function {name}" in content
                or f"export default {name}" in content
            ):
                related[path] = content

    if files.get(TYPES_FILE) and TYPES_FILE not in related:
        related[TYPES_FILE] = files[TYPES_FILE]

    stack_file = parse_stack_trace(error_message).get("file")
    if stack_file and files.get(stack_file) and stack_file not in related:
        related[stack_file] = files[stack_file]

    return related
