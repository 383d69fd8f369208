"""
LLM Prompts
===========
Centralised store for the fix engine's system instruction and prompt builders.

Prompt Design Rules:
    - "Fix only the reported error" is a hard constraint in every prompt
    - No refactoring of unrelated code
    - Output is the COMPLETE file, raw code only, no explanations

Prompt Levels (one per AI strategy):
    - quick       — error + analyzer hint + the file (truncated)
    - full        — error details, location, recent console errors, project
                    file list, related files and category-specific hints
    - iterative   — quick prompt plus the numbered failures of earlier rounds
    - regenerate  — imports + returned markup + a few related files; asks
                    for the whole component again
"""
import logging
import re
from typing import Dict, List, Mapping, Optional, Sequence

from autofix.models.parsed_error import ParsedError
from autofix.utils.error_context import get_related_files, parse_stack_trace

logger = logging.getLogger(__name__)

QUICK_CODE_LIMIT = 10000
REGEN_MARKUP_LIMIT = 3000
REGEN_RELATED_LIMIT = 2000
REGEN_RELATED_FILES = 3
RECENT_LOG_COUNT = 10


# ---------------------------------------------------------------------------
# System Instruction
# ---------------------------------------------------------------------------
SYSTEM_INSTRUCTION = (
    "You are an expert React/TypeScript developer repairing generated code.\n"
    "\n"
    "HARD RULES:\n"
    "1. Fix ONLY the reported error.\n"
    "2. Do NOT refactor, rename, or reorganise unrelated code.\n"
    "3. Keep the existing code style and comments.\n"
    "4. Return the COMPLETE file, not a diff or a fragment.\n"
    "5. Return raw code only. No explanations, no markdown fences."
)


# ---------------------------------------------------------------------------
# Category hints
# ---------------------------------------------------------------------------
CATEGORY_HINTS: Dict[str, str] = {
    "import": (
        "- Check if the import source exists and is correct\n"
        "- For motion animations, use 'motion/react' (not 'framer-motion')\n"
        "- For React Router v7, imports are from 'react-router' (not 'react-router-dom')\n"
        "- Lucide icons: import from 'lucide-react' (named exports)\n"
        "- Verify named vs default exports match\n"
        "- For bare specifiers like 'src/...', convert to relative paths ('./...')"
    ),
    "syntax": (
        "- Check for missing brackets, parentheses, or semicolons\n"
        "- Verify JSX syntax is valid\n"
        "- Ensure template literals are properly closed\n"
        "- Check for missing commas in object/array literals"
    ),
    "jsx": (
        "- Ensure all JSX tags are properly closed\n"
        "- Self-closing tags (img, input, br, hr) should use />\n"
        "- Adjacent JSX elements must be wrapped in a parent or Fragment\n"
        "- Check for unclosed JSX expressions {}"
    ),
    "type": (
        "- Check type definitions in types.ts if available\n"
        "- Ensure props match expected types\n"
        "- Verify generic type parameters\n"
        "- Add optional chaining (?.) for possibly undefined values"
    ),
    "runtime": (
        "- Add null checks or optional chaining (?.) for object access\n"
        "- Verify async operations are properly awaited\n"
        "- Ensure state is initialized before use\n"
        "- Check for proper array/iterable handling"
    ),
    "react": (
        "- Verify hook rules (only call in component body, not in conditions)\n"
        "- Add unique key props for list items (use item.id or index as fallback)\n"
        "- Ensure proper event handler binding\n"
        "- Use useEffect for side effects, not during render"
    ),
    "async": (
        "- Add 'async' keyword before function that uses 'await'\n"
        "- Ensure Promise chains are properly handled\n"
        "- Use try-catch for async error handling"
    ),
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
_COMPONENT_NAME_RE = re.compile(r"export\s+(?:default\s+)?(?:function|const)\s+(\w+)")
_IMPORT_LINE_RE = re.compile(r"^import\s+.*$", re.M)
_RETURN_MARKUP_RE = re.compile(r"return\s*\(\s*([\s\S]*?)\s*\);?\s*(?:}|$)")


def extract_component_name(code: str) -> Optional[str]:
    match = _COMPONENT_NAME_RE.search(code or "")
    return match.group(1) if match else None


def get_recent_logs_context(logs: Optional[Sequence[Mapping[str, str]]]) -> str:
    """
    Console errors and warnings from the last RECENT_LOG_COUNT log entries.

    Each entry is a mapping with "type" (log / warn / error / ...) and
    "message" keys.
    """
    recent = list(logs or [])[-RECENT_LOG_COUNT:]
    lines = [
        f"[{entry.get('type', '').upper()}] {entry.get('message', '')}"
        for entry in recent
        if entry.get("type") in ("error", "warn")
    ]
    if not lines:
        return ""
    body = "\n".join(lines)
    return f"## Recent Console Logs\n```\n{body}\n```\n"


def _hint_line(parsed: Optional[ParsedError]) -> str:
    if parsed and parsed.suggested_fix:
        return f"HINT: {parsed.suggested_fix}\n"
    return ""


# ---------------------------------------------------------------------------
# Prompt Builders
# ---------------------------------------------------------------------------
def build_quick_prompt(error_message: str, code: str, parsed: Optional[ParsedError] = None) -> str:
    """Short prompt: error, analyzer hint and the (truncated) file."""
    category = parsed.category if parsed else "unknown"
    return (
        f"Fix this {category} error in React/TypeScript code.\n\n"
        f"ERROR: {error_message}\n"
        f"{_hint_line(parsed)}\n"
        f"CODE:\n```tsx\n{code[:QUICK_CODE_LIMIT]}\n```\n\n"
        "Return ONLY the complete fixed code. No explanations."
    )


def build_full_prompt(
    error_message: str,
    target_file: str,
    code: str,
    files: Mapping[str, str],
    parsed: ParsedError,
    tech_stack_context: str = "",
    logs: Optional[Sequence[Mapping[str, str]]] = None,
) -> str:
    """
    Full-context prompt for the ``ai-full`` strategy.

    Parameters
    ----------
    error_message : str
        The error as reported.
    target_file : str
        Path of the file being fixed.
    code : str
        Current content of ``target_file``.
    files : Mapping[str, str]
        Whole project, used for the file list and related files.
    parsed : ParsedError
        Analyzer output for ``error_message``.
    tech_stack_context : str
        Free-form project instructions prepended to the prompt.
    logs : sequence of mappings, optional
        Recent console entries ({"type", "message"}).

    Returns
    -------
    str
        Prompt text.
    """
    related = get_related_files(error_message, code, files)
    related_entries = [(path, content) for path, content in related.items() if path != target_file]

    related_section = ""
    if related_entries:
        max_size = 1500 if len(related_entries) > 3 else 2500
        parts = ["\n## Related Files (may contain relevant code)"]
        for path, content in related_entries:
            if len(content) > max_size:
                content = content[:max_size] + "\n// ... truncated"
            parts.append(f"### {path}\n```tsx\n{content}\n```")
        related_section = "\n".join(parts) + "\n"

    suggested_section = ""
    if parsed.suggested_fix:
        suggested_section = f"\n## Suggested Fix\n{parsed.suggested_fix}"
        if parsed.identifier:
            suggested_section += f" (identifier: `{parsed.identifier}`)"
        suggested_section += "\n"

    location = target_file
    stack = parse_stack_trace(error_message)
    if stack.get("line"):
        location += f":{stack['line']}"
        if stack.get("column"):
            location += f":{stack['column']}"

    hint = CATEGORY_HINTS.get(parsed.category, "")
    hint_section = f"## Category-Specific Hints\n{hint}\n" if hint else ""

    return (
        "You are an expert React/TypeScript developer. Fix the following runtime error.\n\n"
        f"{tech_stack_context}\n\n"
        "## Error Information\n"
        f"- **Error Message**: {error_message}\n"
        f"- **Error Category**: {parsed.category}\n"
        f"- **Priority**: {parsed.priority}/5\n"
        f"- **Location**: {location}\n"
        f"{suggested_section}\n"
        f"{get_recent_logs_context(logs)}\n"
        "## Available Files in Project\n"
        f"{', '.join(files.keys())}\n\n"
        f"{related_section}\n"
        f"## File to Fix ({target_file})\n"
        f"```tsx\n{code}\n```\n\n"
        "## Fix Guidelines\n"
        "1. ONLY fix the specific error - do not refactor unrelated code\n"
        "2. Maintain the existing code style and patterns\n"
        "3. If a component/function is undefined, add the appropriate import\n"
        "4. For missing exports, check related files for correct export names\n"
        "5. Use optional chaining (?.) for potentially null/undefined values\n"
        "6. Pay attention to special characters (escape apostrophes in strings)\n\n"
        f"{hint_section}\n"
        "## Required Output Format\n"
        f"Return ONLY the complete fixed {target_file} code.\n"
        "- No explanations or comments about the fix\n"
        "- No markdown code blocks or backticks\n"
        "- Just valid TypeScript/TSX code that can directly replace the file"
    )


def build_iterative_prompt(error_message: str, code: str, feedback: Sequence[str]) -> str:
    """Prompt for one ``ai-iterative`` round, listing why earlier rounds failed."""
    prompt = f"Fix this error in React/TypeScript code.\n\nERROR: {error_message}\n\n"

    if feedback:
        numbered = "\n".join(f"{i}. {reason}" for i, reason in enumerate(feedback, start=1))
        prompt += f"PREVIOUS ATTEMPTS FAILED:\n{numbered}\n\nTry a DIFFERENT approach.\n\n"

    prompt += f"CODE:\n```tsx\n{code}\n```\n\nReturn ONLY the complete fixed code."
    return prompt


def build_regeneration_prompt(
    error_message: str,
    code: str,
    component_name: Optional[str],
    related_files: Mapping[str, str],
) -> str:
    """Ask for the whole component again from its imports and returned markup."""
    imports: List[str] = _IMPORT_LINE_RE.findall(code)
    imports_block = "\n".join(imports)
    markup_match = _RETURN_MARKUP_RE.search(code)
    markup = markup_match.group(1) if markup_match else ""

    related = ""
    if related_files:
        related = "\n\nRELATED FILES:\n"
        for path, content in list(related_files.items())[:REGEN_RELATED_FILES]:
            related += f"\n// {path}\n{content[:REGEN_RELATED_LIMIT]}\n"

    return (
        "Regenerate this React component fixing all errors.\n\n"
        f"ERROR: {error_message}\n"
        f"COMPONENT: {component_name or 'App'}\n\n"
        f"IMPORTS:\n{imports_block}\n\n"
        f"JSX:\n{markup[:REGEN_MARKUP_LIMIT]}\n"
        f"{related}\n\n"
        "Return ONLY the complete fixed component."
    )
