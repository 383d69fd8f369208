"""
Markup Fixers
=============
Attribute spelling and JSX structure repairs.
"""
import re

from autofix.core.constants import CURRENT_FILE_KEY
from autofix.fixers.known_symbols import PROP_TYPOS, VOID_ELEMENTS
from autofix.models.fix_result import LocalFixResult, no_local_fix

_INVALID_PROP_PATTERNS: list[re.Pattern] = [
    re.compile(r"invalid dom property ['\"`](\w+)['\"`]", re.I),
    re.compile(r"react does not recognize the ['\"`](\w+)['\"`] prop", re.I),
]

_RETURN_BLOCK_RE = re.compile(r"return\s*\(\s*\n?([\s\S]*?)\s*\);?[ \t]*$", re.M)


def fix_prop_typo(error_message: str, code: str, target_file: str = CURRENT_FILE_KEY) -> LocalFixResult:
    """Rewrite a mis-cased DOM attribute (onclick=) to its React prop (onClick=)."""
    for pattern in _INVALID_PROP_PATTERNS:
        match = pattern.search(error_message)
        if match:
            break
    else:
        return no_local_fix()

    wrong = match.group(1)
    correct = PROP_TYPOS.get(wrong.lower())
    if not correct or wrong == correct:
        return no_local_fix()

    new_code = re.sub(rf"\b{re.escape(wrong)}\s*=", f"{correct}=", code)
    if new_code == code:
        return no_local_fix()

    return LocalFixResult(
        success=True,
        fixed_files={target_file: new_code},
        description=f"Fixed prop: {wrong} → {correct}",
        fix_type="typo",
    )


def wrap_in_fragment(code: str) -> str:
    """Wrap the markup of the first ``return ( ... );`` block in <>...</>."""
    match = _RETURN_BLOCK_RE.search(code)
    if not match:
        return code

    markup = match.group(1).strip()
    if markup.startswith("<>") or markup.startswith("<Fragment"):
        return code

    wrapped = f"return (\n    <>\n      {markup}\n    </>\n  );"
    return code[:match.start()] + wrapped + code[match.end():]


def self_close_void_elements(code: str) -> tuple[str, list[str]]:
    """
    Rewrite ``<img ...></img>`` style void elements to ``<img ... />``.

    Returns
    -------
    tuple[str, list[str]]
        New code and the tags that were rewritten.
    """
    fixed_tags: list[str] = []
    for tag in VOID_ELEMENTS:
        pattern = re.compile(rf"<({tag})(\s[^>]*)?>\s*</{tag}>", re.I)

        def _self_close(m: re.Match) -> str:
            attrs = (m.group(2) or "").rstrip().rstrip("/").rstrip()
            return f"<{m.group(1)}{attrs} />"

        new_code = pattern.sub(_self_close, code)
        if new_code != code:
            fixed_tags.append(tag)
            code = new_code
    return code, fixed_tags


def fix_jsx_issues(error_message: str, code: str, target_file: str = CURRENT_FILE_KEY) -> LocalFixResult:
    lowered = error_message.lower()

    if "adjacent jsx elements" in lowered or "must be wrapped" in lowered:
        new_code = wrap_in_fragment(code)
        if new_code != code:
            return LocalFixResult(
                success=True,
                fixed_files={target_file: new_code},
                description="Wrapped JSX in Fragment",
                fix_type="jsx",
            )

    new_code, tags = self_close_void_elements(code)
    if tags:
        return LocalFixResult(
            success=True,
            fixed_files={target_file: new_code},
            description="Fixed self-closing " + ", ".join(f"<{t} />" for t in tags),
            fix_type="jsx",
        )

    return no_local_fix()
