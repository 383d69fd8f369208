"""
Validator Tests
===============
Static checks applied to candidate fixes.

Covers:
    - Code scanner (strings and comments skipped)
    - Bracket / string / comment syntax check
    - Markup tag balance
    - Confidence-scored fix verification
"""
from autofix.models.verification import VerificationOptions
from autofix.utils.code_scanner import CodeScanner, code_mask
from autofix.validation.validator import (
    check_error_addressed,
    check_for_regression,
    does_fix_resolve_error,
    is_code_valid,
    validate_jsx,
    validate_syntax,
    verify_fix,
)


VALID_COMPONENT = """\
import React from 'react';
import { Search } from 'lucide-react';

export default function App() {
  return <div><Search /></div>;
}
"""


# ===========================================================================
# 1. Code Scanner
# ===========================================================================
class TestCodeScanner:

    def test_skips_strings_and_comments(self):
        code = "a('(') // )\n/* ] */ b"
        chars = "".join(c for _, c in CodeScanner(code))
        assert chars == "a() \n b"

    def test_escaped_quote_inside_string(self):
        scanner = CodeScanner("'it\\'s' + x")
        chars = "".join(c for _, c in scanner)
        assert chars == " + x"
        assert scanner.open_string is None

    def test_reports_open_string(self):
        scanner = CodeScanner("const a = 'oops")
        list(scanner)
        assert scanner.open_string == "'"
        assert scanner.open_string_start == 10
        assert scanner.ended_in_open_region

    def test_reports_open_block_comment(self):
        scanner = CodeScanner("a /* never closed")
        list(scanner)
        assert scanner.in_block_comment
        assert scanner.block_comment_start == 2

    def test_code_mask(self):
        mask = code_mask("a'b'c")
        assert list(mask) == [1, 0, 0, 0, 1]


# ===========================================================================
# 2. Syntax
# ===========================================================================
class TestValidateSyntax:

    def test_valid_component(self):
        assert validate_syntax(VALID_COMPONENT).valid
        assert is_code_valid(VALID_COMPONENT)

    def test_brackets_in_strings_and_comments_ignored(self):
        code = "const s = '{[(';\n// )]}\nconst t = `}`;\n/* { */\n"
        assert validate_syntax(code).valid

    def test_missing_closer(self):
        result = validate_syntax("function f() {\n  if (x) {\n")
        assert not result.valid
        assert result.error == "Missing closing '}'"
        assert result.index == 24

    def test_mismatched_closer(self):
        result = validate_syntax("f(a]")
        assert not result.valid
        assert result.error == "Expected ')' but found ']'"
        assert result.index == 3

    def test_unexpected_closer(self):
        result = validate_syntax("a)")
        assert not result.valid
        assert result.error == "Unexpected ')'"

    def test_unterminated_string(self):
        result = validate_syntax("const a = 'oops;")
        assert not result.valid
        assert result.error == "Unterminated string"
        assert result.index == 10

    def test_unterminated_block_comment(self):
        result = validate_syntax("const a = 1; /* trailing")
        assert not result.valid
        assert result.error == "Unterminated block comment"

    def test_empty_code_is_valid(self):
        assert validate_syntax("").valid


# ===========================================================================
# 3. Markup
# ===========================================================================
class TestValidateJsx:

    def test_balanced_tags(self):
        assert validate_jsx("<div><span>hi</span><Search /></div>").valid

    def test_void_elements_ignored(self):
        assert validate_jsx("<div><img src='a.png'><br></div>").valid

    def test_unclosed_tag(self):
        result = validate_jsx("<div><span>hi</div>")
        assert not result.valid
        assert result.error == "Unexpected closing tag </div>"

    def test_never_closed(self):
        result = validate_jsx("<section><p>text</p>")
        assert not result.valid
        assert result.error == "Unclosed tag <section>"


# ===========================================================================
# 4. Verification
# ===========================================================================
class TestCheckErrorAddressed:

    def test_undefined_identifier_imported(self):
        result = check_error_addressed("Search is not defined", "", VALID_COMPONENT)
        assert result["addressed"] is True

    def test_undefined_identifier_still_missing(self):
        result = check_error_addressed("Search is not defined", "", "export default 1;")
        assert result["addressed"] is False
        assert result["suggestion"] == "Add import for 'Search'"

    def test_bare_specifier_still_present(self):
        fixed = "import { add } from 'src/utils/math';"
        result = check_error_addressed('"src/utils/math" was a bare specifier', fixed, fixed)
        assert result["addressed"] is False
        assert result["suggestion"] == "Convert to relative path"

    def test_bare_specifier_rewritten(self):
        fixed = "import { add } from '../utils/math';"
        assert does_fix_resolve_error('"src/utils/math" was a bare specifier', "", fixed)

    def test_other_errors_need_a_change(self):
        assert check_error_addressed("Boom", "a", "b")["addressed"] is True
        assert check_error_addressed("Boom", "a", "a")["reason"] == "Code appears unchanged"


class TestRegression:

    def test_exports_reduced(self):
        original = "export const a = 1;\nexport const b = 2;\n"
        fixed = "export const a = 1;\nconst b = 2;\n"
        assert check_for_regression(original, fixed) == "Exports reduced from 2 to 1"

    def test_code_shortened(self):
        assert check_for_regression("x" * 100, "x" * 20) == "Code shortened by 80%"

    def test_return_removed(self):
        original = "function A() { return (<div />); }"
        fixed = "function A() { const node = <div />; }"
        assert check_for_regression(original, fixed) == "Return statement may have been removed"

    def test_no_original(self):
        assert check_for_regression(None, "anything") is None


class TestVerifyFix:

    def test_clean_fix_is_high_confidence(self):
        result = verify_fix(VerificationOptions(
            original_error="ReferenceError: Search is not defined",
            original_files={"src/App.tsx": "export default function App() {}"},
            fixed_files={"src/App.tsx": VALID_COMPONENT},
            changed_files=["src/App.tsx"],
        ))
        assert result.is_valid
        assert result.confidence == "high"
        assert result.issues == []

    def test_missing_file_is_an_error(self):
        result = verify_fix(VerificationOptions(
            original_error="Boom",
            fixed_files={},
            changed_files=["src/App.tsx"],
        ))
        assert not result.is_valid
        assert result.issues[0].type == "error"

    def test_syntax_error_reports_line(self):
        broken = "export default function App() {\n  return (\n    <div />\n  ;\n}\n" + "// pad " * 5
        result = verify_fix(VerificationOptions(
            original_error="Boom",
            original_files={"src/App.tsx": "old"},
            fixed_files={"src/App.tsx": broken},
            changed_files=["src/App.tsx"],
        ))
        assert not result.is_valid
        syntax_issues = [i for i in result.issues if i.message.startswith("Syntax error")]
        assert len(syntax_issues) == 1
        assert syntax_issues[0].line == 5

    def test_unaddressed_error_lowers_confidence(self):
        code = "export default function App() {\n  return <div>nothing changed here</div>;\n}\n"
        result = verify_fix(VerificationOptions(
            original_error="Search is not defined",
            original_files={"src/App.tsx": code},
            fixed_files={"src/App.tsx": code},
            changed_files=["src/App.tsx"],
        ))
        assert result.is_valid
        assert result.confidence == "medium"
        assert result.suggestions == ["Add import for 'Search'"]

    def test_strict_mode_flags_regression(self):
        original = "export const a = 1;\nexport const b = 2;\n" + "// padding line\n" * 4
        fixed = "export const a = 1;\nconst b = 2;\n" + "// padding line\n" * 4
        result = verify_fix(VerificationOptions(
            original_error="Boom",
            original_files={"src/a.ts": original},
            fixed_files={"src/a.ts": fixed},
            changed_files=["src/a.ts"],
            strict_mode=True,
        ))
        assert any("Potential regression" in i.message for i in result.issues)
        assert result.confidence == "medium"
