"""
Local Fixer Tests
=================
Deterministic (non-AI) repairs. No network, no LLM.

Covers:
    - Bare specifier rewriting (single file and project wide)
    - Relative import path computation
    - Missing import insertion and merging
    - Bracket balance (append only, idempotent)
    - Optional chaining and identifier typos
    - Attribute spelling and JSX structure
    - Fixed fixer order in try_local_fix
    - Project-aware (proactive) fixes
"""
from autofix.fixers.brackets import find_missing_closers, fix_missing_closing
from autofix.fixers.imports import (
    add_import,
    calculate_relative_import_path,
    extract_bare_specifier,
    fix_bare_specifier,
    fix_bare_specifier_multi_file,
    fix_missing_import,
    fix_missing_react,
    is_already_imported,
)
from autofix.fixers.known_symbols import COMMON_IMPORTS
from autofix.fixers.local_fixes import try_local_fix
from autofix.fixers.markup import fix_jsx_issues, fix_prop_typo, wrap_in_fragment
from autofix.fixers.proactive import (
    find_export,
    fix_undefined_project_export,
    fix_wrong_relative_module,
    try_proactive_fix,
)
from autofix.fixers.runtime import (
    add_optional_chaining,
    best_match,
    extract_defined_variables,
    fix_runtime_error,
    fix_undefined_variable,
    similarity,
)


BARE_ERROR = 'The specifier "src/utils/math" was a bare specifier, but was not remapped to anything.'

APP_WITH_REACT = """\
import React from 'react';

export default function App() {
  return <div><Search /></div>;
}
"""

UNCLOSED = """\
export default function App() {
  const handle = () => {
    if (ready) {
      run();
"""


# ===========================================================================
# 1. Relative Paths
# ===========================================================================
class TestRelativeImportPath:

    def test_nested_file_climbs_to_root(self):
        assert calculate_relative_import_path("src/components/forms/Calc.tsx", "src/utils/math") == "../../utils/math"

    def test_root_file(self):
        assert calculate_relative_import_path("src/App.tsx", "src/components/Header.tsx") == "./components/Header"

    def test_sibling(self):
        assert calculate_relative_import_path("src/components/A.tsx", "src/components/B.tsx") == "./B"

    def test_extension_dropped(self):
        assert calculate_relative_import_path("src/components/A.tsx", "src/utils/helpers.ts") == "../utils/helpers"


# ===========================================================================
# 2. Bare Specifiers
# ===========================================================================
class TestBareSpecifier:

    def test_extract_variants(self):
        assert extract_bare_specifier(BARE_ERROR) == "src/utils/math"
        assert extract_bare_specifier("Cannot find module 'src/lib/api'") == "src/lib/api"
        assert extract_bare_specifier("Failed to resolve import \"src/hooks/useX\"") == "src/hooks/useX"
        assert extract_bare_specifier("ReferenceError: x is not defined") is None

    def test_single_file(self):
        code = "import { add } from 'src/utils/math';\n"
        result = fix_bare_specifier(BARE_ERROR, code, "src/components/forms/Calc.tsx")
        assert result.success
        assert result.fix_type == "bare-specifier"
        assert result.fixed_files == {
            "src/components/forms/Calc.tsx": "import { add } from '../../utils/math';\n",
        }

    def test_single_file_keeps_quote_style(self):
        code = 'import math from "src/utils/math";\n'
        result = fix_bare_specifier(BARE_ERROR, code, "src/App.tsx")
        assert result.fixed_files["src/App.tsx"] == 'import math from "./utils/math";\n'

    def test_single_file_no_occurrence(self):
        result = fix_bare_specifier(BARE_ERROR, "const a = 1;", "src/App.tsx")
        assert not result.success
        assert result.fix_type == "none"

    def test_multi_file_rewrites_each_importer(self):
        files = {
            "src/App.tsx": "import { add } from 'src/utils/math';\n",
            "src/components/Calc.tsx": "import { add } from 'src/utils/math';\n",
            "src/utils/math.ts": "export const add = (a: number, b: number) => a + b;\n",
            "src/styles.css": "/* src/utils/math */\n",
        }
        snapshot = dict(files)
        result = fix_bare_specifier_multi_file(BARE_ERROR, files)
        assert result.success
        assert result.description == "Fixed bare specifier in 2 file(s)"
        assert result.fixed_files == {
            "src/App.tsx": "import { add } from './utils/math';\n",
            "src/components/Calc.tsx": "import { add } from '../utils/math';\n",
        }
        assert files == snapshot

    def test_multi_file_nothing_to_rewrite(self):
        result = fix_bare_specifier_multi_file(BARE_ERROR, {"src/App.tsx": "const a = 1;"})
        assert not result.success


# ===========================================================================
# 3. Missing Imports
# ===========================================================================
class TestMissingImport:

    def test_added_after_last_import(self):
        result = fix_missing_import("ReferenceError: Search is not defined", APP_WITH_REACT, "src/App.tsx")
        assert result.success
        assert result.fix_type == "missing-import"
        assert result.description == "Added import: Search from 'lucide-react'"
        assert result.fixed_files["src/App.tsx"].startswith(
            "import React from 'react';\nimport { Search } from 'lucide-react';\n\nexport default"
        )

    def test_merged_into_existing_named_import(self):
        code = "import { X } from 'lucide-react';\n\nconst a = <Search />;\n"
        result = fix_missing_import("Search is not defined", code)
        assert result.fixed_files["current"].startswith("import { X, Search } from 'lucide-react';")

    def test_prepended_without_imports(self):
        result = fix_missing_import("useState is not defined", "const [a, b] = useState(0);\n")
        assert result.fixed_files["current"] == "import { useState } from 'react';\nconst [a, b] = useState(0);\n"

    def test_type_import_gets_own_statement(self):
        code = "import { useState } from 'react';\nconst C: FC = () => null;\n"
        result = fix_missing_import("Cannot find name 'FC'", code)
        assert "import type { FC } from 'react';\n" in result.fixed_files["current"]
        assert "import { useState } from 'react';" in result.fixed_files["current"]

    def test_already_imported(self):
        code = "import { Search } from 'lucide-react';\n"
        assert is_already_imported(code, "Search")
        assert not fix_missing_import("Search is not defined", code).success

    def test_already_imported_shapes(self):
        assert is_already_imported("import React, { useState } from 'react';", "useState")
        assert is_already_imported("import React from 'react';", "React")
        assert is_already_imported("import * as React from 'react';", "React")
        assert not is_already_imported("import { SearchIcon } from 'x';", "Search")

    def test_unknown_identifier(self):
        assert not fix_missing_import("Widget is not defined", APP_WITH_REACT).success

    def test_default_import(self):
        code = add_import("const x = 1;\n", "axios", COMMON_IMPORTS["axios"])
        assert code == "import axios from 'axios';\nconst x = 1;\n"

    def test_missing_react(self):
        result = fix_missing_react("const a = <div />;\n", "src/App.tsx")
        assert result.fixed_files["src/App.tsx"] == "import React from 'react';\nconst a = <div />;\n"
        assert not fix_missing_react(APP_WITH_REACT).success


# ===========================================================================
# 4. Brackets
# ===========================================================================
class TestBrackets:

    def test_appends_missing_braces(self):
        result = fix_missing_closing("SyntaxError: Unexpected end of input", UNCLOSED, "src/App.tsx")
        assert result.success
        assert result.fix_type == "syntax"
        assert result.description == "Added: 3 closing }"
        assert result.fixed_files["src/App.tsx"] == UNCLOSED + "}}}"

    def test_idempotent(self):
        fixed = fix_missing_closing("", UNCLOSED).fixed_files["current"]
        assert find_missing_closers(fixed) == ""
        assert not fix_missing_closing("", fixed).success

    def test_innermost_first(self):
        closers = find_missing_closers("foo(() => {\n  bar([1, 2")
        assert closers == "])})"

    def test_mixed_description(self):
        result = fix_missing_closing("", "foo(() => {\n  bar([1, 2")
        assert result.description == "Added: 2 closing ), 1 closing }, 1 closing ]"

    def test_trailing_line_comment(self):
        code = "function f() {\n  return 1; // done"
        result = fix_missing_closing("", code)
        assert result.fixed_files["current"] == code + "\n}"

    def test_open_string_not_fixable(self):
        assert find_missing_closers("const a = '{") is None
        assert not fix_missing_closing("", "const a = '{").success

    def test_balanced_not_fixable(self):
        assert not fix_missing_closing("", APP_WITH_REACT).success


# ===========================================================================
# 5. Runtime
# ===========================================================================
class TestOptionalChaining:

    def test_reads_are_chained(self):
        code = "const n = user.profile.name;\nuser.name = 'x';\nconst s = 'user.name';\n"
        fixed = add_optional_chaining(code, "name")
        assert "user.profile?.name;" in fixed
        assert "user.name = 'x';" in fixed
        assert "'user.name'" in fixed

    def test_written_chains_untouched(self):
        code = (
            "user.profile.name = 'x';\n"
            "user.profile['tags'] += 1;\n"
            "user.profile.count++;\n"
            "++user.profile;\n"
            "--user.profile.count;\n"
            "delete user.profile.name;\n"
        )
        assert add_optional_chaining(code, "profile") == code

    def test_reads_next_to_writes(self):
        code = "user.profile.name = 'x';\nconst same = user.profile.name === 'x';\n"
        fixed = add_optional_chaining(code, "profile")
        assert fixed == "user.profile.name = 'x';\nconst same = user?.profile.name === 'x';\n"

    def test_fix_runtime_error_skips_assignment_only_code(self):
        code = "user.profile.name = 'x';\n++user.profile;\n"
        result = fix_runtime_error("TypeError: Cannot read properties of undefined (reading 'profile')", code)
        assert not result.success

    def test_already_optional_untouched(self):
        code = "const n = user?.name;"
        assert add_optional_chaining(code, "name") == code

    def test_fix_runtime_error(self):
        code = "const total = cart.items.length;\n"
        result = fix_runtime_error(
            "TypeError: Cannot read properties of undefined (reading 'length')", code, "src/Cart.tsx"
        )
        assert result.success
        assert result.fix_type == "runtime"
        assert result.fixed_files["src/Cart.tsx"] == "const total = cart.items?.length;\n"

    def test_no_property_in_message(self):
        assert not fix_runtime_error("TypeError: boom", "a.b").success


class TestSimilarity:

    def test_identity_and_symmetry(self):
        assert similarity("userName", "userName") == 1.0
        assert similarity("usrName", "userName") == similarity("userName", "usrName")
        assert similarity("count", "userName") == similarity("userName", "count")

    def test_case_insensitive_match(self):
        assert similarity("username", "userName") == 0.95

    def test_empty(self):
        assert similarity("", "a") == 0.0

    def test_best_match(self):
        assert best_match("usrName", ["count", "userName"]) == "userName"
        assert best_match("zzz", ["userName"]) is None

    def test_extract_defined_variables(self):
        code = "const a = 1;\nlet b;\nfunction go() {}\nconst [value, setValue] = useState(0);\n"
        assert extract_defined_variables(code) == ["a", "b", "go", "value", "setValue"]


class TestUndefinedVariable:

    def test_typo_replaced_in_code_only(self):
        code = "const userName = 'a';\nconst label = 'usrName';\nconsole.log(usrName);\n"
        result = fix_undefined_variable("ReferenceError: usrName is not defined", code)
        assert result.success
        assert result.fix_type == "typo"
        assert result.description == "Fixed typo: usrName → userName"
        assert result.fixed_files["current"] == (
            "const userName = 'a';\nconst label = 'usrName';\nconsole.log(userName);\n"
        )

    def test_known_symbol_is_left_to_import_fixer(self):
        code = "const useStat = 1;\nuseState(0);\n"
        assert not fix_undefined_variable("useState is not defined", code).success


# ===========================================================================
# 6. Markup
# ===========================================================================
class TestMarkup:

    def test_prop_typo(self):
        code = "<button onclick={go}>Go</button>"
        result = fix_prop_typo("Warning: Invalid DOM property `onclick`. Did you mean `onClick`?", code)
        assert result.success
        assert result.fixed_files["current"] == "<button onClick={go}>Go</button>"
        assert result.description == "Fixed prop: onclick → onClick"

    def test_prop_already_correct(self):
        assert not fix_prop_typo("Invalid DOM property `onClick`", "<a onClick={x} />").success

    def test_wrap_in_fragment(self):
        code = (
            "export default function App() {\n"
            "  return (\n"
            "    <h1>Title</h1>\n"
            "    <p>Body</p>\n"
            "  );\n"
            "}\n"
        )
        result = fix_jsx_issues("Adjacent JSX elements must be wrapped in an enclosing tag", code)
        assert result.success
        assert result.description == "Wrapped JSX in Fragment"
        fixed = result.fixed_files["current"]
        assert "<>\n      <h1>Title</h1>" in fixed
        assert "</>" in fixed

    def test_fragment_not_doubled(self):
        code = "function A() {\n  return (\n    <>\n      <b />\n    </>\n  );\n}\n"
        assert wrap_in_fragment(code) == code

    def test_self_close_void_elements(self):
        result = fix_jsx_issues("Boom", "<div><img src='a.png'></img></div>")
        assert result.success
        assert result.fixed_files["current"] == "<div><img src='a.png' /></div>"
        assert result.description == "Fixed self-closing <img />"


# ===========================================================================
# 7. Fixer Order
# ===========================================================================
class TestTryLocalFix:

    def test_bare_specifier_uses_project_files(self):
        files = {
            "src/App.tsx": "import { add } from 'src/utils/math';\n",
            "src/components/Calc.tsx": "import { add } from 'src/utils/math';\n",
        }
        result = try_local_fix(BARE_ERROR, files["src/App.tsx"], files=files, target_file="src/App.tsx")
        assert result.success
        assert set(result.fixed_files) == set(files)

    def test_bare_specifier_without_files(self):
        code = "import { add } from 'src/utils/math';\n"
        result = try_local_fix(BARE_ERROR, code, target_file="src/components/forms/Calc.tsx")
        assert "'../../utils/math'" in result.fixed_files["src/components/forms/Calc.tsx"]

    def test_missing_import_before_typo(self):
        code = "const Serch = 1;\nconst a = <Search />;\n"
        result = try_local_fix("ReferenceError: Search is not defined", code)
        assert result.fix_type == "missing-import"

    def test_react_default_import(self):
        result = try_local_fix("ReferenceError: React is not defined", "const a = <div />;\n")
        assert result.fixed_files["current"].startswith("import React from 'react';\n")

    def test_brackets_for_syntax_error(self):
        result = try_local_fix("SyntaxError: Unexpected end of input", UNCLOSED, target_file="src/App.tsx")
        assert result.description == "Added: 3 closing }"

    def test_nothing_applies(self):
        result = try_local_fix("Something weird happened", APP_WITH_REACT)
        assert not result.success
        assert result.fix_type == "none"
        assert result.fixed_files == {}


# ===========================================================================
# 8. Proactive
# ===========================================================================
class TestProactive:

    FILES = {
        "src/App.tsx": (
            "import React from 'react';\n"
            "import Header from './Header';\n"
            "\n"
            "export default function App() {\n"
            "  return <div><Header /><PriceTag /></div>;\n"
            "}\n"
        ),
        "src/components/PriceTag.tsx": "export default function PriceTag() {\n  return <span>1</span>;\n}\n",
        "src/components/Header.tsx": "export default function Header() {\n  return <header />;\n}\n",
        "src/utils/format.ts": "export function formatPrice(v: number) {\n  return v.toFixed(2);\n}\n",
        "src/components/Cart.tsx": "export function Cart() {\n  return formatPrice(1);\n}\n",
    }

    def test_find_export(self):
        assert find_export("PriceTag", self.FILES, exclude="src/App.tsx") == ("src/components/PriceTag.tsx", True)
        assert find_export("formatPrice", self.FILES, exclude="src/App.tsx") == ("src/utils/format.ts", False)
        assert find_export("Nothing", self.FILES, exclude="src/App.tsx") is None

    def test_imports_default_export(self):
        result = fix_undefined_project_export(
            "ReferenceError: PriceTag is not defined", "src/App.tsx", self.FILES
        )
        assert result.success
        assert result.fix_type == "undefined-var"
        assert "import PriceTag from './components/PriceTag';\n" in result.fixed_files["src/App.tsx"]

    def test_imports_named_export(self):
        result = fix_undefined_project_export(
            "formatPrice is not defined", "src/components/Cart.tsx", self.FILES
        )
        assert result.fixed_files["src/components/Cart.tsx"].startswith(
            "import { formatPrice } from '../utils/format';\n"
        )

    def test_known_symbol_skipped(self):
        assert not fix_undefined_project_export("Search is not defined", "src/App.tsx", self.FILES).success

    def test_wrong_relative_module(self):
        result = fix_wrong_relative_module("Cannot find module './Header'", "src/App.tsx", self.FILES)
        assert result.success
        assert "import Header from './components/Header';" in result.fixed_files["src/App.tsx"]

    def test_ambiguous_module_not_rewritten(self):
        files = dict(self.FILES)
        files["src/layout/Header.tsx"] = "export default function Header() { return null; }\n"
        assert not fix_wrong_relative_module("Cannot find module './Header'", "src/App.tsx", files).success

    def test_try_proactive_fix(self):
        result = try_proactive_fix("Cannot find module './Header'", "src/App.tsx", self.FILES)
        assert result.description == 'Fixed import path: "./Header" → "./components/Header"'
