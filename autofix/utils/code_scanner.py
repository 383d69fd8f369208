"""
Code Scanner
============
Single left-to-right pass over JS/TS source that yields only the characters
outside of comments and string literals.

Recognised regions:
    - line comments        // ... \\n
    - block comments       /* ... */
    - string literals      '...', "...", `...` (backslash escapes honoured)

Both the syntax validator and the bracket-balance fixer walk code through this
scanner, so a bracket inside a string or comment is never counted by either.

Regex literals and template-literal ${...} interpolations are treated as plain
code / plain string content respectively.
"""
from typing import Iterator, Optional, Tuple

BRACKET_PAIRS: dict[str, str] = {"(": ")", "[": "]", "{": "}"}
CLOSING_BRACKETS = frozenset(BRACKET_PAIRS.values())
_QUOTES = frozenset({"'", '"', "`"})


class CodeScanner:
    """
    Iterate over (index, char) pairs of code outside strings and comments.

    After iteration the scanner exposes the state it ended in, so callers can
    tell whether a string or block comment was left open at end of input.

    Usage:
        scanner = CodeScanner(code)
        for index, char in scanner:
            ...
        if scanner.open_string:
            ...
    """

    def __init__(self, code: str) -> None:
        self.code = code or ""
        self.open_string: Optional[str] = None
        self.open_string_start: Optional[int] = None
        self.in_block_comment = False
        self.block_comment_start: Optional[int] = None
        self.in_line_comment = False

    def __iter__(self) -> Iterator[Tuple[int, str]]:
        code = self.code
        length = len(code)
        self.open_string = None
        self.open_string_start = None
        self.in_block_comment = False
        self.block_comment_start = None
        self.in_line_comment = False

        i = 0
        while i < length:
            char = code[i]
            next_char = code[i + 1] if i + 1 < length else ""

            if self.in_line_comment:
                if char == "\n":
                    self.in_line_comment = False
                    yield i, char
                i += 1
                continue

            if self.in_block_comment:
                if char == "*" and next_char == "/":
                    self.in_block_comment = False
                    self.block_comment_start = None
                    i += 2
                else:
                    i += 1
                continue

            if self.open_string is not None:
                if char == "\\":
                    i += 2
                    continue
                if char == self.open_string:
                    self.open_string = None
                    self.open_string_start = None
                i += 1
                continue

            if char == "/" and next_char == "/":
                self.in_line_comment = True
                i += 2
                continue
            if char == "/" and next_char == "*":
                self.in_block_comment = True
                self.block_comment_start = i
                i += 2
                continue
            if char in _QUOTES:
                self.open_string = char
                self.open_string_start = i
                i += 1
                continue

            yield i, char
            i += 1

    @property
    def ended_in_open_region(self) -> bool:
        """True if a string or block comment was still open at end of input."""
        return self.open_string is not None or self.in_block_comment


def code_mask(code: str) -> bytearray:
    """Return a per-character mask: 1 where the character is code, 0 inside strings/comments."""
    mask = bytearray(len(code))
    for index, _ in CodeScanner(code):
        mask[index] = 1
    return mask


def line_of(code: str, index: int) -> int:
    """1-based line number of a character offset."""
    return code.count("\n", 0, max(0, index)) + 1
