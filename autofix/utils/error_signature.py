"""
Error Signature Utility
=======================
Generates stable signatures for error messages to detect recurring errors.

A signature is the error message with everything that varies between two
occurrences of "the same" error normalized away:
    - line / column positions     (:12:5, (12:5), line 12)
    - file paths                  (C:\\x\\y.tsx, /src/components/A.tsx)
    - quoted literals             ('foo', "bar", `baz`)

The result is lower-cased and truncated to SIGNATURE_LENGTH characters.
It is the key used by FixState and FixAnalytics.
"""
import hashlib
import re

SIGNATURE_LENGTH = 200

_POSITION_RE = re.compile(r":\d+:\d+")
_PAREN_POSITION_RE = re.compile(r"\(\d+:\d+\)")
_LINE_RE = re.compile(r"\bline \d+", re.IGNORECASE)
_WINDOWS_PATH_RE = re.compile(r"[a-zA-Z]:[\\/][^\s]+")
_SOURCE_PATH_RE = re.compile(r"/[^\s'\"`]+\.(tsx?|jsx?)")
_SINGLE_QUOTED_RE = re.compile(r"'[^']+'")
_DOUBLE_QUOTED_RE = re.compile(r'"[^"]+"')
_BACKTICK_RE = re.compile(r"`[^`]+`")


def get_error_signature(error_message: str) -> str:
    """
    Generate a stable signature for an error message.

    Parameters
    ----------
    error_message : str
        Raw error message.

    Returns
    -------
    str
        Normalized, truncated signature. Two messages differing only in
        positions, file paths or quoted literal text share a signature.
    """
    normalized = (error_message or "").lower().strip()

    normalized = _POSITION_RE.sub(":X:X", normalized)
    normalized = _PAREN_POSITION_RE.sub("(X:X)", normalized)
    normalized = _LINE_RE.sub("line X", normalized)

    normalized = _WINDOWS_PATH_RE.sub("FILE", normalized)
    normalized = _SOURCE_PATH_RE.sub(r"/FILE.\1", normalized)

    normalized = _SINGLE_QUOTED_RE.sub("'X'", normalized)
    normalized = _DOUBLE_QUOTED_RE.sub('"X"', normalized)
    normalized = _BACKTICK_RE.sub("`X`", normalized)

    return normalized[:SIGNATURE_LENGTH]


def signature_hash(error_message: str) -> str:
    """Short, fixed-length digest of the signature (for logs and storage keys)."""
    return hashlib.sha256(get_error_signature(error_message).encode("utf-8")).hexdigest()[:16]
