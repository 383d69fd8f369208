"""
Verification Models
===================
Pydantic models for syntax checks and fix verification.

SyntaxCheck:
    valid     — True if brackets balance and no string/comment is left open
    error     — description of the first problem
    index     — character offset of the first problem, when known

VerificationIssue:
    type      — error / warning / info
    message   — human-readable description
    file      — file the issue was found in
    line      — 1-based line, when known

VerificationResult:
    is_valid     — no error issues and confidence at least "medium"
    confidence   — high / medium / low bucket of the numeric score
    issues       — list of VerificationIssue
    suggestions  — follow-up hints

VerificationOptions:
    original_error   — the error message the fix targets
    original_files   — file map before the fix
    fixed_files      — file map after the fix
    changed_files    — paths to verify
    strict_mode      — also run regression heuristics

Computed fresh per verification call; never persisted.
"""
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel


class SyntaxCheck(BaseModel):
    valid: bool
    error: Optional[str] = None
    index: Optional[int] = None


class VerificationIssue(BaseModel):
    type: Literal["error", "warning", "info"]
    message: str
    file: Optional[str] = None
    line: Optional[int] = None


class VerificationResult(BaseModel):
    is_valid: bool
    confidence: Literal["high", "medium", "low"]
    issues: List[VerificationIssue] = []
    suggestions: List[str] = []


class VerificationOptions(BaseModel):
    original_error: str
    original_files: Dict[str, str] = {}
    fixed_files: Dict[str, str] = {}
    changed_files: List[str] = []
    strict_mode: bool = False
