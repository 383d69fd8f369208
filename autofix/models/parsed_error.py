"""
Parsed Error Model
==================
Pydantic model for a classified runtime/build error.
This is the contract between the error analyzer and every downstream consumer.

Fields:
    message           — raw error message as reported by the preview/build
    stack             — optional stack trace
    type              — specific error type (bare-specifier, undefined-variable, ...)
    category          — broad category used for strategy selection
    file/line/column  — location extracted from message or stack, if any
    identifier        — undefined name / offending token, if extracted
    import_path       — import specifier, if extracted
    expected_type     — expected type for type mismatches
    actual_type       — actual type for type mismatches
    missing_property  — property name for property/runtime errors
    related_files     — up to 5 project files that reference the error subject
    suggested_fix     — human-readable hint
    is_auto_fixable   — True if a deterministic fix is likely
    is_ignorable      — True for transient errors that must never trigger a fix
    confidence        — 0.0–1.0 classification confidence
    priority          — 1–5, higher = more important

Instances are created fresh per analysis call and are immutable.
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from autofix.core.constants import ErrorCategory, ErrorType


class ParsedError(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    stack: Optional[str] = None
    type: ErrorType = "unknown"
    category: ErrorCategory = "unknown"
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    identifier: Optional[str] = None
    import_path: Optional[str] = None
    expected_type: Optional[str] = None
    actual_type: Optional[str] = None
    missing_property: Optional[str] = None
    related_files: List[str] = []
    suggested_fix: Optional[str] = None
    is_auto_fixable: bool = False
    is_ignorable: bool = False
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    priority: int = Field(default=1, ge=1, le=5)
