"""
Fix Result Models
=================
Pydantic models tracking the outcome of a fix attempt.

LocalFixResult — produced by one deterministic fixer:
    success       — True if the fixer changed something
    fixed_files   — file path → new FULL content (never partial diffs)
    description   — human-readable summary of the change
    fix_type      — which fixer family produced it

FixResult — produced by one engine run:
    success       — True if a strategy produced a valid fix
    fixed_files   — file path → new FULL content
    description   — human-readable summary, or the failure / skip reason
    strategy      — strategy that produced the fix (or was running when it failed)
    attempts      — number of strategies invoked during the run
    time_ms       — wall-clock time of the run in milliseconds
    error         — failure / skip reason, None on success
"""
from typing import Dict, Optional
from pydantic import BaseModel

from autofix.core.constants import FixStrategy, LocalFixType


class LocalFixResult(BaseModel):
    success: bool = False
    fixed_files: Dict[str, str] = {}
    description: str = ""
    fix_type: LocalFixType = "none"


class FixResult(BaseModel):
    success: bool = False
    fixed_files: Dict[str, str] = {}
    description: str = ""
    strategy: FixStrategy = "local-simple"
    attempts: int = 0
    time_ms: int = 0
    error: Optional[str] = None


def no_local_fix() -> LocalFixResult:
    """The "no fix" sentinel every fixer returns when it does not apply."""
    return LocalFixResult()
