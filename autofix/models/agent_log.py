"""
Agent Log Models
================
Structured log entries emitted by the fix agent for UI display, and the
fix-attempt record kept in the fix state history.
"""
import uuid
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

from autofix.core.constants import LogEntryType


class AgentLogEntry(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    timestamp: datetime = Field(default_factory=datetime.now)
    type: LogEntryType
    title: str
    content: str = ""
    # attempt / file / model / duration
    metadata: Dict[str, Any] = {}


class FixAttempt(BaseModel):
    error_message: str
    timestamp: float
    fix_applied: Optional[str] = None
    success: bool = False
