"""
POST /fix
=========
Runs one fix engine pass over the submitted project files.

The caller's files are never modified server-side; the response carries
full replacement contents for every changed file. Dedup and analytics use
the process-wide FixState / FixAnalytics instances.
"""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from autofix.agents.fix_engine import FixEngine
from autofix.api.deps import get_analytics, get_fix_state, get_llm
from autofix.core.config import FIX_TOTAL_TIMEOUT
from autofix.llm.client import LLMClient
from autofix.models.fix_result import FixResult
from autofix.services.analytics import FixAnalytics
from autofix.services.fix_state import FixState

logger = logging.getLogger(__name__)

router = APIRouter()


class FixRequest(BaseModel):
    error_message: str
    files: Dict[str, str]
    error_stack: Optional[str] = None
    target_file: Optional[str] = None
    skip_strategies: List[str] = []
    timeout: float = Field(default=FIX_TOTAL_TIMEOUT, gt=0, le=FIX_TOTAL_TIMEOUT)


@router.post("/fix", response_model=FixResult)
async def fix_error(
    request: FixRequest,
    llm: LLMClient = Depends(get_llm),
    fix_state: FixState = Depends(get_fix_state),
    analytics: FixAnalytics = Depends(get_analytics),
):
    logger.info("Fix requested for %d file(s): %s", len(request.files), request.error_message[:120])
    engine = FixEngine(
        request.files,
        request.error_message,
        error_stack=request.error_stack or "",
        target_file=request.target_file,
        skip_strategies=request.skip_strategies,
        timeout=request.timeout,
        llm=llm,
        fix_state=fix_state,
        analytics=analytics,
    )
    return await engine.fix()
