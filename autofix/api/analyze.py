"""
POST /analyze
Classifies an error message without attempting a fix.
"""
import logging
from typing import Dict, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from autofix.models.parsed_error import ParsedError
from autofix.parser.analyzer import error_analyzer

logger = logging.getLogger(__name__)

router = APIRouter()


class AnalyzeRequest(BaseModel):
    error_message: str
    error_stack: Optional[str] = None
    files: Dict[str, str] = {}


class AnalyzeResponse(BaseModel):
    parsed: ParsedError
    summary: str


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_error(request: AnalyzeRequest):
    parsed = error_analyzer.analyze(request.error_message, request.error_stack, request.files)
    return AnalyzeResponse(parsed=parsed, summary=error_analyzer.get_summary(parsed))
