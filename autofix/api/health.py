"""
GET /health
Liveness plus language-model provider status.
"""
from fastapi import APIRouter, Depends

from autofix.api.deps import get_llm
from autofix.llm.client import LLMClient

router = APIRouter()


@router.get("/health")
async def health_check(llm: LLMClient = Depends(get_llm)):
    return {
        "status": "ok",
        "llm_configured": llm.is_configured(),
        "providers": llm.router.provider_health_state,
    }
