"""
GET  /analytics
GET  /analytics/best-strategy
POST /analytics/reset
Read access to the persisted fix analytics.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from autofix.api.deps import get_analytics
from autofix.models.analytics import AnalyticsSummary
from autofix.services.analytics import FixAnalytics

router = APIRouter(prefix="/analytics")


@router.get("", response_model=AnalyticsSummary)
async def get_fix_analytics(analytics: FixAnalytics = Depends(get_analytics)):
    return analytics.get_analytics()


@router.get("/best-strategy")
async def get_best_strategy(
    category: Optional[str] = None,
    analytics: FixAnalytics = Depends(get_analytics),
):
    return {
        "category": category,
        "strategy": analytics.get_best_strategy(category),
        "success_rate": analytics.get_success_rate(category) if category else None,
    }


@router.post("/reset")
async def reset_analytics(analytics: FixAnalytics = Depends(get_analytics)):
    analytics.reset()
    return {"status": "reset"}
