import asyncio
from datetime import timedelta

from fastapi import APIRouter, Depends

from rideshare.auth.deps import get_current_user
from rideshare.deps import get_analytics_service
from rideshare.schemas.analytics import AnalyticsPeriod, RouteAnalytics
from rideshare.services.analytics import AnalyticsService

router = APIRouter(tags=["analytics"])

ALLOWED_DAYS = (7, 30)


@router.get("/routes", response_model=RouteAnalytics, dependencies=[Depends(get_current_user)])
async def route_analytics(days: int = 7, limit: int = 10, analytics: AnalyticsService = Depends(get_analytics_service)):
    """Most searched routes and the ones drivers are not covering."""
    days = days if days in ALLOWED_DAYS else 7
    limit = min(max(limit, 1), 20)
    top, underserved = await asyncio.gather(
        analytics.top_routes(days, limit),
        analytics.underserved_routes(days, limit),
    )
    now = analytics.clock.now()
    return RouteAnalytics(
        top_routes=top,
        underserved_routes=underserved,
        period=AnalyticsPeriod(days=days, start_date=now - timedelta(days=days), end_date=now),
    )
