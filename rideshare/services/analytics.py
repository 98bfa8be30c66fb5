import asyncio
from datetime import timedelta
from typing import Dict, List

from sqlalchemy import desc, func, select as sa_select
from sqlalchemy.ext.asyncio import async_sessionmaker

from rideshare.config import settings
from rideshare.models.models import Ride, RideStatus, SearchLog
from rideshare.services.clock import Clock, system_clock

# how many of the most searched routes are checked for supply
UNDERSERVED_CANDIDATES = 50


class AnalyticsService:
    def __init__(self, sessions: async_sessionmaker, clock: Clock = None):
        self.sessions = sessions
        self.clock = clock or system_clock

    def _grouped_searches(self, days: int, limit: int):
        since = self.clock.now() - timedelta(days=days)
        count = func.count(SearchLog.id).label("search_count")
        return (
            sa_select(SearchLog.origin_city, SearchLog.destination_city, count)
            .where(SearchLog.created_at >= since)
            .group_by(SearchLog.origin_city, SearchLog.destination_city)
            .order_by(desc("search_count"), SearchLog.origin_city, SearchLog.destination_city)
            .limit(limit)
        )

    async def top_routes(self, days: int = 7, limit: int = 10) -> List[Dict]:
        async with self.sessions() as session:
            res = await session.execute(self._grouped_searches(days, limit))
            return [
                {"origin_city": o, "destination_city": d, "search_count": c}
                for o, d, c in res.all()
            ]

    async def _available_rides(self, origin_city: str, destination_city: str) -> int:
        stmt = (
            sa_select(func.count())
            .select_from(Ride)
            .where(func.lower(Ride.origin_city) == origin_city.lower())
            .where(func.lower(Ride.destination_city) == destination_city.lower())
            .where(Ride.status == RideStatus.ACTIVE)
            .where(Ride.available_seats > 0)
            .where(Ride.departure_time >= self.clock.now())
        )
        async with self.sessions() as session:
            return (await session.execute(stmt)).scalar_one()

    async def underserved_routes(self, days: int = 7, limit: int = 10, threshold: int = None) -> List[Dict]:
        """Heavily searched routes with fewer than `threshold` bookable rides."""
        threshold = settings.UNDERSERVED_RIDE_THRESHOLD if threshold is None else threshold
        async with self.sessions() as session:
            res = await session.execute(self._grouped_searches(days, UNDERSERVED_CANDIDATES))
            searched = res.all()

        counts = await asyncio.gather(*[self._available_rides(o, d) for o, d, _ in searched])
        routes = [
            {"origin_city": o, "destination_city": d, "search_count": c, "available_rides": n}
            for (o, d, c), n in zip(searched, counts)
            if n < threshold
        ]
        routes.sort(key=lambda r: r["search_count"], reverse=True)
        return routes[:limit]
