from typing import List

from sqlalchemy import or_, select as sa_select
from sqlalchemy.ext.asyncio import async_sessionmaker

from rideshare.models.models import City

SUGGESTION_LIMIT = 10


class CityService:
    def __init__(self, sessions: async_sessionmaker):
        self.sessions = sessions

    async def search_cities(self, query: str, locale: str = "sq") -> List[City]:
        """Autocomplete suggestions; popular cities when the query is too short to match on."""
        query = (query or "").strip()
        if len(query) < 2:
            stmt = sa_select(City).where(City.is_popular.is_(True)).order_by(City.name.asc())
        else:
            localized = City.name_en if locale == "en" else City.name_sq
            stmt = (
                sa_select(City)
                .where(or_(City.name.icontains(query, autoescape=True), localized.icontains(query, autoescape=True)))
                .order_by(City.is_popular.desc(), City.name.asc())
            )
        async with self.sessions() as session:
            res = await session.execute(stmt.limit(SUGGESTION_LIMIT))
            return list(res.scalars().all())

