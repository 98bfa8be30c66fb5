import asyncio
import logging
from datetime import datetime
from typing import Optional, Set

from sqlalchemy.ext.asyncio import async_sessionmaker

from rideshare.metrics import SEARCH_LOG_FAILURES, SEARCH_LOG_WRITES
from rideshare.models.models import SearchLog
from rideshare.services.clock import Clock, system_clock

logger = logging.getLogger(__name__)

# strong references to in-flight writes so they are not garbage collected mid-run
_pending: Set[asyncio.Task] = set()


class SearchLogger:
    """Records ride searches for route analytics without holding up the search."""

    def __init__(self, sessions: async_sessionmaker, clock: Clock = None):
        self.sessions = sessions
        self.clock = clock or system_clock

    def log_search(self, origin_city: str, destination_city: str, search_date: datetime, user_id: Optional[str] = None) -> None:
        task = asyncio.get_running_loop().create_task(
            self._write(origin_city.strip(), destination_city.strip(), search_date, user_id)
        )
        _pending.add(task)
        task.add_done_callback(_pending.discard)

    async def _write(self, origin_city: str, destination_city: str, search_date: datetime, user_id: Optional[str]) -> None:
        try:
            async with self.sessions.begin() as session:
                session.add(
                    SearchLog(
                        origin_city=origin_city,
                        destination_city=destination_city,
                        search_date=search_date,
                        user_id=user_id,
                        created_at=self.clock.now(),
                    )
                )
            SEARCH_LOG_WRITES.inc()
        except Exception:
            # never reaches the search response
            SEARCH_LOG_FAILURES.inc()
            logger.exception("Failed to log search %s -> %s", origin_city, destination_city)


async def drain() -> None:
    """Wait for in-flight search log writes (used on shutdown and in tests)."""
    if _pending:
        await asyncio.gather(*list(_pending), return_exceptions=True)
