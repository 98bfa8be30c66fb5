"""Ride inventory: create, edit, cancel and search rides.

The seat invariant this module maintains for every committed ride is

    available_seats == total_seats - sum(seats of ACCEPTED bookings)

Seat arithmetic is always expressed as a conditional UPDATE evaluated by the
database, never as read-modify-write in Python, so a concurrent accept cannot
be lost.
"""
import datetime as dt
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import func, select as sa_select, update as sa_update
from sqlalchemy.ext.asyncio import async_sessionmaker

from rideshare.config import settings
from rideshare.metrics import RIDE_EVENTS
from rideshare.models.models import Booking, BookingStatus, Ride, RideStatus
from rideshare.schemas.ride import RideCreate, RideUpdate
from rideshare.services.clock import Clock, system_clock
from rideshare.services.exceptions import DepartureInPastError, RideUnavailableError, SeatCapacityError

logger = logging.getLogger(__name__)

# Fields a driver may edit; notes is the only one that may be cleared.
EDITABLE_FIELDS = ("origin_city", "destination_city", "departure_time", "price_per_seat", "total_seats", "notes")


@dataclass
class RideSearchParams:
    origin: Optional[str] = None
    destination: Optional[str] = None
    date: Optional[dt.date] = None
    page: int = 1
    limit: int = 10


@dataclass
class RideSearchResult:
    rides: List[Ride] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return (self.total + self.limit - 1) // self.limit


def day_bounds(day: date, tz_name: str = None):
    """Start (inclusive) and end (exclusive) of a calendar day in the server timezone."""
    tz = ZoneInfo(tz_name or settings.SEARCH_TIMEZONE)
    start = datetime.combine(day, time.min, tzinfo=tz)
    return start, start + timedelta(days=1)


class RideService:
    def __init__(self, sessions: async_sessionmaker, clock: Clock = None):
        self.sessions = sessions
        self.clock = clock or system_clock

    async def create_ride(self, driver_id: str, data: RideCreate) -> Ride:
        now = self.clock.now()
        if data.departure_time <= now:
            raise DepartureInPastError()
        ride = Ride(
            driver_id=driver_id,
            origin_city=data.origin_city,
            destination_city=data.destination_city,
            departure_time=data.departure_time,
            price_per_seat=data.price_per_seat,
            total_seats=data.total_seats,
            available_seats=data.total_seats,
            notes=data.notes or None,
            status=RideStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )
        async with self.sessions.begin() as session:
            session.add(ride)
        RIDE_EVENTS.labels(event="created").inc()
        logger.info("Ride %s created by driver %s (%s -> %s, %d seats)", ride.id, driver_id, ride.origin_city, ride.destination_city, ride.total_seats)
        return await self.get_ride_by_id(ride.id)

    async def get_ride_by_id(self, ride_id: str) -> Optional[Ride]:
        async with self.sessions() as session:
            stmt = sa_select(Ride).where(Ride.id == ride_id)
            res = await session.execute(stmt)
            return res.scalars().first()

    async def update_ride(self, ride_id: str, driver_id: str, data: RideUpdate) -> Optional[Ride]:
        """Apply a partial edit. Returns None when the ride does not exist or is not the driver's."""
        changes = data.model_dump(exclude_unset=True)
        values = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS and (v is not None or k == "notes")}
        if "notes" in values:
            values["notes"] = values["notes"] or None

        async with self.sessions.begin() as session:
            stmt = sa_select(Ride).where(Ride.id == ride_id, Ride.driver_id == driver_id)
            res = await session.execute(stmt)
            existing = res.scalars().first()
            if existing is None:
                return None
            if existing.status != RideStatus.ACTIVE:
                raise RideUnavailableError("Only active rides can be edited")

            now = self.clock.now()
            if "departure_time" in values and values["departure_time"] <= now:
                raise DepartureInPastError()

            if values:
                values["updated_at"] = now
                upd = (
                    sa_update(Ride)
                    .where(Ride.id == ride_id)
                    .where(Ride.status == RideStatus.ACTIVE)
                    .execution_options(synchronize_session=False)
                )
                new_total = values.get("total_seats")
                if new_total is not None:
                    # keep the booked-seat count: new_available = new_total - (total - available)
                    booked = Ride.total_seats - Ride.available_seats
                    upd = upd.where(booked <= new_total)
                    values["available_seats"] = Ride.available_seats + (new_total - Ride.total_seats)
                result = await session.execute(upd.values(**values))
                if result.rowcount == 0:
                    if new_total is not None:
                        raise SeatCapacityError()
                    raise RideUnavailableError("Only active rides can be edited")

        RIDE_EVENTS.labels(event="updated").inc()
        logger.info("Ride %s updated by driver %s: %s", ride_id, driver_id, sorted(changes))
        return await self.get_ride_by_id(ride_id)

    async def cancel_ride(self, ride_id: str, driver_id: str) -> bool:
        """Cancel a driver's ride and decline its outstanding requests in the same transaction."""
        now = self.clock.now()
        async with self.sessions.begin() as session:
            stmt = sa_select(Ride.id).where(Ride.id == ride_id, Ride.driver_id == driver_id)
            res = await session.execute(stmt)
            if res.scalar() is None:
                return False
            await session.execute(
                sa_update(Ride)
                .where(Ride.id == ride_id)
                .values(status=RideStatus.CANCELLED, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            declined = await session.execute(
                sa_update(Booking)
                .where(Booking.ride_id == ride_id, Booking.status == BookingStatus.PENDING)
                .values(status=BookingStatus.DECLINED, updated_at=now)
                .execution_options(synchronize_session=False)
            )
        RIDE_EVENTS.labels(event="cancelled").inc()
        logger.info("Ride %s cancelled by driver %s; %d pending bookings declined", ride_id, driver_id, declined.rowcount)
        return True

    async def get_driver_rides(self, driver_id: str, include_completed: bool = False) -> List[Ride]:
        # include_completed drops the status filter altogether, cancelled rides included
        stmt = sa_select(Ride).where(Ride.driver_id == driver_id)
        if not include_completed:
            stmt = stmt.where(Ride.status == RideStatus.ACTIVE)
        stmt = stmt.order_by(Ride.departure_time.asc())
        async with self.sessions() as session:
            res = await session.execute(stmt)
            return list(res.scalars().all())

    def _search_conditions(self, params: RideSearchParams) -> list:
        now = self.clock.now()
        conds = [Ride.status == RideStatus.ACTIVE, Ride.available_seats > 0]
        if params.origin:
            conds.append(Ride.origin_city.icontains(params.origin.strip(), autoescape=True))
        if params.destination:
            conds.append(Ride.destination_city.icontains(params.destination.strip(), autoescape=True))
        if params.date:
            start, end = day_bounds(params.date)
            conds.append(Ride.departure_time >= max(now, start))
            conds.append(Ride.departure_time < end)
        else:
            conds.append(Ride.departure_time >= now)
        return conds

    async def search_rides(self, params: RideSearchParams) -> RideSearchResult:
        page = max(params.page, 1)
        limit = max(params.limit, 1)
        conds = self._search_conditions(params)
        stmt = (
            sa_select(Ride)
            .where(*conds)
            .order_by(Ride.departure_time.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        count_stmt = sa_select(func.count()).select_from(Ride).where(*conds)
        async with self.sessions() as session:
            res = await session.execute(stmt)
            rides = list(res.scalars().all())
            total = (await session.execute(count_stmt)).scalar_one()
        return RideSearchResult(rides=rides, total=total, page=page, limit=limit)
