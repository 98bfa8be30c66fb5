"""Booking lifecycle: request, accept, decline and cancel.

    (none)  --create-->   PENDING
    PENDING --accept-->   ACCEPTED   (ride seats decremented in the same transaction)
    PENDING --decline-->  DECLINED
    PENDING --cancel-->   CANCELLED  (rider only)

ACCEPTED, DECLINED and CANCELLED are terminal. Creating a request never
touches seats, so PENDING requests may oversubscribe a ride; acceptance is the
gate. Accept flips the booking and decrements the ride with two conditional
UPDATEs inside one transaction: if either matches no row the whole unit of
work is rolled back.
"""
import logging
import time
from typing import List, Optional

from sqlalchemy import select as sa_select, update as sa_update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from rideshare.metrics import ACCEPT_LATENCY, BOOKING_TRANSITIONS
from rideshare.models.models import Booking, BookingStatus, PaymentMethod, Ride, RideStatus
from rideshare.services.authorization import is_booking_rider, is_past, is_ride_driver, require_authenticated
from rideshare.services.clock import Clock, system_clock
from rideshare.services.exceptions import (
    BookingNotFoundError,
    BookingNotPendingError,
    DuplicateBookingError,
    InsufficientSeatsError,
    InvalidSeatCountError,
    NotBookingRiderError,
    NotRideDriverError,
    OwnRideBookingError,
    RideDepartedError,
    RideNotFoundError,
    RideUnavailableError,
)

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(self, sessions: async_sessionmaker, clock: Clock = None):
        self.sessions = sessions
        self.clock = clock or system_clock

    async def create_booking_request(self, rider_id: str, ride_id: str, seats_requested: int, message: Optional[str] = None) -> Booking:
        rider_id = require_authenticated(rider_id)
        if seats_requested is None or seats_requested < 1:
            raise InvalidSeatCountError()

        now = self.clock.now()
        try:
            async with self.sessions.begin() as session:
                ride = (await session.execute(sa_select(Ride).where(Ride.id == ride_id))).scalars().first()
                if ride is None:
                    raise RideNotFoundError()
                if ride.status != RideStatus.ACTIVE or is_past(ride, now):
                    raise RideUnavailableError()
                if is_ride_driver(rider_id, ride):
                    raise OwnRideBookingError()

                stmt = sa_select(Booking.id).where(Booking.ride_id == ride_id, Booking.rider_id == rider_id)
                if (await session.execute(stmt)).scalar() is not None:
                    raise DuplicateBookingError()

                if ride.available_seats < seats_requested:
                    raise InsufficientSeatsError()

                booking = Booking(
                    ride_id=ride_id,
                    rider_id=rider_id,
                    seats_requested=seats_requested,
                    message=message or None,
                    status=BookingStatus.PENDING,
                    payment_method=PaymentMethod.CASH,
                    created_at=now,
                    updated_at=now,
                )
                session.add(booking)
        except IntegrityError:
            # a concurrent request for the same (ride, rider) won the unique constraint
            raise DuplicateBookingError()

        BOOKING_TRANSITIONS.labels(transition="requested").inc()
        logger.info("Booking %s requested by rider %s on ride %s for %d seats", booking.id, rider_id, ride_id, seats_requested)
        return await self.get_booking_by_id(booking.id)

    async def _load_for_driver(self, session, booking_id: str, driver_id: str, action: str) -> Booking:
        booking = (await session.execute(sa_select(Booking).where(Booking.id == booking_id))).scalars().first()
        if booking is None:
            raise BookingNotFoundError()
        if not is_ride_driver(driver_id, booking.ride):
            raise NotRideDriverError(f"Only the driver can {action} bookings")
        if booking.status != BookingStatus.PENDING:
            raise BookingNotPendingError()
        return booking

    async def _flip_pending(self, session, booking_id: str, status: BookingStatus, now) -> None:
        # conditional on PENDING so a second accept/decline/cancel can never apply twice
        result = await session.execute(
            sa_update(Booking)
            .where(Booking.id == booking_id, Booking.status == BookingStatus.PENDING)
            .values(status=status, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise BookingNotPendingError()

    async def accept_booking(self, booking_id: str, driver_id: str) -> Booking:
        driver_id = require_authenticated(driver_id)
        now = self.clock.now()
        start = time.perf_counter()
        try:
            async with self.sessions.begin() as session:
                booking = await self._load_for_driver(session, booking_id, driver_id, "accept")
                ride = booking.ride
                if ride.status != RideStatus.ACTIVE:
                    raise RideUnavailableError()
                if is_past(ride, now):
                    raise RideDepartedError()
                if ride.available_seats < booking.seats_requested:
                    raise InsufficientSeatsError()

                await self._flip_pending(session, booking_id, BookingStatus.ACCEPTED, now)

                # decrement seats atomically only if enough remain
                upd = (
                    sa_update(Ride)
                    .where(Ride.id == ride.id)
                    .where(Ride.status == RideStatus.ACTIVE)
                    .where(Ride.available_seats >= booking.seats_requested)
                    .values(available_seats=(Ride.available_seats - booking.seats_requested), updated_at=now)
                    .execution_options(synchronize_session=False)
                )
                result = await session.execute(upd)
                if result.rowcount == 0:
                    # lost a race; the raise rolls back the status flip
                    current = (await session.execute(sa_select(Ride.status).where(Ride.id == ride.id))).scalar()
                    if current != RideStatus.ACTIVE:
                        raise RideUnavailableError()
                    raise InsufficientSeatsError()
        except (InsufficientSeatsError, BookingNotPendingError, RideUnavailableError) as exc:
            logger.warning("Accept of booking %s by driver %s rejected: %s", booking_id, driver_id, exc.message)
            raise
        finally:
            ACCEPT_LATENCY.observe(time.perf_counter() - start)

        BOOKING_TRANSITIONS.labels(transition="accepted").inc()
        logger.info("Booking %s accepted by driver %s; %d seats taken on ride %s", booking_id, driver_id, booking.seats_requested, ride.id)
        return await self.get_booking_by_id(booking_id)

    async def decline_booking(self, booking_id: str, driver_id: str) -> Booking:
        driver_id = require_authenticated(driver_id)
        async with self.sessions.begin() as session:
            await self._load_for_driver(session, booking_id, driver_id, "decline")
            await self._flip_pending(session, booking_id, BookingStatus.DECLINED, self.clock.now())

        BOOKING_TRANSITIONS.labels(transition="declined").inc()
        logger.info("Booking %s declined by driver %s", booking_id, driver_id)
        return await self.get_booking_by_id(booking_id)

    async def cancel_booking(self, booking_id: str, rider_id: str) -> Booking:
        rider_id = require_authenticated(rider_id)
        async with self.sessions.begin() as session:
            booking = (await session.execute(sa_select(Booking).where(Booking.id == booking_id))).scalars().first()
            if booking is None:
                raise BookingNotFoundError()
            if not is_booking_rider(rider_id, booking):
                raise NotBookingRiderError()
            # accepted seats are never handed back
            if booking.status != BookingStatus.PENDING:
                raise BookingNotPendingError("Cannot cancel a booking that is not pending")
            await self._flip_pending(session, booking_id, BookingStatus.CANCELLED, self.clock.now())

        BOOKING_TRANSITIONS.labels(transition="cancelled").inc()
        logger.info("Booking %s cancelled by rider %s", booking_id, rider_id)
        return await self.get_booking_by_id(booking_id)

    async def get_bookings_for_rider(self, rider_id: str) -> List[Booking]:
        stmt = sa_select(Booking).where(Booking.rider_id == rider_id).order_by(Booking.created_at.desc())
        async with self.sessions() as session:
            res = await session.execute(stmt)
            return list(res.scalars().all())

    async def get_pending_bookings_for_ride(self, ride_id: str, requester_id: str) -> List[Booking]:
        """Driver's review queue: PENDING requests, first come first served."""
        async with self.sessions() as session:
            ride = (await session.execute(sa_select(Ride).where(Ride.id == ride_id))).scalars().first()
            if ride is None:
                raise RideNotFoundError()
            if not is_ride_driver(requester_id, ride):
                raise NotRideDriverError("Only the driver can view booking requests")
            stmt = (
                sa_select(Booking)
                .where(Booking.ride_id == ride_id, Booking.status == BookingStatus.PENDING)
                .order_by(Booking.created_at.asc())
            )
            res = await session.execute(stmt)
            return list(res.scalars().all())

    async def get_bookings_for_ride(self, ride_id: str) -> List[Booking]:
        # no ownership check here; callers gate access
        stmt = sa_select(Booking).where(Booking.ride_id == ride_id).order_by(Booking.created_at.desc())
        async with self.sessions() as session:
            res = await session.execute(stmt)
            return list(res.scalars().all())

    async def get_booking_by_id(self, booking_id: str) -> Optional[Booking]:
        async with self.sessions() as session:
            res = await session.execute(sa_select(Booking).where(Booking.id == booking_id))
            return res.scalars().first()
