from datetime import datetime
from typing import Optional

from rideshare.models.models import Booking, Ride
from rideshare.services.exceptions import UnauthorizedError


def require_authenticated(actor_id: Optional[str]) -> str:
    if not actor_id:
        raise UnauthorizedError()
    return actor_id


def is_ride_driver(actor_id: Optional[str], ride: Ride) -> bool:
    return actor_id is not None and ride.driver_id == actor_id


def is_booking_rider(actor_id: Optional[str], booking: Booking) -> bool:
    return actor_id is not None and booking.rider_id == actor_id


def can_view_booking(actor_id: Optional[str], booking: Booking) -> bool:
    # the rider who made it, or the driver of the ride it is for
    return is_booking_rider(actor_id, booking) or is_ride_driver(actor_id, booking.ride)


def is_past(ride: Ride, now: datetime) -> bool:
    return ride.departure_time < now
