from .models import *

__all__ = [
    "Base",
    "User",
    "City",
    "Ride",
    "Booking",
    "SearchLog",
    "RideStatus",
    "BookingStatus",
    "PaymentMethod",
    "new_id",
]
