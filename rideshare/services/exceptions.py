"""Error taxonomy for the ride and booking services.

Every failure a caller can act on is a named subclass of one of the kinds
below. The HTTP layer maps kinds to status codes; services never deal in
status codes themselves.
"""


class RideshareError(Exception):
    """Base class for all expected service failures."""

    code = "error"
    default_message = "Request could not be completed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ---- kinds ----


class NotFoundError(RideshareError):
    code = "not_found"
    default_message = "Not found"


class UnauthorizedError(RideshareError):
    code = "unauthorized"
    default_message = "Authentication required"


class ForbiddenError(RideshareError):
    code = "forbidden"
    default_message = "Not allowed"


class BusinessRuleViolation(RideshareError):
    """A state-machine precondition did not hold."""

    code = "conflict"
    default_message = "Operation not allowed in the current state"


class InvalidInputError(RideshareError):
    code = "invalid_input"
    default_message = "Invalid input"


# ---- concrete errors ----


class RideNotFoundError(NotFoundError):
    code = "ride_not_found"
    default_message = "Ride not found"


class BookingNotFoundError(NotFoundError):
    code = "booking_not_found"
    default_message = "Booking not found"


class InvalidSeatCountError(InvalidInputError):
    code = "invalid_seat_count"
    default_message = "Seats requested must be at least 1"


class DepartureInPastError(InvalidInputError):
    code = "departure_in_past"
    default_message = "Departure time must be in the future"


class RideUnavailableError(BusinessRuleViolation):
    code = "ride_unavailable"
    default_message = "Ride is not available for booking"


class RideDepartedError(BusinessRuleViolation):
    code = "ride_departed"
    default_message = "Ride has already departed"


class OwnRideBookingError(BusinessRuleViolation):
    code = "own_ride"
    default_message = "Cannot book your own ride"


class DuplicateBookingError(BusinessRuleViolation):
    code = "duplicate_booking"
    default_message = "You already have a booking for this ride"


class InsufficientSeatsError(BusinessRuleViolation):
    code = "insufficient_seats"
    default_message = "Not enough available seats"


class BookingNotPendingError(BusinessRuleViolation):
    code = "booking_not_pending"
    default_message = "Booking is not in pending status"


class SeatCapacityError(BusinessRuleViolation):
    code = "seat_capacity"
    default_message = "Total seats cannot be lower than seats already booked"


class NotRideDriverError(ForbiddenError):
    code = "not_ride_driver"
    default_message = "Only the driver can manage bookings for this ride"


class NotBookingRiderError(ForbiddenError):
    code = "not_booking_rider"
    default_message = "Only the rider can cancel their booking"
