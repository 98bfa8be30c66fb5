from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from rideshare.auth.deps import get_current_user
from rideshare.deps import get_booking_service
from rideshare.models.models import User
from rideshare.schemas.booking import BookingCreate, BookingOut
from rideshare.services.authorization import can_view_booking
from rideshare.services.bookings import BookingService

router = APIRouter(tags=["bookings"])


@router.post("/", status_code=201, response_model=BookingOut)
async def create_booking(payload: BookingCreate, bookings: BookingService = Depends(get_booking_service), current_user: User = Depends(get_current_user)):
    """Request seats on a ride. Seats are only taken when the driver accepts."""
    return await bookings.create_booking_request(
        rider_id=current_user.id,
        ride_id=payload.ride_id,
        seats_requested=payload.seats_requested,
        message=payload.message,
    )


@router.get("/", response_model=List[BookingOut])
async def my_bookings(bookings: BookingService = Depends(get_booking_service), current_user: User = Depends(get_current_user)):
    return await bookings.get_bookings_for_rider(current_user.id)


@router.get("/{booking_id}", response_model=BookingOut)
async def get_booking(booking_id: str, bookings: BookingService = Depends(get_booking_service), current_user: User = Depends(get_current_user)):
    booking = await bookings.get_booking_by_id(booking_id)
    if booking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    if not can_view_booking(current_user.id, booking):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to view this booking")
    return booking


@router.post("/{booking_id}/accept", response_model=BookingOut)
async def accept_booking(booking_id: str, bookings: BookingService = Depends(get_booking_service), current_user: User = Depends(get_current_user)):
    """Accept a pending request; the seats leave the ride's inventory in the same transaction."""
    return await bookings.accept_booking(booking_id, current_user.id)


@router.post("/{booking_id}/decline", response_model=BookingOut)
async def decline_booking(booking_id: str, bookings: BookingService = Depends(get_booking_service), current_user: User = Depends(get_current_user)):
    return await bookings.decline_booking(booking_id, current_user.id)


@router.post("/{booking_id}/cancel", response_model=BookingOut)
async def cancel_booking(booking_id: str, bookings: BookingService = Depends(get_booking_service), current_user: User = Depends(get_current_user)):
    return await bookings.cancel_booking(booking_id, current_user.id)
