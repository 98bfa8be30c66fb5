from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from rideshare.auth.deps import get_current_user, get_optional_user
from rideshare.config import settings
from rideshare.deps import get_booking_service, get_ride_service, get_search_logger
from rideshare.models.models import User
from rideshare.schemas.booking import BookingOut
from rideshare.schemas.ride import RideCancelled, RideCreate, RideOut, RideSearchResponse, RideUpdate
from rideshare.services.authorization import is_ride_driver
from rideshare.services.bookings import BookingService
from rideshare.services.rides import RideSearchParams, RideService, day_bounds
from rideshare.services.search_log import SearchLogger

router = APIRouter(tags=["rides"])


@router.get("/", response_model=RideSearchResponse)
async def search_rides(
    origin: Optional[str] = None,
    destination: Optional[str] = None,
    date: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=settings.SEARCH_MAX_PAGE_SIZE),
    rides: RideService = Depends(get_ride_service),
    search_logger: SearchLogger = Depends(get_search_logger),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """Search bookable rides. Searches naming both cities feed route analytics."""
    result = await rides.search_rides(RideSearchParams(origin=origin, destination=destination, date=date, page=page, limit=limit))
    if settings.SEARCH_LOG_ENABLED and origin and origin.strip() and destination and destination.strip():
        search_date = day_bounds(date)[0] if date else rides.clock.now()
        search_logger.log_search(origin, destination, search_date, current_user.id if current_user else None)
    return RideSearchResponse(
        rides=[RideOut.model_validate(r) for r in result.rides],
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
    )


@router.post("/", status_code=201, response_model=RideOut)
async def create_ride(payload: RideCreate, rides: RideService = Depends(get_ride_service), current_user: User = Depends(get_current_user)):
    return await rides.create_ride(current_user.id, payload)


@router.get("/mine", response_model=List[RideOut])
async def my_rides(include_completed: bool = False, rides: RideService = Depends(get_ride_service), current_user: User = Depends(get_current_user)):
    return await rides.get_driver_rides(current_user.id, include_completed=include_completed)


@router.get("/{ride_id}", response_model=RideOut)
async def get_ride(ride_id: str, rides: RideService = Depends(get_ride_service)):
    ride = await rides.get_ride_by_id(ride_id)
    if ride is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ride not found")
    return ride


@router.patch("/{ride_id}", response_model=RideOut)
async def update_ride(ride_id: str, payload: RideUpdate, rides: RideService = Depends(get_ride_service), current_user: User = Depends(get_current_user)):
    ride = await rides.update_ride(ride_id, current_user.id, payload)
    if ride is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ride not found or you don't have permission to update it")
    return ride


@router.delete("/{ride_id}", response_model=RideCancelled)
async def cancel_ride(ride_id: str, rides: RideService = Depends(get_ride_service), current_user: User = Depends(get_current_user)):
    if not await rides.cancel_ride(ride_id, current_user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ride not found or you don't have permission to cancel it")
    return RideCancelled()


@router.get("/{ride_id}/bookings", response_model=List[BookingOut])
async def ride_bookings(
    ride_id: str,
    pending: bool = False,
    rides: RideService = Depends(get_ride_service),
    bookings: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_user),
):
    """Driver view of a ride's bookings: the pending queue, or every booking."""
    if pending:
        return await bookings.get_pending_bookings_for_ride(ride_id, current_user.id)
    ride = await rides.get_ride_by_id(ride_id)
    if ride is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ride not found")
    if not is_ride_driver(current_user.id, ride):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the driver can view bookings for this ride")
    return await bookings.get_bookings_for_ride(ride_id)
