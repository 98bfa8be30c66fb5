from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from rideshare.models.models import BookingStatus, PaymentMethod
from rideshare.schemas.ride import DriverOut, RideOut


class BookingCreate(BaseModel):
    ride_id: str = Field(..., min_length=1)
    seats_requested: int = Field(..., ge=1)
    message: Optional[str] = Field(None, max_length=500)


class RiderOut(DriverOut):
    pass


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    ride_id: str
    rider_id: str
    seats_requested: int
    status: BookingStatus
    payment_method: PaymentMethod
    message: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    ride: Optional[RideOut] = None
    rider: Optional[RiderOut] = None
