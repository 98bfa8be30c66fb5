from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rideshare.models.models import RideStatus


def _as_utc(value: datetime) -> datetime:
    # naive timestamps are taken as UTC; the future check runs in the service against its clock
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DriverOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    phone: Optional[str] = None


class RideCreate(BaseModel):
    origin_city: str = Field(..., min_length=1, max_length=128)
    destination_city: str = Field(..., min_length=1, max_length=128)
    departure_time: datetime
    price_per_seat: int = Field(..., gt=0, description="Price in the smallest currency unit")
    total_seats: int = Field(..., ge=1, le=8)
    notes: Optional[str] = None

    @field_validator("origin_city", "destination_city")
    @classmethod
    def _strip_city(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("City is required")
        return value

    @field_validator("departure_time")
    @classmethod
    def _departure_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class RideUpdate(BaseModel):
    """Partial ride edit; only fields present in the payload are applied."""

    origin_city: Optional[str] = Field(None, min_length=1, max_length=128)
    destination_city: Optional[str] = Field(None, min_length=1, max_length=128)
    departure_time: Optional[datetime] = None
    price_per_seat: Optional[int] = Field(None, gt=0)
    total_seats: Optional[int] = Field(None, ge=1, le=8)
    notes: Optional[str] = None

    @field_validator("departure_time")
    @classmethod
    def _departure_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return value
        return _as_utc(value)


class RideOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    driver_id: str
    origin_city: str
    destination_city: str
    departure_time: datetime
    price_per_seat: int
    total_seats: int
    available_seats: int
    notes: Optional[str] = None
    status: RideStatus
    created_at: datetime
    driver: Optional[DriverOut] = None


class RideSearchResponse(BaseModel):
    rides: List[RideOut]
    total: int
    page: int
    limit: int
    pages: int


class RideCancelled(BaseModel):
    message: str = "Ride cancelled successfully"
