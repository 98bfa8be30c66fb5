import enum
from uuid import uuid4

from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    Float,
    Text,
    Enum,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from rideshare.db.base import Base
from rideshare.db.types import UTCDateTime


def new_id() -> str:
    return uuid4().hex


class RideStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"


class User(Base):
    __tablename__ = "users"
    id = Column(String(32), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=True)
    locale = Column(String(8), nullable=False, default="sq")
    created_at = Column(UTCDateTime(), server_default=func.now(), nullable=False)


class City(Base):
    __tablename__ = "cities"
    id = Column(Integer, primary_key=True)
    name = Column(String(128), nullable=False, unique=True, index=True)
    name_en = Column(String(128), nullable=False)
    name_sq = Column(String(128), nullable=False)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    is_popular = Column(Boolean, default=False, nullable=False, index=True)


class Ride(Base):
    __tablename__ = "rides"
    id = Column(String(32), primary_key=True, default=new_id)
    driver_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    origin_city = Column(String(128), nullable=False, index=True)
    destination_city = Column(String(128), nullable=False, index=True)
    departure_time = Column(UTCDateTime(), nullable=False, index=True)
    price_per_seat = Column(Integer, nullable=False)
    total_seats = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(Enum(RideStatus, native_enum=False, length=16), nullable=False, default=RideStatus.ACTIVE, index=True)
    created_at = Column(UTCDateTime(), server_default=func.now(), nullable=False)
    updated_at = Column(UTCDateTime(), nullable=True)

    driver = relationship("User", lazy="selectin")

    __table_args__ = (
        CheckConstraint("price_per_seat > 0", name="ck_ride_price_positive"),
        CheckConstraint("total_seats >= 1 AND total_seats <= 8", name="ck_ride_total_seats_range"),
        CheckConstraint("available_seats >= 0 AND available_seats <= total_seats", name="ck_ride_available_seats_bounds"),
        Index("ix_ride_search", "status", "departure_time"),
    )


class Booking(Base):
    __tablename__ = "bookings"
    id = Column(String(32), primary_key=True, default=new_id)
    ride_id = Column(String(32), ForeignKey("rides.id", ondelete="CASCADE"), nullable=False, index=True)
    rider_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    seats_requested = Column(Integer, nullable=False)
    status = Column(Enum(BookingStatus, native_enum=False, length=16), nullable=False, default=BookingStatus.PENDING, index=True)
    payment_method = Column(Enum(PaymentMethod, native_enum=False, length=16), nullable=False, default=PaymentMethod.CASH)
    message = Column(String(500), nullable=True)
    created_at = Column(UTCDateTime(), server_default=func.now(), nullable=False)
    updated_at = Column(UTCDateTime(), nullable=True)

    ride = relationship("Ride", lazy="selectin")
    rider = relationship("User", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("ride_id", "rider_id", name="uq_booking_ride_rider"),
        CheckConstraint("seats_requested >= 1", name="ck_booking_seats_requested_positive"),
    )


class SearchLog(Base):
    __tablename__ = "search_logs"
    id = Column(Integer, primary_key=True)
    origin_city = Column(String(128), nullable=False)
    destination_city = Column(String(128), nullable=False)
    search_date = Column(UTCDateTime(), nullable=False)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(UTCDateTime(), server_default=func.now(), nullable=False, index=True)

    __table_args__ = (Index("ix_search_log_route", "origin_city", "destination_city"),)
