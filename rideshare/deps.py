"""FastAPI providers wiring services to the session factory and clock.

Tests swap the store and time source by overriding get_sessionmaker and get_clock.
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from rideshare.db.session import get_sessionmaker
from rideshare.services.analytics import AnalyticsService
from rideshare.services.bookings import BookingService
from rideshare.services.cities import CityService
from rideshare.services.clock import Clock, system_clock
from rideshare.services.rides import RideService
from rideshare.services.search_log import SearchLogger


def get_clock() -> Clock:
    return system_clock


def get_ride_service(sessions: async_sessionmaker = Depends(get_sessionmaker), clock: Clock = Depends(get_clock)) -> RideService:
    return RideService(sessions, clock)


def get_booking_service(sessions: async_sessionmaker = Depends(get_sessionmaker), clock: Clock = Depends(get_clock)) -> BookingService:
    return BookingService(sessions, clock)


def get_search_logger(sessions: async_sessionmaker = Depends(get_sessionmaker), clock: Clock = Depends(get_clock)) -> SearchLogger:
    return SearchLogger(sessions, clock)


def get_analytics_service(sessions: async_sessionmaker = Depends(get_sessionmaker), clock: Clock = Depends(get_clock)) -> AnalyticsService:
    return AnalyticsService(sessions, clock)


def get_city_service(sessions: async_sessionmaker = Depends(get_sessionmaker)) -> CityService:
    return CityService(sessions)
