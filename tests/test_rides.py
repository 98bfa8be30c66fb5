"""
Ride inventory tests.
Covers: creation defaults, seat-count boundaries, partial edits with seat
recomputation, cancellation (with pending requests declined), driver listing
and search filters/pagination.
"""
from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from conftest import NOW, assert_seat_invariant, ride_payload
from rideshare.models.models import BookingStatus, RideStatus
from rideshare.schemas.ride import RideCreate, RideUpdate
from rideshare.services.clock import Clock, FixedClock, SystemClock
from rideshare.services.exceptions import DepartureInPastError, RideUnavailableError, SeatCapacityError
from rideshare.services.rides import RideSearchParams


# ────────────────────────── create / read ───────────────────────────────────

async def test_create_ride_starts_active_with_all_seats(make_ride, driver, sessions):
    ride = await make_ride(total_seats=3)

    assert ride.status == RideStatus.ACTIVE
    assert ride.available_seats == 3
    assert ride.total_seats == 3
    assert ride.driver_id == driver.id
    assert ride.driver.name == "Driver"
    assert ride.driver.phone == "+355 69 123 4567"
    await assert_seat_invariant(sessions, ride.id)


@pytest.mark.parametrize("seats", [1, 8])
def test_seat_count_edges_accepted(seats):
    assert RideCreate(**ride_payload(total_seats=seats)).total_seats == seats


@pytest.mark.parametrize("seats", [0, 9])
def test_seat_count_outside_range_rejected(seats):
    with pytest.raises(ValidationError):
        RideCreate(**ride_payload(total_seats=seats))


@pytest.mark.parametrize("price", [0, -100])
def test_non_positive_price_rejected(price):
    with pytest.raises(ValidationError):
        RideCreate(**ride_payload(price_per_seat=price))


async def test_departure_before_clock_rejected(ride_service, driver, clock):
    with pytest.raises(DepartureInPastError):
        await ride_service.create_ride(driver.id, RideCreate(**ride_payload(departure_time=NOW - timedelta(days=1))))
    with pytest.raises(DepartureInPastError):
        await ride_service.create_ride(driver.id, RideCreate(**ride_payload(departure_time=NOW)))

    assert await ride_service.get_driver_rides(driver.id, include_completed=True) == []


async def test_departure_checked_against_injected_clock(make_ride, clock):
    # far in the past by the wall clock, still ahead of the service clock
    clock.advance(days=-365 * 20)

    ride = await make_ride(departure_time=clock.now() + timedelta(hours=1))

    assert ride.departure_time == clock.now() + timedelta(hours=1)


def test_clock_is_abstract():
    with pytest.raises(TypeError):
        Clock()

    fixed = FixedClock(NOW.replace(tzinfo=None))
    assert fixed.now() == NOW
    assert fixed.advance(minutes=5) == NOW + timedelta(minutes=5)
    assert SystemClock().now().tzinfo is not None


def test_blank_city_rejected():
    with pytest.raises(ValidationError):
        RideCreate(**ride_payload(origin_city="   "))


def test_naive_departure_is_taken_as_utc():
    naive = (NOW + timedelta(days=1)).replace(tzinfo=None)
    assert RideCreate(**ride_payload(departure_time=naive)).departure_time.tzinfo is not None


async def test_get_unknown_ride_returns_none(ride_service):
    assert await ride_service.get_ride_by_id("does-not-exist") is None


# ────────────────────────── update ──────────────────────────────────────────

async def test_update_by_other_user_returns_none(make_ride, make_user, ride_service):
    ride = await make_ride()
    stranger = await make_user("Stranger")

    assert await ride_service.update_ride(ride.id, stranger.id, RideUpdate(price_per_seat=900)) is None
    assert (await ride_service.get_ride_by_id(ride.id)).price_per_seat == 500


async def test_update_applies_only_given_fields(make_ride, driver, ride_service):
    ride = await make_ride(notes="Meet at Skanderbeg Square")

    updated = await ride_service.update_ride(ride.id, driver.id, RideUpdate(price_per_seat=700))

    assert updated.price_per_seat == 700
    assert updated.origin_city == "Tiranë"
    assert updated.notes == "Meet at Skanderbeg Square"
    assert updated.total_seats == 3


async def test_update_clears_notes_with_empty_string(make_ride, driver, ride_service):
    ride = await make_ride(notes="Luggage ok")

    updated = await ride_service.update_ride(ride.id, driver.id, RideUpdate(notes=""))

    assert updated.notes is None


async def test_total_seats_change_keeps_booked_seats(make_ride, driver, rider_a, ride_service, booking_service, sessions):
    ride = await make_ride(total_seats=4)
    booking = await booking_service.create_booking_request(rider_a.id, ride.id, 2)
    await booking_service.accept_booking(booking.id, driver.id)

    grown = await ride_service.update_ride(ride.id, driver.id, RideUpdate(total_seats=6))
    assert (grown.total_seats, grown.available_seats) == (6, 4)

    shrunk = await ride_service.update_ride(ride.id, driver.id, RideUpdate(total_seats=2))
    assert (shrunk.total_seats, shrunk.available_seats) == (2, 0)
    await assert_seat_invariant(sessions, ride.id)


async def test_total_seats_below_booked_rejected(make_ride, driver, rider_a, ride_service, booking_service, sessions):
    ride = await make_ride(total_seats=4)
    booking = await booking_service.create_booking_request(rider_a.id, ride.id, 3)
    await booking_service.accept_booking(booking.id, driver.id)

    with pytest.raises(SeatCapacityError):
        await ride_service.update_ride(ride.id, driver.id, RideUpdate(total_seats=2))

    ride = await assert_seat_invariant(sessions, ride.id)
    assert (ride.total_seats, ride.available_seats) == (4, 1)


async def test_cancelled_ride_cannot_be_edited(make_ride, driver, ride_service):
    ride = await make_ride()
    await ride_service.cancel_ride(ride.id, driver.id)

    with pytest.raises(RideUnavailableError):
        await ride_service.update_ride(ride.id, driver.id, RideUpdate(total_seats=5))


async def test_update_rejects_departure_before_clock(make_ride, driver, ride_service, clock):
    ride = await make_ride()
    clock.advance(hours=2)

    with pytest.raises(DepartureInPastError):
        await ride_service.update_ride(ride.id, driver.id, RideUpdate(departure_time=NOW + timedelta(hours=1)))

    moved = await ride_service.update_ride(ride.id, driver.id, RideUpdate(departure_time=NOW + timedelta(hours=3)))
    assert moved.departure_time == NOW + timedelta(hours=3)


# ────────────────────────── cancel ──────────────────────────────────────────

async def test_cancel_by_other_user_fails(make_ride, make_user, ride_service):
    ride = await make_ride()
    stranger = await make_user("Stranger")

    assert await ride_service.cancel_ride(ride.id, stranger.id) is False
    assert await ride_service.cancel_ride("missing", stranger.id) is False
    assert (await ride_service.get_ride_by_id(ride.id)).status == RideStatus.ACTIVE


async def test_cancel_declines_pending_and_freezes_seats(make_ride, driver, rider_a, rider_b, ride_service, booking_service, sessions):
    ride = await make_ride(total_seats=3)
    accepted = await booking_service.create_booking_request(rider_a.id, ride.id, 2)
    await booking_service.accept_booking(accepted.id, driver.id)
    pending = await booking_service.create_booking_request(rider_b.id, ride.id, 1)

    assert await ride_service.cancel_ride(ride.id, driver.id) is True

    ride = await assert_seat_invariant(sessions, ride.id)
    assert ride.status == RideStatus.CANCELLED
    assert ride.available_seats == 1
    assert (await booking_service.get_booking_by_id(pending.id)).status == BookingStatus.DECLINED
    assert (await booking_service.get_booking_by_id(accepted.id)).status == BookingStatus.ACCEPTED


# ────────────────────────── driver listing ──────────────────────────────────

async def test_driver_rides_active_only_by_default(make_ride, driver, ride_service):
    later = await make_ride(departure_time=NOW + timedelta(days=3))
    sooner = await make_ride(departure_time=NOW + timedelta(days=1))
    cancelled = await make_ride(departure_time=NOW + timedelta(days=2))
    await ride_service.cancel_ride(cancelled.id, driver.id)

    active = await ride_service.get_driver_rides(driver.id)
    assert [r.id for r in active] == [sooner.id, later.id]

    everything = await ride_service.get_driver_rides(driver.id, include_completed=True)
    assert [r.id for r in everything] == [sooner.id, cancelled.id, later.id]


async def test_driver_rides_exclude_other_drivers(make_ride, make_user, ride_service):
    other = await make_user("Other Driver")
    await make_ride(owner=other)

    assert await ride_service.get_driver_rides((await make_user("Nobody")).id) == []


# ────────────────────────── search ──────────────────────────────────────────

async def test_search_only_bookable_future_rides(make_ride, driver, rider_a, ride_service, booking_service, clock):
    bookable = await make_ride()
    full = await make_ride(total_seats=1)
    booking = await booking_service.create_booking_request(rider_a.id, full.id, 1)
    await booking_service.accept_booking(booking.id, driver.id)
    cancelled = await make_ride()
    await ride_service.cancel_ride(cancelled.id, driver.id)
    soon = await make_ride(departure_time=NOW + timedelta(hours=1))

    clock.advance(hours=2)
    result = await ride_service.search_rides(RideSearchParams())

    assert [r.id for r in result.rides] == [bookable.id]
    assert result.total == 1
    assert soon.id not in [r.id for r in result.rides]


async def test_search_city_filters_are_case_insensitive_substrings(make_ride, ride_service):
    match = await make_ride(origin_city="Tirana", destination_city="Durres")
    await make_ride(origin_city="Vlore", destination_city="Durres")

    result = await ride_service.search_rides(RideSearchParams(origin="tir", destination="DUR"))

    assert [r.id for r in result.rides] == [match.id]


async def test_search_escapes_wildcards(make_ride, ride_service):
    await make_ride(origin_city="Tirana")

    result = await ride_service.search_rides(RideSearchParams(origin="%"))

    assert result.total == 0


async def test_search_paginates_in_departure_order(make_ride, ride_service):
    rides = [await make_ride(departure_time=NOW + timedelta(days=d)) for d in (5, 1, 3, 2, 4)]
    expected = [r.id for r in sorted(rides, key=lambda r: r.departure_time)]

    first = await ride_service.search_rides(RideSearchParams(page=1, limit=2))
    third = await ride_service.search_rides(RideSearchParams(page=3, limit=2))

    assert [r.id for r in first.rides] == expected[:2]
    assert [r.id for r in third.rides] == expected[4:]
    assert first.total == 5
    assert first.pages == 3


async def test_search_date_is_anded_with_future_constraint(make_ride, ride_service):
    # NOW is 08:00 UTC on 2030-05-01
    morning = await make_ride(departure_time=NOW + timedelta(minutes=30))
    evening = await make_ride(departure_time=NOW + timedelta(hours=10))
    next_day = await make_ride(departure_time=NOW + timedelta(days=1))

    on_day = await ride_service.search_rides(RideSearchParams(date=date(2030, 5, 1)))
    assert [r.id for r in on_day.rides] == [morning.id, evening.id]

    later_day = await ride_service.search_rides(RideSearchParams(date=date(2030, 5, 2)))
    assert [r.id for r in later_day.rides] == [next_day.id]


async def test_search_date_excludes_rides_already_departed_that_day(make_ride, ride_service, clock):
    morning = await make_ride(departure_time=NOW + timedelta(hours=1))
    evening = await make_ride(departure_time=NOW + timedelta(hours=10))

    clock.advance(hours=2)
    result = await ride_service.search_rides(RideSearchParams(date=date(2030, 5, 1)))

    assert [r.id for r in result.rides] == [evening.id]
    assert morning.id not in [r.id for r in result.rides]
