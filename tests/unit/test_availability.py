"""Unit tests for trainer availability and its effect on match requests."""

from datetime import date, datetime, time, timezone

import pytest
from libs.common.config import Settings
from services.bookings_service.errors import (
    InvalidAvailability,
    OutsideAvailability,
    TrainerNotFound,
)
from services.bookings_service.models import (
    BookingStatus,
    Sport,
    TrainerAvailabilitySlot,
)
from services.bookings_service.services.availability import (
    AvailabilityRule,
    get_trainer_availability,
    is_within_availability,
    set_trainer_availability,
    validate_rule,
)
from services.bookings_service.services.resolver import RequestedWindow, resolve
from tests.factories import BookingFactory, TrainerProfileFactory

NEW_YORK = "America/New_York"
MONDAY = 0
TUESDAY = 1

# 2030-06-03 is a Monday; New York is on EDT (UTC-4) in June
NOW = datetime(2030, 6, 1, 12, 0, tzinfo=timezone.utc)


def _utc(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2030, 6, day, hour, minute, tzinfo=timezone.utc)


def _slot(start: time, end: time, **overrides) -> TrainerAvailabilitySlot:
    fields = {"trainer_id": "trainer-avail", "is_blocked": False}
    fields.update(overrides)
    return TrainerAvailabilitySlot(start_time=start, end_time=end, **fields)


def _settings(**overrides) -> Settings:
    return Settings(DATABASE_URL="sqlite+aiosqlite://", **overrides)


MONDAY_HOURS = [_slot(time(9, 0), time(17, 0), day_of_week=MONDAY)]


# ---------------------------------------------------------------------------
# is_within_availability
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_no_declared_hours_accepts_any_window():
    assert is_within_availability([], _utc(3, 7), _utc(3, 8), NEW_YORK)


@pytest.mark.unit
@pytest.mark.parametrize(
    "start,end,expected",
    [
        (_utc(3, 14), _utc(3, 15), True),  # Monday 10:00-11:00 local
        (_utc(3, 13), _utc(3, 21), True),  # exactly 09:00-17:00
        (_utc(3, 20, 30), _utc(3, 21, 30), False),  # runs past 17:00
        (_utc(3, 7), _utc(3, 8), False),  # Monday 03:00 local
        (_utc(4, 14), _utc(4, 15), False),  # Tuesday
    ],
)
def test_window_must_fit_inside_open_hours(start, end, expected):
    assert is_within_availability(MONDAY_HOURS, start, end, NEW_YORK) is expected


@pytest.mark.unit
def test_hours_are_read_in_the_trainer_timezone():
    # 14:00 UTC is 10:00 in New York but 07:00 in Los Angeles
    assert is_within_availability(MONDAY_HOURS, _utc(3, 14), _utc(3, 15), NEW_YORK)
    assert not is_within_availability(
        MONDAY_HOURS, _utc(3, 14), _utc(3, 15), "America/Los_Angeles"
    )


@pytest.mark.unit
def test_blocked_slot_overrides_open_hours():
    slots = MONDAY_HOURS + [
        _slot(
            time(12, 0), time(13, 0), specific_date=date(2030, 6, 3), is_blocked=True
        )
    ]

    assert not is_within_availability(slots, _utc(3, 16, 30), _utc(3, 17, 30), NEW_YORK)
    assert is_within_availability(slots, _utc(3, 14), _utc(3, 15), NEW_YORK)
    # The block is for one date only
    assert is_within_availability(slots, _utc(10, 16, 30), _utc(10, 17, 30), NEW_YORK)


@pytest.mark.unit
def test_only_blocks_declared_leaves_other_hours_open():
    slots = [_slot(time(0, 0), time(0, 0), day_of_week=TUESDAY, is_blocked=True)]

    assert is_within_availability(slots, _utc(3, 14), _utc(3, 15), NEW_YORK)
    assert not is_within_availability(slots, _utc(4, 14), _utc(4, 15), NEW_YORK)


@pytest.mark.unit
def test_adjacent_slots_cover_a_session_across_midnight():
    slots = [
        _slot(time(20, 0), time(0, 0), day_of_week=MONDAY),
        _slot(time(0, 0), time(2, 0), day_of_week=TUESDAY),
    ]

    # Monday 23:00 to Tuesday 01:00 in New York
    assert is_within_availability(slots, _utc(4, 3), _utc(4, 5), NEW_YORK)
    # Tuesday 01:00 to 03:00 runs past the end
    assert not is_within_availability(slots, _utc(4, 5), _utc(4, 7), NEW_YORK)


@pytest.mark.unit
def test_dated_slot_opens_an_extra_day():
    # Saturday 2030-06-08
    slots = MONDAY_HOURS + [
        _slot(time(8, 0), time(10, 0), specific_date=date(2030, 6, 8))
    ]

    assert is_within_availability(slots, _utc(8, 12), _utc(8, 13), NEW_YORK)
    assert not is_within_availability(slots, _utc(15, 12), _utc(15, 13), NEW_YORK)


# ---------------------------------------------------------------------------
# validate_rule
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    "rule",
    [
        AvailabilityRule(start_time=time(9, 0), end_time=time(17, 0)),
        AvailabilityRule(
            start_time=time(9, 0),
            end_time=time(17, 0),
            day_of_week=MONDAY,
            specific_date=date(2030, 6, 3),
        ),
        AvailabilityRule(start_time=time(9, 0), end_time=time(17, 0), day_of_week=7),
        AvailabilityRule(start_time=time(17, 0), end_time=time(9, 0), day_of_week=0),
        AvailabilityRule(start_time=time(9, 0), end_time=time(9, 0), day_of_week=0),
    ],
)
def test_malformed_rules_are_rejected(rule):
    with pytest.raises(InvalidAvailability):
        validate_rule(rule)


@pytest.mark.unit
def test_rule_may_run_to_end_of_day():
    validate_rule(
        AvailabilityRule(start_time=time(18, 0), end_time=time(0, 0), day_of_week=4)
    )


# ---------------------------------------------------------------------------
# set / get
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_setting_availability_replaces_previous_set(db_session):
    profile = TrainerProfileFactory.create()
    db_session.add(profile)
    await db_session.commit()
    trainer_id = profile.trainer_id

    await set_trainer_availability(
        db_session,
        trainer_id=trainer_id,
        rules=[
            AvailabilityRule(
                start_time=time(9, 0), end_time=time(12, 0), day_of_week=MONDAY
            ),
            AvailabilityRule(
                start_time=time(13, 0), end_time=time(17, 0), day_of_week=MONDAY
            ),
        ],
        settings=_settings(),
    )
    await set_trainer_availability(
        db_session,
        trainer_id=trainer_id,
        rules=[
            AvailabilityRule(
                start_time=time(6, 0), end_time=time(8, 0), day_of_week=TUESDAY
            )
        ],
        settings=_settings(),
    )

    slots = await get_trainer_availability(db_session, trainer_id, settings=_settings())
    assert [(s.day_of_week, s.start_time, s.end_time) for s in slots] == [
        (TUESDAY, time(6, 0), time(8, 0))
    ]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_availability_needs_a_profile(db_session):
    with pytest.raises(TrainerNotFound):
        await set_trainer_availability(
            db_session,
            trainer_id="trainer-nobody",
            rules=[],
            settings=_settings(),
        )


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


async def _trainer_with_monday_hours(db_session):
    profile = TrainerProfileFactory.create(timezone=NEW_YORK)
    db_session.add(profile)
    await db_session.commit()
    trainer_id = profile.trainer_id
    await set_trainer_availability(
        db_session,
        trainer_id=trainer_id,
        rules=[
            AvailabilityRule(
                start_time=time(9, 0), end_time=time(17, 0), day_of_week=MONDAY
            )
        ],
        settings=_settings(),
    )
    return trainer_id


@pytest.mark.asyncio
@pytest.mark.unit
async def test_request_outside_hours_is_rejected(db_session):
    trainer_id = await _trainer_with_monday_hours(db_session)

    with pytest.raises(OutsideAvailability):
        await resolve(
            db_session,
            athlete_id="athlete-1",
            trainer_id=trainer_id,
            sport=Sport.TENNIS,
            # 03:00 Monday in New York
            window=RequestedWindow(start=_utc(3, 7), duration_minutes=60),
            now=NOW,
            settings=_settings(),
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_request_inside_hours_is_booked(db_session):
    trainer_id = await _trainer_with_monday_hours(db_session)

    booking = await resolve(
        db_session,
        athlete_id="athlete-1",
        trainer_id=trainer_id,
        sport=Sport.TENNIS,
        window=RequestedWindow(start=_utc(3, 14), duration_minutes=60),
        now=NOW,
        settings=_settings(),
    )

    assert booking.status == BookingStatus.PENDING
    assert booking.scheduled_at == _utc(3, 14)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_availability_is_checked_before_overlaps(db_session):
    trainer_id = await _trainer_with_monday_hours(db_session)
    db_session.add(
        BookingFactory.create(
            trainer_id=trainer_id,
            status=BookingStatus.CONFIRMED,
            scheduled_at=_utc(3, 7),
        )
    )
    await db_session.commit()

    with pytest.raises(OutsideAvailability):
        await resolve(
            db_session,
            athlete_id="athlete-2",
            trainer_id=trainer_id,
            sport=Sport.TENNIS,
            window=RequestedWindow(start=_utc(3, 7), duration_minutes=60),
            now=NOW,
            settings=_settings(),
        )
