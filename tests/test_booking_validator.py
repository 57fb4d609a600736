from datetime import date, datetime, time, timedelta, timezone
from unittest import mock

import pytest

from src.auth.schemas import AppUser
from src.bookings.schemas import BookingRequest, RejectionReason, ValidationResult
from src.bookings.validator import BookingWindowValidator, validate_ticket_date
from src.schedules.exceptions import ScheduleStoreError
from src.schedules.service import ScheduleResolver

from tests.conftest import NOW, FakeScheduleStore, trip_document

CUSTOMER = AppUser(id="u-customer", roles=frozenset({"customer"}), is_active=True)
AGENT = AppUser(id="u-agent", roles=frozenset({"agent"}), is_active=True)
ADMIN = AppUser(id="u-admin", roles=frozenset({"admin"}))


def make_validator(*documents, now=NOW, store=None, **kwargs):
    store = store or FakeScheduleStore({doc["id"]: doc for doc in documents})
    kwargs.setdefault("logger", mock.Mock())
    return BookingWindowValidator(ScheduleResolver(store), clock=lambda: now, **kwargs)


def request(travel_date="2026-10-19", trip_id="trip-1", **kwargs):
    return BookingRequest(trip_id=trip_id, travel_date=travel_date, **kwargs)


@pytest.mark.parametrize(
    "trip_id, travel_date",
    [(None, "2026-10-19"), ("trip-1", None), ("", "2026-10-19"), ("trip-1", "  ")],
)
def test_incomplete_requests_pass_through_without_lookup(trip_id, travel_date):
    store = FakeScheduleStore()
    validator = make_validator(store=store)

    result = validator.validate(BookingRequest(trip_id=trip_id, travel_date=travel_date))

    assert result.ok is True
    assert result.reason is None
    assert store.calls == []


# Scenario A
def test_one_hour_before_departure_only_agents_may_book():
    validator = make_validator(trip_document())

    rejected = validator.validate(request(requester=CUSTOMER))
    assert rejected.ok is False
    assert rejected.reason == RejectionReason.TOO_CLOSE_TO_DEPARTURE
    assert rejected.hours_until_departure == pytest.approx(1.0)
    assert "within 2 hours" in rejected.message

    assert validator.validate(request(requester=AGENT)).ok is True
    assert validator.validate(request(requester=ADMIN)).ok is True


def test_anonymous_and_inactive_requesters_cannot_book_inside_cutoff():
    validator = make_validator(trip_document())
    inactive_agent = AppUser(id="u-agent", roles=frozenset({"agent"}), is_active=False)

    assert validator.validate(request()).reason == RejectionReason.TOO_CLOSE_TO_DEPARTURE
    assert validator.validate(request(requester=inactive_agent)).reason == RejectionReason.TOO_CLOSE_TO_DEPARTURE


# Scenario B
def test_specific_days_trip_rejects_other_weekdays_with_day_names():
    validator = make_validator(trip_document(
        frequency="specific-days", days=["mon", "wed", "fri"], departure_time="10:00",
    ))

    # 2026-10-20 is a Tuesday
    result = validator.validate(request("2026-10-20", requester=AGENT))

    assert result.reason == RejectionReason.DAY_NOT_SCHEDULED
    assert result.message == "This trip only runs on: Monday, Wednesday, Friday"
    assert result.allowed_days == ["Monday", "Wednesday", "Friday"]


# Scenario C
def test_boarding_stop_time_overrides_trip_departure():
    validator = make_validator(trip_document(departure_time="08:00"))

    # From Kabul the bus leaves at 08:00, one hour away; Parwan is served at 09:30
    at_origin = validator.validate(request(boarding_terminal_id="t-kabul", requester=CUSTOMER))
    at_parwan = validator.validate(request(boarding_terminal_id="t-parwan", requester=CUSTOMER))

    assert at_origin.reason == RejectionReason.TOO_CLOSE_TO_DEPARTURE
    assert at_parwan.ok is True
    assert at_parwan.hours_until_departure == pytest.approx(2.5)


def test_boarding_terminal_may_be_an_embedded_document():
    document = trip_document(stops=[
        {"terminal": {"id": "t-kabul"}, "time": "08:00"},
        {"terminal": "t-parwan", "time": "09:30"},
    ])
    validator = make_validator(document)

    result = validator.validate(request(boarding_terminal_id={"id": "t-parwan"}, requester=CUSTOMER))

    assert result.ok is True
    assert result.hours_until_departure == pytest.approx(2.5)


def test_unknown_boarding_terminal_and_stop_without_time_fall_back_to_departure():
    document = trip_document(stops=[{"terminal": "t-parwan", "time": None}])
    validator = make_validator(document)

    assert validator.validate(request(boarding_terminal_id="t-herat")).hours_until_departure == pytest.approx(1.0)
    assert validator.validate(request(boarding_terminal_id="t-parwan")).hours_until_departure == pytest.approx(1.0)


# Scenario D
@pytest.mark.parametrize("travel_date", ["2026-10-25", "not-a-date", "2000-01-01"])
def test_inactive_trip_is_rejected_whatever_the_date(travel_date):
    validator = make_validator(trip_document(is_active=False))

    result = validator.validate(request(travel_date, requester=ADMIN))

    assert result.reason == RejectionReason.TRIP_INACTIVE
    assert result.message == "Selected trip is not active"


def test_unknown_trip_is_reported_as_inactive():
    validator = make_validator(trip_document())
    assert validator.validate(request(trip_id="trip-404")).reason == RejectionReason.TRIP_INACTIVE


def test_unparsable_travel_date():
    validator = make_validator(trip_document())
    result = validator.validate(request("31/31/2026"))
    assert result.reason == RejectionReason.INVALID_DATE_FORMAT


def test_date_normalizer_is_injected():
    normalize = mock.Mock(return_value=date(2026, 10, 21))
    validator = make_validator(trip_document(), normalize_date=normalize)

    result = validator.validate(request("۱۴۰۵/۰۷/۲۹", requester=CUSTOMER))

    normalize.assert_called_once_with("۱۴۰۵/۰۷/۲۹")
    assert result.ok is True
    assert result.hours_until_departure == pytest.approx(49.0)

    normalize.return_value = None
    assert validator.validate(request("garbage")).reason == RejectionReason.INVALID_DATE_FORMAT


def test_persian_travel_date_goes_through_calendar_conversion():
    validator = make_validator(trip_document(frequency="specific-days", days=["mon", "wed", "fri"]))

    # ۱۴۰۵/۰۷/۲۸ is Tuesday 2026-10-20
    result = validator.validate(request("۱۴۰۵/۰۷/۲۸"))

    assert result.reason == RejectionReason.DAY_NOT_SCHEDULED


@pytest.mark.parametrize("departure_time", ["25:99", "soon", "12:xx"])
def test_malformed_departure_time(departure_time):
    validator = make_validator(trip_document(departure_time=departure_time, stops=[]))
    result = validator.validate(request("2026-10-25"))
    assert result.reason == RejectionReason.INVALID_DEPARTURE_TIME


@pytest.mark.parametrize("departure_time", ["", "  ", None])
def test_trip_without_departure_time_skips_time_checks(departure_time):
    validator = make_validator(trip_document(departure_time=departure_time, stops=[]))

    # Same-day date that would otherwise be inside the cutoff
    result = validator.validate(request("2026-10-19", requester=CUSTOMER))

    assert result.ok is True
    assert result.hours_until_departure is None


def test_trip_without_departure_time_still_checks_the_weekday():
    validator = make_validator(trip_document(
        departure_time=None, stops=[], frequency="specific-days", days=["mon"],
    ))
    assert validator.validate(request("2026-10-20")).reason == RejectionReason.DAY_NOT_SCHEDULED


def test_departure_stored_as_time_of_day():
    validator = make_validator(trip_document(departure_time=time(12, 0), stops=[]))

    result = validator.validate(request("2026-10-20", requester=CUSTOMER))

    assert result.ok is True
    assert result.hours_until_departure == pytest.approx(29.0)


def test_stop_time_stored_as_time_of_day():
    document = trip_document(stops=[
        {"terminal": "t-kabul", "time": time(8, 0)},
        {"terminal": "t-parwan", "time": time(9, 30)},
    ])
    validator = make_validator(document)

    result = validator.validate(request(boarding_terminal_id="t-parwan", requester=CUSTOMER))

    assert result.ok is True
    assert result.hours_until_departure == pytest.approx(2.5)


def test_iso_timestamp_departure_uses_its_clock_part():
    validator = make_validator(trip_document(departure_time="1970-01-01T10:15:00", stops=[]))
    result = validator.validate(request(requester=CUSTOMER))
    assert result.ok is True
    assert result.hours_until_departure == pytest.approx(3.25)


def test_exactly_two_hours_out_is_bookable():
    validator = make_validator(trip_document(departure_time="09:00", stops=[]))

    result = validator.validate(request(requester=CUSTOMER))

    assert result.ok is True
    assert result.hours_until_departure == 2.0


def test_just_under_two_hours_needs_an_agent():
    validator = make_validator(
        trip_document(departure_time="09:00", stops=[]),
        now=NOW + timedelta(milliseconds=1),
    )

    assert validator.validate(request(requester=CUSTOMER)).reason == RejectionReason.TOO_CLOSE_TO_DEPARTURE
    assert validator.validate(request(requester=AGENT)).ok is True


@pytest.mark.parametrize("departure_time", ["07:00", "06:59", "00:00"])
def test_departed_trips_are_rejected_even_for_agents(departure_time):
    validator = make_validator(trip_document(departure_time=departure_time, stops=[]))

    for requester in (CUSTOMER, AGENT, ADMIN):
        result = validator.validate(request(requester=requester))
        assert result.reason == RejectionReason.ALREADY_DEPARTED
        assert result.hours_until_departure <= 0


def test_past_travel_date_is_already_departed():
    validator = make_validator(trip_document())
    assert validator.validate(request("2026-10-18", requester=AGENT)).reason == RejectionReason.ALREADY_DEPARTED


def test_daily_trips_accept_any_weekday_two_hours_out():
    validator = make_validator(trip_document())

    for offset in range(1, 8):
        travel_date = (NOW + timedelta(days=offset)).date().isoformat()
        result = validator.validate(request(travel_date, requester=CUSTOMER))
        assert result.ok is True, travel_date


@pytest.mark.parametrize("clock_hour", [0, 7, 12, 23])
def test_specific_days_rejects_unscheduled_weekdays_at_any_time(clock_hour):
    validator = make_validator(
        trip_document(frequency="specific-days", days=["sat", "sun"]),
        now=NOW.replace(hour=clock_hour),
    )

    # Every weekday from 2026-10-12 through 2026-10-30
    for offset in range(-7, 12):
        travel_date = NOW.date() + timedelta(days=offset)
        if travel_date.weekday() >= 5:
            continue
        result = validator.validate(request(travel_date.isoformat(), requester=ADMIN))
        assert result.reason == RejectionReason.DAY_NOT_SCHEDULED, travel_date


def test_specific_days_with_no_days_never_runs():
    validator = make_validator(trip_document(frequency="specific-days", days=[]))
    result = validator.validate(request("2026-10-25"))
    assert result.reason == RejectionReason.DAY_NOT_SCHEDULED
    assert result.message == "This trip only runs on: "


def test_weekday_check_uses_travel_date_when_boarding_is_after_midnight():
    document = trip_document(
        frequency="specific-days",
        days=["tue"],
        departure_time="20:00",
        stops=[{"terminal": "t-kabul", "time": "20:00"}, {"terminal": "t-herat", "time": "00:30"}],
    )
    validator = make_validator(document)

    # Boarding at Herat on Tuesday 00:30 still counts as a Tuesday booking
    result = validator.validate(request("2026-10-20", boarding_terminal_id="t-herat"))

    assert result.ok is True
    assert result.hours_until_departure == pytest.approx(17.5)


def test_validation_is_idempotent_and_reads_fresh_each_time():
    store = FakeScheduleStore({"trip-1": trip_document()})
    validator = make_validator(store=store)

    first = validator.validate(request(requester=CUSTOMER))
    second = validator.validate(request(requester=CUSTOMER))

    assert first == second
    assert len(store.calls) == 2


def test_store_failure_becomes_validation_error():
    logger = mock.Mock()
    store = FakeScheduleStore(error=ScheduleStoreError("connection refused"))
    validator = make_validator(store=store, logger=logger)

    result = validator.validate(request())

    assert result.reason == RejectionReason.VALIDATION_ERROR
    assert "connection refused" in result.cause
    assert "cause" not in result.model_dump()
    assert logger.error.called


def test_unexpected_errors_never_escape():
    logger = mock.Mock()
    validator = make_validator(
        trip_document(),
        logger=logger,
        normalize_date=mock.Mock(side_effect=RuntimeError("calendar service down")),
    )

    result = validator.validate(request())

    assert result.ok is False
    assert result.reason == RejectionReason.VALIDATION_ERROR
    assert result.message == "Error validating trip date"
    assert "calendar service down" in result.cause
    logger.exception.assert_called_once()


def test_aware_clock_is_honoured():
    validator = make_validator(trip_document(), now=NOW.replace(tzinfo=timezone.utc))
    result = validator.validate(request(requester=CUSTOMER))
    assert result.reason == RejectionReason.TOO_CLOSE_TO_DEPARTURE
    assert result.hours_until_departure == pytest.approx(1.0)


def test_custom_cutoff_and_override_role():
    validator = make_validator(trip_document(), cutoff_hours=0.5, override_role="admin")
    assert validator.validate(request(requester=CUSTOMER)).ok is True

    validator = make_validator(trip_document(), cutoff_hours=3, override_role="admin")
    result = validator.validate(request("2026-10-19", boarding_terminal_id="t-parwan", requester=AGENT))
    assert result.reason == RejectionReason.TOO_CLOSE_TO_DEPARTURE
    assert "within 3 hours" in result.message


def test_validate_ticket_date_contract():
    validator = make_validator(trip_document())

    assert validate_ticket_date(validator, None, None) == {"ok": True}
    assert validate_ticket_date(validator, "trip-1", "2026-10-19", requester="agent") == {"ok": True}
    assert validate_ticket_date(
        validator, "trip-1", "2026-10-19",
        requester={"id": "u1", "roles": ["driver"], "isActive": True},
    ) == {"ok": True}
    assert validate_ticket_date(validator, "trip-1", datetime(2026, 10, 19), requester=AGENT) == {"ok": True}

    rejected = validate_ticket_date(validator, "trip-1", "2026-10-19", requester="customer")
    assert rejected["ok"] is False
    assert rejected["reason"] == "too_close_to_departure"
    assert rejected["message"].startswith("Booking is not allowed within 2 hours")


def test_rejected_result_defaults_message():
    result = ValidationResult.rejected(RejectionReason.ALREADY_DEPARTED)
    assert result.to_contract() == {
        "ok": False,
        "reason": "already_departed",
        "message": "Cannot book tickets for trips that have already departed",
    }
