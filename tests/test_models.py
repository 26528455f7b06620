from datetime import datetime, timezone

import pytest

from cleannami.models import (
    AccessMethod,
    AddOnSelection,
    Booking,
    Frequency,
    Job,
    JobStatus,
    LaundryLocation,
    ProcessedEventRecord,
    ServiceType,
    from_iso,
)


def test_service_type_accepts_form_spellings():
    assert ServiceType.coerce("Residential") is ServiceType.RESIDENTIAL
    assert ServiceType.coerce("VR") is ServiceType.VACATION_RENTAL
    assert ServiceType.coerce("vacation_rental") is ServiceType.VACATION_RENTAL
    with pytest.raises(ValueError):
        ServiceType.coerce("commercial")


def test_add_ons_from_form_payload():
    add_ons = AddOnSelection.from_dict({
        "laundry": True,
        "laundryLoads": 2,
        "laundryLocation": "off-site",
        "hotTubFullClean": True,
    })
    assert add_ons.laundry_loads == 2
    assert add_ons.laundry_location is LaundryLocation.OFF_SITE
    assert add_ons.hot_tub_full_clean is True
    assert add_ons.deep_cleaning is False


def test_booking_from_row(booking_row):
    booking = Booking.from_row(booking_row)
    assert booking.service_type is ServiceType.VACATION_RENTAL
    assert booking.frequency is Frequency.WEEKLY
    assert booking.access_method is AccessMethod.LOCKBOX
    assert booking.last_ical_sync is None


def test_job_row_round_trip():
    job = Job(
        booking_id="b1",
        date=datetime(2026, 10, 23, tzinfo=timezone.utc),
        price_cents=15000,
        payout_cents=10500,
        city="Edgewater",
        status=JobStatus.IN_PROGRESS,
        id="j1",
    )
    assert Job.from_row(job.to_row()) == job


def test_ledger_key_uses_utc_iso_end():
    record = ProcessedEventRecord(
        booking_id="b1",
        event_uid="u1",
        event_end=datetime(2026, 10, 23, 11, 0),
    )
    assert record.key()["event_end"] == "2026-10-23T11:00:00+00:00"
    assert record.to_row()["checkout_date"] == "2026-10-23"


def test_from_iso_accepts_zulu():
    assert from_iso("2026-10-23T11:00:00Z") == datetime(2026, 10, 23, 11, 0, tzinfo=timezone.utc)
