from datetime import datetime, timezone

from cleannami.models import Booking, CalendarEvent
from cleannami.schedule.create_jobs import build_job
from cleannami.schedule.ledger import (
    LEDGER_TABLE,
    claim_event,
    find_processed_event,
    mark_job_created,
)
from cleannami.storage.row_store import InMemoryRowStore


def checkout(uid="u1", day=23):
    return CalendarEvent(
        uid=uid,
        summary="",
        start=datetime(2026, 10, 20, tzinfo=timezone.utc),
        end=datetime(2026, 10, day, 11, 0, tzinfo=timezone.utc),
    )


def test_unseen_event_is_recorded_pending():
    store = InMemoryRowStore()

    record = claim_event(store, "b1", checkout())

    assert record is not None
    assert record.job_created is False
    assert find_processed_event(store, "b1", checkout()).job_created is False


def test_pending_event_is_claimed_again_without_new_entry():
    store = InMemoryRowStore()
    claim_event(store, "b1", checkout())

    again = claim_event(store, "b1", checkout())

    assert again is not None
    assert len(store.select(LEDGER_TABLE)) == 1


def test_processed_event_is_skipped():
    store = InMemoryRowStore()
    record = claim_event(store, "b1", checkout())
    mark_job_created(store, record, "job-1")

    assert claim_event(store, "b1", checkout()) is None
    [row] = store.select(LEDGER_TABLE)
    assert row["job_id"] == "job-1"


def test_key_includes_booking_and_end():
    store = InMemoryRowStore()
    record = claim_event(store, "b1", checkout())
    mark_job_created(store, record, "job-1")

    assert claim_event(store, "b2", checkout()) is not None
    assert claim_event(store, "b1", checkout(day=24)) is not None


def test_feed_jobs_skip_the_payout_minimum():
    booking = Booking(id="b1", total_price_cents=5000, property_city="Edgewater")

    job = build_job(booking, checkout())

    assert job.payout_cents == 3500
    assert job.notes == "Auto-created from iCal - Guest checkout - "
