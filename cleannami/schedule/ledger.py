"""
Dedup ledger of calendar events that have been turned into jobs.

An event is identified by (booking_id, event_uid, event_end). The same
UID with a different end is a separate checkout and gets its own entry.

Entries are written with job_created=False before the job is created
and flipped to True afterwards, so an entry left at False is retried
by the next poll.
"""

import logging
from typing import Optional

from cleannami.models import CalendarEvent, ProcessedEventRecord
from cleannami.storage.row_store import RowStore

logger = logging.getLogger(__name__)

LEDGER_TABLE = "ical_events"
LEDGER_KEY = ("booking_id", "event_uid", "event_end")


def _new_record(booking_id: str, event: CalendarEvent) -> ProcessedEventRecord:
    return ProcessedEventRecord(
        booking_id=booking_id,
        event_uid=event.uid,
        event_end=event.end,
        event_start=event.start,
        event_summary=event.summary,
    )


def find_processed_event(store: RowStore, booking_id: str, event: CalendarEvent) -> Optional[ProcessedEventRecord]:
    row = store.get(LEDGER_TABLE, **_new_record(booking_id, event).key())
    return ProcessedEventRecord.from_row(row) if row else None


def record_event(store: RowStore, booking_id: str, event: CalendarEvent) -> ProcessedEventRecord:
    """Upserts a pending (job_created=False) entry for the event."""
    record = _new_record(booking_id, event)
    store.upsert(LEDGER_TABLE, record.to_row(), key=LEDGER_KEY)
    return record


def mark_job_created(store: RowStore, record: ProcessedEventRecord, job_id: str) -> None:
    """Flips an existing entry to job_created=True in place."""
    store.update(LEDGER_TABLE, {"job_created": True, "job_id": job_id}, **record.key())
    record.job_created = True
    record.job_id = job_id


def claim_event(store: RowStore, booking_id: str, event: CalendarEvent) -> Optional[ProcessedEventRecord]:
    """
    Returns the ledger entry to create a job for, or None when the event
    already has a job.

    Unseen events are recorded first. Entries left pending by an earlier
    poll are returned as they are.
    """
    existing = find_processed_event(store, booking_id, event)

    if existing is not None and existing.job_created:
        logger.debug(f"Event already processed, skipping: {event.uid}")
        return None

    if existing is not None:
        logger.info(f"Retrying job creation for pending event {event.uid}")
        return existing

    return record_event(store, booking_id, event)
