import logging
from typing import Optional

from cleannami.models import Booking, CalendarEvent, Job, JobStatus
from cleannami.pricing.payout import flat_share_payout
from cleannami.storage.row_store import RowStore

logger = logging.getLogger(__name__)

JOBS_TABLE = "jobs"


def build_job(booking: Booking, event: CalendarEvent) -> Job:
    """
    Turns a checkout event into a New job on the checkout date.

    Payout is a flat share of the booking total; the contractor minimum
    used elsewhere is not applied to feed-created jobs.
    """
    summary = event.summary or "Guest checkout"
    return Job(
        booking_id=booking.id,
        date=event.end,
        price_cents=booking.total_price_cents,
        payout_cents=flat_share_payout(booking.total_price_cents),
        city=booking.property_city,
        status=JobStatus.NEW,
        notes=f"Auto-created from iCal - {summary} - {booking.property_address}",
    )


def create_job_from_event(store: RowStore, booking: Booking, event: CalendarEvent) -> Optional[str]:
    """
    Inserts the job for a checkout event.
    Returns the new job id, or None if the insert failed.
    """
    logger.info(f"Creating job for booking {booking.id} from event {event.uid} (checkout {event.end.isoformat()})")

    try:
        row = store.insert(JOBS_TABLE, build_job(booking, event).to_row())
    except Exception:
        logger.exception(f"Failed to create job for booking {booking.id}, event {event.uid}")
        return None

    logger.info(f"Job created: {row['id']}")
    return row["id"]
