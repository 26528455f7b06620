import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from functools import partial
from typing import Callable, List, Optional, Tuple

from cleannami.calendars.fetch_calendars import fetch_calendar
from cleannami.calendars.filter_checkouts import filter_checkout_events
from cleannami.config.utils import (
    build_store,
    configure_logging,
    ical_settings,
    load_config,
    pricing_config,
)
from cleannami.exceptions import CleanNamiError
from cleannami.models import Booking, BookingResult, PollResult, to_iso
from cleannami.pricing.quote import quote_from_payload
from cleannami.schedule.create_jobs import create_job_from_event
from cleannami.schedule.ledger import claim_event, mark_job_created
from cleannami.storage.row_store import RowStore

logger = logging.getLogger(__name__)

BOOKINGS_TABLE = "bookings"


def eligible_bookings(store: RowStore, settings: dict) -> List[Booking]:
    """Active/confirmed, paid bookings that have at least one iCal URL."""
    bookings = []
    for row in store.select(BOOKINGS_TABLE):
        if not row.get("ical_urls"):
            continue
        if row.get("booking_status") not in settings["booking_statuses"]:
            continue
        if row.get("payment_status") not in settings["payment_statuses"]:
            continue
        try:
            bookings.append(Booking.from_row(row))
        except (KeyError, TypeError, ValueError):
            logger.exception(f"Skipping unreadable booking row {row.get('id')}")
    return bookings


def process_feed(store: RowStore, booking: Booking, url: str, now: datetime,
                 fetch: Callable, result: BookingResult) -> None:
    events = fetch(url)
    logger.info(f"Fetched {len(events)} events from {url}")

    checkouts = filter_checkout_events(events, now)
    logger.info(f"  → {len(checkouts)} future checkout events")

    for event in checkouts:
        result.events_processed += 1

        try:
            record = claim_event(store, booking.id, event)
        except CleanNamiError:
            logger.exception(f"Failed to record iCal event {event.uid}")
            continue

        if record is None:
            continue

        job_id = create_job_from_event(store, booking, event)
        if job_id is None:
            # Ledger entry stays pending; the next poll retries it.
            continue

        result.jobs_created += 1

        try:
            mark_job_created(store, record, job_id)
        except CleanNamiError:
            # Entry stays pending, so the next poll creates the job again.
            logger.exception(f"Job {job_id} created but event {event.uid} could not be marked as processed")
            continue

        logger.info(f"Job {job_id} created and event {event.uid} marked as processed")


def process_booking(store: RowStore, booking: Booking, now: datetime, fetch: Callable) -> BookingResult:
    result = BookingResult(booking_id=booking.id)
    logger.info(f"Processing booking {booking.id} ({len(booking.ical_urls)} feeds)")

    for url in booking.ical_urls:
        try:
            process_feed(store, booking, url, now, fetch, result)
        except Exception:
            logger.exception(f"Error processing iCal URL {url}")
            result.failed_feeds.append(url)
            continue
        result.feeds_processed += 1

    # Liveness marker: written even when every feed failed.
    try:
        store.update(BOOKINGS_TABLE, {"last_ical_sync": to_iso(now)}, id=booking.id)
    except CleanNamiError:
        logger.exception(f"Failed to update last iCal sync for booking {booking.id}")

    return result


def poll_ical_and_create_jobs(
    store: RowStore,
    config: Optional[dict] = None,
    now: Optional[datetime] = None,
    manual: bool = False,
    fetch: Optional[Callable] = None,
) -> PollResult:
    """
    One polling pass over every eligible booking.

    For each feed: fetch, parse, keep future checkouts, skip events the
    ledger has already turned into jobs, create the rest.

    Bookings, feeds and events are handled one after another. Failures
    below the booking level are logged and skipped; errors reading the
    booking list propagate.
    """
    config = config or {}
    settings = ical_settings(config)
    now = now or datetime.now(timezone.utc)
    fetch = fetch or partial(
        fetch_calendar,
        timeout=settings["timeout_seconds"],
        user_agent=settings["user_agent"],
    )

    logger.info(f"Starting iCal polling ({'manual' if manual else 'scheduled'})")

    bookings = eligible_bookings(store, settings)
    logger.info(f"Found {len(bookings)} bookings with iCal URLs")

    result = PollResult(timestamp=now, manual=manual)
    for booking in bookings:
        result.booking_results.append(process_booking(store, booking, now, fetch))

    logger.info(
        f"iCal polling completed: {result.bookings_processed} bookings, "
        f"{result.events_processed} events, {result.jobs_created} jobs created"
    )
    return result


def handle_poll_request(payload: Optional[dict] = None, store: Optional[RowStore] = None,
                        config: Optional[dict] = None, fetch: Optional[Callable] = None) -> Tuple[dict, int]:
    """
    Entry point for a scheduled or manual trigger.
    Returns (response body, HTTP status).
    """
    payload = payload or {}
    manual = bool(payload.get("manual", False))

    try:
        config = config if config is not None else load_config()
        store = store or build_store(config)
        result = poll_ical_and_create_jobs(store, config, manual=manual, fetch=fetch)
    except Exception as e:
        logger.exception("Error in iCal polling")
        return {"error": str(e), "timestamp": to_iso(datetime.now(timezone.utc))}, 500

    return result.to_dict(), 200


def handle_quote_request(payload: dict, config: Optional[dict] = None) -> Tuple[dict, int]:
    try:
        config = config if config is not None else load_config()
        body = quote_from_payload(payload, pricing_config(config))
    except (KeyError, TypeError, ValueError) as e:
        return {"error": f"Invalid quote request: {e}"}, 400
    except CleanNamiError as e:
        return {"error": str(e)}, 500
    return body, 200


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="CleanNami pricing and iCal job creation")
    parser.add_argument("--config", help="Path to config.yaml")
    subparsers = parser.add_subparsers(dest="command")

    poll = subparsers.add_parser("poll", help="Poll iCal feeds and create cleaning jobs")
    poll.add_argument("--manual", action="store_true", help="Mark this run as manually triggered")

    quote = subparsers.add_parser("quote", help="Price a booking form payload")
    quote.add_argument("payload", help="JSON payload, or - to read from stdin")

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except CleanNamiError as e:
        print(json.dumps({"error": str(e)}, indent=2))
        return 1

    configure_logging(config)

    if args.command == "quote":
        raw = sys.stdin.read() if args.payload == "-" else args.payload
        body, status = handle_quote_request(json.loads(raw), config)
    else:
        body, status = handle_poll_request({"manual": getattr(args, "manual", False)}, config=config)

    print(json.dumps(body, indent=2))
    return 0 if status == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
