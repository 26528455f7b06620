import logging
import os
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import requests

from cleannami.calendars.parse_ical import parse_ical
from cleannami.models import CalendarEvent

logger = logging.getLogger(__name__)

USER_AGENT = "CleanNami-iCal-Poller/1.0"
DEFAULT_TIMEOUT = 10

TEST_URL_MARKERS = ("test-ical", "dummy")


def is_test_source(source: str) -> bool:
    return any(marker in source for marker in TEST_URL_MARKERS)


def build_test_events(now: Optional[datetime] = None) -> List[CalendarEvent]:
    """
    Two synthetic checkouts (tomorrow and next week) used when a booking
    points at a test feed, so the pipeline can be exercised end to end.
    """
    now = now or datetime.now(timezone.utc)
    tomorrow = now + timedelta(days=1)
    next_week = now + timedelta(days=7)

    return [
        CalendarEvent(
            uid="test-checkout-1@cleannami.com",
            summary="Test Guest Checkout - Room A",
            start=tomorrow - timedelta(days=2),
            end=tomorrow,
            description="Test checkout event for testing job creation",
        ),
        CalendarEvent(
            uid="test-checkout-2@cleannami.com",
            summary="Test Guest Checkout - Room B",
            start=next_week - timedelta(days=3),
            end=next_week,
            description="Another test checkout event",
        ),
    ]


def fetch_calendar(
    source: str,
    session=None,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
    user_agent: str = USER_AGENT,
) -> List[CalendarEvent]:
    """
    Fetches and parses an iCal feed.
    - If 'source' is a test feed URL, returns synthetic events.
    - If 'source' is a URL (starts with http), download it.
    - If it's a file path, read it from disk.

    Never raises: a failed fetch is logged and returns no events, so
    one broken feed does not stop the rest of the poll.
    """

    if is_test_source(source):
        logger.info(f"Using test iCal data for {source}")
        return build_test_events()

    try:
        # Case 1: URL mode
        if source.startswith("http://") or source.startswith("https://"):
            http = session or requests
            response = http.get(source, headers={"User-Agent": user_agent}, timeout=timeout)
            response.raise_for_status()
            return parse_ical(response.text)

        # Case 2: Local file mode
        if os.path.exists(source):
            with open(source, "r", encoding="utf-8") as f:
                return parse_ical(f.read())

        raise FileNotFoundError(f"Could not fetch calendar from: {source}")

    except (requests.RequestException, OSError) as e:
        logger.warning(f"Failed to fetch iCal from {source}: {e}")
        return []
