from datetime import datetime, timezone

import pytest

from cleannami.storage.row_store import InMemoryRowStore


SAMPLE_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Airbnb Inc//Hosting Calendar 1.0//EN
BEGIN:VEVENT
DTSTART;VALUE=DATE:20261020
DTEND;VALUE=DATE:20261023
SUMMARY:Reserved
UID:1418fb94e984-abc123@airbnb.com
DESCRIPTION:Reservation URL: https://www.airbnb.com/hosting/reservations/details/HMABC
END:VEVENT
BEGIN:VEVENT
DTSTART:20261101T150000Z
DTEND:20261105T110000Z
SUMMARY:Guest Stay
UID:vrbo-def456
END:VEVENT
BEGIN:VEVENT
DTSTART;VALUE=DATE:20261110
SUMMARY:Broken - no end
UID:broken-1
END:VEVENT
END:VCALENDAR
"""


class FakeResponse:
    def __init__(self, text="", status_code=200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        import requests

        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class FakeSession:
    """Stands in for requests; records every call."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def sample_ics() -> str:
    return SAMPLE_ICS


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def booking_row() -> dict:
    return {
        "id": "booking-1",
        "ical_urls": ["https://feeds.example.com/listing-1.ics"],
        "total_price_cents": 15000,
        "property_city": "Daytona Beach",
        "property_address": "12 Ocean Ave",
        "booking_status": "confirmed",
        "payment_status": "setup_complete",
        "service_type": "vacation_rental",
        "frequency": "weekly",
        "access_method": "lockbox",
        "last_ical_sync": None,
    }


@pytest.fixture
def store(booking_row) -> InMemoryRowStore:
    return InMemoryRowStore({"bookings": [booking_row]})
