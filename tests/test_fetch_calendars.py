import requests

from cleannami.calendars.fetch_calendars import (
    USER_AGENT,
    build_test_events,
    fetch_calendar,
)
from conftest import FakeResponse, FakeSession


def test_fetch_sends_user_agent_and_parses(sample_ics):
    session = FakeSession(FakeResponse(sample_ics))

    events = fetch_calendar("https://feeds.example.com/a.ics", session=session, timeout=5)

    assert len(events) == 2
    call = session.calls[0]
    assert call["headers"] == {"User-Agent": USER_AGENT}
    assert call["timeout"] == 5


def test_fetch_http_error_returns_no_events():
    session = FakeSession(FakeResponse("Not found", status_code=404))
    assert fetch_calendar("https://feeds.example.com/missing.ics", session=session) == []


def test_fetch_network_error_returns_no_events():
    session = FakeSession(error=requests.ConnectionError("connection refused"))
    assert fetch_calendar("https://feeds.example.com/down.ics", session=session) == []


def test_fetch_local_file(tmp_path, sample_ics):
    path = tmp_path / "listing.ics"
    path.write_text(sample_ics, encoding="utf-8")

    events = fetch_calendar(str(path))
    assert [e.uid for e in events] == ["1418fb94e984-abc123@airbnb.com", "vrbo-def456"]


def test_fetch_missing_source_returns_no_events(tmp_path):
    assert fetch_calendar(str(tmp_path / "nope.ics")) == []


def test_test_feed_urls_return_synthetic_events():
    session = FakeSession(error=AssertionError("should not be called"))

    events = fetch_calendar("https://example.com/test-ical/feed.ics", session=session)

    assert [e.uid for e in events] == ["test-checkout-1@cleannami.com", "test-checkout-2@cleannami.com"]
    assert session.calls == []


def test_build_test_events_are_future_checkouts(now):
    tomorrow, next_week = build_test_events(now)
    assert (tomorrow.end - now).days == 1
    assert (next_week.end - now).days == 7
    assert tomorrow.start < tomorrow.end
