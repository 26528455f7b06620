from datetime import date, datetime, timezone
from typing import Iterable, List

from cleannami.models import CalendarEvent


def utc_day(value: datetime) -> date:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).date()


def filter_checkout_events(events: Iterable[CalendarEvent], now: datetime) -> List[CalendarEvent]:
    """
    Keeps events whose checkout day is today or later.
    Compared by UTC calendar day, so a checkout earlier today still counts.
    """
    today = utc_day(now)
    return [e for e in events if utc_day(e.end) >= today]
