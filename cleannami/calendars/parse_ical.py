import logging
from datetime import datetime, timezone
from typing import List, Optional

from icalendar import vText
from icalendar.parser import Contentline

from cleannami.models import CalendarEvent

logger = logging.getLogger(__name__)

EVENT_FIELDS = {"UID", "SUMMARY", "DESCRIPTION", "DTSTART", "DTEND"}
TEXT_FIELDS = {"UID", "SUMMARY", "DESCRIPTION"}


def parse_ical_date(value: str) -> datetime:
    """
    Parses an iCal date value into a UTC datetime.

    - "20241201"          -> 2024-12-01 00:00 UTC
    - "20241201T140000Z"  -> 2024-12-01 14:00 UTC
    - "20241201T140000"   -> 2024-12-01 14:00 UTC (no timezone conversion)

    Raises ValueError for anything else.
    """
    value = value.strip()

    if "T" in value:
        day, _, time = value.partition("T")
        time = time.rstrip("Z")
        if len(day) != 8 or not (day + time).isdigit() or len(time) > 6:
            raise ValueError(f"Invalid iCal timestamp: {value!r}")
        time = time.ljust(6, "0")
        return datetime(
            int(day[:4]), int(day[4:6]), int(day[6:8]),
            int(time[:2]), int(time[2:4]), int(time[4:6]),
            tzinfo=timezone.utc,
        )

    if len(value) != 8 or not value.isdigit():
        raise ValueError(f"Invalid iCal date: {value!r}")
    return datetime(int(value[:4]), int(value[4:6]), int(value[6:8]), tzinfo=timezone.utc)


def _split_line(line: str) -> Optional[tuple]:
    """
    Splits a content line into (NAME, value) on the first unquoted colon.
    Property parameters (VALUE=DATE, TZID=...) are dropped.
    Returns None when the line is not a content line.

    Text values (UID, SUMMARY, DESCRIPTION) are unescaped per RFC 5545,
    so "\\," becomes "," and "\\n" a newline. Other values are raw.
    """
    try:
        name, _params, _value = Contentline(line).parts()
    except ValueError:
        return None

    name = name.upper()
    value = _raw_value(line)
    if name in TEXT_FIELDS:
        value = str(vText.from_ical(value))
    return name, value


def _raw_value(line: str) -> str:
    # Everything after the first colon outside a quoted parameter value
    in_quotes = False
    for i, ch in enumerate(line):
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == ":" and not in_quotes:
            return line[i + 1:]
    return ""


def _build_event(fields: dict) -> Optional[CalendarEvent]:
    if not fields.get("UID") or not fields.get("DTSTART") or not fields.get("DTEND"):
        return None

    try:
        start = parse_ical_date(fields["DTSTART"])
        end = parse_ical_date(fields["DTEND"])
    except ValueError as e:
        logger.debug(f"Skipping event {fields['UID']}: {e}")
        return None

    return CalendarEvent(
        uid=fields["UID"],
        summary=fields.get("SUMMARY", ""),
        start=start,
        end=end,
        description=fields.get("DESCRIPTION"),
    )


def parse_ical(ical_text: str) -> List[CalendarEvent]:
    """
    Parses raw iCal text and extracts VEVENT blocks.

    Only UID, SUMMARY, DESCRIPTION, DTSTART and DTEND are read.
    A block missing UID, DTSTART or DTEND, or with an unreadable
    date, is dropped; the rest of the feed is still returned.
    """
    events = []
    fields = None

    for raw_line in ical_text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        if line == "BEGIN:VEVENT":
            if fields is not None:
                logger.debug("Unterminated VEVENT dropped")
            fields = {}
            continue

        if fields is None:
            continue

        if line == "END:VEVENT":
            event = _build_event(fields)
            if event is not None:
                events.append(event)
            else:
                logger.debug(f"Dropped incomplete VEVENT: {fields.get('UID', '<no uid>')}")
            fields = None
            continue

        parts = _split_line(line)
        if parts is None:
            continue

        name, value = parts
        if name in EVENT_FIELDS:
            fields[name] = value

    return events
