"""
Records shared by the pricing engine and the iCal job pipeline.

Persisted records (Booking, Job, ProcessedEventRecord) convert to and
from plain row dicts so any row store can hold them. Timestamps are
stored as ISO-8601 UTC strings.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional


class ServiceType(str, Enum):
    RESIDENTIAL = "residential"
    VACATION_RENTAL = "vacation_rental"

    @classmethod
    def coerce(cls, value) -> "ServiceType":
        """
        Accepts enum members, canonical values and the booking form
        spellings ("Residential", "VR").
        """
        if isinstance(value, cls):
            return value
        aliases = {"residential": cls.RESIDENTIAL, "vr": cls.VACATION_RENTAL}
        key = str(value).strip().lower()
        if key in aliases:
            return aliases[key]
        return cls(key)


class Frequency(str, Enum):
    ONE_TIME = "one-time"
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    TRI_WEEKLY = "tri-weekly"
    MONTHLY = "monthly"


class LaundryLocation(str, Enum):
    ON_SITE = "on-site"
    OFF_SITE = "off-site"


class HotTubFullCleanFrequency(str, Enum):
    FIRST_CLEAN = "first-clean"


class AccessMethod(str, Enum):
    LOCKBOX = "lockbox"
    SMART_LOCK = "smart-lock"
    KEYPAD = "keypad"
    KEY_PICKUP = "key-pickup"
    OTHER = "other"


class JobStatus(str, Enum):
    NEW = "New"
    CLAIMED = "Claimed"
    ASSIGNED = "Assigned"
    IN_PROGRESS = "In Progress"
    SUBMITTED = "Submitted"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


def to_iso(value: datetime) -> str:
    """Serialize a timestamp as ISO-8601 in UTC. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def from_iso(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ---------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class AddOnSelection:
    deep_cleaning: bool = False
    laundry: bool = False
    laundry_loads: int = 1
    laundry_location: LaundryLocation = LaundryLocation.ON_SITE
    inside_fridge: bool = False
    inside_windows: bool = False
    hot_tub_basic: bool = False
    hot_tub_full_clean: bool = False
    hot_tub_full_clean_frequency: HotTubFullCleanFrequency = HotTubFullCleanFrequency.FIRST_CLEAN
    hot_tub_first_clean: bool = False

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "AddOnSelection":
        """
        Build a selection from the booking form payload (camelCase keys).
        Missing keys fall back to "not selected".
        """
        data = data or {}
        return cls(
            deep_cleaning=bool(data.get("deepCleaning", False)),
            laundry=bool(data.get("laundry", False)),
            laundry_loads=int(data.get("laundryLoads") or 1),
            laundry_location=LaundryLocation(data.get("laundryLocation") or LaundryLocation.ON_SITE.value),
            inside_fridge=bool(data.get("insideFridge", False)),
            inside_windows=bool(data.get("insideWindows", False)),
            hot_tub_basic=bool(data.get("hotTubBasic", False)),
            hot_tub_full_clean=bool(data.get("hotTubFullClean", False)),
            hot_tub_full_clean_frequency=HotTubFullCleanFrequency(
                data.get("hotTubFullCleanFrequency") or HotTubFullCleanFrequency.FIRST_CLEAN.value
            ),
            hot_tub_first_clean=bool(data.get("hotTubFirstClean", False)),
        )


@dataclass(frozen=True)
class PriceBreakdown:
    base_price_cents: int = 0
    sqft_surcharge_cents: int = 0
    add_ons_cents: int = 0
    discount_cents: int = 0


@dataclass(frozen=True)
class PriceQuote:
    per_cleaning_cents: int
    is_custom_quote: bool
    breakdown: PriceBreakdown
    # One-time charge on the first cleaning only, never discounted.
    first_clean_cents: int = 0


# ---------------------------------------------------------------------
# iCal pipeline
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class CalendarEvent:
    uid: str
    summary: str
    start: datetime
    end: datetime
    description: Optional[str] = None


@dataclass
class ProcessedEventRecord:
    booking_id: str
    event_uid: str
    event_end: datetime
    job_created: bool = False
    job_id: Optional[str] = None
    event_start: Optional[datetime] = None
    event_summary: str = ""

    def key(self) -> dict:
        return {
            "booking_id": self.booking_id,
            "event_uid": self.event_uid,
            "event_end": to_iso(self.event_end),
        }

    def to_row(self) -> dict:
        row = self.key()
        row.update({
            "event_start": to_iso(self.event_start) if self.event_start else None,
            "event_summary": self.event_summary,
            "checkout_date": self.event_end.date().isoformat(),
            "job_created": self.job_created,
            "job_id": self.job_id,
        })
        return row

    @classmethod
    def from_row(cls, row: dict) -> "ProcessedEventRecord":
        return cls(
            booking_id=row["booking_id"],
            event_uid=row["event_uid"],
            event_end=from_iso(row["event_end"]),
            job_created=bool(row.get("job_created", False)),
            job_id=row.get("job_id"),
            event_start=from_iso(row.get("event_start")),
            event_summary=row.get("event_summary") or "",
        )


@dataclass
class Job:
    booking_id: str
    date: datetime
    price_cents: int
    payout_cents: int
    city: str
    status: JobStatus = JobStatus.NEW
    notes: str = ""
    id: Optional[str] = None

    def to_row(self) -> dict:
        row = {
            "booking_id": self.booking_id,
            "date": to_iso(self.date),
            "price_cents": self.price_cents,
            "payout_cents": self.payout_cents,
            "city": self.city,
            "status": self.status.value,
            "notes": self.notes,
        }
        if self.id is not None:
            row["id"] = self.id
        return row

    @classmethod
    def from_row(cls, row: dict) -> "Job":
        return cls(
            id=row.get("id"),
            booking_id=row["booking_id"],
            date=from_iso(row["date"]),
            price_cents=int(row["price_cents"]),
            payout_cents=int(row["payout_cents"]),
            city=row.get("city") or "",
            status=JobStatus(row.get("status") or JobStatus.NEW.value),
            notes=row.get("notes") or "",
        )


@dataclass
class Booking:
    id: str
    total_price_cents: int
    property_city: str = ""
    property_address: str = ""
    ical_urls: List[str] = field(default_factory=list)
    last_ical_sync: Optional[datetime] = None
    booking_status: Optional[str] = None
    payment_status: Optional[str] = None
    service_type: Optional[ServiceType] = None
    frequency: Optional[Frequency] = None
    access_method: Optional[AccessMethod] = None

    @classmethod
    def from_row(cls, row: dict) -> "Booking":
        service_type = row.get("service_type")
        frequency = row.get("frequency")
        access_method = row.get("access_method")
        return cls(
            id=row["id"],
            total_price_cents=int(row.get("total_price_cents") or 0),
            property_city=row.get("property_city") or "",
            property_address=row.get("property_address") or "",
            ical_urls=list(row.get("ical_urls") or []),
            last_ical_sync=from_iso(row.get("last_ical_sync")),
            booking_status=row.get("booking_status"),
            payment_status=row.get("payment_status"),
            service_type=ServiceType.coerce(service_type) if service_type else None,
            frequency=Frequency(frequency) if frequency else None,
            access_method=AccessMethod(access_method) if access_method else None,
        )


@dataclass
class BookingResult:
    booking_id: str
    feeds_processed: int = 0
    events_processed: int = 0
    jobs_created: int = 0
    failed_feeds: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "booking_id": self.booking_id,
            "feeds_processed": self.feeds_processed,
            "events_processed": self.events_processed,
            "jobs_created": self.jobs_created,
            "failed_feeds": list(self.failed_feeds),
        }


@dataclass
class PollResult:
    timestamp: datetime
    manual: bool = False
    booking_results: List[BookingResult] = field(default_factory=list)

    @property
    def bookings_processed(self) -> int:
        return len(self.booking_results)

    @property
    def events_processed(self) -> int:
        return sum(r.events_processed for r in self.booking_results)

    @property
    def jobs_created(self) -> int:
        return sum(r.jobs_created for r in self.booking_results)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "manual": self.manual,
            "bookings_processed": self.bookings_processed,
            "events_processed": self.events_processed,
            "jobs_created": self.jobs_created,
            "booking_results": [r.to_dict() for r in self.booking_results],
            "timestamp": to_iso(self.timestamp),
        }
