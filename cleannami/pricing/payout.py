from datetime import date
from decimal import Decimal

from cleannami.pricing.calculate_price import round_half_up


CONTRACTOR_SHARE = Decimal("0.70")
MIN_PAYOUT_CENTS = 6000

FLORIDA_CITIES = (
    "New Smyrna Beach",
    "Daytona Beach",
    "Edgewater",
)

EARLIEST_CLEAN_DATE = date(2025, 9, 21)


def flat_share_payout(price_cents: int) -> int:
    """
    Contractor share of a job price with no minimum.
    Jobs created from iCal feeds are paid this way.
    """
    return round_half_up(price_cents * CONTRACTOR_SHARE)


def calculate_payout(price_cents: int) -> int:
    """
    Contractor share of a job price, never below MIN_PAYOUT_CENTS.
    """
    return max(flat_share_payout(price_cents), MIN_PAYOUT_CENTS)


def format_currency(cents: int) -> str:
    """
    Format cents for display, en-US style.
    Example: 123450 -> "$1,234.50"
    """
    sign = "-" if cents < 0 else ""
    return f"{sign}${Decimal(abs(cents)) / 100:,.2f}"


def is_service_city(city: str) -> bool:
    return city.strip().lower() in {c.lower() for c in FLORIDA_CITIES}


def is_bookable_date(day: date) -> bool:
    return day >= EARLIEST_CLEAN_DATE
