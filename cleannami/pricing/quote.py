from datetime import date
from typing import Optional

from cleannami.models import AddOnSelection, Frequency, ServiceType
from cleannami.pricing.calculate_price import (
    DEFAULT_PRICING,
    PricingConfig,
    calculate_price,
    checkout_charge_cents,
)
from cleannami.pricing.payout import format_currency, is_bookable_date, is_service_city


def quote_from_payload(payload: dict, config: Optional[PricingConfig] = None) -> dict:
    """
    Prices a booking form payload and returns the response body.

    Expected keys: beds, baths, sqft, and optionally halfBaths, addOns,
    frequency, serviceType, city, startDate (YYYY-MM-DD).
    Raises ValueError/KeyError for missing or invalid fields.
    """
    config = config or DEFAULT_PRICING

    beds = int(payload["beds"])
    baths = int(payload["baths"])
    half_baths = int(payload.get("halfBaths") or 0)
    sqft = int(payload["sqft"])
    if min(beds, baths, half_baths, sqft) < 0:
        raise ValueError("beds, baths, halfBaths and sqft must not be negative")

    quote = calculate_price(
        beds,
        baths,
        sqft,
        add_ons=AddOnSelection.from_dict(payload.get("addOns")),
        frequency=Frequency(payload.get("frequency") or Frequency.ONE_TIME.value),
        service_type=ServiceType.coerce(payload.get("serviceType") or ServiceType.RESIDENTIAL.value),
        half_baths=half_baths,
        config=config,
    )

    charge = checkout_charge_cents(quote)
    body = {
        "isCustomQuote": quote.is_custom_quote,
        "perCleaningCents": quote.per_cleaning_cents,
        "firstCleanCents": quote.first_clean_cents,
        "checkoutChargeCents": charge,
        "breakdown": {
            "basePriceCents": quote.breakdown.base_price_cents,
            "sqftSurchargeCents": quote.breakdown.sqft_surcharge_cents,
            "addOnsCents": quote.breakdown.add_ons_cents,
            "discountCents": quote.breakdown.discount_cents,
        },
        "display": {
            "perCleaning": format_currency(quote.per_cleaning_cents),
            "checkoutCharge": format_currency(charge),
        },
    }

    if payload.get("city"):
        body["inServiceArea"] = is_service_city(payload["city"])
    if payload.get("startDate"):
        body["dateBookable"] = is_bookable_date(date.fromisoformat(payload["startDate"]))

    return body
