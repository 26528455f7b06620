"""
Tiered pricing for a single cleaning.

Prices are configured in whole dollars on PricingConfig and computed in
integer cents. Percentages are applied with Decimal half-up rounding.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional, Tuple

from cleannami.models import (
    AddOnSelection,
    Frequency,
    LaundryLocation,
    PriceBreakdown,
    PriceQuote,
    ServiceType,
)


# Base price in dollars for (beds, baths), 1..5 each.
DEFAULT_BASE_GRID: Dict[Tuple[int, int], int] = {
    (1, 1): 100, (1, 2): 120, (1, 3): 140, (1, 4): 160, (1, 5): 180,
    (2, 1): 130, (2, 2): 150, (2, 3): 170, (2, 4): 190, (2, 5): 210,
    (3, 1): 160, (3, 2): 180, (3, 3): 200, (3, 4): 220, (3, 5): 240,
    (4, 1): 190, (4, 2): 210, (4, 3): 230, (4, 4): 250, (4, 5): 270,
    (5, 1): 220, (5, 2): 240, (5, 3): 260, (5, 4): 280, (5, 5): 300,
}

# (lower inclusive, upper exclusive, dollars); exactly one band applies.
DEFAULT_SQFT_BANDS: Tuple[Tuple[int, int, int], ...] = (
    (1000, 1500, 25),
    (1500, 2000, 50),
    (2000, 2500, 75),
    (2500, 3000, 100),
)

DEFAULT_DISCOUNTS: Dict[Frequency, str] = {
    Frequency.ONE_TIME: "0",
    Frequency.WEEKLY: "0.15",
    Frequency.BI_WEEKLY: "0.10",
    Frequency.TRI_WEEKLY: "0.05",
    Frequency.MONTHLY: "0.05",
}


@dataclass(frozen=True)
class PricingConfig:
    custom_quote_sqft: int = 3000
    base_grid: Dict[Tuple[int, int], int] = field(default_factory=lambda: dict(DEFAULT_BASE_GRID))
    # Used outside the grid: base + (beds-1)*per_bedroom + (baths-1)*per_bathroom
    base_price: int = 100
    per_bedroom: int = 30
    per_bathroom: int = 20
    per_half_bath: int = 10
    sqft_bands: Tuple[Tuple[int, int, int], ...] = DEFAULT_SQFT_BANDS
    deep_cleaning: int = 30
    laundry_per_load: int = 9
    laundry_off_site: int = 20
    inside_fridge: int = 15
    inside_windows: int = 10
    hot_tub_basic: int = 20
    hot_tub_full_clean: int = 50
    discounts: Dict[Frequency, str] = field(default_factory=lambda: dict(DEFAULT_DISCOUNTS))

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "PricingConfig":
        """
        Build a config from the `pricing:` section of config.yaml.
        Only keys present in `data` override the defaults.

        base_grid is given as {beds: {baths: dollars}}, sqft_bands as a
        list of [lower, upper, dollars] and discounts as {frequency: rate}.
        """
        config = cls()
        if not data:
            return config

        overrides = {}
        for key, value in data.items():
            if key == "base_grid":
                overrides[key] = {
                    (int(beds), int(baths)): int(price)
                    for beds, row in value.items()
                    for baths, price in row.items()
                }
            elif key == "sqft_bands":
                overrides[key] = tuple((int(lo), int(hi), int(price)) for lo, hi, price in value)
            elif key == "discounts":
                discounts = dict(config.discounts)
                discounts.update({Frequency(k): str(v) for k, v in value.items()})
                overrides[key] = discounts
            elif key in cls.__dataclass_fields__:
                overrides[key] = int(value)
            else:
                raise ValueError(f"Unknown pricing setting: {key}")

        return replace(config, **overrides)


DEFAULT_PRICING = PricingConfig()


def round_half_up(value) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def base_price_dollars(beds: int, baths: int, config: PricingConfig = DEFAULT_PRICING) -> int:
    """
    Base price for a bed/bath combination.

    Grid hit -> grid value. A bed count present in the grid with more
    baths than the grid covers extends that row by per_bathroom.
    Anything else uses the flat formula.
    """
    if (beds, baths) in config.base_grid:
        return config.base_grid[(beds, baths)]

    if (beds, 1) in config.base_grid:
        return config.base_grid[(beds, 1)] + (baths - 1) * config.per_bathroom

    return config.base_price + (beds - 1) * config.per_bedroom + (baths - 1) * config.per_bathroom


def sqft_surcharge_dollars(sqft: int, config: PricingConfig = DEFAULT_PRICING) -> int:
    for lower, upper, price in config.sqft_bands:
        if lower <= sqft < upper:
            return price
    return 0


def add_ons_dollars(add_ons: AddOnSelection, service_type: ServiceType,
                    config: PricingConfig = DEFAULT_PRICING) -> int:
    """
    Recurring per-cleaning add-ons. The hot tub full clean is a
    first-clean charge and is not included here.
    """
    residential = service_type == ServiceType.RESIDENTIAL
    total = 0

    if add_ons.deep_cleaning and residential:
        total += config.deep_cleaning

    if add_ons.laundry:
        total += config.laundry_per_load * max(add_ons.laundry_loads, 1)
        if add_ons.laundry_location == LaundryLocation.OFF_SITE:
            total += config.laundry_off_site

    if add_ons.inside_fridge and residential:
        total += config.inside_fridge

    if add_ons.inside_windows and residential:
        total += config.inside_windows

    if add_ons.hot_tub_basic:
        total += config.hot_tub_basic

    return total


def discount_rate(frequency: Frequency, config: PricingConfig = DEFAULT_PRICING) -> Decimal:
    return Decimal(config.discounts.get(frequency, "0"))


def calculate_price(
    beds: int,
    baths: int,
    sqft: int,
    add_ons: Optional[AddOnSelection] = None,
    frequency: Frequency = Frequency.ONE_TIME,
    service_type: ServiceType = ServiceType.RESIDENTIAL,
    half_baths: int = 0,
    config: PricingConfig = DEFAULT_PRICING,
) -> PriceQuote:
    """
    Price one cleaning.

    Properties at or above config.custom_quote_sqft are not priced and
    come back as a custom quote with every amount at zero.

    Returns a PriceQuote whose per_cleaning_cents equals
    base + sqft surcharge + add-ons - discount. The hot tub full clean
    surcharge is reported separately in first_clean_cents.
    """
    if sqft >= config.custom_quote_sqft:
        return PriceQuote(per_cleaning_cents=0, is_custom_quote=True, breakdown=PriceBreakdown())

    add_ons = add_ons or AddOnSelection()
    frequency = Frequency(frequency)
    service_type = ServiceType.coerce(service_type)

    base_cents = (base_price_dollars(beds, baths, config) + half_baths * config.per_half_bath) * 100
    surcharge_cents = sqft_surcharge_dollars(sqft, config) * 100
    add_ons_cents = add_ons_dollars(add_ons, service_type, config) * 100

    subtotal_cents = base_cents + surcharge_cents + add_ons_cents
    discount_cents = round_half_up(subtotal_cents * discount_rate(frequency, config))

    first_clean_cents = 0
    if add_ons.hot_tub_full_clean or add_ons.hot_tub_first_clean:
        first_clean_cents = config.hot_tub_full_clean * 100

    return PriceQuote(
        per_cleaning_cents=subtotal_cents - discount_cents,
        is_custom_quote=False,
        breakdown=PriceBreakdown(
            base_price_cents=base_cents,
            sqft_surcharge_cents=surcharge_cents,
            add_ons_cents=add_ons_cents,
            discount_cents=discount_cents,
        ),
        first_clean_cents=first_clean_cents,
    )


def checkout_charge_cents(quote: PriceQuote) -> int:
    """Amount charged at checkout: the first cleaning plus any first-clean extras."""
    if quote.is_custom_quote:
        return 0
    return quote.per_cleaning_cents + quote.first_clean_cents
