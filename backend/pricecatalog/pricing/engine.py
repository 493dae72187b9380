from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from pricecatalog.schemas.catalog import CatalogRecord, RetailTier
from pricecatalog.schemas.pricing import DisplayRow, PriceRange


CENT = Decimal("0.01")


def round_price(value: Decimal | float | int) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def apply_surcharge(ask: Decimal, percent: Decimal | float | int) -> Decimal:
    factor = Decimal(1) + Decimal(str(percent)) / Decimal(100)
    return round_price(ask * factor)


def sorted_tiers(record: CatalogRecord) -> list[RetailTier]:
    return sorted(record.retail_tiers, key=lambda tier: tier.quantity)


def resolve_unit_price(record: CatalogRecord, quantity: int = 1) -> Decimal:
    """Unit price for buying ``quantity`` items: the ask of the largest tier reached."""
    price = round_price(record.ask)
    for tier in sorted_tiers(record):
        if quantity < tier.quantity:
            break
        price = round_price(tier.ask)
    return price


def lowest_possible_price(record: CatalogRecord | None) -> Decimal | None:
    if record is None:
        return None
    # Tier asks are not guaranteed to fall as quantity grows.
    lowest = min([record.ask, *(tier.ask for tier in record.retail_tiers)])
    return round_price(lowest)


def price_range(records: Iterable[CatalogRecord | None]) -> PriceRange | None:
    asks = sorted(record.ask for record in records if record is not None)
    if not asks:
        return None
    return PriceRange(low=asks[0], high=asks[-1])


def _display_row(
    min_quantity: int,
    max_quantity: int | None,
    ask: Decimal,
    surcharge_percent: Decimal | None,
) -> DisplayRow:
    surcharge_ask = None
    if surcharge_percent is not None:
        surcharge_ask = apply_surcharge(ask, surcharge_percent)
    return DisplayRow(
        min_quantity=min_quantity,
        max_quantity=max_quantity,
        ask=round_price(ask),
        surcharge_ask=surcharge_ask,
    )


def tiered_display_table(
    record: CatalogRecord, surcharge_percent: Decimal | None = None
) -> list[DisplayRow]:
    tiers = sorted_tiers(record)
    if not tiers:
        return []

    rows: list[DisplayRow] = []
    if tiers[0].quantity > 1:
        rows.append(_display_row(1, tiers[0].quantity - 1, record.ask, surcharge_percent))

    for index, tier in enumerate(tiers):
        upper = tiers[index + 1].quantity - 1 if index + 1 < len(tiers) else None
        rows.append(_display_row(tier.quantity, upper, tier.ask, surcharge_percent))
    return rows
