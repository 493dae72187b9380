from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from pricecatalog.config.settings import PricingSettings
from pricecatalog.lookup import CatalogLookup, CatalogProduct
from pricecatalog.pricing.engine import (
    lowest_possible_price,
    price_range,
    resolve_unit_price,
    round_price,
    tiered_display_table,
)
from pricecatalog.schemas.pricing import PriceQuote, PriceRange, TierTable


def build_quote(
    product: CatalogProduct,
    native_price: Decimal | None,
    currency: str,
    lookup: CatalogLookup,
    pricing: PricingSettings,
    quantity: int = 1,
) -> PriceQuote:
    sku = product.catalog_sku or product.sku or ""
    record = lookup.resolve_product(product, currency)
    if record is None:
        return PriceQuote(
            sku=sku,
            currency=currency,
            quantity=quantity,
            unit_price=native_price,
            from_catalog=False,
        )

    quote = PriceQuote(
        sku=record.sku,
        currency=currency,
        quantity=quantity,
        unit_price=resolve_unit_price(record, quantity),
        from_catalog=True,
        lowest_price=lowest_possible_price(record),
        lowest_price_label=pricing.low_price_label or "As low as",
    )
    if pricing.show_buy_price:
        quote.bid = round_price(record.bid)
        quote.buy_price_label = pricing.buy_price_label or "We buy at"
    if pricing.show_tiered_pricing and record.retail_tiers:
        show_card = pricing.show_credit_card_price and pricing.credit_card_percent is not None
        quote.tier_table = TierTable(
            check_label=pricing.check_price_label or "Check",
            card_label=(pricing.card_price_label or "Card") if show_card else None,
            rows=tiered_display_table(
                record, pricing.credit_card_percent if show_card else None
            ),
        )
    return quote


def variation_price_range(
    variant_skus: Iterable[str | None], currency: str, lookup: CatalogLookup
) -> PriceRange | None:
    return price_range(lookup.resolve_variants(variant_skus, currency).values())
