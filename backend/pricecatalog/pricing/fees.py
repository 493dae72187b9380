from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from pricecatalog.config.settings import PricingSettings
from pricecatalog.lookup import CatalogLookup
from pricecatalog.pricing.engine import round_price
from pricecatalog.schemas.pricing import CheckoutFee, CheckoutLine


def is_fee_exempt(payment_method: str | None, pricing: PricingSettings) -> bool:
    return payment_method in pricing.fee_exempt_methods


def payment_processing_fee(
    lines: Iterable[CheckoutLine],
    payment_method: str | None,
    currency: str,
    lookup: CatalogLookup,
    pricing: PricingSettings,
) -> CheckoutFee:
    """Card surcharge on the cart lines priced by the catalog.

    Lines whose SKU is unknown to the catalog never carry the surcharge.
    """
    no_fee = CheckoutFee(label=pricing.fee_label, amount=Decimal("0.00"))
    if not pricing.show_credit_card_price or not pricing.credit_card_percent:
        return no_fee
    if is_fee_exempt(payment_method, pricing):
        return no_fee.model_copy(update={"exempt": True})

    lines = list(lines)
    if not lines:
        return no_fee

    matched = Decimal("0")
    for line in lines:
        if lookup.resolve([line.sku], currency) is not None:
            matched += line.line_subtotal

    amount = round_price(matched * pricing.credit_card_percent / Decimal(100))
    return CheckoutFee(label=pricing.fee_label, amount=amount, matched_subtotal=matched)
