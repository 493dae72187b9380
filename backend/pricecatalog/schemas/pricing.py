from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, computed_field


class DisplayRow(BaseModel):
    min_quantity: int
    max_quantity: Optional[int] = None
    ask: Decimal
    surcharge_ask: Optional[Decimal] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def label(self) -> str:
        if self.max_quantity is None:
            return f"{self.min_quantity}+"
        return f"{self.min_quantity}-{self.max_quantity}"


class PriceRange(BaseModel):
    low: Decimal
    high: Decimal

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_single(self) -> bool:
        return self.low == self.high


class TierTable(BaseModel):
    check_label: str
    card_label: Optional[str] = None
    rows: list[DisplayRow] = Field(default_factory=list)


class PriceQuote(BaseModel):
    sku: str
    currency: str
    quantity: int
    unit_price: Optional[Decimal] = None
    from_catalog: bool
    lowest_price: Optional[Decimal] = None
    lowest_price_label: Optional[str] = None
    bid: Optional[Decimal] = None
    buy_price_label: Optional[str] = None
    tier_table: Optional[TierTable] = None


class CheckoutLine(BaseModel):
    sku: str
    quantity: int = 1
    line_subtotal: Decimal


class CheckoutFeeRequest(BaseModel):
    payment_method: Optional[str] = None
    currency: Optional[str] = None
    lines: list[CheckoutLine] = Field(default_factory=list)


class CheckoutFee(BaseModel):
    label: str
    amount: Decimal
    matched_subtotal: Decimal = Decimal("0")
    exempt: bool = False


class ReindexResult(BaseModel):
    scanned: int = 0
    updated: int = 0
    pages: int = 0
