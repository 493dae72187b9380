from __future__ import annotations

from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class RetailTier(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    quantity: int = Field(ge=1, validation_alias=AliasChoices("Quantity", "quantity"))
    ask: Decimal = Field(validation_alias=AliasChoices("Ask", "ask"))


class CatalogRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    sku: str = Field(validation_alias=AliasChoices("SKU", "sku"))
    ask: Decimal = Field(validation_alias=AliasChoices("Ask", "ask"))
    bid: Decimal = Field(validation_alias=AliasChoices("Bid", "bid"))
    retail_tiers: tuple[RetailTier, ...] = Field(
        default=(), validation_alias=AliasChoices("RetailTiers", "retail_tiers")
    )

    @field_validator("retail_tiers", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return () if value is None else value


class CatalogSnapshot(BaseModel):
    """Every catalog record of one currency as of ``fetched_at``.

    ``fetched_at`` travels inside the cached value. The store's own expiry is
    not trusted, readers re-check the age themselves.
    """

    currency: str
    records: dict[str, CatalogRecord] = Field(default_factory=dict)
    fetched_at: float

    def age_seconds(self, now: float) -> float:
        return now - self.fetched_at

    def is_fresh(self, ttl_seconds: float, now: float) -> bool:
        return self.age_seconds(now) < ttl_seconds
