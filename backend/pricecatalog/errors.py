from __future__ import annotations


class CatalogError(Exception):
    """Base class for pricing catalog errors."""


class RemoteFetchFailure(CatalogError):
    """The pricing provider could not deliver a usable catalog.

    Transport errors, timeouts and malformed or empty payloads all collapse
    into this one kind.
    """

    def __init__(self, currency: str, reason: str) -> None:
        super().__init__(f"catalog fetch failed for {currency}: {reason}")
        self.currency = currency
        self.reason = reason
