from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from pricecatalog.schemas.catalog import CatalogRecord
from pricecatalog.snapshots import SnapshotCache


class CatalogProduct(Protocol):
    sku: str | None
    catalog_sku: str | None


def candidate_skus(product: CatalogProduct) -> list[str | None]:
    # The catalog override wins over the storefront's own SKU.
    return [product.catalog_sku, product.sku]


class CatalogLookup:
    def __init__(self, snapshots: SnapshotCache | None = None) -> None:
        self._snapshots = snapshots or SnapshotCache()

    @property
    def snapshots(self) -> SnapshotCache:
        return self._snapshots

    def resolve(self, candidates: Sequence[str | None], currency: str) -> CatalogRecord | None:
        snapshot = self._snapshots.get_snapshot(currency)
        if snapshot is None:
            return None
        for sku in candidates:
            if not sku:
                continue
            record = snapshot.records.get(sku)
            if record is not None:
                return record
        return None

    def resolve_product(self, product: CatalogProduct, currency: str) -> CatalogRecord | None:
        return self.resolve(candidate_skus(product), currency)

    def resolve_variants(self, skus: Iterable[str | None], currency: str) -> dict[str, CatalogRecord]:
        snapshot = self._snapshots.get_snapshot(currency)
        if snapshot is None:
            return {}
        matched: dict[str, CatalogRecord] = {}
        for sku in skus:
            if sku and sku in snapshot.records:
                matched[sku] = snapshot.records[sku]
        return matched
