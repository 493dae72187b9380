import threading
from decimal import Decimal

import pytest

from pricecatalog.schemas.catalog import CatalogRecord, CatalogSnapshot


class FakeRedis:
    """In-memory stand-in for Redis whose keys never expire on their own."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.expirations: dict[str, int] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        return self.store.get(key)

    def setex(self, key: str, ttl: int, value: str) -> None:
        self.store[key] = value
        self.expirations[key] = ttl

    def set(self, key: str, value: str, ex: int | None = None, nx: bool = False) -> bool | None:
        with self._lock:
            if nx and key in self.store:
                return None
            self.store[key] = value
            if ex is not None:
                self.expirations[key] = ex
            return True

    def delete(self, key: str) -> int:
        existed = key in self.store
        self.store.pop(key, None)
        self.expirations.pop(key, None)
        return int(existed)


@pytest.fixture
def fake_redis(monkeypatch) -> FakeRedis:
    fake = FakeRedis()
    monkeypatch.setattr("pricecatalog.cache._get_client", lambda: fake)
    return fake


def build_record(sku: str, ask: str, tiers: list[tuple[int, str]] | None = None, bid: str = "0") -> CatalogRecord:
    return CatalogRecord(
        sku=sku,
        ask=Decimal(ask),
        bid=Decimal(bid),
        retail_tiers=[{"quantity": quantity, "ask": Decimal(tier_ask)} for quantity, tier_ask in tiers or []],
    )


def build_snapshot(records: list[CatalogRecord], fetched_at: float, currency: str = "USD") -> CatalogSnapshot:
    return CatalogSnapshot(
        currency=currency,
        records={record.sku: record for record in records},
        fetched_at=fetched_at,
    )


class StubFetcher:
    def __init__(self, snapshot: CatalogSnapshot | None = None, error: Exception | None = None) -> None:
        self.snapshot = snapshot
        self.error = error
        self.calls: list[str] = []

    def __call__(self, currency, config) -> CatalogSnapshot:
        self.calls.append(currency)
        if self.error is not None:
            raise self.error
        assert self.snapshot is not None
        return self.snapshot


@pytest.fixture
def record_factory():
    return build_record


@pytest.fixture
def snapshot_factory():
    return build_snapshot


@pytest.fixture
def fetcher_factory():
    return StubFetcher
