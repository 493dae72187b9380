"""Two-tier catalog cache.

The primary tier holds the latest snapshot for ``primary_ttl_seconds``; the
secondary tier keeps the same snapshot for ``secondary_ttl_seconds`` and is
served, stale or not, whenever a refresh cannot happen.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from pricecatalog import cache
from pricecatalog.config.settings import CatalogSettings, Settings, settings as default_settings
from pricecatalog.errors import RemoteFetchFailure
from pricecatalog.guard import StampedeGuard
from pricecatalog.providers.catalog import fetch_catalog
from pricecatalog.schemas.catalog import CatalogSnapshot


logger = logging.getLogger(__name__)

Fetcher = Callable[[str, CatalogSettings], CatalogSnapshot]


def primary_key(currency: str, key_prefix: str = "") -> str:
    return f"{key_prefix}products_all_{currency}"


def secondary_key(currency: str, key_prefix: str = "") -> str:
    return f"{key_prefix}products_all_secondary_{currency}"


def _default_fetcher(currency: str, config: CatalogSettings) -> CatalogSnapshot:
    return fetch_catalog(currency, config)


class SnapshotCache:
    def __init__(
        self,
        settings: Settings | None = None,
        fetcher: Fetcher | None = None,
        guard: StampedeGuard | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings or default_settings
        self._fetcher = fetcher or _default_fetcher
        self._guard = guard or StampedeGuard(self._settings)
        self._clock = clock

    def cache_keys(self, currency: str) -> dict[str, str]:
        prefix = self._settings.cache.key_prefix
        return {
            "primary": primary_key(currency, prefix),
            "secondary": secondary_key(currency, prefix),
            "semaphore": self._guard.key(currency),
        }

    def get_snapshot(self, currency: str) -> CatalogSnapshot | None:
        ttl = self._settings.cache.primary_ttl_seconds
        keys = self.cache_keys(currency)

        snapshot = cache.get_snapshot(keys["primary"])
        if snapshot is not None and snapshot.is_fresh(ttl, self._clock()):
            return snapshot
        if snapshot is not None:
            # The store kept it past its expiry.
            logger.info(
                "primary snapshot for %s is %.0fs old, refreshing",
                currency,
                snapshot.age_seconds(self._clock()),
            )

        refreshed = self._refresh(currency, keys)
        if refreshed is not None:
            return refreshed

        fallback = cache.get_snapshot(keys["secondary"])
        if fallback is None:
            logger.warning("no catalog snapshot available for %s", currency)
        return fallback

    def _refresh(self, currency: str, keys: dict[str, str]) -> CatalogSnapshot | None:
        with self._guard.hold(currency) as acquired:
            if not acquired:
                return None
            try:
                snapshot = self._fetcher(currency, self._settings.catalog)
            except RemoteFetchFailure as exc:
                logger.error("Error fetching product data: %s", exc)
                return None

            cache.set_snapshot(keys["primary"], snapshot, self._settings.cache.primary_ttl_seconds)
            cache.set_snapshot(keys["secondary"], snapshot, self._settings.cache.secondary_ttl_seconds)
            return snapshot

    def invalidate(self, currency: str) -> bool:
        return cache.delete_value(self.cache_keys(currency)["primary"])
