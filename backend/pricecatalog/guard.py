from __future__ import annotations

import logging
import math
from collections.abc import Iterator
from contextlib import contextmanager

from pricecatalog import cache
from pricecatalog.config.settings import Settings, settings as default_settings


logger = logging.getLogger(__name__)


def semaphore_key(currency: str, key_prefix: str = "") -> str:
    return f"{key_prefix}request_semaphore_{currency}"


class StampedeGuard:
    """Short-lived per-currency marker around the remote catalog fetch.

    The marker expires after the remote timeout, so a caller that dies before
    releasing it only blocks other refreshes for that long.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or default_settings

    @property
    def marker_ttl_seconds(self) -> int:
        return max(math.ceil(self._settings.catalog.remote_timeout_seconds), 1)

    def key(self, currency: str) -> str:
        return semaphore_key(currency, self._settings.cache.key_prefix)

    def try_acquire(self, currency: str) -> bool:
        acquired = cache.add_value(self.key(currency), "1", self.marker_ttl_seconds)
        if not acquired:
            logger.debug("refresh already in flight for %s", currency)
        return acquired

    def release(self, currency: str) -> None:
        cache.delete_value(self.key(currency))

    @contextmanager
    def hold(self, currency: str) -> Iterator[bool]:
        acquired = self.try_acquire(currency)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(currency)
