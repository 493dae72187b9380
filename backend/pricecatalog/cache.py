from __future__ import annotations

import json
import logging

from redis import Redis

from pricecatalog.config.settings import settings
from pricecatalog.schemas.catalog import CatalogSnapshot


logger = logging.getLogger(__name__)


def _get_client() -> Redis:
    return Redis.from_url(settings.redis_url, decode_responses=True)


def get_value(key: str) -> str | None:
    try:
        client = _get_client()
        raw = client.get(key)
    except Exception:
        logger.warning("cache read failed for %s", key, exc_info=True)
        return None
    if raw is None:
        return None
    if isinstance(raw, bytes):
        return raw.decode("utf-8")
    return raw


def set_value(key: str, value: str, ttl_seconds: int) -> bool:
    try:
        client = _get_client()
        client.setex(key, max(int(ttl_seconds), 1), value)
    except Exception:
        logger.warning("cache write failed for %s", key, exc_info=True)
        return False
    return True


def add_value(key: str, value: str, ttl_seconds: int) -> bool:
    """Store ``value`` only if ``key`` is absent. Returns whether it was stored."""
    try:
        client = _get_client()
        stored = client.set(key, value, ex=max(int(ttl_seconds), 1), nx=True)
    except Exception:
        logger.warning("cache write failed for %s", key, exc_info=True)
        return False
    return bool(stored)


def delete_value(key: str) -> bool:
    try:
        client = _get_client()
        removed = client.delete(key)
    except Exception:
        logger.warning("cache delete failed for %s", key, exc_info=True)
        return False
    return bool(removed)


def get_snapshot(key: str) -> CatalogSnapshot | None:
    raw = get_value(key)
    if not raw:
        return None

    try:
        payload = json.loads(raw)
        return CatalogSnapshot.model_validate(payload)
    except (json.JSONDecodeError, TypeError, ValueError):
        logger.warning("discarding unreadable snapshot under %s", key)
        return None


def set_snapshot(key: str, snapshot: CatalogSnapshot, ttl_seconds: int) -> bool:
    return set_value(key, snapshot.model_dump_json(), ttl_seconds)
