from __future__ import annotations

import gzip
import http.client
import json
import logging
import socket
import time
import zlib
from decimal import Decimal
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from pydantic import ValidationError

from pricecatalog.config.settings import PLUGIN_VERSION, CatalogSettings, settings
from pricecatalog.errors import RemoteFetchFailure
from pricecatalog.schemas.catalog import CatalogRecord, CatalogSnapshot


logger = logging.getLogger(__name__)

_PRICES_PATH = "/service/price/pricesbychannel"


def _build_url(config: CatalogSettings, currency: str) -> str:
    params = {
        "currency": currency,
        "channel": config.sales_channel or "",
        "withretailtiers": "true",
        "token": config.api_token or "",
    }
    return f"https://{config.tenant_alias}.{config.provider_domain}{_PRICES_PATH}?{urlencode(params)}"


def _build_headers(config: CatalogSettings) -> dict[str, str]:
    return {
        "User-Agent": f"{config.user_agent_prefix}-{PLUGIN_VERSION}",
        "Accept": "application/json",
        "Accept-Encoding": "gzip",
    }


def _decode_body(raw: bytes, encoding: str | None) -> str:
    if encoding and encoding.lower() == "gzip":
        raw = gzip.decompress(raw)
    return raw.decode("utf-8")


def _build_records(currency: str, payload: object) -> dict[str, CatalogRecord]:
    if not isinstance(payload, list) or not payload:
        raise RemoteFetchFailure(currency, "expected a non-empty JSON array")

    records: dict[str, CatalogRecord] = {}
    for item in payload:
        try:
            record = CatalogRecord.model_validate(item)
        except ValidationError as exc:
            raise RemoteFetchFailure(currency, f"invalid record: {exc.error_count()} errors") from exc
        records[record.sku] = record
    return records


def fetch_catalog(
    currency: str,
    config: CatalogSettings | None = None,
    now: float | None = None,
) -> CatalogSnapshot:
    """Fetch every priced SKU for ``currency`` in one blocking request.

    Raises RemoteFetchFailure on any problem. There is no partial success
    and no retry.
    """
    config = config or settings.catalog
    if not config.tenant_alias:
        raise RemoteFetchFailure(currency, "tenant alias is not configured")

    try:
        request = Request(_build_url(config, currency), headers=_build_headers(config))
        with urlopen(request, timeout=config.remote_timeout_seconds) as response:
            raw = response.read()
            encoding = response.headers.get("Content-Encoding")
        body = _decode_body(raw, encoding)
        payload = json.loads(body, parse_float=Decimal)
    except HTTPError as exc:
        raise RemoteFetchFailure(currency, f"HTTP {exc.code}") from exc
    except (URLError, TimeoutError, socket.timeout, ConnectionError, http.client.HTTPException) as exc:
        raise RemoteFetchFailure(currency, f"transport error: {exc}") from exc
    except (OSError, EOFError, zlib.error, ValueError) as exc:
        raise RemoteFetchFailure(currency, f"unreadable body: {exc}") from exc

    records = _build_records(currency, payload)
    snapshot = CatalogSnapshot(
        currency=currency,
        records=records,
        fetched_at=time.time() if now is None else now,
    )
    logger.info("fetched %d catalog records for %s", len(records), currency)
    return snapshot
