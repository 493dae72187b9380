import gzip
import http.client
import json
import socket
from decimal import Decimal
from unittest.mock import patch
from urllib.error import HTTPError, URLError

import pytest

from pricecatalog.config.settings import PLUGIN_VERSION, CatalogSettings
from pricecatalog.errors import RemoteFetchFailure
from pricecatalog.providers.catalog import fetch_catalog


class FakeResponse:
    def __init__(self, body: bytes, headers: dict[str, str] | None = None) -> None:
        self._body = body
        self.headers = headers or {}

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc_info) -> bool:
        return False


CONFIG = CatalogSettings(tenant_alias="acme", sales_channel="web", api_token="secret")

PAYLOAD = [
    {
        "SKU": "GOLD-1OZ",
        "Ask": 2050.1,
        "Bid": 1990.0,
        "RetailTiers": [{"Quantity": 10, "Ask": 2040.0}, {"Quantity": 5, "Ask": 2045.25}],
        "Name": "1 oz Gold Bar",
    },
    {"SKU": "SILVER-1OZ", "Ask": 31.99, "Bid": 28.5, "RetailTiers": None},
]


def test_fetch_catalog_builds_snapshot() -> None:
    body = json.dumps(PAYLOAD).encode("utf-8")
    with patch("pricecatalog.providers.catalog.urlopen", return_value=FakeResponse(body)) as urlopen_mock:
        snapshot = fetch_catalog("USD", CONFIG, now=1234.0)

    assert snapshot.currency == "USD"
    assert snapshot.fetched_at == 1234.0
    assert set(snapshot.records) == {"GOLD-1OZ", "SILVER-1OZ"}
    gold = snapshot.records["GOLD-1OZ"]
    assert gold.ask == Decimal("2050.1")
    assert gold.bid == Decimal("1990.0")
    assert [tier.quantity for tier in gold.retail_tiers] == [10, 5]
    assert snapshot.records["SILVER-1OZ"].retail_tiers == ()

    request = urlopen_mock.call_args.args[0]
    assert request.full_url == (
        "https://acme.nfusioncatalog.com/service/price/pricesbychannel"
        "?currency=USD&channel=web&withretailtiers=true&token=secret"
    )
    assert request.get_header("User-agent") == f"pricecatalog-{PLUGIN_VERSION}"
    assert request.get_header("Accept") == "application/json"
    assert request.get_header("Accept-encoding") == "gzip"
    assert urlopen_mock.call_args.kwargs["timeout"] == 2.0


def test_fetch_catalog_decompresses_gzip() -> None:
    body = gzip.compress(json.dumps(PAYLOAD).encode("utf-8"))
    response = FakeResponse(body, headers={"Content-Encoding": "gzip"})
    with patch("pricecatalog.providers.catalog.urlopen", return_value=response):
        snapshot = fetch_catalog("USD", CONFIG)

    assert "GOLD-1OZ" in snapshot.records


def test_duplicate_skus_keep_the_last_record() -> None:
    payload = [
        {"SKU": "A", "Ask": 1.0, "Bid": 0.5},
        {"SKU": "A", "Ask": 2.0, "Bid": 1.5},
    ]
    body = json.dumps(payload).encode("utf-8")
    with patch("pricecatalog.providers.catalog.urlopen", return_value=FakeResponse(body)):
        snapshot = fetch_catalog("USD", CONFIG)

    assert snapshot.records["A"].ask == Decimal("2.0")


@pytest.mark.parametrize(
    "body",
    [
        b"[]",
        b"{}",
        b'{"SKU": "A", "Ask": 1, "Bid": 1}',
        b"null",
        b"<html>maintenance</html>",
        b'[{"SKU": "A"}]',
        b'[{"SKU": "A", "Ask": 1, "Bid": 1, "RetailTiers": [{"Quantity": 0, "Ask": 1}]}]',
    ],
)
def test_unusable_payloads_fail(body: bytes) -> None:
    with patch("pricecatalog.providers.catalog.urlopen", return_value=FakeResponse(body)):
        with pytest.raises(RemoteFetchFailure):
            fetch_catalog("USD", CONFIG)


@pytest.mark.parametrize(
    "error",
    [
        HTTPError("https://acme.nfusioncatalog.com", 503, "unavailable", hdrs=None, fp=None),
        URLError("connection refused"),
        TimeoutError("timed out"),
        socket.timeout("timed out"),
        ConnectionResetError("reset by peer"),
        http.client.RemoteDisconnected("closed"),
        http.client.InvalidURL("nonnumeric port"),
    ],
)
def test_transport_errors_fail(error: Exception) -> None:
    with patch("pricecatalog.providers.catalog.urlopen", side_effect=error):
        with pytest.raises(RemoteFetchFailure) as excinfo:
            fetch_catalog("USD", CONFIG)

    assert excinfo.value.currency == "USD"


class TruncatedResponse(FakeResponse):
    def read(self) -> bytes:
        raise http.client.IncompleteRead(b'[{"SKU": "A"', 200)


def test_truncated_body_fails() -> None:
    with patch("pricecatalog.providers.catalog.urlopen", return_value=TruncatedResponse(b"")):
        with pytest.raises(RemoteFetchFailure) as excinfo:
            fetch_catalog("USD", CONFIG)

    assert excinfo.value.currency == "USD"
    assert isinstance(excinfo.value.__cause__, http.client.IncompleteRead)


def test_malformed_tenant_alias_fails() -> None:
    config = CatalogSettings(tenant_alias="acme:bad port")
    with pytest.raises(RemoteFetchFailure):
        fetch_catalog("USD", config)


def test_missing_tenant_alias_fails_without_request() -> None:
    with patch("pricecatalog.providers.catalog.urlopen") as urlopen_mock:
        with pytest.raises(RemoteFetchFailure):
            fetch_catalog("USD", CatalogSettings())

    assert urlopen_mock.called is False
