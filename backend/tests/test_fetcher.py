"""Tests for the FAO price fetcher using httpx.MockTransport."""

import httpx

from agriconnect.services.prices.fetcher import FAOPriceFetcher

ROWS = [
    {"commodity": "Maize (white) - Retail", "market": "Gaborone", "price": 4.5, "unit": "kg"},
    {"commodity": "Sorghum - Retail", "market": "Francistown", "price": 6.1, "unit": "kg"},
]


def make_fetcher(handler, max_retries=3):
    sleeps = []
    client = httpx.Client(transport=httpx.MockTransport(handler))
    fetcher = FAOPriceFetcher(
        base_url="https://prices.example.org/api/v1/",
        country_code="BWA",
        max_retries=max_retries,
        retry_delay=2.0,
        client=client,
        sleep=sleeps.append,
    )
    return fetcher, sleeps


def test_url_uses_country_code() -> None:
    fetcher, _ = make_fetcher(lambda request: httpx.Response(200, json=[]))
    assert fetcher.url == "https://prices.example.org/api/v1/PriceMonthly/BWA"


def test_success_first_attempt() -> None:
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=ROWS)

    fetcher, sleeps = make_fetcher(handler)

    assert fetcher.fetch_external_prices() == ROWS
    assert len(requests) == 1
    assert requests[0].url.path == "/api/v1/PriceMonthly/BWA"
    assert sleeps == []


def test_retries_after_server_error() -> None:
    responses = iter([httpx.Response(503), httpx.Response(200, json=ROWS)])
    fetcher, sleeps = make_fetcher(lambda request: next(responses))

    assert fetcher.fetch_external_prices() == ROWS
    assert sleeps == [2.0]


def test_gives_up_after_max_retries() -> None:
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    fetcher, sleeps = make_fetcher(handler)

    assert fetcher.fetch_external_prices() is None
    assert len(calls) == 3
    assert sleeps == [2.0, 4.0]


def test_empty_payload_is_retried_then_unavailable() -> None:
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=[])

    fetcher, sleeps = make_fetcher(handler, max_retries=2)

    assert fetcher.fetch_external_prices() is None
    assert len(calls) == 2
    assert sleeps == [2.0]


def test_invalid_json_counts_as_failure() -> None:
    fetcher, _ = make_fetcher(lambda request: httpx.Response(200, text="<html>maintenance</html>"), max_retries=1)
    assert fetcher.fetch_external_prices() is None


def test_wrapped_payload_is_unwrapped() -> None:
    fetcher, _ = make_fetcher(lambda request: httpx.Response(200, json={"data": ROWS + ["junk"]}))
    assert fetcher.fetch_external_prices() == ROWS


def test_extract_rows_variants() -> None:
    assert FAOPriceFetcher._extract_rows({"items": ROWS}) == ROWS
    assert FAOPriceFetcher._extract_rows({"status": "ok"}) == []
    assert FAOPriceFetcher._extract_rows("nope") == []
