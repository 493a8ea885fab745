import httpx
import pytest

from ingestion_orchestrator.core.exceptions import FetchError
from ingestion_orchestrator.fetchers import HttpFetcher, SimulatedFetcher, create_fetcher
from ingestion_orchestrator.utils.config import load_settings


@pytest.mark.asyncio
async def test_simulated_fetcher_returns_processed_payload():
    fetcher = SimulatedFetcher(latency_seconds=0)

    assert await fetcher.fetch(42) == {"id": 42, "data": "processed"}
    assert fetcher.fetch_count == 1


@pytest.mark.asyncio
async def test_simulated_fetcher_fails_listed_ids():
    fetcher = SimulatedFetcher(latency_seconds=0, failing_ids=["bad"])

    with pytest.raises(FetchError) as excinfo:
        await fetcher.fetch("bad")

    assert excinfo.value.item_id == "bad"
    assert await fetcher.fetch("good") == {"id": "good", "data": "processed"}


@pytest.mark.asyncio
async def test_simulated_fetcher_failure_rate_one_always_fails():
    fetcher = SimulatedFetcher(latency_seconds=0, failure_rate=1.0, seed=7)

    with pytest.raises(FetchError):
        await fetcher.fetch("x")


@pytest.mark.parametrize("kwargs", [
    {"latency_seconds": -1},
    {"latency_jitter": -0.1},
    {"failure_rate": 2.0},
])
def test_simulated_fetcher_rejects_bad_arguments(kwargs):
    with pytest.raises(ValueError):
        SimulatedFetcher(**kwargs)


def _fetcher_with(handler):
    return HttpFetcher(
        "https://upstream.test/items/{item_id}",
        transport=httpx.MockTransport(handler)
    )


@pytest.mark.asyncio
async def test_http_fetcher_returns_json_payload():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json={"name": "widget"})

    fetcher = _fetcher_with(handler)
    await fetcher.initialize()
    try:
        result = await fetcher.fetch(17)
    finally:
        await fetcher.shutdown()

    assert result == {"id": 17, "data": {"name": "widget"}}
    assert seen == ["https://upstream.test/items/17"]
    assert not fetcher.is_initialized


@pytest.mark.asyncio
async def test_http_fetcher_falls_back_to_text():
    fetcher = _fetcher_with(lambda request: httpx.Response(200, text="plain body"))
    try:
        result = await fetcher.fetch("a")
    finally:
        await fetcher.shutdown()

    assert result == {"id": "a", "data": "plain body"}


@pytest.mark.asyncio
async def test_http_fetcher_raises_on_error_status():
    fetcher = _fetcher_with(lambda request: httpx.Response(503))
    try:
        with pytest.raises(FetchError) as excinfo:
            await fetcher.fetch("a")
    finally:
        await fetcher.shutdown()

    assert excinfo.value.details["status_code"] == 503


@pytest.mark.asyncio
async def test_http_fetcher_wraps_transport_errors():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    fetcher = _fetcher_with(handler)
    try:
        with pytest.raises(FetchError) as excinfo:
            await fetcher.fetch("a")
    finally:
        await fetcher.shutdown()

    assert "ConnectError" in excinfo.value.message


def test_http_fetcher_requires_item_placeholder():
    with pytest.raises(ValueError):
        HttpFetcher("https://upstream.test/items")


def test_create_fetcher_follows_settings():
    simulated = create_fetcher(load_settings(fetch_latency_seconds=0.25))
    assert isinstance(simulated, SimulatedFetcher)
    assert simulated.latency_seconds == 0.25

    http = create_fetcher(load_settings(fetcher="http", fetch_url_template="https://upstream.test/{item_id}"))
    assert isinstance(http, HttpFetcher)
    assert http.build_url("x") == "https://upstream.test/x"


def test_http_fetcher_escapes_item_ids_in_url():
    fetcher = HttpFetcher("https://upstream.test/items/{item_id}")

    assert fetcher.build_url("a/b?x=1") == "https://upstream.test/items/a%2Fb%3Fx%3D1"
    assert fetcher.build_url(42) == "https://upstream.test/items/42"


@pytest.mark.asyncio
async def test_http_fetcher_requests_one_resource_per_id():
    seen = []

    def handler(request):
        seen.append((request.url.raw_path, request.url.query))
        return httpx.Response(200, json={})

    fetcher = _fetcher_with(handler)
    try:
        await fetcher.fetch("a/b?x=1")
    finally:
        await fetcher.shutdown()

    assert seen == [(b"/items/a%2Fb%3Fx%3D1", b"")]
