import httpx
import pytest
import pytest_asyncio

from ingestion_orchestrator.api import create_app
from ingestion_orchestrator.utils.config import load_settings


@pytest_asyncio.fixture
async def scheduler(make_scheduler):
    return make_scheduler(cooldown_seconds=0.01)


@pytest_asyncio.fixture
async def client(scheduler):
    app = create_app(load_settings(), scheduler=scheduler)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
async def test_ingest_returns_submission_id(client):
    response = await client.post("/ingest", json={"ids": [1, 2, 3, 4, 5], "priority": "HIGH"})

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"submission_id"}
    assert body["submission_id"]


@pytest.mark.asyncio
async def test_ingest_defaults_to_medium_priority(client):
    response = await client.post("/ingest", json={"ids": ["a", "b"]})
    submission_id = response.json()["submission_id"]

    status = await client.get(f"/status/{submission_id}")

    assert status.status_code == 200
    assert status.json()["priority"] == "MEDIUM"


@pytest.mark.asyncio
async def test_priority_is_case_insensitive(client):
    response = await client.post("/ingest", json={"ids": [1], "priority": "low"})

    assert response.status_code == 200
    status = await client.get(f"/status/{response.json()['submission_id']}")
    assert status.json()["priority"] == "LOW"


@pytest.mark.asyncio
async def test_status_reports_batches_until_completed(client, scheduler):
    response = await client.post("/ingest", json={"ids": [1, 2, 3, 4, 5], "priority": "LOW"})
    submission_id = response.json()["submission_id"]

    assert await scheduler.wait_until_idle(timeout=3)
    body = (await client.get(f"/status/{submission_id}")).json()

    assert body["submission_id"] == submission_id
    assert body["status"] == "completed"
    assert [batch["ids"] for batch in body["batches"]] == [[1, 2, 3], [4, 5]]
    assert all(batch["status"] == "completed" for batch in body["batches"])
    assert {"batch_id", "created_time", "triggered_time", "completed_time"} <= set(body["batches"][0])


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {},
    {"priority": "HIGH"},
    {"ids": []},
    {"ids": "abc"},
    {"ids": [1, None]},
    {"ids": [1.5]},
    {"ids": [True]},
    {"ids": [1], "priority": "URGENT"},
    [1, 2, 3],
])
async def test_invalid_payloads_are_rejected(client, scheduler, payload):
    response = await client.post("/ingest", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["error_code"] == "INVALID_INPUT"
    assert body["message"].startswith("Invalid request")
    assert await scheduler.list_submissions() == []


@pytest.mark.asyncio
async def test_malformed_json_is_rejected(client):
    response = await client.post(
        "/ingest",
        content=b'{"ids": [1, 2',
        headers={"content-type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json()["error_code"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_unknown_submission_returns_404(client):
    response = await client.get("/status/not-a-real-id")

    assert response.status_code == 404
    body = response.json()
    assert body["error_code"] == "NOT_FOUND"
    assert body["details"] == {"submission_id": "not-a-real-id"}


@pytest.mark.asyncio
async def test_stopped_scheduler_returns_503(client, scheduler):
    await scheduler.stop()

    response = await client.post("/ingest", json={"ids": [1]})

    assert response.status_code == 503
    assert response.json()["error_code"] == "SCHEDULER_ERROR"


@pytest.mark.asyncio
async def test_health_reports_scheduler_statistics(client):
    await client.post("/ingest", json={"ids": [1, 2, 3, 4]})

    response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["scheduler"]["submissions"]["total_submissions"] == 1
    assert body["scheduler"]["batch_size"] == 3


@pytest.mark.asyncio
async def test_app_exposes_scheduler_and_settings(make_scheduler):
    settings = load_settings(cooldown_seconds=1)
    scheduler = make_scheduler()

    app = create_app(settings, scheduler=scheduler)

    assert app.state.scheduler is scheduler
    assert app.state.settings is settings
