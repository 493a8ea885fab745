import asyncio
import logging
import os

import pytest
import pytest_asyncio

from ingestion_orchestrator import BatchScheduler
from ingestion_orchestrator.core.exceptions import FetchError, error_registry
from ingestion_orchestrator.fetchers.base import BaseFetcher


class RecordingFetcher(BaseFetcher):
    """Fetcher that records call times and how many items are in flight."""

    def __init__(self, latency=0.01, failing_ids=()):
        super().__init__({"latency_seconds": latency})
        self.latency = latency
        self.failing_ids = set(failing_ids)
        self.calls = []
        self.in_flight = set()
        self.max_in_flight = 0

    async def fetch(self, item_id):
        self.calls.append((asyncio.get_running_loop().time(), item_id))
        self.in_flight.add(item_id)
        self.max_in_flight = max(self.max_in_flight, len(self.in_flight))
        try:
            await asyncio.sleep(self.latency)
        finally:
            self.in_flight.discard(item_id)

        if item_id in self.failing_ids:
            raise FetchError(item_id, "upstream rejected item")
        return {"id": item_id, "data": "processed"}

    @property
    def call_order(self):
        return [item_id for _, item_id in self.calls]

    def call_time(self, item_id):
        for called_at, called_id in self.calls:
            if called_id == item_id:
                return called_at
        raise KeyError(item_id)


class GatedFetcher(BaseFetcher):
    """Fetcher whose calls block until ``release`` is called."""

    def __init__(self):
        super().__init__({})
        self.gate = asyncio.Event()

    def release(self):
        self.gate.set()

    async def fetch(self, item_id):
        await self.gate.wait()
        return {"id": item_id, "data": "processed"}


async def _wait_for(predicate, timeout=3.0, interval=0.005):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        result = predicate()
        if asyncio.iscoroutine(result):
            result = await result
        if result:
            return result
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(interval)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep settings independent of the developer's shell."""
    for name in list(os.environ):
        if name.startswith("INGESTION_") or name == "PORT":
            monkeypatch.delenv(name)


@pytest.fixture(autouse=True)
def reset_error_registry():
    error_registry.reset()
    yield
    error_registry.reset()


@pytest.fixture
def wait_for():
    return _wait_for


@pytest.fixture
def recording_fetcher():
    return RecordingFetcher()


@pytest_asyncio.fixture
async def gated_fetcher():
    return GatedFetcher()


@pytest_asyncio.fixture
async def make_scheduler():
    """Factory for schedulers with short cooldowns; all are stopped after the test."""
    created = []

    def _make(fetcher=None, **kwargs):
        kwargs.setdefault("cooldown_seconds", 0.05)
        scheduler = BatchScheduler(fetcher or RecordingFetcher(), **kwargs)
        created.append(scheduler)
        return scheduler

    yield _make

    for scheduler in created:
        await scheduler.stop()


@pytest.fixture
def detach_cli_handlers():
    """Remove handlers the CLI attaches to the package logger."""
    yield
    logger = logging.getLogger("ingestion_orchestrator")
    for handler in list(logger.handlers):
        if getattr(handler, "_ingestion_handler", False):
            logger.removeHandler(handler)
