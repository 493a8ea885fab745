"""
Simulated fetcher.

Stands in for the external data source: every fetch settles after a fixed
(optionally jittered) latency and returns a canned payload.
"""

import asyncio
import random
from typing import Dict, Any, Iterable, Optional

from .base import BaseFetcher
from ..models.batch import ItemId
from ..utils.logger import get_logger
from ..core.exceptions import FetchError


class SimulatedFetcher(BaseFetcher):
    """
    Fetcher with configurable latency and failure injection.

    Suitable for:
    - Local runs without an external service
    - Tests of scheduling, rate limiting and failure handling
    """

    def __init__(
        self,
        latency_seconds: float = 1.0,
        latency_jitter: float = 0.0,
        failure_rate: float = 0.0,
        failing_ids: Optional[Iterable[ItemId]] = None,
        seed: Optional[int] = None
    ):
        super().__init__({
            "latency_seconds": latency_seconds,
            "latency_jitter": latency_jitter,
            "failure_rate": failure_rate
        })
        if latency_seconds < 0 or latency_jitter < 0:
            raise ValueError("latency must not be negative")
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError("failure_rate must be between 0 and 1")

        self.latency_seconds = latency_seconds
        self.latency_jitter = latency_jitter
        self.failure_rate = failure_rate
        self.failing_ids = set(failing_ids or ())
        self.fetch_count = 0
        self._random = random.Random(seed)
        self.logger = get_logger(__name__)

    async def fetch(self, item_id: ItemId) -> Dict[str, Any]:
        self.fetch_count += 1
        delay = self.latency_seconds
        if self.latency_jitter:
            delay += self._random.uniform(0, self.latency_jitter)

        await asyncio.sleep(delay)

        if item_id in self.failing_ids or (self.failure_rate and self._random.random() < self.failure_rate):
            self.logger.debug("Injecting simulated fetch failure", extra={"item_id": item_id})
            raise FetchError(item_id, "simulated failure")

        return {"id": item_id, "data": "processed"}
