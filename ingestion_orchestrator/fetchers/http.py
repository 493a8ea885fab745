"""
HTTP fetcher.

Pulls each item from an external HTTP API with a shared httpx client.
"""

from typing import Dict, Any, Optional
from urllib.parse import quote

import httpx

from .base import BaseFetcher
from ..models.batch import ItemId
from ..utils.logger import get_logger
from ..core.exceptions import FetchError


class HttpFetcher(BaseFetcher):
    """
    Fetcher backed by ``httpx.AsyncClient``.

    The item URL is built from ``url_template`` by substituting the percent-encoded
    ``{item_id}``.
    Non-2xx responses and transport errors raise ``FetchError``.
    """

    def __init__(
        self,
        url_template: str,
        timeout_seconds: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__({"url_template": url_template, "timeout_seconds": timeout_seconds})
        if "{item_id}" not in url_template:
            raise ValueError("url_template must contain an {item_id} placeholder")

        self.url_template = url_template
        self.timeout_seconds = timeout_seconds
        self.headers = headers or {}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self.logger = get_logger(__name__)

    async def initialize(self) -> bool:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout_seconds,
                headers=self.headers,
                transport=self._transport
            )
        self._is_initialized = True
        self.logger.info("HTTP fetcher initialized", extra={"url_template": self.url_template})
        return True

    async def shutdown(self) -> bool:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self._is_initialized = False
        return True

    def build_url(self, item_id: ItemId) -> str:
        """Substitute the percent-encoded id, so it always stays one path segment or query value."""
        return self.url_template.format(item_id=quote(str(item_id), safe=""))

    async def fetch(self, item_id: ItemId) -> Dict[str, Any]:
        if self._client is None:
            await self.initialize()

        url = self.build_url(item_id)
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            raise FetchError(item_id, f"{e.__class__.__name__}: {e}") from e

        if response.is_error:
            raise FetchError(item_id, f"HTTP {response.status_code} from {url}", status_code=response.status_code)

        try:
            data = response.json()
        except ValueError:
            data = response.text

        return {"id": item_id, "data": data}
