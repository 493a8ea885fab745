"""
Base fetcher interface.

Defines the contract the scheduler relies on to pull one item from the
external resource.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any

from ..models.batch import ItemId


class BaseFetcher(ABC):
    """
    Abstract base class for all fetchers.

    ``fetch`` is called concurrently, once per item identifier of the batch
    being processed. It returns the fetched payload or raises ``FetchError``.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize the fetcher.

        Args:
            config: Fetcher-specific configuration
        """
        self.config = config
        self._is_initialized = False

    async def initialize(self) -> bool:
        """
        Acquire any resources the fetcher needs.

        Returns:
            True if initialization successful
        """
        self._is_initialized = True
        return True

    async def shutdown(self) -> bool:
        """
        Release resources held by the fetcher.

        Returns:
            True if shutdown successful
        """
        self._is_initialized = False
        return True

    @abstractmethod
    async def fetch(self, item_id: ItemId) -> Dict[str, Any]:
        """
        Fetch a single item from the external resource.

        Args:
            item_id: Identifier of the item to fetch

        Returns:
            Fetched payload

        Raises:
            FetchError: If the item could not be fetched
        """
        pass

    @property
    def is_initialized(self) -> bool:
        """Check if fetcher is initialized."""
        return self._is_initialized

    @property
    def fetcher_name(self) -> str:
        """Get the name of this fetcher."""
        return self.__class__.__name__
