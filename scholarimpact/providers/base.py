"""
base provider interface for the scholarly graph upstream.
the gateway only needs a single-shot GET; retry is the caller's job.
"""

from abc import ABC, abstractmethod
from typing import Any


class UpstreamProvider(ABC):
    """
    abstract base class for upstream data sources.
    providers fetch raw JSON from an external api.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """provider name for logging."""
        pass

    @abstractmethod
    async def get(self, endpoint: str) -> Any:
        """
        one GET against the provider's base url.
        endpoint carries its own query string.
        must raise UpstreamError on non-2xx; must not retry.
        """
        pass

    async def close(self):
        """release connections, if any."""
        pass
