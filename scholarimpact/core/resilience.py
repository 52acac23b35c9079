"""
resilience utilities - fixed-delay retrying fetch client and logging setup.
keeps scholarimpact working through rate limits and flaky connections.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from .config import ApiConfig
from .errors import NetworkError, UpstreamError


# setup logging
logger = logging.getLogger("scholarimpact")

SleepFn = Callable[[float], Awaitable[Any]]


class ResilientFetchClient:
    """
    async GET client with a fixed retry budget.

    - 2xx: parsed JSON is returned
    - 429: sleep retry_delay, retry while budget remains
    - transport error: sleep retry_delay, retry while budget remains
    - any other status: UpstreamError right away, no retry

    the delay is constant (no backoff, no jitter) so timings are
    reproducible. sleep is injectable for tests.

    usage:
        async with ResilientFetchClient("http://localhost:3000/api") as client:
            data = await client.fetch("/author/search", {"query": "turing"})
    """

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        max_retries: int = 3,
        retry_delay: float = 3.0,
        timeout: Optional[float] = None,
        sleep: SleepFn = asyncio.sleep,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        name: str = "fetch"
    ):
        self.base_url = base_url.rstrip("/")
        self.headers = dict(headers or {
            "Accept": "application/json",
            "Content-Type": "application/json"
        })
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.name = name
        self._sleep = sleep
        self._transport = transport
        self._session: Optional[httpx.AsyncClient] = None
        self._logger = logging.getLogger(f"scholarimpact.{name}")

        # stats
        self.total_calls = 0
        self.successful_calls = 0
        self.failed_calls = 0
        self.retried_calls = 0

    @classmethod
    def from_config(cls, api: ApiConfig, **kwargs) -> "ResilientFetchClient":
        return cls(
            base_url=api.gateway_url,
            headers=api.headers,
            max_retries=api.rate_limit.max_retries,
            retry_delay=api.rate_limit.retry_delay,
            timeout=api.timeout,
            **kwargs
        )

    @property
    def session(self) -> httpx.AsyncClient:
        """lazy session initialization."""
        if self._session is None or self._session.is_closed:
            kwargs: Dict[str, Any] = {"transport": self._transport}
            if self.timeout is not None:
                kwargs["timeout"] = self.timeout
            self._session = httpx.AsyncClient(**kwargs)
        return self._session

    async def close(self):
        """close the http session."""
        if self._session and not self._session.is_closed:
            await self._session.aclose()
        self._session = None

    async def __aenter__(self) -> "ResilientFetchClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def fetch(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        retries_remaining: Optional[int] = None
    ) -> Any:
        """
        GET base_url + endpoint and return the decoded JSON body.

        args:
            endpoint: path relative to base_url (leading slash expected)
            params: query parameters
            retries_remaining: override of the retry budget

        raises:
            UpstreamError: non-2xx (status is the last one observed)
            NetworkError: transport failure after the budget ran out
        """
        retries = self.max_retries if retries_remaining is None else retries_remaining
        url = f"{self.base_url}{endpoint}"
        self.total_calls += 1

        while True:
            try:
                response = await self.session.get(url, params=params, headers=self.headers)

            except (httpx.TransportError, OSError) as e:
                if retries > 0:
                    self._logger.info(
                        f"[{self.name}] GET {endpoint} transport error, "
                        f"retrying in {self.retry_delay:.1f}s ({retries} left): {e}"
                    )
                    await self._retry_pause()
                    retries -= 1
                    continue

                self.failed_calls += 1
                self._logger.warning(f"[{self.name}] GET {endpoint} failed: {e}")
                raise NetworkError(f"Failed to fetch {url}: {e}") from e

            if response.is_success:
                try:
                    data = response.json()
                except ValueError as e:
                    self.failed_calls += 1
                    raise UpstreamError(
                        response.status_code, "invalid JSON in response body", url=url
                    ) from e
                self.successful_calls += 1
                return data

            if response.status_code == 429 and retries > 0:
                self._logger.warning(
                    f"[{self.name}] rate limited on {endpoint}, "
                    f"retrying in {self.retry_delay:.1f}s ({retries} left)"
                )
                await self._retry_pause()
                retries -= 1
                continue

            self.failed_calls += 1
            self._logger.warning(f"[{self.name}] GET {endpoint} -> {response.status_code}")
            raise UpstreamError(response.status_code, url=url)

    async def _retry_pause(self):
        self.retried_calls += 1
        await self._sleep(self.retry_delay)

    def stats(self) -> dict:
        """get client statistics."""
        return {
            "name": self.name,
            "total_calls": self.total_calls,
            "successful_calls": self.successful_calls,
            "failed_calls": self.failed_calls,
            "retried_calls": self.retried_calls,
            "success_rate": (
                self.successful_calls / self.total_calls
                if self.total_calls > 0 else 0
            )
        }


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None
):
    """
    setup scholarimpact logging.
    call once at startup.
    """
    formatter = logging.Formatter(
        "%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    # console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)

    # configure scholarimpact logger
    logger.setLevel(level)
    logger.addHandler(console_handler)

    # file handler if specified
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    return logger
