"""Discovery of debuggable browser targets.

Polls the browser's ``/json`` endpoint until at least one target with a
websocket debugger URL is listed.
"""

from __future__ import annotations

import asyncio
import logging

import httpx
from pydantic import ValidationError

from panesd.domain.models import TabDescriptor

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.1


class DiscoveryUnavailable(Exception):
    """Raised when no debuggable target could be listed."""


class TabDiscovery:
    """Lists debuggable targets from the remote debugging endpoint.

    Example usage::

        async with TabDiscovery("http://127.0.0.1:2345/json") as discovery:
            tab = await discovery.wait_for_tab()
    """

    def __init__(
        self,
        url: str = "http://127.0.0.1:2345/json",
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = 2.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def url(self) -> str:
        return self._url

    async def fetch_tabs(self) -> list[TabDescriptor]:
        """Query the endpoint once.

        Raises:
            DiscoveryUnavailable: On transport failure, a non-JSON or
                non-list body, or when no usable target is listed.
        """
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        try:
            resp = await self._client.get(self._url)
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPError as e:
            raise DiscoveryUnavailable(f"could not fetch {self._url}: {e}") from e
        except ValueError as e:
            raise DiscoveryUnavailable(f"{self._url} did not return JSON: {e}") from e

        if not isinstance(body, list):
            raise DiscoveryUnavailable(f"{self._url} returned {type(body).__name__}, not a list")

        tabs = []
        for entry in body:
            try:
                tabs.append(TabDescriptor.model_validate(entry))
            except ValidationError as e:
                logger.debug("Skipping target without debugger URL: %s", e.errors()[0]["msg"])
        if not tabs:
            raise DiscoveryUnavailable("no debuggable targets")
        return tabs

    async def discover(self) -> list[TabDescriptor]:
        """Poll until the endpoint lists at least one target. Never fails."""
        attempts = 0
        while True:
            attempts += 1
            try:
                tabs = await self.fetch_tabs()
            except DiscoveryUnavailable as e:
                if attempts == 1:
                    logger.info("Waiting for browser targets at %s (%s)", self._url, e)
                else:
                    logger.debug("Discovery attempt %d failed: %s", attempts, e)
                await asyncio.sleep(self._poll_interval)
                continue
            logger.debug("Discovered %d target(s) after %d attempt(s)", len(tabs), attempts)
            return tabs

    @staticmethod
    def select(tabs: list[TabDescriptor]) -> TabDescriptor:
        """Pick the target to drive: always the first one listed."""
        return tabs[0]

    async def wait_for_tab(self) -> TabDescriptor:
        tab = self.select(await self.discover())
        logger.info("Selected target %s (%s)", tab.id, tab.url or tab.title)
        return tab

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> TabDiscovery:
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.close()
