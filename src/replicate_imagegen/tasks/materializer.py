from __future__ import annotations

import asyncio
import base64
import logging
from typing import Sequence

import httpx

from ..config import MaterializerConfig
from ..types import ImageResource

logger = logging.getLogger(__name__)

DATA_URI_PREFIX = "data:"


class ResourceMaterializer:
    """Fetch provider image URLs and embed them as base64 data URIs."""

    def __init__(
        self,
        config: MaterializerConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or MaterializerConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(self._config.timeout_seconds),
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def materialize(self, locators: Sequence[str]) -> list[ImageResource]:
        """
        Resolve every locator into an :class:`ImageResource`.

        Fetches run concurrently; the result keeps the input order and has the same
        length. A failed fetch is recorded on its own resource and never raised.
        Cancelling the caller cancels every outstanding fetch.
        """
        return list(await asyncio.gather(*(self._materialize_one(locator) for locator in locators)))

    async def _materialize_one(self, locator: str) -> ImageResource:
        if locator.startswith(DATA_URI_PREFIX):
            return ImageResource(locator=locator, embedded=locator, size_bytes=len(locator))

        try:
            response = await self._client.get(locator)
            response.raise_for_status()
            body = response.content
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Failed to fetch image from %s: %s", locator, exc)
            return ImageResource(locator=locator, failure_reason=f"Failed to fetch image: {exc}")

        mime_type = self._content_type(response)
        payload = base64.b64encode(body).decode("ascii")
        return ImageResource(
            locator=locator,
            embedded=f"data:{mime_type};base64,{payload}",
            size_bytes=len(body),
        )

    def _content_type(self, response: httpx.Response) -> str:
        header = response.headers.get("content-type", "")
        mime_type = header.split(";", 1)[0].strip()
        return mime_type or self._config.default_mime

    async def __aenter__(self) -> "ResourceMaterializer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()
