from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Protocol

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import ReplicateConfig
from ..errors import ProviderError

logger = logging.getLogger(__name__)

TERMINAL_SUCCESS = {"succeeded"}
TERMINAL_FAILURE = {"failed", "canceled", "cancelled", "aborted"}


class ProviderGateway(Protocol):
    """Boundary to the external image-generation capability."""

    async def run(self, model: str, input: Dict[str, Any]) -> Any:
        ...


class ReplicateClient:
    """Client for running predictions against the Replicate HTTP API."""

    def __init__(self, config: ReplicateConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._owns_client = client is None
        self._session = client or httpx.AsyncClient(timeout=httpx.Timeout(config.timeout_seconds))
        self._base_url = config.api_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {config.api_token}",
            "Content-Type": "application/json",
            "Prefer": "wait",
        }

    async def aclose(self) -> None:
        if self._owns_client:
            await self._session.aclose()

    def _prediction_request(self, model: str, input: Dict[str, Any]) -> tuple[str, Dict[str, Any]]:
        """Resolve the endpoint and body for ``owner/name`` or ``owner/name:version``."""
        if ":" in model:
            _, version = model.split(":", 1)
            return f"{self._base_url}/predictions", {"version": version, "input": input}
        if model.count("/") != 1:
            raise ProviderError(f"Invalid model identifier '{model}'; expected 'owner/name'")
        return f"{self._base_url}/models/{model}/predictions", {"input": input}

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            detail = ""
            try:
                body = exc.response.json()
                detail = body.get("detail") or body.get("title") or str(body)
            except ValueError:
                detail = exc.response.text
            status = exc.response.status_code
            if status == 404:
                detail = f"Model or version not found: {detail}"
            raise ProviderError(
                f"Replicate request failed with status {status}: {detail}",
                status_code=status,
            ) from exc

    async def _create_prediction(self, model: str, input: Dict[str, Any]) -> Dict[str, Any]:
        url, body = self._prediction_request(model, input)
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(httpx.TransportError),
            stop=stop_after_attempt(self._config.max_attempts),
            wait=wait_exponential(multiplier=2, min=1, max=20),
            reraise=True,
        ):
            with attempt:
                response = await self._session.post(url, json=body, headers=self._headers)
        self._raise_for_status(response)
        return response.json()

    async def _poll_prediction(self, prediction: Dict[str, Any]) -> Dict[str, Any]:
        """Poll the prediction's ``get`` URL until it reaches a terminal state."""
        get_url = (prediction.get("urls") or {}).get("get")
        if not get_url:
            get_url = f"{self._base_url}/predictions/{prediction.get('id')}"

        for _ in range(self._config.max_poll_attempts):
            await asyncio.sleep(self._config.poll_interval_seconds)
            response = await self._session.get(get_url, headers=self._headers)
            self._raise_for_status(response)
            prediction = response.json()
            if (prediction.get("status") or "").lower() in TERMINAL_SUCCESS | TERMINAL_FAILURE:
                return prediction

        raise ProviderError(
            f"Replicate prediction {prediction.get('id')} did not complete after "
            f"{self._config.max_poll_attempts} polls."
        )

    async def run(self, model: str, input: Dict[str, Any]) -> Any:
        """
        Run ``model`` with ``input`` and return the prediction's raw ``output``.

        The output shape is model-defined and returned unchanged.

        Raises
        ------
        ProviderError
            On HTTP failures (carrying the upstream status), failed or cancelled
            predictions, and predictions that never finish.
        httpx.TransportError
            When the connection keeps failing after the configured attempts.
        """
        prediction = await self._create_prediction(model, input)
        status = (prediction.get("status") or "").lower()
        if status not in TERMINAL_SUCCESS | TERMINAL_FAILURE:
            prediction = await self._poll_prediction(prediction)
            status = (prediction.get("status") or "").lower()

        logger.info("Replicate prediction %s finished with status %s", prediction.get("id"), status)
        if status in TERMINAL_FAILURE:
            error = prediction.get("error") or "no error reported"
            raise ProviderError(f"Replicate prediction {status}: {error}")
        return prediction.get("output")

    async def __aenter__(self) -> "ReplicateClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()
