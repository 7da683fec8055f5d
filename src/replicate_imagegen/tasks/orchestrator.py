from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from ..clients.replicate import ProviderGateway, ReplicateClient
from ..config import AppConfig
from ..errors import ConfigurationError, ErrorKind, GenerationError, classify
from ..types import GenerationResponse, UserContext
from .materializer import ResourceMaterializer
from .normalizer import normalize
from .request_plan import GenerationRequest, parse_request

logger = logging.getLogger(__name__)

# Opaque 1x1 PNG returned when the provider output holds no usable URL.
PLACEHOLDER_LOCATOR = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)

MISSING_TOKEN_MESSAGE = (
    "Image generation service not configured. "
    "Please set REPLICATE_API_TOKEN environment variable."
)


class GenerationOrchestrator:
    """Validate a request, run it on the provider and assemble the embedded images."""

    def __init__(
        self,
        config: AppConfig,
        gateway: ProviderGateway | None = None,
        materializer: ResourceMaterializer | None = None,
    ) -> None:
        self._config = config
        self._gateway = gateway
        self._materializer = materializer

    async def generate(
        self,
        request: GenerationRequest | Mapping[str, Any],
        user: UserContext,
    ) -> GenerationResponse:
        """
        Run one generation request end to end.

        Raises
        ------
        InvalidInputError
            The request failed validation; no network call was made.
        ConfigurationError
            No provider credential is configured.
        GenerationError
            The provider call failed; the error carries its classified kind.
        """
        plan = parse_request(request, default_model=self._config.default_model)
        if self._config.replicate is None:
            raise ConfigurationError(MISSING_TOKEN_MESSAGE)

        logger.info(
            "Generating image for user %s with model %s: %r", user.user_id, plan.model, plan.prompt
        )

        async with AsyncExitStack() as stack:
            gateway = self._gateway
            if gateway is None:
                gateway = await stack.enter_async_context(ReplicateClient(self._config.replicate))
            materializer = self._materializer
            if materializer is None:
                materializer = await stack.enter_async_context(
                    ResourceMaterializer(self._config.materializer)
                )

            try:
                output = await gateway.run(plan.model, plan.build_provider_input())
            except GenerationError:
                raise
            except Exception as exc:
                classified = classify(exc)
                logger.error(
                    "Image generation failed (%s): %s", classified.kind.value, classified.detail
                )
                raise classified from exc

            locators = normalize(output)
            degraded = not locators
            if degraded:
                logger.warning("No image URLs in provider output for model %s; using placeholder", plan.model)
                locators = [PLACEHOLDER_LOCATOR]

            resources = await materializer.materialize(locators)

        failed = sum(1 for resource in resources if not resource.ok)
        logger.info("Generated %d image(s) for user %s, %d failed to embed", len(resources), user.user_id, failed)

        return GenerationResponse(
            prompt=plan.prompt,
            model=plan.model,
            output_format=plan.output_format,
            all_images=list(locators),
            resources=resources,
            generated_at=datetime.now(timezone.utc),
            parameters=plan.parameters_echo(),
            degraded=degraded,
        )

    async def generate_with_fallback(
        self,
        request: GenerationRequest | Mapping[str, Any],
        user: UserContext,
        fallback_models: Sequence[str] | None = None,
    ) -> GenerationResponse:
        """
        Run :meth:`generate`, retrying with fallback models while the model is rejected.

        Only an ``invalid_model`` classification moves on to the next model; every
        other failure is raised as is.
        """
        plan = parse_request(request, default_model=self._config.default_model)
        candidates = list(fallback_models if fallback_models is not None else self._config.fallback_models)

        try:
            return await self.generate(plan, user)
        except GenerationError as exc:
            if exc.kind is not ErrorKind.INVALID_MODEL or not candidates:
                raise
            last_error = exc

        for model in candidates:
            if model == plan.model:
                continue
            logger.info("Model %s rejected, falling back to %s", plan.model, model)
            try:
                return await self.generate(plan.model_copy(update={"model": model}), user)
            except GenerationError as exc:
                if exc.kind is not ErrorKind.INVALID_MODEL:
                    raise
                last_error = exc
        raise last_error
