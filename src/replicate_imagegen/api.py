"""HTTP surface for image generation (FastAPI)."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from rich.logging import RichHandler

from .auth import AuthenticationFailure, bearer_token, verify_token
from .catalog import list_models
from .clients.replicate import ProviderGateway
from .config import AppConfig, load_config
from .errors import GenerationError, InvalidInputError
from .tasks.materializer import ResourceMaterializer
from .tasks.orchestrator import GenerationOrchestrator
from .types import UserContext

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )


def create_app(
    config: AppConfig | None = None,
    gateway: ProviderGateway | None = None,
    materializer: ResourceMaterializer | None = None,
) -> FastAPI:
    """Build the API application around a single stateless orchestrator."""
    config = config or load_config()
    orchestrator = GenerationOrchestrator(config, gateway=gateway, materializer=materializer)

    app = FastAPI(title="Replicate Image Generation", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AuthenticationFailure)
    async def _auth_failure(request: Request, exc: AuthenticationFailure) -> JSONResponse:
        return JSONResponse(status_code=exc.http_status, content={"error": exc.message})

    @app.exception_handler(GenerationError)
    async def _generation_error(request: Request, exc: GenerationError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.http_status,
            content=exc.as_payload(include_detail=config.development),
        )

    def current_user(authorization: Optional[str] = Header(default=None)) -> UserContext:
        return verify_token(bearer_token(authorization), config.auth)

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"message": "Server is running"}

    @app.get("/api/images/models")
    async def models() -> dict:
        return {"success": True, "models": list_models()}

    @app.post("/api/images/generate")
    async def generate(request: Request, user: UserContext = Depends(current_user)) -> dict:
        try:
            body = await request.json()
        except ValueError as exc:
            raise InvalidInputError("Request body must be a JSON object") from exc
        if not isinstance(body, dict):
            raise InvalidInputError("Request body must be a JSON object")

        result = await orchestrator.generate_with_fallback(body, user)
        return {
            "success": True,
            "message": "Image generated successfully",
            "data": result.as_payload(),
        }

    @app.get("/api/images/image/{image_id}")
    async def get_image(image_id: str, user: UserContext = Depends(current_user)) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"error": "Image not found. Use the generate endpoint to create images."},
        )

    return app
