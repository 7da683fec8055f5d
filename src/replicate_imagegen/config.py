from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

DEFAULT_MODEL = "black-forest-labs/flux-1.1-pro"


class ReplicateConfig(BaseModel):
    """Settings required to access the Replicate prediction API."""

    api_token: str = Field(..., min_length=1, description="Replicate API token")
    api_url: str = Field(
        default="https://api.replicate.com/v1",
        description="Base URL for the Replicate HTTP API",
    )
    poll_interval_seconds: float = Field(
        default=1.0,
        ge=0.1,
        le=30.0,
        description="Delay between polling attempts while a prediction is still running",
    )
    max_poll_attempts: int = Field(
        default=120,
        ge=1,
        le=1200,
        description="Maximum polling attempts before giving up on a prediction",
    )
    timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Per-request HTTP timeout for prediction calls",
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for creating a prediction when the transport fails",
    )


class MaterializerConfig(BaseModel):
    """Settings for turning provider image URLs into embedded payloads."""

    timeout_seconds: float = Field(default=30.0, gt=0, description="Per-fetch HTTP timeout")
    default_mime: str = Field(
        default="image/png",
        description="MIME type used when a fetched image declares no content type",
    )


class AuthConfig(BaseModel):
    """Bearer token verification settings."""

    jwt_secret: str = Field(default="dev-secret", min_length=1)
    algorithm: str = Field(default="HS256")


class AppConfig(BaseModel):
    """Top-level configuration object consumed by the orchestrator and the API."""

    replicate: ReplicateConfig | None = None
    materializer: MaterializerConfig = Field(default_factory=MaterializerConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    default_model: str = Field(default=DEFAULT_MODEL, min_length=1)
    fallback_models: list[str] = Field(
        default_factory=list,
        description="Models tried in order when the requested model is rejected upstream",
    )
    development: bool = Field(
        default=False,
        description="Expose raw upstream error text in error responses",
    )


def _float_from_env(value: Optional[str], default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise RuntimeError(f"Invalid float value: {value}") from exc


def _int_from_env(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise RuntimeError(f"Invalid integer value: {value}") from exc


def _list_from_env(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def load_config(dotenv_path: str | Path | None = None) -> AppConfig:
    """
    Load configuration from environment variables (optionally seeded by a .env file).

    A missing ``REPLICATE_API_TOKEN`` leaves ``replicate`` unset; the orchestrator
    reports that per request instead of refusing to start.

    Raises
    ------
    RuntimeError
        If a value is present but malformed.
    """
    env_path = Path(dotenv_path) if dotenv_path else Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    app_env = os.getenv("APP_ENV", "").strip().lower()
    jwt_secret = os.getenv("JWT_SECRET")
    if not jwt_secret:
        if app_env == "production":
            raise RuntimeError("JWT_SECRET environment variable is required")
        jwt_secret = "dev-secret"

    api_token = os.getenv("REPLICATE_API_TOKEN")
    replicate_data: dict[str, object] | None
    if api_token:
        replicate_data = {
            "api_token": api_token,
            "api_url": os.getenv("REPLICATE_API_URL", "https://api.replicate.com/v1"),
            "poll_interval_seconds": _float_from_env(os.getenv("REPLICATE_POLL_INTERVAL"), 1.0),
            "max_poll_attempts": _int_from_env(os.getenv("REPLICATE_MAX_POLL_ATTEMPTS"), 120),
            "timeout_seconds": _float_from_env(os.getenv("REPLICATE_TIMEOUT"), 120.0),
            "max_attempts": _int_from_env(os.getenv("REPLICATE_MAX_ATTEMPTS"), 3),
        }
    else:
        replicate_data = None

    data = {
        "replicate": replicate_data,
        "materializer": {
            "timeout_seconds": _float_from_env(os.getenv("MATERIALIZER_TIMEOUT"), 30.0),
            "default_mime": os.getenv("MATERIALIZER_DEFAULT_MIME", "image/png"),
        },
        "auth": {"jwt_secret": jwt_secret},
        "default_model": os.getenv("IMAGEGEN_DEFAULT_MODEL", DEFAULT_MODEL),
        "fallback_models": _list_from_env(os.getenv("IMAGEGEN_FALLBACK_MODELS")),
        "development": app_env == "development",
    }

    try:
        return AppConfig.model_validate(data)
    except ValidationError as exc:
        invalid = {"/".join(str(part) for part in err["loc"]) for err in exc.errors()}
        invalid_str = ", ".join(sorted(invalid))
        raise RuntimeError(f"Invalid configuration values: {invalid_str}") from exc
