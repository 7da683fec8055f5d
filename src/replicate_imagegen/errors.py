from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Outward-facing failure categories with a stable HTTP status."""

    INVALID_INPUT = "invalid_input"
    UNAUTHORIZED_UPSTREAM = "unauthorized_upstream"
    RATE_LIMITED = "rate_limited"
    INVALID_MODEL = "invalid_model"
    PROVIDER_FAILURE = "provider_failure"
    CONFIGURATION = "configuration"

    @property
    def http_status(self) -> int:
        return _STATUS_BY_KIND[self]


_STATUS_BY_KIND = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.UNAUTHORIZED_UPSTREAM: 401,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.INVALID_MODEL: 400,
    ErrorKind.PROVIDER_FAILURE: 500,
    ErrorKind.CONFIGURATION: 500,
}

_MESSAGE_BY_KIND = {
    ErrorKind.UNAUTHORIZED_UPSTREAM: "Invalid API credentials for image generation service",
    ErrorKind.RATE_LIMITED: "Image generation quota exceeded. Please try again later.",
    ErrorKind.INVALID_MODEL: "Invalid model specified. Please check the model name.",
    ErrorKind.PROVIDER_FAILURE: "Failed to generate image. Please try again.",
}


class GenerationError(Exception):
    """A classified failure of a whole generation request."""

    def __init__(self, kind: ErrorKind, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.detail = detail

    @property
    def http_status(self) -> int:
        return self.kind.http_status

    def as_payload(self, include_detail: bool = False) -> dict[str, str]:
        payload = {"error": self.message}
        if include_detail and self.detail:
            payload["details"] = self.detail
        return payload


class InvalidInputError(GenerationError):
    """Raised when a caller-supplied request fails validation."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorKind.INVALID_INPUT, message)


class ConfigurationError(GenerationError):
    """Raised when the service is missing configuration it needs for a request."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorKind.CONFIGURATION, message)


class ProviderError(Exception):
    """Failure reported by the image-generation provider or its transport."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _kind_from_status(status_code: int | None) -> ErrorKind | None:
    if status_code in (401, 403):
        return ErrorKind.UNAUTHORIZED_UPSTREAM
    if status_code == 429:
        return ErrorKind.RATE_LIMITED
    if status_code in (404, 422):
        return ErrorKind.INVALID_MODEL
    return None


def _kind_from_message(message: str) -> ErrorKind:
    if "authentication" in message or "401" in message:
        return ErrorKind.UNAUTHORIZED_UPSTREAM
    if "quota" in message or "limit" in message or "429" in message:
        return ErrorKind.RATE_LIMITED
    if "model" in message or "not found" in message:
        return ErrorKind.INVALID_MODEL
    return ErrorKind.PROVIDER_FAILURE


def classify(raw_error: BaseException) -> GenerationError:
    """
    Map a provider or transport failure onto the outward error taxonomy.

    An upstream HTTP status, when the provider boundary supplies one, decides the
    kind. Otherwise the error text is matched against known phrases, earlier
    phrases taking precedence (authentication, then quota, then model).
    """
    if isinstance(raw_error, GenerationError):
        return raw_error

    message = str(raw_error)
    kind = _kind_from_status(getattr(raw_error, "status_code", None))
    if kind is None:
        kind = _kind_from_message(message)
    return GenerationError(kind, _MESSAGE_BY_KIND[kind], detail=message or type(raw_error).__name__)
