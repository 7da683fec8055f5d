from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Sequence


@dataclass(slots=True)
class UserContext:
    """Identity of the authenticated caller, as resolved by the auth boundary."""

    user_id: str
    claims: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ImageResource:
    """One provider locator resolved into an embedded data URI, or a failure marker."""

    locator: str
    embedded: str | None = None
    size_bytes: int | None = None
    failure_reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.embedded is not None

    def as_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"url": self.locator, "blob": self.embedded}
        if self.size_bytes is not None:
            payload["size"] = self.size_bytes
        if self.failure_reason is not None:
            payload["error"] = self.failure_reason
        return payload


@dataclass(slots=True)
class GenerationResponse:
    """Assembled result of a single generation request."""

    prompt: str
    model: str
    output_format: str
    all_images: Sequence[str]
    resources: Sequence[ImageResource]
    generated_at: datetime
    parameters: Mapping[str, Any]
    degraded: bool = False

    @property
    def primary_image(self) -> str | None:
        """Embedded form of the first resource that materialized successfully."""
        for resource in self.resources:
            if resource.embedded is not None:
                return resource.embedded
        return None

    def as_payload(self) -> dict[str, Any]:
        return {
            "prompt": self.prompt,
            "model": self.model,
            "format": self.output_format,
            "imageUrl": self.all_images[0] if self.all_images else None,
            "allImages": list(self.all_images),
            "imageBlobs": [resource.as_payload() for resource in self.resources],
            "primaryImageBlob": self.primary_image,
            "degraded": self.degraded,
            "generatedAt": self.generated_at.isoformat(),
            "parameters": dict(self.parameters),
        }
