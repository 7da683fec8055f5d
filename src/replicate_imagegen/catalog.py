from __future__ import annotations

from dataclasses import asdict, dataclass

from .config import DEFAULT_MODEL


@dataclass(frozen=True, slots=True)
class ModelInfo:
    """Static description of a model offered to callers."""

    id: str
    name: str
    description: str
    max_width: int
    max_height: int
    default_width: int
    default_height: int


MODELS: tuple[ModelInfo, ...] = (
    ModelInfo(
        id=DEFAULT_MODEL,
        name="Flux 1.1 Pro",
        description="High-quality image generation model",
        max_width=2048,
        max_height=2048,
        default_width=1024,
        default_height=1024,
    ),
    ModelInfo(
        id="stability-ai/stable-diffusion:db21e45d3f7023abc2a46ee38a23973f6dce16bb082a930b0c49861f96d1e5bf",
        name="Stable Diffusion",
        description="Classic stable diffusion model",
        max_width=1024,
        max_height=1024,
        default_width=512,
        default_height=512,
    ),
)


def list_models() -> list[dict[str, object]]:
    return [asdict(model) for model in MODELS]
