from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..config import DEFAULT_MODEL
from ..errors import InvalidInputError

SUPPORTED_FORMATS = ("png", "jpg", "jpeg", "webp", "gif")
SUPPORTED_ASPECT_RATIOS = ("1:1", "16:9", "4:3", "3:2", "2:3", "9:16", "custom")
CUSTOM_ASPECT_RATIO = "custom"

PRESET_DIMENSIONS: Mapping[str, tuple[int, int]] = {
    "1:1": (1024, 1024),
    "16:9": (1344, 768),
    "4:3": (1152, 896),
    "3:2": (1216, 832),
    "2:3": (832, 1216),
    "9:16": (768, 1344),
}

OUTPUT_QUALITY = 80
SAFETY_TOLERANCE = 2


class GenerationRequest(BaseModel):
    """Prompt and tuning parameters for a single image generation."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    prompt: str = Field(
        default="", validate_default=True, description="Text prompt; surrounding whitespace is stripped"
    )
    model: str = Field(default=DEFAULT_MODEL, min_length=1, description="Provider model identifier")
    aspect_ratio: str = Field(default="1:1", description="Preset ratio or 'custom'")
    width: int | None = Field(default=None, description="Only honoured for custom aspect ratio")
    height: int | None = Field(default=None, description="Only honoured for custom aspect ratio")
    output_format: str = Field(default="png", alias="format")
    num_outputs: int = Field(default=1)
    guidance_scale: float = Field(default=3.5)
    num_inference_steps: int = Field(default=20)

    @field_validator("prompt", mode="before")
    @classmethod
    def _strip_prompt(cls, value: Any) -> str:
        stripped = value.strip() if isinstance(value, str) else ""
        if not stripped:
            raise ValueError("Prompt is required and must be a non-empty string")
        return stripped

    @field_validator("output_format")
    @classmethod
    def _check_format(cls, value: str) -> str:
        lowered = value.lower()
        if lowered not in SUPPORTED_FORMATS:
            raise ValueError(f"Invalid format. Supported formats: {', '.join(SUPPORTED_FORMATS)}")
        return lowered

    @field_validator("aspect_ratio", mode="before")
    @classmethod
    def _check_aspect_ratio(cls, value: Any) -> str:
        text = str(value)
        if text not in SUPPORTED_ASPECT_RATIOS:
            raise ValueError(
                f"Invalid aspect_ratio. Supported: {', '.join(SUPPORTED_ASPECT_RATIOS)}"
            )
        return text

    @model_validator(mode="before")
    @classmethod
    def _drop_preset_dimensions(cls, data: Any) -> Any:
        # Width and height are ignored unless the aspect ratio is custom.
        if isinstance(data, Mapping) and str(data.get("aspect_ratio", "1:1")) != CUSTOM_ASPECT_RATIO:
            return {key: value for key, value in data.items() if key not in ("width", "height")}
        return data

    @model_validator(mode="after")
    def _check_custom_dimensions(self) -> "GenerationRequest":
        if self.aspect_ratio != CUSTOM_ASPECT_RATIO:
            return self
        if not self.width or not self.height:
            raise ValueError("For custom aspect_ratio, both width and height are required")
        if self.width <= 0 or self.height <= 0:
            raise ValueError("For custom aspect_ratio, width and height must be positive")
        return self

    @property
    def is_custom(self) -> bool:
        return self.aspect_ratio == CUSTOM_ASPECT_RATIO

    def resolve_dimensions(self) -> tuple[int, int]:
        """Return the pixel size: caller-supplied for custom, the preset table otherwise."""
        if self.is_custom:
            if self.width is None or self.height is None:
                raise ValueError("For custom aspect_ratio, both width and height are required")
            return self.width, self.height
        return PRESET_DIMENSIONS[self.aspect_ratio]

    def build_provider_input(self) -> dict[str, Any]:
        """Assemble the parameter bag forwarded to the provider."""
        width, height = self.resolve_dimensions()
        return {
            "prompt": self.prompt,
            "aspect_ratio": self.aspect_ratio,
            "width": width,
            "height": height,
            "output_format": self.output_format,
            "output_quality": OUTPUT_QUALITY,
            "safety_tolerance": SAFETY_TOLERANCE,
            "prompt_upsampling": True,
            "num_outputs": self.num_outputs,
            "guidance_scale": self.guidance_scale,
            "num_inference_steps": self.num_inference_steps,
        }

    def parameters_echo(self) -> dict[str, Any]:
        width, height = self.resolve_dimensions()
        return {
            "width": width,
            "height": height,
            "aspect_ratio": self.aspect_ratio,
            "num_outputs": self.num_outputs,
            "guidance_scale": self.guidance_scale,
            "num_inference_steps": self.num_inference_steps,
            "format": self.output_format,
        }


def _describe_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = str(first.get("msg", "Invalid request"))
    message = message.removeprefix("Value error, ")
    if first.get("type") == "value_error" or not location:
        return message
    return f"{location}: {message}"


def parse_request(
    payload: GenerationRequest | Mapping[str, Any],
    default_model: str | None = None,
) -> GenerationRequest:
    """
    Validate a raw request body into a :class:`GenerationRequest`.

    Raises
    ------
    InvalidInputError
        If any field fails validation; the message describes the first failure.
    """
    if isinstance(payload, GenerationRequest):
        return payload

    data = dict(payload)
    if default_model and not data.get("model"):
        data["model"] = default_model
    try:
        return GenerationRequest.model_validate(data)
    except ValidationError as exc:
        raise InvalidInputError(_describe_error(exc)) from exc
