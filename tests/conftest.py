from __future__ import annotations

from typing import Any, Dict

import pytest

from replicate_imagegen.config import AppConfig, AuthConfig, ReplicateConfig
from replicate_imagegen.types import UserContext

# Minimal valid 1x1 PNG
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"
    b"\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00\x1f\x15\xc4\x89"
    b"\x00\x00\x00\nIDATx\x9cc\x00\x01\x00\x00\x05\x00\x01\r\n-\xb4"
    b"\x00\x00\x00\x00IEND\xaeB`\x82"
)


class StubGateway:
    """Records provider calls and replays a canned output or error."""

    def __init__(self, output: Any = None, error: Exception | None = None) -> None:
        self.output = output
        self.error = error
        self.errors_by_model: Dict[str, Exception] = {}
        self.calls: list[tuple[str, Dict[str, Any]]] = []

    async def run(self, model: str, input: Dict[str, Any]) -> Any:
        self.calls.append((model, input))
        error = self.errors_by_model.get(model, self.error)
        if error is not None:
            raise error
        return self.output


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        replicate=ReplicateConfig(api_token="r8_test", poll_interval_seconds=0.1),
        auth=AuthConfig(jwt_secret="test-secret"),
    )


@pytest.fixture
def user() -> UserContext:
    return UserContext(user_id="42")
