import json

import httpx
import pytest
import respx

from replicate_imagegen.clients.replicate import ReplicateClient
from replicate_imagegen.config import ReplicateConfig
from replicate_imagegen.errors import ProviderError

API = "https://api.replicate.com/v1"


@pytest.fixture
def config() -> ReplicateConfig:
    return ReplicateConfig(api_token="r8_test", poll_interval_seconds=0.1, max_poll_attempts=3, max_attempts=1)


@pytest.mark.asyncio
@respx.mock
async def test_official_model_returns_output_when_waited(config):
    route = respx.post(f"{API}/models/black-forest-labs/flux-1.1-pro/predictions").mock(
        return_value=httpx.Response(
            201, json={"id": "p1", "status": "succeeded", "output": "https://replicate.delivery/out.png"}
        )
    )

    async with ReplicateClient(config) as client:
        output = await client.run("black-forest-labs/flux-1.1-pro", {"prompt": "a red ball"})

    assert output == "https://replicate.delivery/out.png"
    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer r8_test"
    assert request.headers["Prefer"] == "wait"
    assert json.loads(request.content) == {"input": {"prompt": "a red ball"}}


@pytest.mark.asyncio
@respx.mock
async def test_versioned_model_posts_version(config):
    route = respx.post(f"{API}/predictions").mock(
        return_value=httpx.Response(201, json={"id": "p2", "status": "succeeded", "output": ["https://a"]})
    )

    async with ReplicateClient(config) as client:
        output = await client.run("stability-ai/stable-diffusion:abc123", {"prompt": "x"})

    assert output == ["https://a"]
    assert json.loads(route.calls.last.request.content)["version"] == "abc123"


@pytest.mark.asyncio
@respx.mock
async def test_running_prediction_is_polled(config):
    get_url = f"{API}/predictions/p3"
    respx.post(f"{API}/models/owner/model/predictions").mock(
        return_value=httpx.Response(201, json={"id": "p3", "status": "starting", "urls": {"get": get_url}})
    )
    respx.get(get_url).mock(
        side_effect=[
            httpx.Response(200, json={"id": "p3", "status": "processing"}),
            httpx.Response(200, json={"id": "p3", "status": "succeeded", "output": {"image": "https://b"}}),
        ]
    )

    async with ReplicateClient(config) as client:
        output = await client.run("owner/model", {"prompt": "x"})

    assert output == {"image": "https://b"}


@pytest.mark.asyncio
@respx.mock
async def test_prediction_that_never_finishes(config):
    get_url = f"{API}/predictions/p4"
    respx.post(f"{API}/models/owner/model/predictions").mock(
        return_value=httpx.Response(201, json={"id": "p4", "status": "starting", "urls": {"get": get_url}})
    )
    respx.get(get_url).mock(return_value=httpx.Response(200, json={"id": "p4", "status": "processing"}))

    async with ReplicateClient(config) as client:
        with pytest.raises(ProviderError, match="did not complete"):
            await client.run("owner/model", {"prompt": "x"})


@pytest.mark.asyncio
@respx.mock
async def test_failed_prediction_carries_provider_error(config):
    respx.post(f"{API}/models/owner/model/predictions").mock(
        return_value=httpx.Response(201, json={"id": "p5", "status": "failed", "error": "NSFW content detected"})
    )

    async with ReplicateClient(config) as client:
        with pytest.raises(ProviderError, match="NSFW content detected"):
            await client.run("owner/model", {"prompt": "x"})


@pytest.mark.asyncio
@respx.mock
async def test_http_error_keeps_status_and_detail(config):
    respx.post(f"{API}/models/owner/missing/predictions").mock(
        return_value=httpx.Response(404, json={"title": "Not found", "detail": "The requested resource could not be found."})
    )

    async with ReplicateClient(config) as client:
        with pytest.raises(ProviderError) as excinfo:
            await client.run("owner/missing", {"prompt": "x"})

    assert excinfo.value.status_code == 404
    assert "could not be found" in str(excinfo.value)


@pytest.mark.asyncio
async def test_malformed_model_identifier(config):
    async with ReplicateClient(config) as client:
        with pytest.raises(ProviderError, match="Invalid model identifier"):
            await client.run("just-a-name", {"prompt": "x"})


@pytest.mark.asyncio
@respx.mock
async def test_transport_error_on_create_is_retried(config):
    route = respx.post(f"{API}/models/owner/model/predictions").mock(
        side_effect=[
            httpx.ConnectError("connection reset"),
            httpx.Response(201, json={"id": "p6", "status": "succeeded", "output": "https://c"}),
        ]
    )

    async with ReplicateClient(config.model_copy(update={"max_attempts": 2})) as client:
        output = await client.run("owner/model", {"prompt": "x"})

    assert output == "https://c"
    assert route.call_count == 2


@pytest.mark.asyncio
@respx.mock
async def test_http_status_error_is_not_retried(config):
    route = respx.post(f"{API}/models/owner/missing/predictions").mock(
        return_value=httpx.Response(404, json={"detail": "not found"})
    )

    async with ReplicateClient(config.model_copy(update={"max_attempts": 3})) as client:
        with pytest.raises(ProviderError):
            await client.run("owner/missing", {"prompt": "x"})

    assert route.call_count == 1
