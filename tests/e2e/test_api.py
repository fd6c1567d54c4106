from unittest.mock import AsyncMock

import httpx
import pytest

from src.api.dependencies import get_pipeline
from src.core.exceptions import InvalidImageError, InvalidInputError
from src.main import app
from src.modules.imagery.models import (
    EncodedVariant,
    PlaceholderArtifact,
    VariantBundle,
    VariantName,
    VariationResult,
)
from src.pipeline.orchestrator import PlaceholderPipeline

SVG = b'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 4 4"><rect width="4" height="4" fill="#abc"/></svg>'


def _result() -> VariationResult:
    variants = {
        name.value: EncodedVariant(name=name, width=4, height=4, content=b"\xff\xd8jpeg")
        for name in VariantName
    }
    return VariationResult(
        variants=VariantBundle(**variants),
        placeholder=PlaceholderArtifact(name="image.svg", content=SVG, width=4, height=4),
        source_size=123,
    )


class StubPipeline:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = 0

    async def generate_variations(self, image_url=None):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


@pytest.mark.asyncio
async def test_root_serves_placeholder(client):
    app.dependency_overrides[get_pipeline] = lambda: StubPipeline(_result())

    response = await client.get("/")

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/svg+xml"
    assert response.content == SVG
    assert "X-Request-ID" in response.headers


@pytest.mark.asyncio
@pytest.mark.parametrize("method,path", [
    ("GET", "/favicon.ico"),
    ("POST", "/api/v1/anything?size=large"),
    ("PUT", "/deep/nested/path"),
    ("DELETE", "/"),
])
async def test_every_method_and_path_gets_the_same_placeholder(client, method, path):
    pipeline = StubPipeline(_result())
    app.dependency_overrides[get_pipeline] = lambda: pipeline

    response = await client.request(method, path, content=b"ignored body")

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/svg+xml"
    assert response.content == SVG
    assert pipeline.calls == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    InvalidInputError(),
    InvalidImageError(),
    RuntimeError("decoder crashed"),
])
async def test_failures_become_generic_server_errors(client, error):
    app.dependency_overrides[get_pipeline] = lambda: StubPipeline(error=error)

    response = await client.get("/")

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Internal server error"
    assert "decoder crashed" not in response.text


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    InvalidImageError(),
    RuntimeError("boom"),
    httpx.ConnectError("connection refused"),
])
async def test_failures_keep_request_id(client, error):
    app.dependency_overrides[get_pipeline] = lambda: StubPipeline(error=error)

    response = await client.get("/")

    assert response.status_code == 500
    request_id = response.headers["X-Request-ID"]
    assert request_id
    assert response.json()["request_id"] == request_id


@pytest.mark.asyncio
async def test_full_pipeline_over_http(client, jpeg_factory, fast_config):
    pipeline = PlaceholderPipeline(fast_config, fetcher=AsyncMock(return_value=jpeg_factory(160, 120)))
    app.dependency_overrides[get_pipeline] = lambda: pipeline

    response = await client.get("/")

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/svg+xml"
    assert response.text.startswith("<svg")
    assert 'viewBox="0 0 160 120"' in response.text
