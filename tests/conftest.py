import io
from typing import AsyncGenerator, Optional

import pytest
from httpx import AsyncClient, ASGITransport
from PIL import Image

from src.main import app
from src.core.config import PipelineConfig

EXIF_ORIENTATION_TAG = 0x0112


def make_jpeg(width: int, height: int, orientation: Optional[int] = None, color=(200, 120, 40)) -> bytes:
    """Encode a two-tone JPEG, optionally tagged with an EXIF orientation."""
    image = Image.new("RGB", (width, height), color)
    image.paste((30, 60, 160), (0, 0, width // 2, height // 2))

    params = {"quality": 90}
    if orientation is not None:
        exif = Image.Exif()
        exif[EXIF_ORIENTATION_TAG] = orientation
        params["exif"] = exif.tobytes()

    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", **params)
    return buffer.getvalue()


def make_gif(frames: int, size=(32, 24)) -> bytes:
    images = [Image.new("RGB", size, (40 * i % 255, 80, 120)) for i in range(frames)]
    buffer = io.BytesIO()
    images[0].save(buffer, format="GIF", save_all=True, append_images=images[1:], duration=100)
    return buffer.getvalue()


@pytest.fixture
def fast_config() -> PipelineConfig:
    """Small search budget so tracing stays quick."""
    return PipelineConfig(
        source_url="https://images.example.com/source.jpg",
        primitive_count=5,
        primitive_input_size=32,
        primitive_candidates=8,
        primitive_max_age=8,
        primitive_seed=7,
    )


@pytest.fixture
def landscape_jpeg() -> bytes:
    return make_jpeg(2400, 1600)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    # Run lifespan so app.state.pipeline exists; tests override the dependency
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def jpeg_factory():
    return make_jpeg


@pytest.fixture
def gif_factory():
    return make_gif
