from unittest.mock import MagicMock

import pytest

from src.core.config import PipelineConfig
from src.core.exceptions import UnsupportedOutputError
from src.engines.primitive import (
    MultipleTraceResult,
    OptimizePlugin,
    PrimitivePlugin,
    SingleTraceResult,
    TraceArtifact,
)
from src.pipeline import placeholder as placeholder_module
from src.pipeline.placeholder import (
    OUTPUT_FILE_NAME,
    build_plugins,
    describe_result,
    generate_placeholder,
)

SVG = b'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 10 10"><rect width="10" height="10" fill="#abc"/></svg>'


def _artifact(name: str = "image.svg") -> TraceArtifact:
    return TraceArtifact(name=name, content=SVG, width=10, height=10, shape_count=1, score=0.1)


def test_build_plugins_uses_primitive_then_optimize():
    primitive, optimize = build_plugins(PipelineConfig())

    assert isinstance(primitive, PrimitivePlugin)
    assert primitive.number_of_primitives == 50
    assert primitive.mode == 1
    assert isinstance(optimize, OptimizePlugin)


def test_describe_result_omits_markup():
    summary = describe_result(MultipleTraceResult(artifacts=[_artifact("a.svg"), _artifact("b.svg")]))

    assert summary["kind"] == "multiple"
    assert [a["name"] for a in summary["artifacts"]] == ["a.svg", "b.svg"]
    assert all("content" not in a for a in summary["artifacts"])


@pytest.mark.asyncio
async def test_generate_placeholder_returns_single_artifact():
    tracer = MagicMock(return_value=SingleTraceResult(artifact=_artifact()))

    placeholder = await generate_placeholder(b"source", PipelineConfig(), tracer=tracer)

    assert placeholder.content == SVG
    assert placeholder.name == "image.svg"
    assert placeholder.as_text().startswith("<svg")

    input_bytes, output_name, plugins = tracer.call_args.args
    assert input_bytes == b"source"
    assert output_name == OUTPUT_FILE_NAME
    assert [plugin.name for plugin in plugins] == ["primitive", "optimize"]


@pytest.mark.asyncio
async def test_generate_placeholder_rejects_multiple_artifacts():
    tracer = MagicMock(return_value=MultipleTraceResult(artifacts=[_artifact("a.svg"), _artifact("b.svg")]))

    with pytest.raises(UnsupportedOutputError) as exc_info:
        await generate_placeholder(b"source", PipelineConfig(), tracer=tracer)

    assert exc_info.value.details["artifact_count"] == 2


@pytest.mark.asyncio
async def test_generate_placeholder_logs_raw_result(monkeypatch):
    logger = MagicMock()
    monkeypatch.setattr(placeholder_module, "logger", logger)
    result = SingleTraceResult(artifact=_artifact())

    await generate_placeholder(b"source", PipelineConfig(), tracer=MagicMock(return_value=result))

    logger.info.assert_called_once_with("trace_result", **describe_result(result))


@pytest.mark.asyncio
async def test_generate_placeholder_logs_raw_result_before_rejecting(monkeypatch):
    logger = MagicMock()
    monkeypatch.setattr(placeholder_module, "logger", logger)
    result = MultipleTraceResult(artifacts=[_artifact("a.svg"), _artifact("b.svg")])

    with pytest.raises(UnsupportedOutputError):
        await generate_placeholder(b"source", PipelineConfig(), tracer=MagicMock(return_value=result))

    logger.info.assert_called_once_with("trace_result", **describe_result(result))
    summary = logger.info.call_args.kwargs
    assert summary["kind"] == "multiple"
    assert len(summary["artifacts"]) == 2


@pytest.mark.asyncio
async def test_generate_placeholder_with_real_tracer(jpeg_factory, fast_config):
    placeholder = await generate_placeholder(jpeg_factory(120, 80), fast_config)

    assert placeholder.width == 120
    assert placeholder.height == 80
    assert placeholder.content.startswith(b"<svg")
    assert b"<polygon" in placeholder.content


@pytest.mark.asyncio
async def test_generate_placeholder_rejects_animated_input(gif_factory, fast_config):
    with pytest.raises(UnsupportedOutputError):
        await generate_placeholder(gif_factory(frames=3), fast_config)
