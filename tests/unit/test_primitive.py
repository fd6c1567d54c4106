from xml.etree import ElementTree

import numpy as np
import pytest
import svg
from pydantic import ValidationError

from src.engines.primitive import (
    MultipleTraceResult,
    OptimizePlugin,
    PrimitivePlugin,
    ShapeMode,
    SingleTraceResult,
    trace,
)
from src.engines.primitive.model import PrimitiveModel, to_hex
from src.engines.primitive.optimize import optimize_document, round_number, shorten_color
from src.engines.primitive.shapes import Triangle, shape_factory
from src.engines.primitive.tracer import resolve_plugins

SVG_NS = "{http://www.w3.org/2000/svg}"


def _plugins(mode: int = ShapeMode.TRIANGLE, seed: int = 3):
    return [
        PrimitivePlugin(
            number_of_primitives=4,
            mode=mode,
            input_size=32,
            candidates=6,
            max_age=6,
            seed=seed,
        ),
        OptimizePlugin(),
    ]


def test_trace_single_frame(jpeg_factory):
    result = trace(jpeg_factory(64, 48), "image.svg", _plugins())

    assert isinstance(result, SingleTraceResult)
    artifact = result.artifact
    assert artifact.name == "image.svg"
    assert (artifact.width, artifact.height) == (64, 48)
    assert 0.0 <= artifact.score <= 1.0

    root = ElementTree.fromstring(artifact.content)
    assert root.tag == f"{SVG_NS}svg"
    assert root.get("viewBox") == "0 0 64 48"
    assert root.find(f"{SVG_NS}rect") is not None


def test_trace_multi_frame_reports_every_frame(gif_factory):
    result = trace(gif_factory(frames=2), "image.svg", _plugins())

    assert isinstance(result, MultipleTraceResult)
    assert [artifact.name for artifact in result.artifacts] == ["image-0.svg", "image-1.svg"]


def test_trace_is_deterministic_with_seed(jpeg_factory):
    source = jpeg_factory(64, 48)

    first = trace(source, "image.svg", _plugins(seed=11))
    second = trace(source, "image.svg", _plugins(seed=11))

    assert first.artifact.content == second.artifact.content


@pytest.mark.parametrize("mode", sorted(int(mode) for mode in ShapeMode if mode is not ShapeMode.BEZIER))
def test_trace_every_supported_mode(jpeg_factory, mode):
    result = trace(jpeg_factory(48, 48), "image.svg", _plugins(mode=mode))

    ElementTree.fromstring(result.artifact.content)


def test_bezier_mode_is_rejected():
    with pytest.raises(ValidationError):
        PrimitivePlugin(mode=ShapeMode.BEZIER)


def test_resolve_plugins_accepts_names():
    primitive, optimize = resolve_plugins(["primitive", "optimize"])

    assert primitive == PrimitivePlugin()
    assert optimize == OptimizePlugin()


def test_resolve_plugins_rejects_unknown_names():
    with pytest.raises(ValueError):
        resolve_plugins(["primitive", "blur"])


def test_trace_requires_one_primitive_plugin(jpeg_factory):
    with pytest.raises(ValueError):
        trace(jpeg_factory(16, 16), "image.svg", [OptimizePlugin()])


def test_model_steps_never_increase_error():
    rng = np.random.default_rng(0)
    target = np.zeros((24, 24, 3))
    target[:12, :12] = (250, 10, 10)
    target[12:, 12:] = (10, 10, 250)

    model = PrimitiveModel(target, alpha=128, rng=rng)
    factory = shape_factory(ShapeMode.TRIANGLE)

    errors = [model.error]
    for _ in range(5):
        model.step(factory, candidates=10, max_age=10)
        errors.append(model.error)

    assert errors == sorted(errors, reverse=True)
    assert errors[-1] < errors[0]
    assert len(model.shapes) >= 1


def test_triangle_mutation_returns_new_shape():
    rng = np.random.default_rng(1)
    triangle = Triangle.random(rng, 32, 32)

    mutated = triangle.mutate(rng, 32, 32)

    assert mutated is not triangle
    assert len(mutated.points) == 3


def test_round_number_and_shorten_color():
    assert round_number(12.04, 1) == 12
    assert isinstance(round_number(12.04, 1), int)
    assert round_number(3.14159, 2) == 3.14
    assert shorten_color("#AABBCC") == "#abc"
    assert shorten_color("#aabbcd") == "#aabbcd"
    assert to_hex((170, 187, 204)) == "#aabbcc"


def test_optimize_document_drops_collapsed_shapes():
    document = svg.SVG(
        viewBox=svg.ViewBoxSpec(0, 0, 10, 10),
        elements=[
            svg.Polygon(points=[1.01, 1.02, 1.03, 1.04, 1.0, 1.0], fill="#112233"),
            svg.Polygon(points=[0.123, 0.456, 5.0, 0.0, 5.0, 5.0], fill="#112234"),
        ],
    )

    optimized = optimize_document(document, precision=1)

    assert len(optimized.elements) == 1
    kept = optimized.elements[0]
    assert kept.points == [0.1, 0.5, 5, 0, 5, 5]
    assert kept.fill == "#112234"
