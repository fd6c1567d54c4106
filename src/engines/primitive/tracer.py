"""
Primitive Tracer

Entry point of the tracing engine. Runs a plugin chain over every frame of
the input image and reports one artifact per frame:
- single-frame input  -> SingleTraceResult
- multi-frame input   -> MultipleTraceResult (animated GIF, multi-page TIFF)
"""

import io
import logging
import time
from pathlib import PurePosixPath
from typing import List, Optional, Sequence, Union

import numpy as np
from PIL import Image, ImageOps, ImageSequence

from src.engines.primitive.model import PrimitiveModel
from src.engines.primitive.optimize import optimize_document
from src.engines.primitive.schemas import (
    MultipleTraceResult,
    OptimizePlugin,
    PrimitivePlugin,
    SingleTraceResult,
    TraceArtifact,
    TracePlugin,
    TraceResult,
)
from src.engines.primitive.shapes import shape_factory

logger = logging.getLogger(__name__)

PluginSpec = Union[TracePlugin, str]

_DEFAULT_PLUGINS = {
    "primitive": PrimitivePlugin,
    "optimize": OptimizePlugin,
}


def resolve_plugins(plugins: Sequence[PluginSpec]) -> List[TracePlugin]:
    """Accept plugin instances or bare plugin names (default options)."""
    resolved: List[TracePlugin] = []
    for plugin in plugins:
        if isinstance(plugin, str):
            if plugin not in _DEFAULT_PLUGINS:
                raise ValueError(f"Unknown trace plugin: {plugin!r}")
            plugin = _DEFAULT_PLUGINS[plugin]()
        resolved.append(plugin)
    return resolved


def _frame_name(output_file_name: str, index: int, total: int) -> str:
    if total == 1:
        return output_file_name
    path = PurePosixPath(output_file_name)
    return f"{path.stem}-{index}{path.suffix}"


def load_frames(input_bytes: bytes) -> List[Image.Image]:
    """Decode every frame to an upright RGB image."""
    with Image.open(io.BytesIO(input_bytes)) as image:
        return [
            ImageOps.exif_transpose(frame.convert("RGB"))
            for frame in ImageSequence.Iterator(image)
        ]


def trace_frame(
    frame: Image.Image,
    name: str,
    primitive: PrimitivePlugin,
    optimize: Optional[OptimizePlugin] = None
) -> TraceArtifact:
    """Approximate a single RGB frame and emit SVG markup."""
    width, height = frame.size

    working = frame.copy()
    working.thumbnail((primitive.input_size, primitive.input_size), Image.Resampling.LANCZOS)

    model = PrimitiveModel(
        np.asarray(working, dtype=np.float64),
        alpha=primitive.alpha,
        rng=np.random.default_rng(primitive.seed)
    )
    factory = shape_factory(primitive.mode)

    for _ in range(primitive.number_of_primitives):
        model.step(factory, primitive.candidates, primitive.max_age)

    document = model.to_svg(width, height)
    if optimize is not None:
        document = optimize_document(document, optimize.precision)

    return TraceArtifact(
        name=name,
        content=document.as_str().encode("utf-8"),
        width=width,
        height=height,
        shape_count=len(model.shapes),
        score=model.score
    )


def trace(
    input_bytes: bytes,
    output_file_name: str = "image.svg",
    plugins: Sequence[PluginSpec] = ("primitive", "optimize")
) -> TraceResult:
    """Trace input_bytes into SVG artifacts using the given plugin chain.

    The chain must contain exactly one primitive plugin; an optimize plugin
    is optional and applies to every artifact.
    """
    resolved = resolve_plugins(plugins)
    primitives = [p for p in resolved if isinstance(p, PrimitivePlugin)]
    if len(primitives) != 1:
        raise ValueError(f"Expected exactly one primitive plugin, got {len(primitives)}")
    optimizers = [p for p in resolved if isinstance(p, OptimizePlugin)]
    optimize = optimizers[-1] if optimizers else None

    start = time.perf_counter()
    frames = load_frames(input_bytes)
    artifacts = [
        trace_frame(frame, _frame_name(output_file_name, index, len(frames)), primitives[0], optimize)
        for index, frame in enumerate(frames)
    ]

    logger.debug(
        f"Traced {len(artifacts)} frame(s) with {primitives[0].number_of_primitives} "
        f"primitives in {time.perf_counter() - start:.2f}s"
    )

    if len(artifacts) == 1:
        return SingleTraceResult(artifact=artifacts[0])
    return MultipleTraceResult(artifacts=artifacts)
