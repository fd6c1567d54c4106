"""
Primitive Tracing Engine

Approximates a raster image with a small number of translucent geometric
shapes and emits the result as compact SVG, for use as a loading
placeholder.
"""

from src.engines.primitive.schemas import (
    MultipleTraceResult,
    OptimizePlugin,
    PrimitivePlugin,
    ShapeMode,
    SingleTraceResult,
    TraceArtifact,
    TraceResult,
)
from src.engines.primitive.tracer import trace

__all__ = [
    "MultipleTraceResult",
    "OptimizePlugin",
    "PrimitivePlugin",
    "ShapeMode",
    "SingleTraceResult",
    "TraceArtifact",
    "TraceResult",
    "trace",
]
