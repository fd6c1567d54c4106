from enum import IntEnum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ShapeMode(IntEnum):
    """Shape families, numbered the way primitive tools number them."""
    COMBO = 0
    TRIANGLE = 1
    RECTANGLE = 2
    ELLIPSE = 3
    CIRCLE = 4
    ROTATED_RECTANGLE = 5
    BEZIER = 6
    ROTATED_ELLIPSE = 7
    POLYGON = 8


SUPPORTED_MODES = frozenset(mode for mode in ShapeMode if mode is not ShapeMode.BEZIER)


# =============================================================================
# Plugins
# =============================================================================

class PrimitivePlugin(BaseModel):
    """Approximate the image with a fixed number of translucent shapes."""
    model_config = ConfigDict(frozen=True)

    name: Literal["primitive"] = "primitive"
    number_of_primitives: int = Field(50, ge=1, le=5000)
    mode: int = Field(ShapeMode.TRIANGLE.value)
    alpha: int = Field(128, ge=1, le=255)
    input_size: int = Field(256, ge=16, le=2048, description="Working resolution (longest side)")
    candidates: int = Field(100, ge=1, description="Random shapes tried before hill climbing")
    max_age: int = Field(100, ge=0, description="Non-improving mutations before a shape is accepted")
    seed: Optional[int] = None

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, v: int) -> int:
        if v not in SUPPORTED_MODES:
            supported = ", ".join(str(int(mode)) for mode in sorted(SUPPORTED_MODES))
            raise ValueError(f"Unsupported primitive mode {v}; expected one of {supported}")
        return v


class OptimizePlugin(BaseModel):
    """Shrink the emitted markup without visible change."""
    model_config = ConfigDict(frozen=True)

    name: Literal["optimize"] = "optimize"
    precision: int = Field(1, ge=0, le=4)


TracePlugin = Union[PrimitivePlugin, OptimizePlugin]


# =============================================================================
# Results
# =============================================================================

class TraceArtifact(BaseModel):
    """One traced frame."""
    model_config = ConfigDict(frozen=True)

    name: str
    content: bytes = Field(repr=False)
    width: int
    height: int
    shape_count: int
    score: float = Field(..., ge=0.0, description="Normalized RMSE of the final approximation")


class SingleTraceResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["single"] = "single"
    artifact: TraceArtifact


class MultipleTraceResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["multiple"] = "multiple"
    artifacts: List[TraceArtifact]


TraceResult = Union[SingleTraceResult, MultipleTraceResult]
