"""
Shape Primitives

Each shape knows how to:
- spawn at random inside a canvas
- mutate into a nearby variant (shapes are immutable, mutation returns a copy)
- rasterize itself into a boolean coverage mask clipped to the canvas
- render itself as an svg.py element
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import svg
from PIL import Image, ImageDraw

from src.engines.primitive.schemas import ShapeMode

Point = Tuple[float, float]

# How far vertices may wander outside the canvas
MARGIN = 16
# Standard deviation of positional mutations, in working pixels
MUTATION_SCALE = 16.0
ELLIPSE_SEGMENTS = 24


class Region(NamedTuple):
    """Coverage mask anchored at (x0, y0) on the canvas."""
    x0: int
    y0: int
    mask: np.ndarray

    @property
    def rows(self) -> slice:
        return slice(self.y0, self.y0 + self.mask.shape[0])

    @property
    def cols(self) -> slice:
        return slice(self.x0, self.x0 + self.mask.shape[1])


# =============================================================================
# Rasterization helpers
# =============================================================================

def _bounds(points: Sequence[Point], width: int, height: int) -> Optional[Tuple[int, int, int, int]]:
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    x0 = max(int(math.floor(min(xs))), 0)
    y0 = max(int(math.floor(min(ys))), 0)
    x1 = min(int(math.ceil(max(xs))) + 1, width)
    y1 = min(int(math.ceil(max(ys))) + 1, height)
    if x1 <= x0 or y1 <= y0:
        return None
    return x0, y0, x1, y1


def _region(canvas: Image.Image, x0: int, y0: int) -> Optional[Region]:
    mask = np.asarray(canvas) > 0
    if not mask.any():
        return None
    return Region(x0, y0, mask)


def polygon_region(points: Sequence[Point], width: int, height: int) -> Optional[Region]:
    bounds = _bounds(points, width, height)
    if bounds is None:
        return None
    x0, y0, x1, y1 = bounds
    canvas = Image.new("L", (x1 - x0, y1 - y0), 0)
    ImageDraw.Draw(canvas).polygon([(x - x0, y - y0) for x, y in points], fill=255)
    return _region(canvas, x0, y0)


def ellipse_region(cx: float, cy: float, rx: float, ry: float, width: int, height: int) -> Optional[Region]:
    bounds = _bounds([(cx - rx, cy - ry), (cx + rx, cy + ry)], width, height)
    if bounds is None:
        return None
    x0, y0, x1, y1 = bounds
    canvas = Image.new("L", (x1 - x0, y1 - y0), 0)
    ImageDraw.Draw(canvas).ellipse(
        [cx - rx - x0, cy - ry - y0, cx + rx - x0, cy + ry - y0],
        fill=255
    )
    return _region(canvas, x0, y0)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _jitter(rng: np.random.Generator) -> float:
    return float(rng.normal()) * MUTATION_SCALE


def _clamp_point(x: float, y: float, width: int, height: int) -> Point:
    return (
        _clamp(x, -MARGIN, width - 1 + MARGIN),
        _clamp(y, -MARGIN, height - 1 + MARGIN),
    )


def _rotate(points: Sequence[Point], cx: float, cy: float, degrees: float) -> List[Point]:
    theta = math.radians(degrees)
    cos_t, sin_t = math.cos(theta), math.sin(theta)
    return [
        (cx + x * cos_t - y * sin_t, cy + x * sin_t + y * cos_t)
        for x, y in points
    ]


def _flatten(points: Sequence[Point]) -> List[float]:
    return [float(coord) for point in points for coord in point]


# =============================================================================
# Shapes
# =============================================================================

class Shape(ABC):
    """A drawable primitive in working-canvas coordinates."""

    @classmethod
    @abstractmethod
    def random(cls, rng: np.random.Generator, width: int, height: int) -> "Shape":
        pass

    @abstractmethod
    def mutate(self, rng: np.random.Generator, width: int, height: int) -> "Shape":
        pass

    @abstractmethod
    def rasterize(self, width: int, height: int) -> Optional[Region]:
        pass

    @abstractmethod
    def to_svg(self, fill: str, fill_opacity: float) -> svg.Element:
        pass


class _PointShape(Shape):
    """Shapes defined by a list of free vertices."""

    vertex_count = 3
    points: Tuple[Point, ...]

    @classmethod
    def random(cls, rng, width, height):
        x = float(rng.integers(0, width))
        y = float(rng.integers(0, height))
        points = [(x, y)]
        for _ in range(cls.vertex_count - 1):
            points.append(_clamp_point(
                x + float(rng.integers(-15, 16)),
                y + float(rng.integers(-15, 16)),
                width,
                height
            ))
        return cls(points=tuple(points))

    def mutate(self, rng, width, height):
        index = int(rng.integers(0, len(self.points)))
        x, y = self.points[index]
        points = list(self.points)
        points[index] = _clamp_point(x + _jitter(rng), y + _jitter(rng), width, height)
        return replace(self, points=tuple(points))

    def rasterize(self, width, height):
        return polygon_region(self.points, width, height)

    def to_svg(self, fill, fill_opacity):
        return svg.Polygon(points=_flatten(self.points), fill=fill, fill_opacity=fill_opacity)


@dataclass(frozen=True)
class Triangle(_PointShape):
    points: Tuple[Point, ...]
    vertex_count = 3


@dataclass(frozen=True)
class Quadrilateral(_PointShape):
    points: Tuple[Point, ...]
    vertex_count = 4


@dataclass(frozen=True)
class Rectangle(Shape):
    x1: float
    y1: float
    x2: float
    y2: float

    @classmethod
    def random(cls, rng, width, height):
        x1 = float(rng.integers(0, width))
        y1 = float(rng.integers(0, height))
        x2 = _clamp(x1 + float(rng.integers(1, 33)), 0, width - 1)
        y2 = _clamp(y1 + float(rng.integers(1, 33)), 0, height - 1)
        return cls(x1, y1, x2, y2)

    def mutate(self, rng, width, height):
        if rng.integers(0, 2) == 0:
            return replace(
                self,
                x1=_clamp(self.x1 + _jitter(rng), 0, width - 1),
                y1=_clamp(self.y1 + _jitter(rng), 0, height - 1),
            )
        return replace(
            self,
            x2=_clamp(self.x2 + _jitter(rng), 0, width - 1),
            y2=_clamp(self.y2 + _jitter(rng), 0, height - 1),
        )

    @property
    def box(self) -> Tuple[float, float, float, float]:
        return (
            min(self.x1, self.x2),
            min(self.y1, self.y2),
            max(self.x1, self.x2),
            max(self.y1, self.y2),
        )

    def rasterize(self, width, height):
        x0, y0, x1, y1 = self.box
        return polygon_region([(x0, y0), (x1, y0), (x1, y1), (x0, y1)], width, height)

    def to_svg(self, fill, fill_opacity):
        x0, y0, x1, y1 = self.box
        return svg.Rect(
            x=x0,
            y=y0,
            width=x1 - x0 + 1,
            height=y1 - y0 + 1,
            fill=fill,
            fill_opacity=fill_opacity
        )


@dataclass(frozen=True)
class Ellipse(Shape):
    cx: float
    cy: float
    rx: float
    ry: float

    @classmethod
    def random(cls, rng, width, height):
        return cls(
            float(rng.integers(0, width)),
            float(rng.integers(0, height)),
            float(rng.integers(1, 33)),
            float(rng.integers(1, 33)),
        )

    def mutate(self, rng, width, height):
        choice = int(rng.integers(0, 3))
        if choice == 0:
            return replace(
                self,
                cx=_clamp(self.cx + _jitter(rng), 0, width - 1),
                cy=_clamp(self.cy + _jitter(rng), 0, height - 1),
            )
        if choice == 1:
            return replace(self, rx=_clamp(self.rx + _jitter(rng), 1, width - 1))
        return replace(self, ry=_clamp(self.ry + _jitter(rng), 1, height - 1))

    def rasterize(self, width, height):
        return ellipse_region(self.cx, self.cy, self.rx, self.ry, width, height)

    def to_svg(self, fill, fill_opacity):
        return svg.Ellipse(
            cx=self.cx,
            cy=self.cy,
            rx=self.rx,
            ry=self.ry,
            fill=fill,
            fill_opacity=fill_opacity
        )


@dataclass(frozen=True)
class Circle(Shape):
    cx: float
    cy: float
    r: float

    @classmethod
    def random(cls, rng, width, height):
        return cls(
            float(rng.integers(0, width)),
            float(rng.integers(0, height)),
            float(rng.integers(1, 33)),
        )

    def mutate(self, rng, width, height):
        if rng.integers(0, 2) == 0:
            return replace(
                self,
                cx=_clamp(self.cx + _jitter(rng), 0, width - 1),
                cy=_clamp(self.cy + _jitter(rng), 0, height - 1),
            )
        return replace(self, r=_clamp(self.r + _jitter(rng), 1, max(width, height) - 1))

    def rasterize(self, width, height):
        return ellipse_region(self.cx, self.cy, self.r, self.r, width, height)

    def to_svg(self, fill, fill_opacity):
        return svg.Circle(cx=self.cx, cy=self.cy, r=self.r, fill=fill, fill_opacity=fill_opacity)


@dataclass(frozen=True)
class RotatedRectangle(Shape):
    cx: float
    cy: float
    sx: float
    sy: float
    angle: float

    @classmethod
    def random(cls, rng, width, height):
        return cls(
            float(rng.integers(0, width)),
            float(rng.integers(0, height)),
            float(rng.integers(1, 33)),
            float(rng.integers(1, 33)),
            float(rng.integers(0, 360)),
        )

    def mutate(self, rng, width, height):
        choice = int(rng.integers(0, 3))
        if choice == 0:
            return replace(
                self,
                cx=_clamp(self.cx + _jitter(rng), 0, width - 1),
                cy=_clamp(self.cy + _jitter(rng), 0, height - 1),
            )
        if choice == 1:
            return replace(
                self,
                sx=_clamp(self.sx + _jitter(rng), 1, width - 1),
                sy=_clamp(self.sy + _jitter(rng), 1, height - 1),
            )
        return replace(self, angle=(self.angle + _jitter(rng) * 2) % 360)

    @property
    def corners(self) -> List[Point]:
        hx, hy = self.sx / 2, self.sy / 2
        return _rotate([(-hx, -hy), (hx, -hy), (hx, hy), (-hx, hy)], self.cx, self.cy, self.angle)

    def rasterize(self, width, height):
        return polygon_region(self.corners, width, height)

    def to_svg(self, fill, fill_opacity):
        return svg.Polygon(points=_flatten(self.corners), fill=fill, fill_opacity=fill_opacity)


@dataclass(frozen=True)
class RotatedEllipse(Shape):
    cx: float
    cy: float
    rx: float
    ry: float
    angle: float

    @classmethod
    def random(cls, rng, width, height):
        return cls(
            float(rng.integers(0, width)),
            float(rng.integers(0, height)),
            float(rng.integers(1, 33)),
            float(rng.integers(1, 33)),
            float(rng.integers(0, 360)),
        )

    def mutate(self, rng, width, height):
        choice = int(rng.integers(0, 3))
        if choice == 0:
            return replace(
                self,
                cx=_clamp(self.cx + _jitter(rng), 0, width - 1),
                cy=_clamp(self.cy + _jitter(rng), 0, height - 1),
            )
        if choice == 1:
            return replace(
                self,
                rx=_clamp(self.rx + _jitter(rng), 1, width - 1),
                ry=_clamp(self.ry + _jitter(rng), 1, height - 1),
            )
        return replace(self, angle=(self.angle + _jitter(rng) * 2) % 360)

    def rasterize(self, width, height):
        outline = [
            (self.rx * math.cos(2 * math.pi * i / ELLIPSE_SEGMENTS),
             self.ry * math.sin(2 * math.pi * i / ELLIPSE_SEGMENTS))
            for i in range(ELLIPSE_SEGMENTS)
        ]
        return polygon_region(_rotate(outline, self.cx, self.cy, self.angle), width, height)

    def to_svg(self, fill, fill_opacity):
        return svg.G(
            transform=[svg.Translate(self.cx, self.cy), svg.Rotate(self.angle)],
            elements=[
                svg.Ellipse(cx=0, cy=0, rx=self.rx, ry=self.ry, fill=fill, fill_opacity=fill_opacity)
            ]
        )


# =============================================================================
# Factories
# =============================================================================

SHAPES_BY_MODE = {
    ShapeMode.TRIANGLE: Triangle,
    ShapeMode.RECTANGLE: Rectangle,
    ShapeMode.ELLIPSE: Ellipse,
    ShapeMode.CIRCLE: Circle,
    ShapeMode.ROTATED_RECTANGLE: RotatedRectangle,
    ShapeMode.ROTATED_ELLIPSE: RotatedEllipse,
    ShapeMode.POLYGON: Quadrilateral,
}

ShapeFactory = Callable[[np.random.Generator, int, int], Shape]


def shape_factory(mode: int) -> ShapeFactory:
    """Return a callable that spawns random shapes for the given mode."""
    mode = ShapeMode(mode)
    if mode is ShapeMode.COMBO:
        families = list(SHAPES_BY_MODE.values())

        def combo(rng: np.random.Generator, width: int, height: int) -> Shape:
            family = families[int(rng.integers(0, len(families)))]
            return family.random(rng, width, height)

        return combo

    if mode not in SHAPES_BY_MODE:
        raise ValueError(f"No shape family for mode {mode.value}")
    return SHAPES_BY_MODE[mode].random
