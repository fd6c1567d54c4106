"""
Primitive Model - greedy shape fitting by hill climbing

The model keeps the target image, the current approximation, and the
running squared error. Each added shape is the best of a batch of random
candidates, refined by mutation until it stops improving. Its colour is the
least-squares optimum for the fixed alpha, so only geometry is searched.
"""

import math
from typing import List, NamedTuple, Optional, Tuple

import numpy as np
import svg

from src.engines.primitive.shapes import Region, Shape, ShapeFactory

Color = Tuple[int, int, int]


class Candidate(NamedTuple):
    shape: Shape
    error: float
    color: Color
    region: Region
    blended: np.ndarray


class PlacedShape(NamedTuple):
    shape: Shape
    color: Color


def to_hex(color: Color) -> str:
    return "#{:02x}{:02x}{:02x}".format(*color)


class PrimitiveModel:
    """Greedy approximation of an RGB image by translucent shapes."""

    def __init__(self, target: np.ndarray, alpha: int, rng: np.random.Generator):
        if target.ndim != 3 or target.shape[2] != 3:
            raise ValueError(f"Expected an (h, w, 3) RGB array, got shape {target.shape}")

        self.target = target.astype(np.float64)
        self.height, self.width = self.target.shape[:2]
        self.alpha = alpha
        self.rng = rng

        self._opacity = alpha / 255.0
        background = self.target.reshape(-1, 3).mean(axis=0)
        self.background: Color = tuple(int(round(c)) for c in background)
        self.current = np.empty_like(self.target)
        self.current[:] = self.background
        self.error = float(((self.target - self.current) ** 2).sum())
        self.shapes: List[PlacedShape] = []

    @property
    def score(self) -> float:
        """Normalized RMSE in [0, 1]."""
        return math.sqrt(self.error / self.target.size) / 255.0

    def evaluate(self, shape: Shape) -> Optional[Candidate]:
        """Score a shape against the current approximation without committing it."""
        region = shape.rasterize(self.width, self.height)
        if region is None:
            return None

        target = self.target[region.rows, region.cols][region.mask]
        current = self.current[region.rows, region.cols][region.mask]

        optimal = ((target - current) / self._opacity + current).mean(axis=0)
        color = tuple(int(c) for c in np.clip(np.round(optimal), 0, 255))
        blended = current * (1.0 - self._opacity) + np.asarray(color, dtype=np.float64) * self._opacity

        before = float(((target - current) ** 2).sum())
        after = float(((target - blended) ** 2).sum())
        return Candidate(shape, self.error - before + after, color, region, blended)

    def best_candidate(self, factory: ShapeFactory, candidates: int) -> Optional[Candidate]:
        best: Optional[Candidate] = None
        for _ in range(candidates):
            candidate = self.evaluate(factory(self.rng, self.width, self.height))
            if candidate is not None and (best is None or candidate.error < best.error):
                best = candidate
        return best

    def hill_climb(self, candidate: Candidate, max_age: int) -> Candidate:
        """Mutate until max_age consecutive mutations fail to improve."""
        best = candidate
        age = 0
        while age < max_age:
            mutated = self.evaluate(best.shape.mutate(self.rng, self.width, self.height))
            if mutated is not None and mutated.error < best.error:
                best = mutated
                age = 0
            else:
                age += 1
        return best

    def step(self, factory: ShapeFactory, candidates: int, max_age: int) -> bool:
        """Search for one shape and commit it if it lowers the error."""
        candidate = self.best_candidate(factory, candidates)
        if candidate is None:
            return False

        candidate = self.hill_climb(candidate, max_age)
        if candidate.error >= self.error:
            return False

        region = candidate.region
        window = self.current[region.rows, region.cols]
        window[region.mask] = candidate.blended
        self.error = candidate.error
        self.shapes.append(PlacedShape(candidate.shape, candidate.color))
        return True

    def to_svg(self, width: int, height: int) -> svg.SVG:
        """Render at (width, height), scaling up from the working canvas."""
        scale = width / self.width
        opacity = round(self.alpha / 255.0, 3)

        return svg.SVG(
            viewBox=svg.ViewBoxSpec(0, 0, width, height),
            width=width,
            height=height,
            elements=[
                svg.Rect(x=0, y=0, width=width, height=height, fill=to_hex(self.background)),
                svg.G(
                    transform=[svg.Scale(scale), svg.Translate(0.5, 0.5)],
                    elements=[
                        placed.shape.to_svg(to_hex(placed.color), opacity)
                        for placed in self.shapes
                    ]
                ),
            ],
        )
