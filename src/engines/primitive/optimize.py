"""
SVG optimization pass

Works on the svg.py element tree before serialization:
- rounds geometry to a fixed number of decimals
- shortens #rrggbb colours to #rgb where lossless
- drops shapes that collapse to nothing after rounding
Transforms are left untouched, rounding a scale factor would distort output.
"""

import dataclasses
import re
from typing import List, Optional, Union

import svg

GEOMETRY_FIELDS = ("x", "y", "width", "height", "cx", "cy", "r", "rx", "ry", "points")
COLOR_FIELDS = ("fill", "stroke")

_LONG_HEX = re.compile(r"^#([0-9a-fA-F])\1([0-9a-fA-F])\2([0-9a-fA-F])\3$")

Number = Union[int, float]


def round_number(value: Number, precision: int) -> Number:
    rounded = round(float(value), precision)
    if rounded == int(rounded):
        return int(rounded)
    return rounded


def shorten_color(value: str) -> str:
    match = _LONG_HEX.match(value)
    if match:
        return "#" + "".join(match.groups()).lower()
    return value


def _is_degenerate(element: svg.Element) -> bool:
    if isinstance(element, svg.Polygon):
        points = element.points or []
        pairs = set(zip(points[0::2], points[1::2]))
        return len(pairs) < 3
    if isinstance(element, svg.Rect):
        return not element.width or not element.height
    if isinstance(element, svg.Ellipse):
        return not element.rx or not element.ry
    if isinstance(element, svg.Circle):
        return not element.r
    if isinstance(element, svg.G):
        return not element.elements
    return False


def optimize_element(element: svg.Element, precision: int) -> Optional[svg.Element]:
    """Return an optimized copy of element, or None if it should be dropped."""
    changes = {}
    names = {field.name for field in dataclasses.fields(element)}

    for name in GEOMETRY_FIELDS:
        if name not in names:
            continue
        value = getattr(element, name)
        if isinstance(value, list):
            changes[name] = [round_number(v, precision) for v in value]
        elif isinstance(value, (int, float)):
            changes[name] = round_number(value, precision)

    for name in COLOR_FIELDS:
        if name in names and isinstance(getattr(element, name), str):
            changes[name] = shorten_color(getattr(element, name))

    if "elements" in names and element.elements:
        changes["elements"] = optimize_elements(element.elements, precision)

    optimized = dataclasses.replace(element, **changes)
    if _is_degenerate(optimized):
        return None
    return optimized


def optimize_elements(elements: List[svg.Element], precision: int) -> List[svg.Element]:
    optimized = (optimize_element(element, precision) for element in elements)
    return [element for element in optimized if element is not None]


def optimize_document(document: svg.SVG, precision: int = 1) -> svg.SVG:
    """Optimize every element below the root; the root viewBox is kept as is."""
    return dataclasses.replace(
        document,
        elements=optimize_elements(document.elements or [], precision)
    )
