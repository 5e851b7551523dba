from __future__ import annotations

import math
from typing import Sequence


Circle = tuple[float, float, float]
Point = tuple[float, float]

_EPS = 1e-9


def enclosing_circle(points: Sequence[Point]) -> Circle | None:
    """Smallest circle containing every point (incremental Welzl, input order)."""
    pts = [(float(x), float(y)) for x, y in points]
    if not pts:
        return None
    circle: Circle | None = None
    for i, p in enumerate(pts):
        if circle is not None and _contains(circle, p):
            continue
        circle = (p[0], p[1], 0.0)
        for j in range(i):
            q = pts[j]
            if _contains(circle, q):
                continue
            circle = _circle_from_two(p, q)
            for k in range(j):
                r = pts[k]
                if not _contains(circle, r):
                    circle = _circle_from_three(p, q, r)
    return circle


def bounding_rect(points: Sequence[Point], padding: float = 0.0) -> tuple[float, float, float, float] | None:
    if not points:
        return None
    xs = [float(p[0]) for p in points]
    ys = [float(p[1]) for p in points]
    x0 = min(xs) - padding
    y0 = min(ys) - padding
    return (x0, y0, max(xs) + padding - x0, max(ys) + padding - y0)


def _contains(circle: Circle, p: Point) -> bool:
    cx, cy, r = circle
    return math.hypot(p[0] - cx, p[1] - cy) <= r + _EPS * max(1.0, r)


def _circle_from_two(a: Point, b: Point) -> Circle:
    cx = (a[0] + b[0]) / 2.0
    cy = (a[1] + b[1]) / 2.0
    return (cx, cy, math.hypot(a[0] - cx, a[1] - cy))


def _circle_from_three(a: Point, b: Point, c: Point) -> Circle:
    ax, ay = a
    bx, by = b
    cx, cy = c
    d = 2.0 * (ax * (by - cy) + bx * (cy - ay) + cx * (ay - by))
    if abs(d) < _EPS:
        # Collinear: the widest pair spans the circle.
        pairs = (_circle_from_two(a, b), _circle_from_two(a, c), _circle_from_two(b, c))
        return max(pairs, key=lambda circle: circle[2])
    a2 = ax * ax + ay * ay
    b2 = bx * bx + by * by
    c2 = cx * cx + cy * cy
    ux = (a2 * (by - cy) + b2 * (cy - ay) + c2 * (ay - by)) / d
    uy = (a2 * (cx - bx) + b2 * (ax - cx) + c2 * (bx - ax)) / d
    return (ux, uy, math.hypot(ax - ux, ay - uy))
