"""Planar geometry primitives on projected coordinates (metres).

Rings are passed without the closing vertex unless stated otherwise.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from land_registry.domain.models.geometry import Coordinate

_EPSILON = 1e-12


def distance(a: Coordinate, b: Coordinate) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def is_closed(vertices: Sequence[Coordinate], tolerance: float) -> bool:
    """True when the first and last vertex coincide within ``tolerance``."""
    return len(vertices) >= 2 and distance(vertices[0], vertices[-1]) <= tolerance


def open_ring(vertices: Sequence[Coordinate], tolerance: float) -> list[Coordinate]:
    """Drop the closing vertex if present."""
    if is_closed(vertices, tolerance) and len(vertices) > 1:
        return list(vertices[:-1])
    return list(vertices)


def edges(ring: Sequence[Coordinate]) -> list[tuple[Coordinate, Coordinate]]:
    return [(ring[i], ring[(i + 1) % len(ring)]) for i in range(len(ring))]


def polygon_area(ring: Sequence[Coordinate]) -> float:
    """Unsigned shoelace area."""
    total = 0.0
    for a, b in edges(ring):
        total += a.x * b.y - b.x * a.y
    return abs(total) / 2.0


def centroid(ring: Sequence[Coordinate]) -> Coordinate:
    """Area centroid, falling back to the vertex mean for degenerate rings."""
    signed = 0.0
    cx = cy = 0.0
    for a, b in edges(ring):
        cross = a.x * b.y - b.x * a.y
        signed += cross
        cx += (a.x + b.x) * cross
        cy += (a.y + b.y) * cross
    if abs(signed) < _EPSILON:
        return Coordinate(
            sum(p.x for p in ring) / len(ring), sum(p.y for p in ring) / len(ring)
        )
    factor = 1.0 / (3.0 * signed)
    return Coordinate(cx * factor, cy * factor)


def _cross(o: Coordinate, a: Coordinate, b: Coordinate) -> float:
    return (a.x - o.x) * (b.y - o.y) - (a.y - o.y) * (b.x - o.x)


def distance_to_segment(p: Coordinate, a: Coordinate, b: Coordinate) -> float:
    dx, dy = b.x - a.x, b.y - a.y
    length_sq = dx * dx + dy * dy
    if length_sq < _EPSILON:
        return distance(p, a)
    t = max(0.0, min(1.0, ((p.x - a.x) * dx + (p.y - a.y) * dy) / length_sq))
    return distance(p, Coordinate(a.x + t * dx, a.y + t * dy))


def proper_intersection(
    a: Coordinate,
    b: Coordinate,
    c: Coordinate,
    d: Coordinate,
    tolerance: float,
) -> Coordinate | None:
    """Point where segments ab and cd cross through each other's interiors.

    Touching at an endpoint, or running collinear, is not a crossing.
    """
    d1 = _cross(c, d, a)
    d2 = _cross(c, d, b)
    d3 = _cross(a, b, c)
    d4 = _cross(a, b, d)
    if not (d1 * d2 < 0 and d3 * d4 < 0):
        return None
    t = d1 / (d1 - d2)
    point = Coordinate(a.x + t * (b.x - a.x), a.y + t * (b.y - a.y))
    if min(distance(point, p) for p in (a, b, c, d)) <= tolerance:
        return None
    return point


def on_boundary(p: Coordinate, ring: Sequence[Coordinate], tolerance: float) -> bool:
    return any(distance_to_segment(p, a, b) <= tolerance for a, b in edges(ring))


def strictly_inside(p: Coordinate, ring: Sequence[Coordinate], tolerance: float) -> bool:
    """Ray-casting point-in-polygon, excluding points on the boundary."""
    if on_boundary(p, ring, tolerance):
        return False
    inside = False
    for a, b in edges(ring):
        if (a.y > p.y) != (b.y > p.y):
            x_at = a.x + (p.y - a.y) * (b.x - a.x) / (b.y - a.y)
            if p.x < x_at:
                inside = not inside
    return inside


def inside_or_on(p: Coordinate, ring: Sequence[Coordinate], tolerance: float) -> bool:
    return on_boundary(p, ring, tolerance) or strictly_inside(p, ring, tolerance)


def _distance_to_line(p: Coordinate, a: Coordinate, b: Coordinate) -> float:
    length = distance(a, b)
    if length < _EPSILON:
        return distance(p, a)
    return abs(_cross(a, b, p)) / length


def collinear_overlap(
    a: Coordinate,
    b: Coordinate,
    c: Coordinate,
    d: Coordinate,
    tolerance: float,
) -> tuple[Coordinate, Coordinate] | None:
    """Shared stretch of two collinear segments longer than ``tolerance``."""
    if _distance_to_line(c, a, b) > tolerance or _distance_to_line(d, a, b) > tolerance:
        return None
    shared = [p for p in (a, b) if distance_to_segment(p, c, d) <= tolerance]
    shared += [p for p in (c, d) if distance_to_segment(p, a, b) <= tolerance]
    if len(shared) < 2:
        return None
    start, end = max(
        ((p, q) for p in shared for q in shared), key=lambda pq: distance(*pq)
    )
    if distance(start, end) <= tolerance:
        return None
    return start, end


def convex_hull(points: Sequence[Coordinate]) -> list[Coordinate]:
    """Monotone-chain convex hull, counter-clockwise, without closing vertex."""
    unique = sorted(set(points), key=lambda p: (p.x, p.y))
    if len(unique) <= 2:
        return unique
    lower: list[Coordinate] = []
    for p in unique:
        while len(lower) >= 2 and _cross(lower[-2], lower[-1], p) <= 0:
            lower.pop()
        lower.append(p)
    upper: list[Coordinate] = []
    for p in reversed(unique):
        while len(upper) >= 2 and _cross(upper[-2], upper[-1], p) <= 0:
            upper.pop()
        upper.append(p)
    return lower[:-1] + upper[:-1]


def self_intersections(
    ring: Sequence[Coordinate], tolerance: float
) -> list[Coordinate]:
    """Crossing points between non-adjacent edges of a ring."""
    ring_edges = edges(ring)
    count = len(ring_edges)
    points: list[Coordinate] = []
    for i in range(count):
        for j in range(i + 2, count):
            if i == 0 and j == count - 1:
                continue
            point = proper_intersection(*ring_edges[i], *ring_edges[j], tolerance)
            if point is not None:
                points.append(point)
    return points
