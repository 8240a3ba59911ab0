from __future__ import annotations

from typing import List, Optional, Sequence, TYPE_CHECKING

from math import sqrt, pi
import logging
import numpy as np

from levelgeometry.model.errors import DegeneratePolygonError
from levelgeometry.model.geometry_primitives import Vector

if TYPE_CHECKING:
    from numpy import typing as npt
    from levelgeometry.model.polygon import Polygon

logger = logging.getLogger(__name__)

# Orientation tests closer to zero than this are treated as collinear
EPSILON = 1e-12


def deg2rad(degrees: float) -> float:
    return degrees * pi / 180


def _orientation(p: Vector, q: Vector, r: Vector) -> int:
    """Sign of the turn p -> q -> r: 1 left, -1 right, 0 collinear."""
    val = (q.x - p.x) * (r.y - p.y) - (q.y - p.y) * (r.x - p.x)
    if abs(val) < EPSILON:
        return 0
    return 1 if val > 0 else -1


def _share_endpoint(a1: Vector, a2: Vector, b1: Vector, b2: Vector) -> bool:
    return a1 == b1 or a1 == b2 or a2 == b1 or a2 == b2


def _collinear_overlap(a1: Vector, a2: Vector, b1: Vector, b2: Vector) -> float:
    """Length of the common part of two collinear segments."""
    d = a2 - a1
    length_sq = d.length_squared
    if length_sq == 0.0:
        return 0.0
    t1 = (b1 - a1).dot(d) / length_sq
    t2 = (b2 - a1).dot(d) / length_sq
    lo = max(0.0, min(t1, t2))
    hi = min(1.0, max(t1, t2))
    return max(0.0, hi - lo) * sqrt(length_sq)


def segments_intersect(a1: Vector, a2: Vector, b1: Vector, b2: Vector) -> bool:
    """
    Check whether the closed segments a1-a2 and b1-b2 intersect.

    Convention:
        - A proper crossing or a T-junction (an endpoint touching the interior
          of the other segment) intersects.
        - Collinear segments intersect only when they overlap with positive length.
        - Segments whose only common point is a shared endpoint do NOT intersect,
          so consecutive polygon edges never report an intersection.

    Args:
        a1, a2: Endpoints of the first segment.
        b1, b2: Endpoints of the second segment.

    Returns:
        True if the segments intersect under the convention above.
    """
    o1 = _orientation(a1, a2, b1)
    o2 = _orientation(a1, a2, b2)
    o3 = _orientation(b1, b2, a1)
    o4 = _orientation(b1, b2, a2)

    if o1 == 0 and o2 == 0:
        return _collinear_overlap(a1, a2, b1, b2) > EPSILON

    if o1 != o2 and o3 != o4:
        # Non-collinear segments meet in at most one point
        return not _share_endpoint(a1, a2, b1, b2)

    return False


def get_intersection_point(a1: Vector, a2: Vector, b1: Vector, b2: Vector) -> Optional[Vector]:
    """
    Crossing point of the half-open edge [a1, a2) with the closed segment [b1, b2].

    The half-open edge makes a crossing through a polygon vertex count once
    when walking the edges of a polygon. Parallel segments never cross.
    The returned vector receives the scoped default mark.
    """
    r = a2 - a1
    s = b2 - b1
    rxs = r.cross(s)
    if abs(rxs) < EPSILON:
        return None

    q_p = b1 - a1
    t = q_p.cross(s) / rxs  # parameter on the edge
    u = q_p.cross(r) / rxs  # parameter on the cut segment
    if 0.0 <= t < 1.0 and 0.0 <= u <= 1.0:
        return Vector(a1.x + t * r.x, a1.y + t * r.y)
    return None


def distance_from_segment(x1: float, y1: float, x2: float, y2: float, px: float, py: float) -> float:
    """Euclidean distance from (px, py) to the closest point of the segment (x1, y1)-(x2, y2)."""
    dx = x2 - x1
    dy = y2 - y1
    length_sq = dx * dx + dy * dy
    if length_sq == 0.0:
        return sqrt((px - x1) ** 2 + (py - y1) ** 2)

    t = ((px - x1) * dx + (py - y1) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    cx = x1 + t * dx
    cy = y1 + t * dy
    return sqrt((px - cx) ** 2 + (py - cy) ** 2)


def distance_from_line(v1: Vector, v2: Vector, p: Vector) -> float:
    """Distance from `p` to the infinite line through v1 and v2."""
    d = v2 - v1
    length = d.length
    if length == 0.0:
        return (p - v1).length
    return abs(d.cross(p - v1)) / length


def orthogonal_projection(v1: Vector, v2: Vector, p: Vector) -> Vector:
    """Foot of the perpendicular from `p` onto the infinite line through v1 and v2."""
    d = v2 - v1
    length_sq = d.length_squared
    if length_sq == 0.0:
        return v1.clone()
    t = (p - v1).dot(d) / length_sq
    return Vector(v1.x + t * d.x, v1.y + t * d.y)


def polygon_signed_area(points: Sequence[Vector]) -> float:
    """Shoelace area of a closed vertex ring; positive when counter-clockwise."""
    if len(points) < 3:
        return 0.0
    xy = np.array([(p.x, p.y) for p in points], dtype=np.float64)
    x = xy[:, 0]
    y = xy[:, 1]
    return float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y)) / 2


def _cross(a: Vector, b: Vector, c: Vector) -> float:
    return (b.x - a.x) * (c.y - a.y) - (b.y - a.y) * (c.x - a.x)


def _point_in_triangle(p: Vector, a: Vector, b: Vector, c: Vector) -> bool:
    """Inclusive test against a counter-clockwise triangle."""
    return _cross(a, b, p) >= -EPSILON and _cross(b, c, p) >= -EPSILON and _cross(c, a, p) >= -EPSILON


def _triangulate(points: Sequence[Vector]) -> List[List[int]]:
    """
    Ear-clip a counter-clockwise simple polygon into index triangles.

    Collinear vertices are clipped as zero-area ears and do not appear
    in any triangle.
    """
    remaining = list(range(len(points)))
    triangles: List[List[int]] = []

    while len(remaining) > 3:
        m = len(remaining)
        # Vertices that may block an ear: reflex or collinear ones
        blocking = [
            remaining[k] for k in range(m)
            if _cross(points[remaining[k - 1]], points[remaining[k]], points[remaining[(k + 1) % m]]) <= EPSILON
        ]

        clipped = False
        for k in range(m):
            i0, i1, i2 = remaining[k - 1], remaining[k], remaining[(k + 1) % m]
            a, b, c = points[i0], points[i1], points[i2]
            turn = _cross(a, b, c)
            if turn < -EPSILON:
                continue
            if turn <= EPSILON:
                del remaining[k]
                clipped = True
                break
            if any(
                _point_in_triangle(points[j], a, b, c)
                for j in blocking
                if j not in (i0, i1, i2) and points[j] not in (a, b, c)
            ):
                continue
            triangles.append([i0, i1, i2])
            del remaining[k]
            clipped = True
            break

        if not clipped:
            # Only reachable through round-off on nearly degenerate input
            k = max(range(m), key=lambda n: _cross(points[remaining[n - 1]], points[remaining[n]], points[remaining[(n + 1) % m]]))
            logger.warning(f"No valid ear among {m} vertices; clipping vertex {remaining[k]} anyway.")
            triangles.append([remaining[k - 1], remaining[k], remaining[(k + 1) % m]])
            del remaining[k]

    if len(remaining) == 3 and _cross(*(points[i] for i in remaining)) > EPSILON:
        triangles.append(remaining)
    return triangles


def _is_convex(points: Sequence[Vector], piece: Sequence[int]) -> bool:
    n = len(piece)
    return all(
        _cross(points[piece[k - 1]], points[piece[k]], points[piece[(k + 1) % n]]) >= -EPSILON
        for k in range(n)
    )


def _merge_pieces(a: List[int], b: List[int], u: int, v: int) -> List[int]:
    """Join piece `a` (containing edge u->v) and piece `b` (containing v->u) along that diagonal."""
    ia = a.index(v)
    ra = a[ia:] + a[:ia]  # v ... u
    ib = b.index(u)
    rb = b[ib:] + b[:ib]  # u ... v
    return ra + rb[1:-1]


def _merge_convex(points: Sequence[Vector], pieces: List[List[int]]) -> List[List[int]]:
    """Hertel-Mehlhorn: drop diagonals whose removal keeps both sides convex."""
    merged = True
    while merged:
        merged = False
        edge_owner = {}
        for pid, piece in enumerate(pieces):
            for k in range(len(piece)):
                edge_owner[(piece[k], piece[(k + 1) % len(piece)])] = pid

        for (u, v), pa in edge_owner.items():
            pb = edge_owner.get((v, u))
            if pb is None or pb == pa:
                continue
            candidate = _merge_pieces(pieces[pa], pieces[pb], u, v)
            if _is_convex(points, candidate):
                pieces[pa] = candidate
                del pieces[pb]
                merged = True
                break
    return pieces


def decompose(polygon: Polygon) -> List[List[Vector]]:
    """
    Split a simple polygon into convex pieces for filled rendering.

    The pieces tile the polygon exactly and use only its own vertices: the
    polygon is ear-clipped into triangles which are then greedily merged
    back into convex fans.

    Args:
        polygon: A simple polygon, convex or concave, of either winding.

    Returns:
        A list of convex vertex fans sharing the winding of the polygon.
        Fans reference the polygon's own Vector objects.

    Raises:
        DegeneratePolygonError: If the polygon has fewer than 3 vertices.
    """
    vertices = polygon.vertices
    if len(vertices) < 3:
        raise DegeneratePolygonError(f"Polygon must have at least 3 vertices, got {len(vertices)}")

    clockwise = polygon_signed_area(vertices) < 0
    points = list(reversed(vertices)) if clockwise else list(vertices)

    pieces = _merge_convex(points, _triangulate(points))
    fans = [[points[i] for i in piece] for piece in pieces]
    if clockwise:
        fans = [list(reversed(fan)) for fan in fans]

    logger.debug(f"Decomposed {len(vertices)} vertices into {len(fans)} convex pieces.")
    return fans


def ellipse_to_polyline(
    center: Vector,
    a: float,
    b: float,
    angle: float,
    n_segments: int
) -> np.ndarray:
    """
    Discretize a rotated ellipse in XY into an (N,2) polyline (open ring).

    Args:
        center: Center of the ellipse.
        a: Semi-axis along the (unrotated) x direction.
        b: Semi-axis along the (unrotated) y direction.
        angle: Clockwise rotation of the ellipse in degrees.
        n_segments: Number of points to generate.

    Returns:
        An array of shape (n_segments, 2) containing the (x, y) coordinates, counter-clockwise.
    """
    beta = -deg2rad(angle)
    theta = np.linspace(0.0, 2.0 * np.pi, n_segments, endpoint=False)
    x = a * np.cos(theta)
    y = b * np.sin(theta)
    return np.c_[
        center.x + x * np.cos(beta) - y * np.sin(beta),
        center.y + x * np.sin(beta) + y * np.cos(beta)
    ]
