"""
Level Polygons
==============
A polygon is a closed, cyclic vertex sequence: ground (collidable) or grass
(decorative). This module holds the queries the editing tools hit-test with,
the vertex-list mutations, and the operations that build new polygons
(smoothing, cutting, transforming, boolean operations).

Conventions:
    - Indexing is cyclic: `polygon[-1]` is the last vertex and
      `polygon[len(polygon)]` is the first one.
    - The convex decomposition is a cache owned by the polygon. It is
      invalidated by every vertex-list mutation and recomputed on access.
    - Operations that produce geometry never modify the receiver.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, StrEnum
import logging
import math
from typing import Iterator, List, Optional, Sequence, Tuple, TYPE_CHECKING

import numpy as np

from levelgeometry import config
from levelgeometry.config import TOLERANCE, DEG_TO_RAD, DUPLICATE_VERTEX_DISTANCE_SQUARED
from levelgeometry.model.boolean_ops import PlanarBooleanBackend, get_default_backend, ring_within
from levelgeometry.model.errors import DegeneratePolygonError, InvalidOperandError, UnsupportedOperationError
from levelgeometry.model.geometry_primitives import Matrix, Vector, VectorMark, mark_default
from levelgeometry.model.geometry_utils import (
    decompose, distance_from_segment, ellipse_to_polyline, get_intersection_point,
    polygon_signed_area, segments_intersect
)

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


class PolygonMark(Enum):
    NONE = 0
    HIGHLIGHT = 1
    SELECTED = 2
    ERRONEOUS = 3


class PolygonOperationType(StrEnum):
    INTERSECTION = "intersection"
    UNION = "union"
    DIFFERENCE = "difference"
    SYMMETRIC_DIFFERENCE = "symmetric difference"


@dataclass(eq=False)
class Polygon:
    """
    Closed polygon of a level.

    Attributes:
        vertices: Ordered vertex list; the closing edge runs from the last vertex to the first.
        is_grass: Grass polygons are decorative; their closing edge is not rendered.
        mark: Display state used by the editor.
    """
    vertices: List[Vector] = field(default_factory=list)
    is_grass: bool = False
    mark: PolygonMark = PolygonMark.NONE
    _decomposition: Optional[List[List[Vector]]] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        # Accept any iterable, keep our own list
        self.vertices = list(self.vertices)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------
    @staticmethod
    def rectangle(lower_left: Vector, width: float, height: float) -> Polygon:
        return Polygon([
            Vector(lower_left.x, lower_left.y),
            Vector(lower_left.x + width, lower_left.y),
            Vector(lower_left.x + width, lower_left.y + height),
            Vector(lower_left.x, lower_left.y + height),
        ])

    @staticmethod
    def from_corners(corner1: Vector, corner2: Vector) -> Polygon:
        """Axis-aligned rectangle spanned by two opposite corners."""
        return Polygon([
            corner1.clone(),
            Vector(corner2.x, corner1.y),
            corner2.clone(),
            Vector(corner1.x, corner2.y),
        ])

    @staticmethod
    def ellipse(mid: Vector, a: float, b: float, angle: float, steps: int) -> Polygon:
        """Ellipse approximated by `steps` vertices, rotated clockwise by `angle` degrees."""
        points = ellipse_to_polyline(mid, a, b, angle, steps)
        polygon = Polygon([Vector(float(x), float(y)) for x, y in points])
        polygon.update_decomposition()
        return polygon

    @staticmethod
    def from_ring(coordinates: Sequence[Tuple[float, float]], is_grass: bool = False) -> Polygon:
        """Polygon from a closed coordinate ring (first coordinate repeated at the end)."""
        return Polygon([Vector(x, y) for x, y in coordinates[1:]], is_grass)

    def clone(self, keep_marks: bool = False) -> Polygon:
        """
        Deep copy of the vertex list.

        Vertex marks are reset to the scoped default unless `keep_marks` is set.
        The polygon mark is reset; the grass flag is kept.
        """
        if keep_marks:
            vertices = [v.clone(v.mark) for v in self.vertices]
        else:
            vertices = [v.clone() for v in self.vertices]
        return Polygon(vertices, self.is_grass)

    def with_y_negated(self) -> Polygon:
        return Polygon([Vector(v.x, -v.y) for v in self.vertices], self.is_grass)

    # ------------------------------------------------------------------
    # Cyclic container protocol
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self.vertices)

    def __iter__(self) -> Iterator[Vector]:
        return iter(self.vertices)

    def __getitem__(self, index: int) -> Vector:
        return self.vertices[self._wrap(index)]

    def __setitem__(self, index: int, vertex: Vector) -> None:
        self.vertices[self._wrap(index)] = vertex
        self._invalidate()

    def _wrap(self, index: int) -> int:
        return index % len(self.vertices)

    def _edges(self, include_closing: bool = True) -> Iterator[Tuple[int, Vector, Vector]]:
        n = len(self.vertices)
        last = n if include_closing else n - 1
        for i in range(last):
            yield i, self.vertices[i], self.vertices[(i + 1) % n]

    @property
    def count(self) -> int:
        return len(self.vertices)

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------
    @property
    def decomposition(self) -> List[List[Vector]]:
        """Convex fans tiling the polygon, recomputed after mutations."""
        if self._decomposition is None:
            self._decomposition = decompose(self)
        return self._decomposition

    def _invalidate(self) -> None:
        self._decomposition = None

    def update_decomposition(self, update_grass: bool = True) -> None:
        """
        Recompute the decomposition now.

        For grass polygons the vertex list is also rotated so that the edge
        with the largest horizontal extent becomes the closing edge, which
        the renderer treats as the inactive one.
        """
        if update_grass and self.is_grass and self.vertices:
            n = len(self.vertices)
            longest = abs(self.vertices[n - 1].x - self.vertices[0].x)
            longest_index = n - 1
            for i in range(n - 1):
                current = abs(self.vertices[i].x - self.vertices[i + 1].x)
                if current > longest:
                    longest = current
                    longest_index = i
            self.set_begin_point(longest_index + 1)
        self._decomposition = decompose(self)

    def to_array(self) -> npt.NDArray[np.float64]:
        """(N, 2) array of vertex coordinates."""
        return np.array([(v.x, v.y) for v in self.vertices], dtype=np.float64).reshape(-1, 2)

    def to_ring(self) -> List[Tuple[float, float]]:
        """Closed coordinate ring, as expected by the boolean backend."""
        ring = [v.to_tuple() for v in self.vertices]
        ring.append(ring[0])
        return ring

    @property
    def signed_area(self) -> float:
        """Shoelace area; positive for counter-clockwise winding."""
        return polygon_signed_area(self.vertices)

    @property
    def is_counter_clockwise(self) -> bool:
        return self.signed_area > 0

    @property
    def x_min(self) -> float:
        return float(self.to_array()[:, 0].min())

    @property
    def x_max(self) -> float:
        return float(self.to_array()[:, 0].max())

    @property
    def y_min(self) -> float:
        return float(self.to_array()[:, 1].min())

    @property
    def y_max(self) -> float:
        return float(self.to_array()[:, 1].max())

    @property
    def bounding_box(self) -> Tuple[float, float, float, float]:
        """(x_min, y_min, x_max, y_max)"""
        xy = self.to_array()
        x_min, y_min = xy.min(axis=0)
        x_max, y_max = xy.max(axis=0)
        return float(x_min), float(y_min), float(x_max), float(y_max)

    @property
    def is_simple(self) -> bool:
        """No coincident adjacent vertices and no two non-adjacent edges intersect."""
        n = len(self.vertices)
        for i in range(n):
            if self.vertices[i] == self.vertices[(i + 1) % n]:
                return False

        for i in range(n - 1):
            for j in range(i + 2, n):
                if i == 0 and j == n - 1:
                    continue
                if segments_intersect(self.vertices[i], self.vertices[i + 1],
                                      self.vertices[j], self.vertices[(j + 1) % n]):
                    return False
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def contains(self, p: Vector) -> bool:
        """Whether a vertex has the coordinates of `p`."""
        return p in self.vertices

    def index_of(self, v: Vector) -> int:
        """Index of the first vertex equal to `v`, or -1."""
        for i, vertex in enumerate(self.vertices):
            if vertex == v:
                return i
        return -1

    def get_last_vertex(self) -> Vector:
        return self.vertices[-1]

    def get_nearest_vertex_index(self, p: Vector) -> int:
        """Index of the closest vertex; ties go to the lowest index."""
        smallest = (self.vertices[0] - p).length_squared
        smallest_index = 0
        for i in range(1, len(self.vertices)):
            current = (self.vertices[i] - p).length_squared
            if current < smallest:
                smallest = current
                smallest_index = i
        return smallest_index

    def get_nearest_vertex_distance(self, p: Vector) -> float:
        return math.sqrt(min((v - p).length_squared for v in self.vertices))

    def get_nearest_segment_index(self, p: Vector) -> int:
        """
        Index `i` of the closest edge (from vertex i to vertex i + 1).

        The closing edge has index `len(self) - 1`. Ties go to the lowest index.
        """
        smallest = math.inf
        smallest_index = 0
        for i, a, b in self._edges():
            current = distance_from_segment(a.x, a.y, b.x, b.y, p.x, p.y)
            if current < smallest:
                smallest = current
                smallest_index = i
        return smallest_index

    def distance_from_point(self, p: Vector, show_inactive_grass_edges: Optional[bool] = None) -> float:
        """
        Distance from `p` to the polygon boundary.

        The closing edge of a grass polygon only counts when inactive grass
        edges are rendered; by default this follows
        `config.rendering_settings.show_inactive_grass_edges`.
        """
        if show_inactive_grass_edges is None:
            show_inactive_grass_edges = config.rendering_settings.show_inactive_grass_edges
        include_closing = not self.is_grass or show_inactive_grass_edges

        smallest = (self.vertices[0] - p).length
        for _, a, b in self._edges(include_closing):
            smallest = min(smallest, distance_from_segment(a.x, a.y, b.x, b.y, p.x, p.y))
        return smallest

    def area_has_point(self, p: Vector) -> bool:
        """
        Point-in-polygon by crossing-number parity.

        A point equal to one of the vertices is never inside. Horizontal
        edges never toggle the parity.
        """
        if self.contains(p):
            return False

        x, y = p.x, p.y
        is_inside = False
        n = len(self.vertices)
        for i in range(n):
            if i < n - 1:
                v1, v2 = self.vertices[i], self.vertices[i + 1]
            else:
                v1, v2 = self.vertices[0], self.vertices[n - 1]
            x1, y1, x2, y2 = v1.x, v1.y, v2.x, v2.y

            if (y1 <= y) == (y2 > y):
                if x1 <= x and x2 <= x:
                    is_inside = not is_inside
                elif (x1 <= x) == (x2 > x):
                    k = (y2 - y1) / (x2 - x1)
                    if (y < k * (x - x1) + y1) == (k > 0):
                        is_inside = not is_inside
        return is_inside

    def intersects_with(self, other: Polygon) -> bool:
        """Whether any edge of this polygon intersects any edge of `other`."""
        for _, a1, a2 in self._edges():
            for _, b1, b2 in other._edges():
                if segments_intersect(a1, a2, b1, b2):
                    return True
        return False

    def intersects_with_segment(self, v1: Vector, v2: Vector) -> bool:
        return any(segments_intersect(a, b, v1, v2) for _, a, b in self._edges())

    def is_within(self, other: Polygon) -> bool:
        """Whether this polygon covers no area outside `other`; touching boundaries are allowed."""
        if len(self) < 3 or len(other) < 3:
            return False
        return ring_within(self.to_ring(), other.to_ring())

    # ------------------------------------------------------------------
    # Vertex-list mutation
    # ------------------------------------------------------------------
    def add(self, v: Vector) -> None:
        self.vertices.append(v)
        self._invalidate()

    def insert(self, index: int, v: Vector) -> None:
        """Insert before the (cyclic) position `index`."""
        if self.vertices:
            index = self._wrap(index)
        self.vertices.insert(index, v)
        self._invalidate()

    def remove_range(self, index: int, count: int) -> None:
        """Remove `count` consecutive vertices starting at cyclic `index`, wrapping past the end."""
        index = self._wrap(index)
        n = len(self.vertices)
        if index + count <= n:
            del self.vertices[index:index + count]
        else:
            first_count = n - index
            del self.vertices[index:]
            del self.vertices[:count - first_count]
        self._invalidate()

    def remove_last_vertex(self) -> None:
        self.vertices.pop()
        self._invalidate()

    def move(self, delta: Vector) -> None:
        for vertex in self.vertices:
            vertex.x += delta.x
            vertex.y += delta.y
        self._invalidate()

    def set_begin_point(self, index: int) -> None:
        """Rotate the vertex list so that cyclic `index` becomes index 0."""
        i = self._wrap(index)
        if i == 0:
            return
        self.vertices = self.vertices[i:] + self.vertices[:i]
        self._invalidate()

    def change_orientation(self) -> None:
        self.vertices.reverse()
        self._invalidate()

    def mark_vectors_as(self, mark: VectorMark) -> None:
        for vertex in self.vertices:
            vertex.mark = mark

    def insert_intersection(self, p: Vector, delta: float) -> bool:
        """
        Insert `p` into the first edge passing within `delta` of it.

        Returns:
            False if no edge is close enough; the polygon is then unchanged.
        """
        for i, a, b in self._edges():
            if distance_from_segment(a.x, a.y, b.x, b.y, p.x, p.y) < delta:
                self.vertices.insert(i + 1, p)
                self._invalidate()
                return True
        logger.warning(f"Failed to add intersection at ({p.x}, {p.y}).")
        return False

    def remove_duplicate_vertices(self) -> None:
        """Drop vertices practically coincident with their predecessor."""
        for i in range(len(self.vertices), 0, -1):
            if len(self.vertices) == 0:
                break
            if (self[i] - self[i - 1]).length_squared < DUPLICATE_VERTEX_DISTANCE_SQUARED:
                del self.vertices[self._wrap(i)]
        self._invalidate()

    # ------------------------------------------------------------------
    # Operations producing new polygons
    # ------------------------------------------------------------------
    def apply_transformation(self, matrix: Matrix, selected_only: bool = False) -> Polygon:
        """New polygon with every vertex (or every selected vertex) transformed."""
        transformed = self.clone()
        for i, vertex in enumerate(self.vertices):
            if not selected_only or vertex.mark == VectorMark.SELECTED:
                transformed.vertices[i] = matrix.transform(vertex)
        return transformed

    def smoothen(self, steps: int, vertex_offset: float, only_selected: bool) -> Polygon:
        """
        Round the corners with quadratic Bezier curves.

        Every corner (vertex i + 1 between edges i and i + 1) is replaced by
        `steps` points of a curve that starts `vertex_offset` along edge i,
        passes near the corner and ends `1 - vertex_offset` along edge i + 1.

        Args:
            steps: Number of points per curve (at least 2).
            vertex_offset: Pull-back factor in [0.5, 1.0]; 1.0 leaves the polygon as is.
            only_selected: Only smooth corners whose neighbourhood is fully selected;
                other vertices are copied unchanged.
        """
        if abs(vertex_offset - 1.0) < TOLERANCE:
            return self.clone()
        if steps < 2:
            raise ValueError(f"Smoothing needs at least 2 steps, got {steps}")

        def selected(index: int) -> bool:
            return self[index].mark == VectorMark.SELECTED

        smooth = Polygon(is_grass=self.is_grass)
        for i in range(len(self.vertices)):
            if only_selected:
                if not (selected(i) and selected(i + 1) and selected(i + 2)):
                    if not (selected(i - 1) and selected(i) and selected(i + 1)):
                        smooth.add(self[i].clone())
                    continue
                if not selected(i - 1):
                    smooth.add(self[i].clone())

            start_point = self[i] + (self[i + 1] - self[i]) * vertex_offset
            end_point = self[i + 1] + (self[i + 2] - self[i + 1]) * (1.0 - vertex_offset)
            mid_point = self[i + 1]

            num_points = steps
            # At 0.5 consecutive curves share their end points
            if abs(vertex_offset - 0.5) < TOLERANCE and (not only_selected or selected(i + 3)):
                num_points -= 1

            for j in range(num_points):
                t = j / (steps - 1)
                smooth.add((1 - t) * (1 - t) * start_point + 2 * (1 - t) * t * mid_point + t * t * end_point)

        logger.debug(f"Smoothened {len(self.vertices)} vertices into {len(smooth.vertices)}.")
        return smooth

    def unsmoothen(self, angle: float, length: float, only_selected: bool) -> Polygon:
        """
        Remove vertices with a shallow turn or a short adjacent edge.

        A single forward pass: the vertex i + 1 is removed when the turn from
        edge i to edge i + 1 is below `angle` degrees or either edge is shorter
        than `length`. The result never has fewer than 3 vertices.
        """
        result = self.clone(keep_marks=True)
        if len(result) <= 3:
            return result

        i = 0
        while i < len(result.vertices):
            if only_selected and not all(result[i + j].mark == VectorMark.SELECTED for j in range(3)):
                i += 1
                continue

            incoming = result[i + 1] - result[i]
            outgoing = result[i + 2] - result[i + 1]
            if (abs(incoming.angle_between(outgoing)) < angle
                    or incoming.length < length
                    or outgoing.length < length):
                del result.vertices[result._wrap(i + 1)]
            if len(result) == 3:
                break
            i += 1

        logger.debug(f"Unsmoothened {len(self.vertices)} vertices into {len(result.vertices)}.")
        return result

    def cut(self, v1: Vector, v2: Vector, cut_radius: float) -> Optional[List[Polygon]]:
        """
        Split the polygon along the segment v1 -> v2, leaving a gap.

        Every crossing of the boundary is replaced by two vertices moved apart
        along the crossed edge so that the gap is `2 * cut_radius` wide across
        the cut (limited to half of the shorter adjacent edge).

        Returns:
            The pieces (two for a convex polygon), or None when the cut has no
            effect: an odd or zero number of crossings, a cut (nearly) parallel
            to a crossed edge, or a piece with fewer than 3 vertices.
        """
        # Crossings are told apart from original vertices by their mark
        clone = Polygon([v.clone(VectorMark.NONE) for v in self.vertices], self.is_grass)
        number_of_intersections = 0
        with mark_default(VectorMark.SELECTED):
            for i in range(len(self.vertices)):
                isect_point = get_intersection_point(self[i], self[i + 1], v1, v2)
                if isect_point is not None:
                    clone.vertices.insert(i + 1 + number_of_intersections, isect_point)
                    number_of_intersections += 1

        if number_of_intersections == 0 or number_of_intersections % 2 != 0:
            logger.debug(f"Cut crosses the boundary {number_of_intersections} times; nothing to do.")
            return None

        cut_direction = v2 - v1
        result = [Polygon()]
        is_beginning = True
        for k, vertex in enumerate(clone.vertices):
            if vertex.mark != VectorMark.SELECTED:
                if is_beginning:
                    result[0].vertices.append(vertex)
                else:
                    result[-1].vertices.append(vertex)
                continue

            distance1 = (clone[k + 1] - vertex).length
            distance2 = (vertex - clone[k - 1]).length
            if min(distance1, distance2) < TOLERANCE:
                logger.debug("Cut passes through a vertex; nothing to do.")
                return None

            cut_vector = (clone[k + 1] - clone[k - 1]).normalize()
            angle_abs = abs(cut_vector.angle_between(cut_direction))
            if angle_abs < TOLERANCE or 180.0 - angle_abs < TOLERANCE:
                logger.debug("Cut is parallel to a crossed edge; nothing to do.")
                return None

            cut_vector = cut_vector * (cut_radius / math.sin(angle_abs * DEG_TO_RAD))
            shortest = min(distance1, distance2)
            if cut_vector.length > shortest:
                cut_vector = cut_vector / cut_vector.length * shortest / 2

            if is_beginning:
                result.append(Polygon())
                result[-1].vertices.append(vertex + cut_vector)
                result[0].vertices.append(vertex - cut_vector)
            else:
                result[-1].vertices.append(vertex - cut_vector)
                result[0].vertices.append(vertex + cut_vector)
            is_beginning = not is_beginning

        for polygon in result:
            polygon.is_grass = self.is_grass
        if any(len(polygon) < 3 for polygon in result):
            logger.debug("Cut would leave a piece with fewer than 3 vertices; nothing to do.")
            return None

        logger.debug(f"Cut {len(self.vertices)} vertices into {len(result)} polygons.")
        return result

    def polygon_operation_with(
        self,
        other: Polygon,
        operation: PolygonOperationType,
        backend: Optional[PlanarBooleanBackend] = None
    ) -> List[Polygon]:
        """
        Boolean operation between `other` and this polygon.

        The operation is evaluated as `other <op> self`; for a difference
        this polygon is subtracted from `other`. Each exterior and each hole
        of the result becomes a separate polygon with a fresh decomposition.

        Raises:
            DegeneratePolygonError: If either polygon has fewer than 3 vertices.
            InvalidOperandError: If either polygon is not simple.
            UnsupportedOperationError: For an unknown operation kind.
        """
        try:
            operation = PolygonOperationType(operation)
        except ValueError:
            raise UnsupportedOperationError(f"Unsupported operation type: {operation!r}") from None
        if len(self) < 3 or len(other) < 3:
            raise DegeneratePolygonError("Boolean operations need polygons with at least 3 vertices.")
        if not self.is_simple or not other.is_simple:
            logger.warning(f"Refusing {operation}: operand is self-intersecting.")
            raise InvalidOperandError("Both polygons must be non-self-intersecting.")

        backend = backend or get_default_backend()
        a, b = other.to_ring(), self.to_ring()
        match operation:
            case PolygonOperationType.INTERSECTION:
                rings = backend.intersection(a, b)
            case PolygonOperationType.UNION:
                rings = backend.union(a, b)
            case PolygonOperationType.DIFFERENCE:
                rings = backend.difference(a, b)
            case PolygonOperationType.SYMMETRIC_DIFFERENCE:
                rings = backend.symmetric_difference(a, b)
            case _:
                raise UnsupportedOperationError(f"Unsupported operation type: {operation!r}")

        results = []
        for ring in rings:
            polygon = Polygon.from_ring(ring)
            if len(polygon) < 3:
                logger.debug(f"Dropping degenerate ring with {len(polygon)} vertices.")
                continue
            polygon.update_decomposition()
            results.append(polygon)

        logger.debug(f"{operation} produced {len(results)} polygons.")
        return results

    def __repr__(self) -> str:
        kind = "grass" if self.is_grass else "ground"
        return f"Polygon({kind}, {len(self.vertices)} vertices)"
