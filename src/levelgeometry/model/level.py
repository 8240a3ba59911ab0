"""
Level Polygon Collection
========================
Owns the polygons of a level and the edits that replace or move them.

Classes:
    VertexPick: Result of a nearest-vertex query.
    Level: The polygon container the editing tools operate on.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import List, Optional

from levelgeometry import config
from levelgeometry.model.errors import InvalidOperandError
from levelgeometry.model.geometry_primitives import Vector, VectorMark, mark_default
from levelgeometry.model.polygon import Polygon, PolygonOperationType

logger = logging.getLogger(__name__)


@dataclass
class VertexPick:
    polygon: Polygon
    index: int
    distance: float

    @property
    def vertex(self) -> Vector:
        return self.polygon[self.index]


@dataclass
class Level:
    polygons: List[Polygon] = field(default_factory=list)

    def add_polygon(self, polygon: Polygon) -> None:
        polygon.update_decomposition()
        self.polygons.append(polygon)

    def remove_polygon(self, polygon: Polygon) -> None:
        self.polygons.remove(polygon)

    def replace_polygon(self, old: Polygon, new_polygons: List[Polygon]) -> None:
        """Put `new_polygons` where `old` was."""
        index = self.polygons.index(old)
        for polygon in new_polygons:
            polygon.update_decomposition()
        self.polygons[index:index + 1] = new_polygons

    def mark_all_as(self, mark: VectorMark) -> None:
        for polygon in self.polygons:
            polygon.mark_vectors_as(mark)

    def selected_vertices(self) -> List[Vector]:
        return [v for polygon in self.polygons for v in polygon if v.mark == VectorMark.SELECTED]

    def nearest_polygon(self, p: Vector) -> Optional[Polygon]:
        """Polygon whose boundary is closest to `p`; the first one wins ties."""
        if not self.polygons:
            return None
        return min(self.polygons, key=lambda polygon: polygon.distance_from_point(p))

    def polygon_at(self, p: Vector, capture_radius: Optional[float] = None) -> Optional[Polygon]:
        """Nearest polygon if its boundary passes within `capture_radius` of `p`."""
        if capture_radius is None:
            capture_radius = config.editor_settings.capture_radius
        polygon = self.nearest_polygon(p)
        if polygon is None or polygon.distance_from_point(p) > capture_radius:
            return None
        return polygon

    def nearest_vertex(self, p: Vector, capture_radius: Optional[float] = None) -> Optional[VertexPick]:
        """Closest vertex within `capture_radius` (editor default when omitted)."""
        if capture_radius is None:
            capture_radius = config.editor_settings.capture_radius

        best: Optional[VertexPick] = None
        for polygon in self.polygons:
            index = polygon.get_nearest_vertex_index(p)
            distance = (polygon[index] - p).length
            if distance <= capture_radius and (best is None or distance < best.distance):
                best = VertexPick(polygon, index, distance)
        return best

    def move_selected(self, delta: Vector) -> bool:
        """
        Translate every selected vertex by `delta`.

        Moved vertices are replaced by new vectors that keep the selection.
        Every touched polygon is re-decomposed.

        Returns:
            True if at least one vertex was moved by a non-zero delta.
        """
        anything_moved = False
        with mark_default(VectorMark.SELECTED):
            for polygon in self.polygons:
                moved = False
                for i, vertex in enumerate(polygon.vertices):
                    if vertex.mark != VectorMark.SELECTED:
                        continue
                    polygon.vertices[i] = vertex + delta
                    moved = True
                if moved:
                    polygon.update_decomposition()
                    anything_moved = anything_moved or delta.length > 0
        return anything_moved

    def combine(self, first: Polygon, second: Polygon, operation: PolygonOperationType) -> List[Polygon]:
        """
        Replace two polygons of the level with the result of a boolean operation.

        The level is left untouched when the operation raises.
        """
        if first is second:
            raise InvalidOperandError("Cannot combine a polygon with itself.")
        results = first.polygon_operation_with(second, operation)
        index = min(self.polygons.index(first), self.polygons.index(second))
        self.remove_polygon(first)
        self.remove_polygon(second)
        self.polygons[index:index] = results
        logger.info(f"{operation} replaced 2 polygons with {len(results)}.")
        return results

    def cut(self, polygon: Polygon, v1: Vector, v2: Vector, cut_radius: Optional[float] = None) -> bool:
        """Cut `polygon` along v1 -> v2; returns False when the cut had no effect."""
        if cut_radius is None:
            cut_radius = config.editor_settings.cut_radius
        pieces = polygon.cut(v1, v2, cut_radius)
        if pieces is None:
            return False
        self.replace_polygon(polygon, pieces)
        return True
