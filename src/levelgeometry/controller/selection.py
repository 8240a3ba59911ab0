"""
Vertex Selection and Moving
===========================
The geometric part of the editor's selection tool: rectangle and lasso
selection, whole-polygon selection, hover highlighting, and dragging of
selected vertices. A drag starts on a vertex (optionally locked to the
direction of the edges around it) or on an edge, which either selects the
whole polygon or bends the edge by inserting a new vertex.

Input handling is not part of this module: the front-end translates mouse
events into calls to these functions and to `MoveSession`.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

from levelgeometry.model.geometry_primitives import Vector, VectorMark
from levelgeometry.model.geometry_utils import distance_from_line, orthogonal_projection
from levelgeometry.model.level import Level, VertexPick
from levelgeometry.model.polygon import Polygon, PolygonMark

logger = logging.getLogger(__name__)


def _toggle_or_clear(vertex: Vector, inside: bool, additive: bool) -> None:
    if inside:
        match vertex.mark:
            case VectorMark.SELECTED:
                vertex.mark = VectorMark.NONE
            case _:
                vertex.mark = VectorMark.SELECTED
    elif not additive:
        vertex.mark = VectorMark.NONE


def _select_where(
    level: Level,
    is_inside: Callable[[Vector], bool],
    additive: bool,
    include_grass: bool,
    include_ground: bool
) -> None:
    for polygon in level.polygons:
        if (polygon.is_grass and include_grass) or (not polygon.is_grass and include_ground):
            for vertex in polygon:
                _toggle_or_clear(vertex, is_inside(vertex), additive)


def select_in_rectangle(
    level: Level,
    corner1: Vector,
    corner2: Vector,
    additive: bool = False,
    include_grass: bool = True,
    include_ground: bool = True
) -> None:
    """
    Toggle the selection of vertices strictly inside the rectangle.

    Vertices outside are deselected unless `additive` is set.
    """
    x_min, x_max = min(corner1.x, corner2.x), max(corner1.x, corner2.x)
    y_min, y_max = min(corner1.y, corner2.y), max(corner1.y, corner2.y)
    _select_where(
        level,
        lambda v: x_min < v.x < x_max and y_min < v.y < y_max,
        additive, include_grass, include_ground
    )


def select_in_polygon(
    level: Level,
    lasso: Polygon,
    additive: bool = False,
    include_grass: bool = True,
    include_ground: bool = True
) -> None:
    """Free-hand variant of `select_in_rectangle`."""
    _select_where(level, lasso.area_has_point, additive, include_grass, include_ground)


def select_enclosed(level: Level, polygon: Polygon, additive: bool = False) -> None:
    """Select `polygon` and every polygon lying entirely inside it."""
    if not additive:
        level.mark_all_as(VectorMark.NONE)
    polygon.mark_vectors_as(VectorMark.SELECTED)
    for other in level.polygons:
        if other is not polygon and other.is_within(polygon):
            other.mark_vectors_as(VectorMark.SELECTED)


def lock_to_edges(center: Vector, prev: Vector, next: Vector, p: Vector) -> Vector:
    """Snap `p` onto the closer of the lines center-next and center-prev."""
    if distance_from_line(center, next, p) < distance_from_line(center, prev, p):
        return orthogonal_projection(center, next, p)
    return orthogonal_projection(center, prev, p)


class MoveSession:
    """
    Dragging of the selected vertices of a level.

    With `lock_lines`, the cursor is snapped onto the lines through the
    grabbed vertex and its neighbours, so the vertex slides along its edges.
    """

    def __init__(self, level: Level, start: Vector, lock: Optional[Tuple[Vector, Vector, Vector]] = None):
        self.level = level
        self._last_position = start.clone()
        # (center, prev, next) positions captured when the drag started
        self._lock = lock
        self.anything_moved = False

    @staticmethod
    def grab_vertex(level: Level, pick: VertexPick, lock_lines: bool = False, additive: bool = False) -> MoveSession:
        """
        Select the picked vertex and start dragging from it.

        Without `additive`, grabbing an unselected vertex clears the rest of
        the selection; with it, the vertex selection is toggled.
        """
        vertex = pick.vertex
        if additive:
            vertex.mark = VectorMark.NONE if vertex.mark == VectorMark.SELECTED else VectorMark.SELECTED
        else:
            if vertex.mark != VectorMark.SELECTED:
                level.mark_all_as(VectorMark.NONE)
            vertex.mark = VectorMark.SELECTED

        lock = None
        if lock_lines:
            polygon = pick.polygon
            lock = (vertex.clone(), polygon[pick.index - 1].clone(), polygon[pick.index + 1].clone())
        return MoveSession(level, vertex, lock)

    @staticmethod
    def grab_edge(level: Level, polygon: Polygon, p: Vector, bend: bool = False, additive: bool = False) -> MoveSession:
        """
        Start dragging from the edge of `polygon` nearest to `p`.

        With `bend`, the selection is replaced by a new vertex inserted into
        that edge at `p`, so the drag bends the edge. Otherwise the whole
        polygon gets selected, unless both ends of the edge already are;
        with `additive` the selection of the whole polygon is toggled.
        """
        index = polygon.get_nearest_segment_index(p)
        if bend:
            level.mark_all_as(VectorMark.NONE)
            vertex = Vector(p.x, p.y, VectorMark.SELECTED)
            polygon.insert(index + 1, vertex)
            polygon.update_decomposition()
            session = MoveSession(level, vertex)
            session.anything_moved = True
            return session

        edge_selected = polygon[index].mark == VectorMark.SELECTED and polygon[index + 1].mark == VectorMark.SELECTED
        if additive:
            all_selected = all(v.mark == VectorMark.SELECTED for v in polygon)
            polygon.mark_vectors_as(VectorMark.NONE if all_selected else VectorMark.SELECTED)
        elif not edge_selected:
            level.mark_all_as(VectorMark.NONE)
            polygon.mark_vectors_as(VectorMark.SELECTED)
        return MoveSession(level, p)

    def drag(self, p: Vector) -> bool:
        """Move the selection so that it follows the cursor at `p`."""
        if self._lock is not None:
            p = lock_to_edges(*self._lock, p)

        delta = p - self._last_position
        moved = self.level.move_selected(delta)
        self.anything_moved = self.anything_moved or moved
        self._last_position = p.clone()
        return moved

    def end(self) -> bool:
        """Finish the drag; returns whether the level was modified."""
        if self.anything_moved:
            logger.debug("Selection moved.")
        return self.anything_moved


def grab_at(
    level: Level,
    p: Vector,
    modifier: bool = False,
    additive: bool = False,
    capture_radius: Optional[float] = None
) -> Optional[MoveSession]:
    """
    Start a drag at `p`: on the nearest vertex, else on the nearest edge.

    `modifier` locks a grabbed vertex to its edges, or bends a grabbed
    edge. Returns None when nothing is within `capture_radius`; the
    front-end then starts a rectangle or lasso selection instead.
    """
    pick = level.nearest_vertex(p, capture_radius)
    if pick is not None:
        return MoveSession.grab_vertex(level, pick, lock_lines=modifier, additive=additive)

    polygon = level.polygon_at(p, capture_radius)
    if polygon is not None:
        return MoveSession.grab_edge(level, polygon, p, bend=modifier, additive=additive)
    return None


def reset_highlight(level: Level) -> None:
    for polygon in level.polygons:
        if polygon.mark == PolygonMark.HIGHLIGHT:
            polygon.mark = PolygonMark.NONE
        for vertex in polygon:
            if vertex.mark == VectorMark.HIGHLIGHT:
                vertex.mark = VectorMark.NONE


def highlight_nearest(level: Level, p: Vector, capture_radius: Optional[float] = None) -> Optional[Polygon]:
    """
    Highlight what a click at `p` would grab, clearing the previous highlight.

    A vertex within reach is highlighted unless it is selected; otherwise
    the polygon whose edge is within reach is. Returns the polygon under the
    cursor, if any.
    """
    reset_highlight(level)
    pick = level.nearest_vertex(p, capture_radius)
    if pick is not None:
        if pick.vertex.mark == VectorMark.NONE:
            pick.vertex.mark = VectorMark.HIGHLIGHT
        return pick.polygon

    polygon = level.polygon_at(p, capture_radius)
    if polygon is not None:
        polygon.mark = PolygonMark.HIGHLIGHT
    return polygon
