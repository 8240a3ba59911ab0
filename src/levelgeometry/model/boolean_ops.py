"""
Planar Boolean Operations
=========================
Union / intersection / difference / symmetric difference of simple polygons.

Why is this file needed?
------------------------
1. Separation: clipping algorithms are a large subsystem of their own. The
   polygon model only depends on the abstract `PlanarBooleanBackend`.
2. Normalization: backends return polygons, multi-polygons or collections,
   possibly with holes. This module flattens them into plain closed rings,
   one per exterior and one per hole, which is how a level stores them.

Classes:
    PlanarBooleanBackend: The contract the polygon model consumes.
    ShapelyBooleanBackend: Default implementation on top of shapely.

Functions:
    ring_within: Containment test used by whole-polygon selection.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from typing import List, Sequence, Tuple

from shapely.geometry import Polygon as ShapelyPolygon
from shapely.geometry.base import BaseGeometry

from levelgeometry.config import BUFFER_DISTANCE

logger = logging.getLogger(__name__)

Coordinate = Tuple[float, float]
Ring = List[Coordinate]


class PlanarBooleanBackend(ABC):
    """
    Boolean operations on two simple polygons.

    Operands are closed rings: the first coordinate is repeated at the end.
    Results are closed rings as well; every exterior and every hole of the
    result becomes its own ring. An empty result is an empty list.
    """

    @abstractmethod
    def intersection(self, a: Sequence[Coordinate], b: Sequence[Coordinate]) -> List[Ring]:
        pass

    @abstractmethod
    def union(self, a: Sequence[Coordinate], b: Sequence[Coordinate]) -> List[Ring]:
        pass

    @abstractmethod
    def difference(self, a: Sequence[Coordinate], b: Sequence[Coordinate]) -> List[Ring]:
        """`a` minus `b`."""
        pass

    @abstractmethod
    def symmetric_difference(self, a: Sequence[Coordinate], b: Sequence[Coordinate]) -> List[Ring]:
        pass


class ShapelyBooleanBackend(PlanarBooleanBackend):
    def intersection(self, a: Sequence[Coordinate], b: Sequence[Coordinate]) -> List[Ring]:
        return self._flatten(ShapelyPolygon(a).intersection(ShapelyPolygon(b)))

    def union(self, a: Sequence[Coordinate], b: Sequence[Coordinate]) -> List[Ring]:
        return self._flatten(ShapelyPolygon(a).union(ShapelyPolygon(b)))

    def difference(self, a: Sequence[Coordinate], b: Sequence[Coordinate]) -> List[Ring]:
        return self._flatten(ShapelyPolygon(a).difference(ShapelyPolygon(b)))

    def symmetric_difference(self, a: Sequence[Coordinate], b: Sequence[Coordinate]) -> List[Ring]:
        # Shared boundaries leave zero-area slivers; shrinking by a hair removes them
        result = ShapelyPolygon(a).symmetric_difference(ShapelyPolygon(b)).buffer(BUFFER_DISTANCE)
        return self._flatten(result)

    @staticmethod
    def _flatten(geometry: BaseGeometry) -> List[Ring]:
        """Explode a polygonal result into closed rings (exteriors and holes)."""
        if geometry.is_empty:
            return []

        if isinstance(geometry, ShapelyPolygon):
            polygons = [geometry]
        elif hasattr(geometry, "geoms"):
            polygons = [g for g in geometry.geoms if isinstance(g, ShapelyPolygon)]
            skipped = len(geometry.geoms) - len(polygons)
            if skipped:
                logger.debug(f"Ignoring {skipped} non-polygonal parts of a boolean result.")
        else:
            logger.debug(f"Ignoring non-polygonal boolean result: {geometry.geom_type}")
            return []

        rings: List[Ring] = []
        for polygon in polygons:
            if polygon.is_empty:
                continue
            rings.append([(float(x), float(y)) for x, y in polygon.exterior.coords])
            for interior in polygon.interiors:
                rings.append([(float(x), float(y)) for x, y in interior.coords])
        return rings


_default_backend: PlanarBooleanBackend | None = None


def get_default_backend() -> PlanarBooleanBackend:
    global _default_backend
    if _default_backend is None:
        _default_backend = ShapelyBooleanBackend()
    return _default_backend


def ring_within(inner: Sequence[Coordinate], outer: Sequence[Coordinate]) -> bool:
    """
    Whether the area of `inner` lies inside the area of `outer`.

    Shared boundary points and edges are allowed; an edge leaving `outer`
    through a concave gap is not.
    """
    return ShapelyPolygon(inner).within(ShapelyPolygon(outer))
