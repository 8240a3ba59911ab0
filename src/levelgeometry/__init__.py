"""
Level Geometry
==============
Computational-geometry core of the level editor: vertices, affine
transforms, convex decomposition and polygon editing operations.
"""
from levelgeometry.model.geometry_primitives import Vector, VectorMark, Matrix, mark_default
from levelgeometry.model.polygon import Polygon, PolygonMark, PolygonOperationType
from levelgeometry.model.errors import (
    PolygonError, DegeneratePolygonError, InvalidOperandError, UnsupportedOperationError
)

__all__ = [
    "Vector", "VectorMark", "Matrix", "mark_default",
    "Polygon", "PolygonMark", "PolygonOperationType",
    "PolygonError", "DegeneratePolygonError", "InvalidOperandError", "UnsupportedOperationError",
]
