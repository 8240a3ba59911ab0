"""
Geometry Errors
===============
Failures the geometry core reports to its callers. Outcomes that merely mean
"the gesture had no effect" are not errors: they are returned as `None` or an
empty list.
"""


class PolygonError(Exception):
    """Base class for polygon validity errors."""


class DegeneratePolygonError(PolygonError):
    """A polygon has fewer than 3 vertices where at least 3 are required."""


class InvalidOperandError(PolygonError):
    """A boolean or cut operation received a non-simple polygon."""


class UnsupportedOperationError(PolygonError):
    """An unrecognized boolean operation kind was requested."""
