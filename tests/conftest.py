"""
Shared fixtures for the level geometry tests.

Provides small reference polygons in both windings.
"""
import pytest

from levelgeometry.model.geometry_primitives import Vector
from levelgeometry.model.polygon import Polygon


def make_polygon(*coordinates, is_grass=False):
    return Polygon([Vector(x, y) for x, y in coordinates], is_grass=is_grass)


@pytest.fixture
def unit_square():
    return make_polygon((0, 0), (1, 0), (1, 1), (0, 1))


@pytest.fixture
def clockwise_square():
    return make_polygon((0, 0), (0, 1), (1, 1), (1, 0))


@pytest.fixture
def l_shape():
    """Concave L with area 3; (1, 1) is the reflex vertex."""
    return make_polygon((0, 0), (2, 0), (2, 1), (1, 1), (1, 2), (0, 2))


@pytest.fixture
def u_shape():
    """Concave U with area 7, open towards +y."""
    return make_polygon((0, 0), (3, 0), (3, 3), (2, 3), (2, 1), (1, 1), (1, 3), (0, 3))


@pytest.fixture
def far_square():
    return make_polygon((5, 5), (6, 5), (6, 6), (5, 6))


@pytest.fixture
def bowtie():
    return make_polygon((0, 0), (1, 1), (1, 0), (0, 1))
