import pytest

from levelgeometry.model.geometry_primitives import Matrix, Vector, VectorMark
from levelgeometry.model.polygon import Polygon

from conftest import make_polygon


def coordinates(polygon):
    return [(v.x, v.y) for v in polygon.vertices]


class TestApplyTransformation:
    def test_all_vertices(self, unit_square):
        moved = unit_square.apply_transformation(Matrix.translation(1, 2))
        assert coordinates(moved) == [(1, 2), (2, 2), (2, 3), (1, 3)]
        assert coordinates(unit_square) == [(0, 0), (1, 0), (1, 1), (0, 1)]

    def test_selected_only(self, unit_square):
        unit_square.vertices[1].mark = VectorMark.SELECTED
        moved = unit_square.apply_transformation(Matrix.translation(1, 0), selected_only=True)
        assert coordinates(moved) == [(0, 0), (2, 0), (1, 1), (0, 1)]

    def test_rotation_preserves_area(self, l_shape):
        rotated = l_shape.apply_transformation(Matrix.rotation(37, center=Vector(1, 1)))
        assert rotated.signed_area == pytest.approx(l_shape.signed_area)

    def test_mirror_flips_winding(self, l_shape):
        mirrored = l_shape.apply_transformation(Matrix.scaling(-1, 1))
        assert mirrored.signed_area == pytest.approx(-l_shape.signed_area)


class TestSmoothen:
    def test_offset_one_is_identity(self, u_shape):
        smooth = u_shape.smoothen(10, 1.0, False)
        assert smooth is not u_shape
        assert coordinates(smooth) == pytest.approx(coordinates(u_shape))

    def test_half_offset_shares_curve_ends(self, unit_square):
        smooth = unit_square.smoothen(3, 0.5, False)
        assert len(smooth) == 8
        assert smooth.signed_area == pytest.approx(0.75)
        assert smooth.vertices[1].x == pytest.approx(0.875)
        assert smooth.vertices[1].y == pytest.approx(0.125)

    def test_point_count(self, unit_square):
        assert len(unit_square.smoothen(4, 0.75, False)) == 16

    def test_stays_inside_convex_polygon(self, unit_square):
        smooth = unit_square.smoothen(6, 0.7, False)
        for v in smooth:
            assert -1e-12 <= v.x <= 1 + 1e-12
            assert -1e-12 <= v.y <= 1 + 1e-12

    def test_needs_two_steps(self, unit_square):
        with pytest.raises(ValueError):
            unit_square.smoothen(1, 0.5, False)

    def test_only_selected_without_selection_is_a_copy(self, l_shape):
        smooth = l_shape.smoothen(5, 0.6, True)
        assert coordinates(smooth) == coordinates(l_shape)

    def test_only_selected_with_full_selection(self, unit_square):
        unit_square.mark_vectors_as(VectorMark.SELECTED)
        assert coordinates(unit_square.smoothen(3, 0.5, True)) == pytest.approx(
            coordinates(unit_square.smoothen(3, 0.5, False)))

    def test_only_selected_keeps_framing_vertices(self, unit_square):
        for v in unit_square.vertices[:3]:
            v.mark = VectorMark.SELECTED
        smooth = unit_square.smoothen(3, 0.5, True)
        assert coordinates(smooth) == pytest.approx(
            [(0, 0), (0.5, 0), (0.875, 0.125), (1, 0.5), (1, 1), (0, 1)])

    def test_keeps_grass_flag(self, unit_square):
        unit_square.is_grass = True
        assert unit_square.smoothen(3, 0.5, False).is_grass


class TestUnsmoothen:
    def test_removes_collinear_vertex(self):
        polygon = make_polygon((0, 0), (1, 0), (2, 0), (2, 2), (0, 2))
        result = polygon.unsmoothen(1.0, 0.0, False)
        assert coordinates(result) == [(0, 0), (2, 0), (2, 2), (0, 2)]
        assert len(polygon) == 5

    def test_removes_short_edges(self):
        polygon = make_polygon((0, 0), (1, 0), (1, 0.01), (1, 1), (0, 1))
        result = polygon.unsmoothen(0.0, 0.1, False)
        assert len(result) < len(polygon)
        assert len(result) >= 3

    def test_never_below_a_triangle(self, unit_square, l_shape):
        pentagon = make_polygon((0, 0), (2, 0), (3, 1), (1, 2), (-1, 1))
        for polygon in (unit_square, pentagon, l_shape):
            assert len(polygon.unsmoothen(180.0, 1e9, False)) == 3

    def test_removes_at_most_every_other_vertex(self, u_shape):
        # The pass moves on after each removal, so half of the vertices survive
        assert len(u_shape.unsmoothen(180.0, 1e9, False)) == 4

    def test_triangle_is_returned_as_copy(self):
        triangle = make_polygon((0, 0), (1, 0), (0, 1))
        result = triangle.unsmoothen(180.0, 1e9, False)
        assert result is not triangle
        assert coordinates(result) == coordinates(triangle)

    def test_single_forward_pass(self):
        # Every vertex of a dense circle turns by 360/n degrees; one pass removes
        # roughly every other vertex instead of collapsing the circle
        circle = Polygon.ellipse(Vector(0, 0), 1, 1, 0, 64)
        result = circle.unsmoothen(360.0 / 64 + 0.1, 0.0, False)
        assert 3 < len(result) < 64

    def test_only_selected(self):
        polygon = make_polygon((0, 0), (1, 0), (2, 0), (2, 2), (0, 2))
        assert len(polygon.unsmoothen(1.0, 0.0, True)) == 5
        for v in polygon.vertices[:3]:
            v.mark = VectorMark.SELECTED
        result = polygon.unsmoothen(1.0, 0.0, True)
        assert coordinates(result) == [(0, 0), (2, 0), (2, 2), (0, 2)]
        assert result.vertices[0].mark == VectorMark.SELECTED
