import pytest

from levelgeometry import config
from levelgeometry.model.errors import InvalidOperandError
from levelgeometry.model.geometry_primitives import Vector, VectorMark, get_mark_default
from levelgeometry.model.level import Level
from levelgeometry.model.polygon import PolygonOperationType

from conftest import make_polygon


def coordinates(polygon):
    return [(v.x, v.y) for v in polygon.vertices]


@pytest.fixture
def shifted_square():
    return make_polygon((0.5, 0), (1.5, 0), (1.5, 1), (0.5, 1))


@pytest.fixture
def level(unit_square, far_square):
    return Level([unit_square, far_square])


def test_add_polygon_decomposes(level):
    triangle = make_polygon((0, 0), (1, 0), (0, 1))
    level.add_polygon(triangle)
    assert level.polygons[-1] is triangle
    assert triangle._decomposition is not None


def test_remove_polygon(level, unit_square):
    level.remove_polygon(unit_square)
    assert unit_square not in level.polygons
    assert len(level.polygons) == 1


def test_replace_polygon_keeps_position(level, unit_square, far_square):
    pieces = [make_polygon((0, 0), (1, 0), (0, 1)), make_polygon((1, 0), (1, 1), (0, 1))]
    level.replace_polygon(unit_square, pieces)
    assert level.polygons == pieces + [far_square]


class TestNearest:
    def test_nearest_vertex(self, level, unit_square):
        pick = level.nearest_vertex(Vector(1.01, 0), capture_radius=0.05)
        assert pick.polygon is unit_square
        assert pick.index == 1
        assert pick.vertex is unit_square.vertices[1]
        assert pick.distance == pytest.approx(0.01)

    def test_outside_capture_radius(self, level):
        assert level.nearest_vertex(Vector(3, 3), capture_radius=0.05) is None

    def test_default_capture_radius(self, level, monkeypatch):
        assert level.nearest_vertex(Vector(1.01, 0)) is not None
        monkeypatch.setattr(config, "editor_settings", config.EditorSettings(capture_radius=0.001))
        assert level.nearest_vertex(Vector(1.01, 0)) is None

    def test_empty_level(self):
        assert Level().nearest_vertex(Vector(0, 0)) is None
        assert Level().nearest_polygon(Vector(0, 0)) is None

    def test_nearest_polygon(self, level, far_square):
        assert level.nearest_polygon(Vector(4.5, 5.5)) is far_square

    def test_polygon_at(self, level, unit_square, far_square):
        assert level.polygon_at(Vector(0.5, 0.01)) is unit_square
        assert level.polygon_at(Vector(4.5, 5.5)) is None
        assert level.polygon_at(Vector(4.5, 5.5), capture_radius=1) is far_square


class TestMoveSelected:
    def test_moves_only_selected(self, level, unit_square, far_square):
        unit_square.vertices[1].mark = VectorMark.SELECTED
        assert level.move_selected(Vector(0.5, 0))
        assert coordinates(unit_square) == [(0, 0), (1.5, 0), (1, 1), (0, 1)]
        assert coordinates(far_square) == [(5, 5), (6, 5), (6, 6), (5, 6)]

    def test_selection_survives(self, level, unit_square):
        unit_square.vertices[1].mark = VectorMark.SELECTED
        level.move_selected(Vector(0.5, 0))
        assert level.selected_vertices() == [unit_square.vertices[1]]
        assert get_mark_default() == VectorMark.NONE

    def test_redecomposes_moved_polygon(self, level, unit_square):
        unit_square.vertices[2].mark = VectorMark.SELECTED
        level.move_selected(Vector(1, 1))
        assert unit_square._decomposition is not None
        assert unit_square.signed_area == pytest.approx(2.0)

    def test_nothing_selected(self, level):
        assert not level.move_selected(Vector(1, 0))

    def test_zero_delta(self, level, unit_square):
        unit_square.vertices[0].mark = VectorMark.SELECTED
        assert not level.move_selected(Vector(0, 0))


class TestCombine:
    def test_union_replaces_operands(self, unit_square, shifted_square, far_square):
        level = Level([unit_square, far_square, shifted_square])
        result = level.combine(unit_square, shifted_square, PolygonOperationType.UNION)
        assert len(result) == 1
        assert level.polygons == [result[0], far_square]
        assert abs(result[0].signed_area) == pytest.approx(1.5)

    def test_error_leaves_level_unchanged(self, unit_square, bowtie):
        level = Level([unit_square, bowtie])
        with pytest.raises(InvalidOperandError):
            level.combine(unit_square, bowtie, PolygonOperationType.UNION)
        assert level.polygons == [unit_square, bowtie]

    def test_combine_with_itself(self, level, unit_square, far_square):
        with pytest.raises(InvalidOperandError):
            level.combine(unit_square, unit_square, PolygonOperationType.UNION)
        assert level.polygons == [unit_square, far_square]

    def test_empty_result_removes_operands(self, level, unit_square, far_square):
        assert level.combine(unit_square, far_square, PolygonOperationType.INTERSECTION) == []
        assert level.polygons == []


class TestCut:
    def test_cut_replaces_polygon(self, level, unit_square, far_square):
        assert level.cut(unit_square, Vector(0.5, -1), Vector(0.5, 2), 0.01)
        assert len(level.polygons) == 3
        assert level.polygons[-1] is far_square
        assert coordinates(level.polygons[0]) == pytest.approx([(0, 0), (0.49, 0), (0.49, 1), (0, 1)])

    def test_default_cut_radius(self, level):
        assert level.cut(level.polygons[0], Vector(0.5, -1), Vector(0.5, 2))
        assert level.polygons[0].x_max == pytest.approx(0.5 - config.editor_settings.cut_radius)

    def test_missed_cut(self, level, unit_square):
        assert not level.cut(unit_square, Vector(0.5, 0.2), Vector(0.5, 0.8))
        assert level.polygons[0] is unit_square
