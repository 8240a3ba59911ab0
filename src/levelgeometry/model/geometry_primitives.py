"""
Geometric Primitives for the level editor.
"""
from __future__ import annotations
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Tuple, TYPE_CHECKING
import math
import numpy as np

from levelgeometry.config import DEG_TO_RAD, RAD_TO_DEG

if TYPE_CHECKING:
    import numpy.typing as npt


class VectorMark(Enum):
    """Selection state of a single vertex, set freely by the editing tools."""
    NONE = 0
    HIGHLIGHT = 1
    SELECTED = 2


_default_mark: ContextVar[VectorMark] = ContextVar("default_vector_mark", default=VectorMark.NONE)


def get_mark_default() -> VectorMark:
    """Mark given to vectors created without an explicit one."""
    return _default_mark.get()


@contextmanager
def mark_default(mark: VectorMark) -> Iterator[None]:
    """
    Scope in which newly created or cloned vectors receive `mark`.

    The previous default is restored on every exit path, including exceptions.

    Example:
        with mark_default(VectorMark.SELECTED):
            vertex = vertex + delta   # the moved vertex stays selected
    """
    token = _default_mark.set(mark)
    try:
        yield
    finally:
        _default_mark.reset(token)


@dataclass(eq=False)
class Vector:
    """
    A 2D point or direction with a selection mark.

    Equality compares coordinates only; the mark is UI state, not identity.
    """
    x: float
    y: float
    mark: VectorMark = field(default_factory=get_mark_default)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    __hash__ = None  # mutable

    def __add__(self, other: Vector) -> Vector:
        return Vector(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector) -> Vector:
        return Vector(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vector:
        return Vector(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Vector:
        if scalar == 0.0: raise ZeroDivisionError
        return Vector(self.x / scalar, self.y / scalar)

    def __neg__(self) -> Vector:
        return Vector(-self.x, -self.y)

    @property
    def length(self) -> float:
        return math.sqrt(self.x**2 + self.y**2)

    @property
    def length_squared(self) -> float:
        return self.x**2 + self.y**2

    def normalize(self) -> Vector:
        length = self.length
        if length == 0.0: return Vector(0.0, 0.0)
        return self / length

    def dot(self, other: Vector) -> float:
        return self.x * other.x + self.y * other.y

    def cross(self, other: Vector) -> float:
        """Z component of the 3D cross product."""
        return self.x * other.y - self.y * other.x

    def angle_between(self, other: Vector) -> float:
        """
        Signed angle in degrees from this vector to `other`, in (-180, 180].

        Positive values mean a counter-clockwise (left) turn.
        """
        return math.atan2(self.cross(other), self.dot(other)) * RAD_TO_DEG

    def clone(self, mark: Optional[VectorMark] = None) -> Vector:
        """Copy of the coordinates; the mark is `mark` or the scoped default."""
        if mark is None:
            return Vector(self.x, self.y)
        return Vector(self.x, self.y, mark)

    def to_tuple(self) -> Tuple[float, float]:
        return self.x, self.y

    def to_array(self) -> npt.NDArray[np.float64]:
        return np.array([self.x, self.y])


@dataclass(frozen=True)
class Matrix:
    """
    Immutable 2x3 affine transform.

        x' = m11 * x + m12 * y + dx
        y' = m21 * x + m22 * y + dy

    `a @ b` is the transform that applies `b` first, then `a`.
    """
    m11: float = 1.0
    m12: float = 0.0
    m21: float = 0.0
    m22: float = 1.0
    dx: float = 0.0
    dy: float = 0.0

    @staticmethod
    def identity() -> Matrix:
        return Matrix()

    @staticmethod
    def translation(dx: float, dy: float) -> Matrix:
        return Matrix(dx=dx, dy=dy)

    @staticmethod
    def rotation(degrees: float, center: Optional[Vector] = None) -> Matrix:
        """Counter-clockwise rotation around `center` (origin by default)."""
        angle = degrees * DEG_TO_RAD
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        rotation = Matrix(cos_a, -sin_a, sin_a, cos_a)
        return Matrix._around(rotation, center)

    @staticmethod
    def scaling(sx: float, sy: float, center: Optional[Vector] = None) -> Matrix:
        """Scale around `center`; negative factors mirror."""
        return Matrix._around(Matrix(sx, 0.0, 0.0, sy), center)

    @staticmethod
    def _around(linear: Matrix, center: Optional[Vector]) -> Matrix:
        if center is None:
            return linear
        return Matrix.translation(center.x, center.y) @ linear @ Matrix.translation(-center.x, -center.y)

    @staticmethod
    def from_array(array: npt.NDArray[np.float64]) -> Matrix:
        return Matrix(
            m11=float(array[0, 0]), m12=float(array[0, 1]),
            m21=float(array[1, 0]), m22=float(array[1, 1]),
            dx=float(array[0, 2]), dy=float(array[1, 2])
        )

    def to_array(self) -> npt.NDArray[np.float64]:
        """Homogeneous 3x3 representation."""
        return np.array([
            [self.m11, self.m12, self.dx],
            [self.m21, self.m22, self.dy],
            [0.0, 0.0, 1.0],
        ])

    def __matmul__(self, other: Matrix) -> Matrix:
        return Matrix.from_array(self.to_array() @ other.to_array())

    @property
    def determinant(self) -> float:
        return self.m11 * self.m22 - self.m12 * self.m21

    def inverse(self) -> Matrix:
        if abs(self.determinant) == 0.0:
            raise ValueError("Matrix is singular and cannot be inverted.")
        return Matrix.from_array(np.linalg.inv(self.to_array()))

    def transform(self, v: Vector) -> Vector:
        return Vector(
            self.m11 * v.x + self.m12 * v.y + self.dx,
            self.m21 * v.x + self.m22 * v.y + self.dy
        )
