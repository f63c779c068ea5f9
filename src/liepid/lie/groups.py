from __future__ import annotations

import functools
import math
from typing import ClassVar, Optional, Protocol, Type, TypeVar

import numpy as np

try:
    import pinocchio as pin
except ImportError as exc:  # pragma: no cover - executed only without Pinocchio
    raise ImportError(
        "Pinocchio is required for liepid's SO3/SE3 groups. "
        "Install it with `pip install pin` before using the controller."
    ) from exc

G = TypeVar("G", bound="LieGroup")


class LieGroup(Protocol):
    """
    Capabilities a state space must offer to be controlled by `liepid.control.PID`.

    ``a - b`` is the right minus ``log(b^-1 a)`` and ``g + v`` the right plus
    ``g exp(v)``; tangent vectors are float arrays of shape ``(dof,)``.
    """

    dof: ClassVar[int]

    @classmethod
    def identity(cls: Type[G]) -> G: ...

    def __sub__(self, other: G) -> np.ndarray: ...

    def __add__(self: G, tangent: np.ndarray) -> G: ...

    def isapprox(self, other: G, tol: float = 1e-9) -> bool: ...


def _tangent(value, dof: int) -> np.ndarray:
    vec = np.atleast_1d(np.asarray(value, dtype=float))
    if vec.shape != (dof,):
        raise ValueError(f"Tangent vector must have shape ({dof},); got {vec.shape}")
    return vec


def _wrap_angle(angle: float) -> float:
    return math.atan2(math.sin(angle), math.cos(angle))


# --------------------------------------------------------------------------- Euclidean


class Euclidean:
    """
    Flat vector space R^n, the degenerate Lie group under addition.

    Use `euclidean(n)` (or the predefined `R1`, `R2`, `R3`) to obtain the
    class for a given dimension.
    """

    __slots__ = ("coeffs",)

    dof: ClassVar[int] = 0

    def __init__(self, coeffs) -> None:
        vec = np.atleast_1d(np.asarray(coeffs, dtype=float)).copy()
        if vec.shape != (self.dof,):
            raise ValueError(f"{type(self).__name__} expects {self.dof} coefficients; got shape {vec.shape}")
        self.coeffs = vec

    @classmethod
    def identity(cls):
        return cls(np.zeros(cls.dof, dtype=float))

    def __sub__(self, other):
        if not isinstance(other, type(self)):
            return NotImplemented
        return self.coeffs - other.coeffs

    def __add__(self, tangent):
        return type(self)(self.coeffs + _tangent(tangent, self.dof))

    def isapprox(self, other, tol: float = 1e-9) -> bool:
        return bool(np.linalg.norm(self - other) <= tol)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.coeffs.tolist()})"


@functools.lru_cache(maxsize=None)
def euclidean(dim: int) -> Type[Euclidean]:
    """Return the (cached) `Euclidean` subclass of dimension ``dim``."""
    if dim < 1:
        raise ValueError(f"Euclidean dimension must be >= 1; got {dim}")
    return type(f"R{dim}", (Euclidean,), {"__slots__": (), "dof": int(dim), "__module__": __name__})


R1 = euclidean(1)
R2 = euclidean(2)
R3 = euclidean(3)


# --------------------------------------------------------------------------- rotations


class SO2:
    """Planar rotation stored as an angle in (-pi, pi]."""

    __slots__ = ("angle",)

    dof: ClassVar[int] = 1

    def __init__(self, angle: float = 0.0) -> None:
        self.angle = _wrap_angle(float(angle))

    @classmethod
    def identity(cls) -> "SO2":
        return cls(0.0)

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> "SO2":
        mat = np.asarray(matrix, dtype=float)
        if mat.shape != (2, 2):
            raise ValueError(f"SO2 matrix must be 2x2; got shape {mat.shape}")
        return cls(math.atan2(mat[1, 0], mat[0, 0]))

    @property
    def matrix(self) -> np.ndarray:
        c, s = math.cos(self.angle), math.sin(self.angle)
        return np.array([[c, -s], [s, c]], dtype=float)

    def __sub__(self, other):
        if not isinstance(other, SO2):
            return NotImplemented
        return np.array([_wrap_angle(self.angle - other.angle)], dtype=float)

    def __add__(self, tangent) -> "SO2":
        return SO2(self.angle + float(_tangent(tangent, 1)[0]))

    def isapprox(self, other: "SO2", tol: float = 1e-9) -> bool:
        return bool(np.linalg.norm(self - other) <= tol)

    def __repr__(self) -> str:
        return f"SO2({self.angle!r})"


class SO3:
    """
    Spatial rotation stored as a rotation matrix.

    The exponential and logarithm come from Pinocchio (``exp3``/``log3``);
    tangent vectors are body-frame rotation vectors.
    """

    __slots__ = ("matrix",)

    dof: ClassVar[int] = 3

    def __init__(self, matrix: Optional[np.ndarray] = None) -> None:
        if matrix is None:
            mat = np.eye(3, dtype=float)
        else:
            mat = np.array(matrix, dtype=float)
        if mat.shape != (3, 3):
            raise ValueError(f"SO3 matrix must be 3x3; got shape {mat.shape}")
        if not np.allclose(mat.T @ mat, np.eye(3), atol=1e-6):
            raise ValueError("SO3 matrix must be orthonormal")
        if np.linalg.det(mat) <= 0.0:
            raise ValueError("SO3 matrix must have determinant +1")
        self.matrix = mat

    @classmethod
    def identity(cls) -> "SO3":
        return cls()

    @classmethod
    def exp(cls, tangent) -> "SO3":
        return cls(pin.exp3(_tangent(tangent, 3)))

    def log(self) -> np.ndarray:
        return np.asarray(pin.log3(self.matrix), dtype=float)

    def inverse(self) -> "SO3":
        return SO3(self.matrix.T)

    def __mul__(self, other):
        if not isinstance(other, SO3):
            return NotImplemented
        return SO3(self.matrix @ other.matrix)

    def __sub__(self, other):
        if not isinstance(other, SO3):
            return NotImplemented
        return np.asarray(pin.log3(other.matrix.T @ self.matrix), dtype=float)

    def __add__(self, tangent) -> "SO3":
        return SO3(self.matrix @ pin.exp3(_tangent(tangent, 3)))

    def isapprox(self, other: "SO3", tol: float = 1e-9) -> bool:
        return bool(np.linalg.norm(self - other) <= tol)

    def __repr__(self) -> str:
        return f"SO3(log={self.log().tolist()})"


# --------------------------------------------------------------------------- rigid body


class SE3:
    """
    Rigid-body pose backed by `pinocchio.SE3`.

    Tangent vectors follow Pinocchio's ``Motion`` ordering, ``[linear, angular]``,
    expressed in the body frame.
    """

    __slots__ = ("placement",)

    dof: ClassVar[int] = 6

    def __init__(self, rotation: Optional[np.ndarray] = None, translation: Optional[np.ndarray] = None) -> None:
        rot = SO3(rotation).matrix
        if translation is None:
            trans = np.zeros(3, dtype=float)
        else:
            trans = np.array(translation, dtype=float)
        if trans.shape != (3,):
            raise ValueError(f"SE3 translation must have shape (3,); got {trans.shape}")
        self.placement = pin.SE3(rot, trans)

    @classmethod
    def identity(cls) -> "SE3":
        return cls()

    @classmethod
    def from_placement(cls, placement) -> "SE3":
        return cls(placement.rotation, placement.translation)

    @classmethod
    def exp(cls, tangent) -> "SE3":
        return cls.from_placement(pin.exp6(_tangent(tangent, 6)))

    def log(self) -> np.ndarray:
        return np.asarray(pin.log6(self.placement).vector, dtype=float)

    @property
    def rotation(self) -> np.ndarray:
        return np.array(self.placement.rotation, dtype=float)

    @property
    def translation(self) -> np.ndarray:
        return np.array(self.placement.translation, dtype=float)

    def inverse(self) -> "SE3":
        return SE3.from_placement(self.placement.inverse())

    def __mul__(self, other):
        if not isinstance(other, SE3):
            return NotImplemented
        return SE3.from_placement(self.placement * other.placement)

    def __sub__(self, other):
        if not isinstance(other, SE3):
            return NotImplemented
        return np.asarray(pin.log6(other.placement.inverse() * self.placement).vector, dtype=float)

    def __add__(self, tangent) -> "SE3":
        return SE3.from_placement(self.placement * pin.exp6(_tangent(tangent, 6)))

    def isapprox(self, other: "SE3", tol: float = 1e-9) -> bool:
        return bool(np.linalg.norm(self - other) <= tol)

    def __repr__(self) -> str:
        return f"SE3(translation={self.translation.tolist()}, rotation_log={pin.log3(self.rotation).tolist()})"


__all__ = [
    "LieGroup",
    "Euclidean",
    "euclidean",
    "R1",
    "R2",
    "R3",
    "SO2",
    "SO3",
    "SE3",
]
