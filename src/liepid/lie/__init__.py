"""Lie group state spaces understood by the controller."""

from .groups import R1, R2, R3, SE3, SO2, SO3, Euclidean, LieGroup, euclidean

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
