"""Reference curves on Lie groups."""

from .curve import PROFILES, Curve, CurveSegment

__all__ = ["Curve", "CurveSegment", "PROFILES"]
