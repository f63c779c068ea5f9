from __future__ import annotations

import bisect
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Type

import numpy as np

from liepid.lie.groups import LieGroup

# Time scalings s(tau) on [0, 1] returning (s, ds/dtau, d2s/dtau2).
Profile = Callable[[float], Tuple[float, float, float]]


def _linear(tau: float) -> Tuple[float, float, float]:
    return tau, 1.0, 0.0


def _minimum_jerk(tau: float) -> Tuple[float, float, float]:
    tau2 = tau * tau
    tau3 = tau2 * tau
    s = 10.0 * tau3 - 15.0 * tau3 * tau + 6.0 * tau3 * tau2
    ds = 30.0 * tau2 - 60.0 * tau3 + 30.0 * tau3 * tau
    dds = 60.0 * tau - 180.0 * tau2 + 120.0 * tau3
    return s, ds, dds


PROFILES: Dict[str, Profile] = {
    "linear": _linear,
    "minimum_jerk": _minimum_jerk,
}


@dataclass(frozen=True)
class CurveSegment:
    """Geodesic piece ``start * exp(s(tau) * delta)`` lasting ``duration`` seconds."""

    start: LieGroup
    delta: np.ndarray
    duration: float
    profile: str


class Curve:
    """
    Piecewise geodesic curve on a Lie group.

    Each segment moves along the one-parameter subgroup ``g_i exp(s(tau) d_i)``
    with ``tau = (t - t_i) / T_i`` and a time scaling ``s`` chosen per segment
    (``"linear"`` or ``"minimum_jerk"``).  Because the motion stays on a
    one-parameter subgroup, body velocity ``s'/T d`` and acceleration
    ``s''/T^2 d`` are exact.

    The curve starts at time 0.  Queries before 0 or past `t_max` hold the
    start or end element with zero velocity and acceleration.  Evaluation has
    no side effects, so the curve may be queried in any order.
    """

    def __init__(self, group: Type[LieGroup], start: Optional[LieGroup] = None) -> None:
        self.group = group
        self._start = group.identity() if start is None else start
        self._end = self._start
        self._segments: List[CurveSegment] = []
        self._end_times: List[float] = []

    @classmethod
    def fit(
        cls,
        times: Sequence[float],
        waypoints: Sequence[LieGroup],
        profile: str = "linear",
    ) -> "Curve":
        """
        Build a curve through ``waypoints`` reached at ``times``.

        The first waypoint is the curve start; ``times[0]`` maps to curve time 0.
        """
        if len(times) != len(waypoints):
            raise ValueError(f"Got {len(times)} times for {len(waypoints)} waypoints")
        if not waypoints:
            raise ValueError("Curve.fit needs at least one waypoint")
        curve = cls(type(waypoints[0]), waypoints[0])
        for t_prev, t_next, waypoint in zip(times[:-1], times[1:], waypoints[1:]):
            curve.add_waypoint(waypoint, float(t_next) - float(t_prev), profile)
        return curve

    def copy(self) -> "Curve":
        """Return an independent curve; later edits to either one do not affect the other."""
        other = type(self)(self.group, self._start)
        other._end = self._end
        other._segments = [replace(segment, delta=segment.delta.copy()) for segment in self._segments]
        other._end_times = list(self._end_times)
        return other

    __copy__ = copy

    # ------------------------------------------------------------------ building
    def add_segment(self, delta, duration: float, profile: str = "linear") -> None:
        """Append a segment moving by tangent ``delta`` in ``duration`` seconds."""
        if profile not in PROFILES:
            raise KeyError(f"Unknown time-scaling profile '{profile}'")
        duration = float(duration)
        if not duration > 0.0:
            raise ValueError(f"Segment duration must be positive; got {duration}")
        vec = np.atleast_1d(np.asarray(delta, dtype=float)).copy()
        if vec.shape != (self.group.dof,):
            raise ValueError(f"Segment delta must have shape ({self.group.dof},); got {vec.shape}")

        segment = CurveSegment(start=self._end, delta=vec, duration=duration, profile=profile)
        self._segments.append(segment)
        self._end_times.append(self.t_max + duration)
        self._end = self._end + vec

    def add_waypoint(self, waypoint: LieGroup, duration: float, profile: str = "linear") -> None:
        """Append a segment from the current end to ``waypoint``."""
        self.add_segment(waypoint - self._end, duration, profile)

    # ------------------------------------------------------------------ queries
    @property
    def t_min(self) -> float:
        return 0.0

    @property
    def t_max(self) -> float:
        return self._end_times[-1] if self._end_times else 0.0

    @property
    def start(self) -> LieGroup:
        return self._start

    @property
    def end(self) -> LieGroup:
        return self._end

    @property
    def segments(self) -> Tuple[CurveSegment, ...]:
        return tuple(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def eval(self, t: float) -> Tuple[LieGroup, np.ndarray, np.ndarray]:
        """
        Evaluate the curve.

        Args:
            t: curve time in seconds.

        Returns:
            (position, body velocity, body acceleration)
        """
        zero = np.zeros(self.group.dof, dtype=float)
        t = float(t)
        if not self._segments or t < 0.0:
            return self._start, zero, zero.copy()
        if t > self.t_max:
            return self._end, zero, zero.copy()

        # t == t_max evaluates the last segment at tau = 1
        idx = min(bisect.bisect_right(self._end_times, t), len(self._segments) - 1)
        segment = self._segments[idx]
        t_begin = self._end_times[idx - 1] if idx > 0 else 0.0
        tau = (t - t_begin) / segment.duration

        s, ds, dds = PROFILES[segment.profile](tau)
        position = segment.start + s * segment.delta
        velocity = (ds / segment.duration) * segment.delta
        acceleration = (dds / segment.duration**2) * segment.delta
        return position, velocity, acceleration

    __call__ = eval


__all__ = ["Curve", "CurveSegment", "PROFILES", "Profile"]
