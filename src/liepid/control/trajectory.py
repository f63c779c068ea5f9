from __future__ import annotations

import datetime
from typing import Any, Callable, Optional, Tuple, Type

import numpy as np

from liepid.lie.groups import LieGroup
from liepid.spline.curve import Curve

# A desired trajectory returns position, velocity and acceleration.
TrajectoryReturn = Tuple[LieGroup, np.ndarray, np.ndarray]
Trajectory = Callable[[Any], TrajectoryReturn]


def to_seconds(delta: Any) -> float:
    """
    Express a time difference as float seconds.

    Accepts plain numbers (already in seconds), `datetime.timedelta` and
    `numpy.timedelta64`.
    """
    if isinstance(delta, datetime.timedelta):
        return delta.total_seconds()
    if isinstance(delta, np.timedelta64):
        return float(delta / np.timedelta64(1, "s"))
    return float(delta)


def identity_trajectory(group: Type[LieGroup]) -> Trajectory:
    """Hold the group identity with zero velocity and acceleration."""
    return constant_trajectory(group.identity())


def constant_trajectory(
    position: LieGroup,
    velocity: Optional[np.ndarray] = None,
    acceleration: Optional[np.ndarray] = None,
) -> Trajectory:
    dof = type(position).dof
    vel = np.zeros(dof, dtype=float) if velocity is None else np.atleast_1d(np.asarray(velocity, dtype=float))
    acc = np.zeros(dof, dtype=float) if acceleration is None else np.atleast_1d(np.asarray(acceleration, dtype=float))

    def trajectory(t: Any) -> TrajectoryReturn:
        return position, vel.copy(), acc.copy()

    return trajectory


def curve_trajectory(t0: Any, curve: Curve) -> Trajectory:
    """
    Track ``curve`` starting at time ``t0``.

    The desired state at time ``t`` is the curve evaluated at ``t - t0``
    seconds.  The curve is copied, so later edits to ``curve`` do not change
    the returned trajectory.
    """
    curve = curve.copy()

    def trajectory(t: Any) -> TrajectoryReturn:
        return curve.eval(to_seconds(t - t0))

    return trajectory


__all__ = [
    "TrajectoryReturn",
    "Trajectory",
    "to_seconds",
    "identity_trajectory",
    "constant_trajectory",
    "curve_trajectory",
]
