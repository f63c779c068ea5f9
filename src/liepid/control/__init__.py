"""Control-layer exports."""

from .pid import PID
from .trajectory import (
    Trajectory,
    TrajectoryReturn,
    constant_trajectory,
    curve_trajectory,
    identity_trajectory,
    to_seconds,
)

__all__ = [
    "PID",
    "Trajectory",
    "TrajectoryReturn",
    "constant_trajectory",
    "curve_trajectory",
    "identity_trajectory",
    "to_seconds",
]
