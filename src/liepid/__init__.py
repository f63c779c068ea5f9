"""
PID feedback control for systems whose state lives on a Lie group.

Modules within `liepid` expose:
  - group/tangent algebra for R^n, SO(2), SO(3) and SE(3)
  - piecewise geodesic reference curves
  - the PID controller and trajectory helpers
  - configuration records for gains and anti-windup

The controller only relies on the group difference and tangent-space
arithmetic, so new state spaces can be added without touching control code.
"""

__all__ = [
    "config",
    "control",
    "lie",
    "spline",
]
