from __future__ import annotations

import logging
from typing import Any, Optional, Type

import numpy as np

from liepid.config import GainValue, PIDGains, PIDParams
from liepid.control.trajectory import Trajectory, curve_trajectory, identity_trajectory, to_seconds
from liepid.lie.groups import LieGroup
from liepid.spline.curve import Curve

LOG = logging.getLogger(__name__)


def _gain_vector(value: GainValue, dof: int) -> np.ndarray:
    if np.ndim(value) == 0:
        return np.full(dof, float(value), dtype=float)
    return np.array(value, dtype=float)


class PID:
    """
    Proportional-Integral-Derivative controller for Lie groups.

    The controlled system is a double integrator on the group ``G``,

        d^r x_t = v,    dv/dt = u,

    so the returned command ``u`` is the body acceleration.  Each call to
    `evaluate` compares the state against the desired trajectory and returns

        a_des + kp * (g_des - g) + kd * (v_des - v) + ki * integral

    where products are elementwise and ``g_des - g`` is the group difference.

    The integral of the position error is only accumulated when a previous
    call exists and time has strictly advanced since it; it is clamped to
    ``[-windup_limit, windup_limit]`` on every axis.  Each call mutates the
    integral and the last timestamp, so one instance must be driven by a
    single control loop.

    Time values may be float seconds or any ordered type whose difference is a
    `datetime.timedelta` or `numpy.timedelta64`.
    """

    def __init__(
        self,
        group: Type[LieGroup],
        params: Optional[PIDParams] = None,
        gains: Optional[PIDGains] = None,
    ) -> None:
        self._group = group
        self._params = params or PIDParams()
        dof = group.dof

        # gains
        self._kp = np.ones(dof, dtype=float)
        self._kd = np.ones(dof, dtype=float)
        self._ki = np.zeros(dof, dtype=float)
        if gains is not None:
            self.set_kp(gains.kp)
            self.set_kd(gains.kd)
            self.set_ki(gains.ki)

        # integral state
        self._t_last: Optional[Any] = None
        self._i_err = np.zeros(dof, dtype=float)

        # desired trajectory
        self._x_des: Trajectory = identity_trajectory(group)

    def copy(self) -> "PID":
        """Return an independent controller with the same gains, integral and trajectory."""
        other = type(self).__new__(type(self))
        other.__dict__.update(
            {key: value.copy() if isinstance(value, np.ndarray) else value for key, value in self.__dict__.items()}
        )
        return other

    __copy__ = copy

    # ------------------------------------------------------------------ accessors
    @property
    def group(self) -> Type[LieGroup]:
        return self._group

    @property
    def params(self) -> PIDParams:
        return self._params

    @property
    def kp(self) -> np.ndarray:
        return self._kp.copy()

    @property
    def kd(self) -> np.ndarray:
        return self._kd.copy()

    @property
    def ki(self) -> np.ndarray:
        return self._ki.copy()

    @property
    def integral(self) -> np.ndarray:
        return self._i_err.copy()

    @property
    def t_last(self) -> Optional[Any]:
        return self._t_last

    # ------------------------------------------------------------------ gains
    def set_kp(self, kp: GainValue) -> None:
        """Set proportional gains; a scalar sets every component."""
        self._kp = _gain_vector(kp, self._group.dof)

    def set_kd(self, kd: GainValue) -> None:
        """Set derivative gains; a scalar sets every component."""
        self._kd = _gain_vector(kd, self._group.dof)

    def set_ki(self, ki: GainValue) -> None:
        """Set integral gains; a scalar sets every component."""
        self._ki = _gain_vector(ki, self._group.dof)

    def reset_integral(self) -> None:
        """Reset integral state to zero."""
        self._i_err[:] = 0.0

    # ------------------------------------------------------------------ trajectory
    def set_xdes(self, trajectory: Trajectory) -> None:
        """
        Set desired trajectory.

        The trajectory is a function from time to (position, velocity,
        acceleration).  For a constant reference the last two members can be
        zero.  To track a time-dependent reference consider `set_xdes_curve`.
        """
        self._x_des = trajectory
        LOG.debug("Desired trajectory replaced")

    def set_xdes_curve(self, t0: Any, curve: Curve) -> None:
        """
        Set desired trajectory from a curve.

        Args:
            t0: curve initial time, so the desired position at time t is curve(t - t0).
            curve: reference curve on the controlled group.
        """
        self.set_xdes(curve_trajectory(t0, curve))

    # ------------------------------------------------------------------ runtime
    def evaluate(self, t: Any, g: LieGroup, v) -> np.ndarray:
        """
        Calculate control input.

        Args:
            t: current time.
            g: current state.
            v: current body velocity.

        Returns:
            Body acceleration command of shape ``(dof,)``.
        """
        g_des, v_des, a_des = self._x_des(t)

        g_err = g_des - g

        if self._t_last is not None and t > self._t_last:
            # update integral state
            dt = to_seconds(t - self._t_last)
            limit = self._params.windup_limit
            self._i_err = np.clip(self._i_err + dt * g_err, -limit, limit)
        elif self._t_last is not None:
            LOG.debug("Time %r does not advance past %r; skipping integral update", t, self._t_last)
        self._t_last = t

        return (
            a_des
            + self._kp * g_err
            + self._kd * (v_des - np.asarray(v, dtype=float))
            + self._ki * self._i_err
        )

    __call__ = evaluate


__all__ = ["PID"]
