"""
Configuration helpers and defaults for the Lie group PID controller.

The controller carries three per-axis gain vectors and a single scalar
anti-windup limit shared by every tangent component.  The records below keep
those values together so that callers can build them once (for instance from
environment variables or a command line) and hand them to `liepid.control.PID`.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Optional, Sequence, Union

GainValue = Union[float, Sequence[float]]


@dataclass(frozen=True)
class PIDParams:
    """Parameters for the PID controller."""

    # maximal absolute value for the integral states
    windup_limit: float = math.inf

    def __post_init__(self) -> None:
        limit = float(self.windup_limit)
        if math.isnan(limit) or limit < 0.0:
            raise ValueError(f"windup_limit must be non-negative; got {self.windup_limit!r}")
        object.__setattr__(self, "windup_limit", limit)


@dataclass(frozen=True)
class PIDGains:
    """
    Proportional, derivative and integral gains.

    Each gain is either a scalar (applied to every tangent component) or a
    sequence with one entry per tangent component.
    """

    kp: GainValue = 1.0
    kd: GainValue = 1.0
    ki: GainValue = 0.0


# --------------------------------------------------------------------------- defaults

WINDUP_LIMIT_ENV = "LIEPID_WINDUP_LIMIT"
GAIN_ENV = {"kp": "LIEPID_KP", "kd": "LIEPID_KD", "ki": "LIEPID_KI"}


def _env_float(name: str) -> Optional[float]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name}={raw!r} is not a number") from exc


def build_default_params() -> PIDParams:
    """
    Construct the controller parameters, honouring ``LIEPID_WINDUP_LIMIT``.

    Returns:
        PIDParams: unbounded windup limit unless the environment sets one.
    """

    limit = _env_float(WINDUP_LIMIT_ENV)
    if limit is None:
        return PIDParams()
    return PIDParams(windup_limit=limit)


def build_default_gains() -> PIDGains:
    """
    Construct scalar gains, honouring ``LIEPID_KP``, ``LIEPID_KD`` and ``LIEPID_KI``.
    """

    defaults = PIDGains()
    values = {}
    for field_name, env_name in GAIN_ENV.items():
        value = _env_float(env_name)
        values[field_name] = getattr(defaults, field_name) if value is None else value
    return PIDGains(**values)


__all__ = [
    "GainValue",
    "PIDParams",
    "PIDGains",
    "WINDUP_LIMIT_ENV",
    "GAIN_ENV",
    "build_default_params",
    "build_default_gains",
]
