#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
import math
import sys
from pathlib import Path


def _ensure_src_on_path() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    if str(src_dir) not in sys.path:
        sys.path.insert(0, str(src_dir))


_ensure_src_on_path()

import numpy as np

from liepid.config import PIDGains, PIDParams, build_default_gains, build_default_params
from liepid.control import PID
from liepid.lie import R3, SE3, SO3
from liepid.spline import Curve

LOG = logging.getLogger("run_pid_tracking")


def _reference_curve(group: str, profile: str) -> Curve:
    if group == "r3":
        waypoints = [R3([0.0, 0.0, 0.0]), R3([1.0, 0.0, 0.5]), R3([1.0, 1.0, 1.0])]
    elif group == "so3":
        waypoints = [
            SO3.identity(),
            SO3.exp([0.0, 0.0, math.pi / 2]),
            SO3.exp([math.pi / 4, 0.0, math.pi / 2]),
        ]
    else:
        waypoints = [
            SE3.identity(),
            SE3.exp([1.0, 0.0, 0.0, 0.0, 0.0, math.pi / 2]),
            SE3.exp([1.0, 0.5, 0.2, 0.0, 0.3, math.pi / 2]),
        ]
    return Curve.fit([0.0, 2.0, 4.0], waypoints, profile=profile)


def parse_args() -> argparse.Namespace:
    defaults = build_default_gains()
    params = build_default_params()
    parser = argparse.ArgumentParser(
        description="Track a reference curve with the Lie group PID controller on a simulated double integrator.",
    )
    parser.add_argument("--group", choices=["r3", "so3", "se3"], default="se3", help="State space of the plant.")
    parser.add_argument("--profile", choices=["linear", "minimum_jerk"], default="minimum_jerk", help="Curve time scaling.")
    parser.add_argument("--kp", type=float, default=defaults.kp, help="Proportional gain (all axes).")
    parser.add_argument("--kd", type=float, default=defaults.kd, help="Derivative gain (all axes).")
    parser.add_argument("--ki", type=float, default=defaults.ki, help="Integral gain (all axes).")
    parser.add_argument("--windup-limit", type=float, default=params.windup_limit, help="Integral clamp per axis.")
    parser.add_argument("--rate-hz", type=float, default=100.0, help="Controller update frequency.")
    parser.add_argument("--duration", type=float, default=6.0, help="Simulated seconds.")
    parser.add_argument("--log-every", type=int, default=50, help="Report tracking error every N steps.")
    parser.add_argument("--log-level", default="INFO", help="Python logging level (DEBUG, INFO, ...).")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    curve = _reference_curve(args.group, args.profile)
    controller = PID(
        curve.group,
        params=PIDParams(windup_limit=args.windup_limit),
        gains=PIDGains(kp=args.kp, kd=args.kd, ki=args.ki),
    )
    controller.set_xdes_curve(0.0, curve)

    dt = 1.0 / args.rate_hz
    steps = int(round(args.duration / dt))

    # start off the reference so the feedback has something to correct
    g = curve.start + np.full(curve.group.dof, 0.1)
    v = np.zeros(curve.group.dof, dtype=float)

    LOG.info("Tracking %s curve (%d segments, %.1f s) at %.1f Hz", args.group, len(curve), curve.t_max, args.rate_hz)
    error_norm = float("nan")
    for step in range(steps + 1):
        t = step * dt
        u = controller(t, g, v)

        g_des, _, _ = curve.eval(t)
        error_norm = float(np.linalg.norm(g_des - g))
        if args.log_every > 0 and step % args.log_every == 0:
            LOG.info("t=%.2fs  |g_des - g|=%.4f  |u|=%.3f", t, error_norm, float(np.linalg.norm(u)))

        # explicit Euler step of the double integrator
        g = g + v * dt
        v = v + u * dt

    LOG.info("Final tracking error %.5f, integral %s", error_norm, np.array2string(controller.integral, precision=4))


if __name__ == "__main__":
    main()
