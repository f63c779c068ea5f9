from __future__ import annotations

import copy
import datetime
import logging
import math

import numpy as np
import pytest

from liepid.config import PIDGains, PIDParams
from liepid.control import PID, constant_trajectory
from liepid.lie import R1, R3, SE3, SO3
from liepid.spline import Curve


def _constant(position, velocity=None, acceleration=None):
    return constant_trajectory(position, velocity, acceleration)


def test_defaults():
    pid = PID(R3)
    np.testing.assert_array_equal(pid.kp, np.ones(3))
    np.testing.assert_array_equal(pid.kd, np.ones(3))
    np.testing.assert_array_equal(pid.ki, np.zeros(3))
    np.testing.assert_array_equal(pid.integral, np.zeros(3))
    assert pid.t_last is None
    assert math.isinf(pid.params.windup_limit)


def test_default_trajectory_is_identity():
    pid = PID(SO3)
    g = SO3.exp([0.1, -0.2, 0.3])
    v = np.array([0.5, 0.0, -0.5])
    u = pid.evaluate(0.0, g, v)
    np.testing.assert_allclose(u, (SO3.identity() - g) - v)


def test_scenario_scalar_with_windup():
    pid = PID(R1, PIDParams(windup_limit=5.0))
    pid.set_kp(2.0)
    pid.set_kd(0.0)
    pid.set_ki(1.0)
    pid.set_xdes(_constant(R1(10.0)))

    g = R1(0.0)
    v = np.zeros(1)
    np.testing.assert_allclose(pid.evaluate(0.0, g, v), [20.0])
    np.testing.assert_allclose(pid.integral, [0.0])

    np.testing.assert_allclose(pid.evaluate(1.0, g, v), [25.0])
    np.testing.assert_allclose(pid.integral, [5.0])


@pytest.mark.parametrize("group", [R3, SO3, SE3])
def test_zero_error_gives_zero_command(group):
    target = group.identity() + np.linspace(0.1, 0.3, group.dof)
    velocity = np.linspace(-1.0, 1.0, group.dof)
    pid = PID(group, gains=PIDGains(kp=3.0, kd=2.0, ki=0.5))
    pid.set_xdes(_constant(target, velocity))

    for t in (0.0, 0.5, 1.0):
        u = pid.evaluate(t, target, velocity)
        np.testing.assert_allclose(u, np.zeros(group.dof), atol=1e-9)


def test_proportional_only_ignores_history():
    pid = PID(R3)
    pid.set_kp([1.0, 2.0, 3.0])
    pid.set_kd(0.0)
    pid.set_xdes(_constant(R3([1.0, 1.0, 1.0])))

    g = R3([0.0, 0.5, 2.0])
    expected = np.array([1.0, 2.0, 3.0]) * np.array([1.0, 0.5, -1.0])
    for t in (0.0, 3.0, 1.0, 7.5):
        np.testing.assert_allclose(pid.evaluate(t, g, np.ones(3)), expected)


def test_integral_accumulates_over_elapsed_time():
    pid = PID(R3)
    pid.set_kp(0.0)
    pid.set_kd(0.0)
    pid.set_ki([1.0, 2.0, 0.5])
    pid.set_xdes(_constant(R3([1.0, -2.0, 4.0])))

    g = R3.identity()
    v = np.zeros(3)
    np.testing.assert_allclose(pid.evaluate(10.0, g, v), np.zeros(3))

    u = pid.evaluate(10.25, g, v)
    error = np.array([1.0, -2.0, 4.0])
    np.testing.assert_allclose(u, np.array([1.0, 2.0, 0.5]) * error * 0.25)
    np.testing.assert_allclose(pid.integral, error * 0.25)


def test_first_call_contributes_no_integral():
    pid = PID(R1)
    pid.set_ki(1.0)
    pid.set_kp(0.0)
    pid.set_xdes(_constant(R1(3.0)))
    u = pid.evaluate(1000.0, R1(0.0), np.zeros(1))
    np.testing.assert_allclose(u, [0.0])
    assert pid.t_last == 1000.0


def test_windup_clamp_is_elementwise():
    pid = PID(R3, PIDParams(windup_limit=1.0))
    pid.set_xdes(_constant(R3([10.0, -10.0, 0.1])))
    g = R3.identity()
    v = np.zeros(3)

    for t in np.arange(0.0, 2.0, 0.1):
        pid.evaluate(t, g, v)

    integral = pid.integral
    assert integral[0] == 1.0
    assert integral[1] == -1.0
    np.testing.assert_allclose(integral[2], 0.1 * 1.9)
    assert np.all(np.abs(integral) <= 1.0)


def test_non_increasing_time_skips_integral():
    pid = PID(R1)
    pid.set_xdes(_constant(R1(1.0)))
    g = R1(0.0)
    v = np.zeros(1)

    pid.evaluate(0.0, g, v)
    pid.evaluate(2.0, g, v)
    np.testing.assert_allclose(pid.integral, [2.0])

    pid.evaluate(2.0, g, v)
    np.testing.assert_allclose(pid.integral, [2.0])

    pid.evaluate(1.0, g, v)
    np.testing.assert_allclose(pid.integral, [2.0])
    assert pid.t_last == 1.0

    # dt is measured from the last recorded call, not the latest time seen
    pid.evaluate(1.5, g, v)
    np.testing.assert_allclose(pid.integral, [2.5])


def test_non_increasing_time_is_logged(caplog):
    pid = PID(R1)
    with caplog.at_level(logging.DEBUG, logger="liepid.control.pid"):
        pid.evaluate(1.0, R1(0.0), np.zeros(1))
        pid.evaluate(1.0, R1(0.0), np.zeros(1))
    assert any("skipping integral update" in record.getMessage() for record in caplog.records)


def test_trajectory_replacement_takes_effect_immediately():
    pid = PID(R1)
    pid.set_kd(0.0)
    pid.set_xdes(_constant(R1(5.0), acceleration=[100.0]))
    np.testing.assert_allclose(pid.evaluate(0.0, R1(0.0), np.zeros(1)), [105.0])

    pid.set_xdes(_constant(R1(-1.0)))
    np.testing.assert_allclose(pid.evaluate(0.0, R1(0.0), np.zeros(1)), [-1.0])


def test_reset_integral():
    pid = PID(R1)
    pid.set_ki(2.0)
    pid.set_xdes(_constant(R1(1.0), velocity=[0.5], acceleration=[0.25]))
    g = R1(0.0)
    v = np.zeros(1)

    pid.evaluate(0.0, g, v)
    pid.evaluate(1.0, g, v)
    assert pid.integral[0] == pytest.approx(1.0)

    pid.reset_integral()
    pid.reset_integral()
    np.testing.assert_array_equal(pid.integral, [0.0])
    assert pid.t_last == 1.0

    u = pid.evaluate(1.0, g, v)
    np.testing.assert_allclose(u, [0.25 + 1.0 + 0.5])


def test_gain_vector_and_scalar_forms():
    pid = PID(SE3)
    pid.set_kp(4.0)
    np.testing.assert_array_equal(pid.kp, np.full(6, 4.0))
    gains = np.arange(6, dtype=float)
    pid.set_kd(gains)
    gains[0] = 99.0
    np.testing.assert_array_equal(pid.kd, np.arange(6, dtype=float))


def test_gains_from_config():
    pid = PID(R3, gains=PIDGains(kp=[1.0, 2.0, 3.0], kd=0.5, ki=0.1))
    np.testing.assert_array_equal(pid.kp, [1.0, 2.0, 3.0])
    np.testing.assert_array_equal(pid.kd, np.full(3, 0.5))
    np.testing.assert_array_equal(pid.ki, np.full(3, 0.1))


def test_copies_are_independent():
    pid = PID(R1)
    pid.set_xdes(_constant(R1(1.0)))
    pid.evaluate(0.0, R1(0.0), np.zeros(1))
    pid.evaluate(1.0, R1(0.0), np.zeros(1))

    for clone in (pid.copy(), copy.copy(pid), copy.deepcopy(pid)):
        np.testing.assert_allclose(clone.integral, pid.integral)
        assert clone.t_last == pid.t_last

        clone.evaluate(3.0, R1(0.0), np.zeros(1))
        clone.set_kp(7.0)
        np.testing.assert_allclose(pid.integral, [1.0])
        np.testing.assert_array_equal(pid.kp, [1.0])
        assert pid.t_last == 1.0

    pid.reset_integral()
    clone = pid.copy()
    pid.evaluate(2.0, R1(0.0), np.zeros(1))
    np.testing.assert_array_equal(clone.integral, [0.0])


def test_datetime_timestamps():
    pid = PID(R1)
    pid.set_kp(0.0)
    pid.set_kd(0.0)
    pid.set_ki(1.0)
    pid.set_xdes(_constant(R1(2.0)))
    start = datetime.datetime(2024, 1, 1, 12, 0, 0)

    pid.evaluate(start, R1(0.0), np.zeros(1))
    u = pid.evaluate(start + datetime.timedelta(milliseconds=500), R1(0.0), np.zeros(1))
    np.testing.assert_allclose(u, [1.0])


def test_numpy_datetime_timestamps():
    pid = PID(R1)
    pid.set_xdes(_constant(R1(1.0)))
    t0 = np.datetime64("2024-01-01T00:00:00.000")
    pid.evaluate(t0, R1(0.0), np.zeros(1))
    pid.evaluate(t0 + np.timedelta64(250, "ms"), R1(0.0), np.zeros(1))
    np.testing.assert_allclose(pid.integral, [0.25])


def test_curve_reference_with_time_offset():
    curve = Curve(R1)
    curve.add_segment([2.0], 2.0, profile="linear")
    pid = PID(R1)
    pid.set_kd(0.0)
    pid.set_xdes_curve(datetime.timedelta(seconds=10), curve)

    # at t = 11s the curve is halfway: position 1, velocity 1
    u = pid.evaluate(datetime.timedelta(seconds=11), R1(0.0), np.zeros(1))
    np.testing.assert_allclose(u, [1.0])

    pid.set_kd(1.0)
    u = pid.evaluate(datetime.timedelta(seconds=11), R1(1.0), np.zeros(1))
    np.testing.assert_allclose(u, [1.0])


def test_so3_error_is_body_frame_log():
    target = SO3.exp([0.0, 0.0, 0.4])
    current = SO3.exp([0.0, 0.0, 0.1])
    pid = PID(SO3)
    pid.set_kd(0.0)
    pid.set_xdes(_constant(target))
    np.testing.assert_allclose(pid.evaluate(0.0, current, np.zeros(3)), [0.0, 0.0, 0.3], atol=1e-12)


def test_closed_loop_converges_on_se3():
    target = SE3.exp([0.5, -0.2, 0.3, 0.2, -0.1, 0.4])
    pid = PID(SE3, gains=PIDGains(kp=4.0, kd=4.0, ki=0.0))
    pid.set_xdes(_constant(target))

    g = SE3.identity()
    v = np.zeros(6)
    dt = 0.01
    for step in range(800):
        u = pid.evaluate(step * dt, g, v)
        g = g + v * dt
        v = v + u * dt

    assert np.linalg.norm(target - g) < 1e-2


def test_curve_reference_is_captured_by_value():
    curve = Curve(R1)
    curve.add_segment([2.0], 2.0)
    pid = PID(R1)
    pid.set_xdes_curve(0.0, curve)

    curve.add_segment([100.0], 1.0)
    np.testing.assert_allclose(pid.evaluate(5.0, R1(0.0), np.zeros(1)), [2.0])

    clone = pid.copy()
    curve.add_segment([-50.0], 1.0)
    np.testing.assert_allclose(clone.evaluate(6.0, R1(0.0), np.zeros(1)), [2.0])


def test_zero_dimensional_array_gain_is_broadcast():
    pid = PID(R3)
    pid.set_kp(np.array(2.0))
    pid.set_ki(np.float64(0.5))
    assert pid.kp.shape == (3,)
    np.testing.assert_array_equal(pid.kp, np.full(3, 2.0))
    np.testing.assert_array_equal(pid.ki, np.full(3, 0.5))
