"""Adaptive embedded Runge-Kutta 5(4) integrator (Dormand-Prince tableau).

The solver is generic: it integrates any vector field
``func(t, state, params) -> d(state)/dt`` and knows nothing about ECGs.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Any, Callable, Sequence

import numpy as np

from src.ecg_system.exceptions import ConfigurationError, NumericalInstability

logger = logging.getLogger(__name__)

VectorField = Callable[[float, np.ndarray, Any], np.ndarray]

DEFAULT_TOLERANCE = 1e-6
DEFAULT_MIN_STEP = 1e-8
DEFAULT_MAX_STEP = 0.01

# Dormand-Prince nodes, stage weights and the 5th/4th order solution weights.
DP_C = np.array([0.0, 1 / 5, 3 / 10, 4 / 5, 8 / 9, 1.0, 1.0])
DP_A = np.array([
    [0.0, 0.0, 0.0, 0.0, 0.0, 0.0],
    [1 / 5, 0.0, 0.0, 0.0, 0.0, 0.0],
    [3 / 40, 9 / 40, 0.0, 0.0, 0.0, 0.0],
    [44 / 45, -56 / 15, 32 / 9, 0.0, 0.0, 0.0],
    [19372 / 6561, -25360 / 2187, 64448 / 6561, -212 / 729, 0.0, 0.0],
    [9017 / 3168, -355 / 33, 46732 / 5247, 49 / 176, -5103 / 18656, 0.0],
    [35 / 384, 0.0, 500 / 1113, 125 / 192, -2187 / 6784, 11 / 84],
])
DP_B5 = np.array([35 / 384, 0.0, 500 / 1113, 125 / 192, -2187 / 6784, 11 / 84, 0.0])
DP_B4 = np.array([
    5179 / 57600, 0.0, 7571 / 16695, 393 / 640, -92097 / 339200, 187 / 2100, 1 / 40,
])

# Step-size controller constants.
SAFETY = 0.9
MAX_GROWTH = 2.0
MIN_SHRINK = 0.1
GROW_EXPONENT = 0.2
SHRINK_EXPONENT = 0.25


@dataclass(frozen=True)
class Trajectory:
    """Ordered ``(time, state)`` samples produced by one integration run.

    Attributes:
        t: 1-D array of strictly increasing sample times.
        y: array of shape ``[len(t), n_states]``.
        accepted_steps: number of accepted adaptive steps.
        rejected_steps: number of rejected (retried) steps.
        forced_steps: steps accepted at the minimum step size with the
            error norm still above tolerance.
    """

    t: np.ndarray
    y: np.ndarray
    accepted_steps: int = 0
    rejected_steps: int = 0
    forced_steps: int = 0

    def __len__(self) -> int:
        return len(self.t)

    def component(self, index: int) -> np.ndarray:
        """Return one state component over time."""
        return self.y[:, index]


def rk45_step(
    func: VectorField,
    t: float,
    y: np.ndarray,
    h: float,
    params: Any = None,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Take one Dormand-Prince step of size *h* from ``(t, y)``.

    Returns:
        ``(y5, y4, error)`` where ``error = |y5 - y4|`` elementwise.
    """
    k = np.empty((7, y.shape[0]))
    k[0] = func(t, y, params)
    for i in range(1, 7):
        y_stage = y + h * (DP_A[i, :i] @ k[:i])
        k[i] = func(t + DP_C[i] * h, y_stage, params)

    y5 = y + h * (DP_B5 @ k)
    y4 = y + h * (DP_B4 @ k)
    return y5, y4, np.abs(y5 - y4)


def error_norm(error: np.ndarray) -> float:
    """Euclidean norm of the local error estimate divided by the state length."""
    return float(np.sqrt(np.sum(error * error)) / error.shape[0])


def uniform_grid(t0: float, tf: float, n_points: int) -> np.ndarray:
    """*n_points* equally spaced times covering ``[t0, tf]`` inclusive."""
    return t0 + np.arange(n_points) * ((tf - t0) / (n_points - 1))


def solve_ode(
    func: VectorField,
    initial_state: Sequence[float],
    t_span: tuple[float, float],
    n_points: int | None = None,
    params: Any = None,
    tolerance: float = DEFAULT_TOLERANCE,
    min_step: float = DEFAULT_MIN_STEP,
    max_step: float | None = None,
) -> Trajectory:
    """Integrate *func* over *t_span* with adaptive step-size control.

    A step is accepted when its error norm is below *tolerance* or when the
    step is already at *min_step*; the latter is counted as a forced step
    and reported with a :class:`NumericalInstability` warning.

    Args:
        func: vector field ``func(t, state, params)``.
        initial_state: state at ``t_span[0]``.
        t_span: ``(t0, tf)`` with ``tf > t0``.
        n_points: when given, the adaptive trajectory is linearly resampled
            onto this many uniform points over ``[t0, tf]``.
        params: opaque object passed through to *func*.
        tolerance: maximum accepted local error norm (must be > 0).
        min_step: lower bound on the step size.
        max_step: upper bound on the step size. Defaults to half the output
            spacing when *n_points* is set, otherwise ``DEFAULT_MAX_STEP``.

    Returns:
        :class:`Trajectory` on the adaptive grid, or on the uniform grid when
        *n_points* is given.

    Raises:
        ConfigurationError: on a non-positive tolerance, an empty time span,
            fewer than two requested points or inconsistent step bounds.
    """
    t0, tf = float(t_span[0]), float(t_span[1])
    if tolerance <= 0:
        raise ConfigurationError("tolerance", f"must be > 0, got {tolerance}")
    if tf <= t0:
        raise ConfigurationError("t_span", f"end {tf} must be after start {t0}")
    if n_points is not None and n_points < 2:
        raise ConfigurationError("n_points", f"need at least 2 output points, got {n_points}")
    if min_step <= 0:
        raise ConfigurationError("min_step", f"must be > 0, got {min_step}")

    if max_step is None:
        max_step = (tf - t0) / (n_points - 1) / 2 if n_points else DEFAULT_MAX_STEP
    if max_step < min_step:
        raise ConfigurationError(
            "max_step", f"{max_step} is smaller than min_step {min_step}",
        )

    t = t0
    y = np.asarray(initial_state, dtype=np.float64).copy()
    h = max_step

    times: list[float] = [t]
    states: list[np.ndarray] = [y.copy()]
    accepted = rejected = forced = 0

    while t < tf:
        last_step = t + h >= tf
        if last_step:
            h = tf - t

        y5, _, err = rk45_step(func, t, y, h, params)
        norm = error_norm(err)

        if norm < tolerance or h <= min_step:
            if norm >= tolerance:
                forced += 1
            t = tf if last_step else t + h
            y = y5
            times.append(t)
            states.append(y.copy())
            accepted += 1

            factor = MAX_GROWTH if norm == 0 else min(
                MAX_GROWTH, SAFETY * (tolerance / norm) ** GROW_EXPONENT,
            )
            h = min(max_step, max(min_step, h * factor))
        else:
            factor = max(MIN_SHRINK, SAFETY * (tolerance / norm) ** SHRINK_EXPONENT)
            h = max(min_step, h * factor)
            rejected += 1

    logger.debug(
        "RK45 finished on [%g, %g]: %d accepted, %d rejected, %d forced",
        t0, tf, accepted, rejected, forced,
    )
    if forced:
        logger.warning(
            "%d step(s) accepted at min_step=%g with error above tolerance %g",
            forced, min_step, tolerance,
        )
        warnings.warn(
            f"{forced} integration step(s) exceeded tolerance {tolerance:g} "
            f"at the minimum step size {min_step:g}",
            NumericalInstability,
            stacklevel=2,
        )

    trajectory = Trajectory(
        t=np.asarray(times),
        y=np.vstack(states),
        accepted_steps=accepted,
        rejected_steps=rejected,
        forced_steps=forced,
    )

    if n_points is not None:
        grid = uniform_grid(t0, tf, n_points)
        if len(trajectory) != n_points or not np.array_equal(trajectory.t, grid):
            trajectory = resample_trajectory(trajectory, grid)
    return trajectory


def interpolate(x: np.ndarray, y: np.ndarray, x_new: np.ndarray) -> np.ndarray:
    """Piecewise-linear interpolation of *y(x)* at *x_new*.

    Points beyond either end of *x* take the boundary value.
    """
    return np.interp(np.asarray(x_new, dtype=np.float64), x, y)


def resample_trajectory(trajectory: Trajectory, t_new: np.ndarray) -> Trajectory:
    """Resample every state component onto *t_new* by linear interpolation.

    The step statistics of the source run are carried over unchanged.
    """
    t_new = np.asarray(t_new, dtype=np.float64)
    y_new = np.column_stack([
        interpolate(trajectory.t, trajectory.y[:, j], t_new)
        for j in range(trajectory.y.shape[1])
    ])
    return Trajectory(
        t=t_new,
        y=y_new,
        accepted_steps=trajectory.accepted_steps,
        rejected_steps=trajectory.rejected_steps,
        forced_steps=trajectory.forced_steps,
    )
