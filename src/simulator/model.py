"""ECGSYN three-state dynamical model (McSharry et al.) and trace synthesis."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from src.ecg_system.exceptions import ConfigurationError
from src.simulator.parameters import ECGSynParameters
from src.solver.rk45 import DEFAULT_MIN_STEP, resample_trajectory, solve_ode

# The raw z trajectory is ~80x smaller than calibrated mV amplitudes.
AMPLITUDE_SCALE = 80.0

INITIAL_STATE = (1.0, 0.0, 0.0)
TWO_PI = 2.0 * math.pi


@dataclass(frozen=True)
class ModelParams:
    """Per-run constants consumed by :func:`ecgsyn_derivatives`.

    Attributes:
        omega: angular velocity in rad/s, constant for one integration call.
        waves: ``(amplitude, width, position)`` triples for P, Q, R, S, T.
        respiratory_rate: breaths per minute, or ``None``.
        respiratory_amplitude: amplitude of the baseline target ``z0(t)``.
    """

    omega: float
    waves: tuple[tuple[float, float, float], ...]
    respiratory_rate: float | None = None
    respiratory_amplitude: float | None = None

    @classmethod
    def from_parameters(cls, params: ECGSynParameters) -> ModelParams:
        waves = tuple((w.amplitude, w.width, w.position) for w in params.waves())
        if params.has_respiration:
            return cls(
                omega=params.omega,
                waves=waves,
                respiratory_rate=params.respiratory_rate,
                respiratory_amplitude=params.respiratory_amplitude,
            )
        return cls(omega=params.omega, waves=waves)

    def baseline(self, t: float) -> float:
        """Respiratory baseline target ``z0(t)``; 0 when respiration is off."""
        if self.respiratory_rate and self.respiratory_amplitude:
            return self.respiratory_amplitude * math.sin(
                TWO_PI * self.respiratory_rate / 60.0 * t,
            )
        return 0.0


def wrap_phase(delta: float) -> float:
    """Wrap an angle difference into ``[-pi, pi]``."""
    while delta > math.pi:
        delta -= TWO_PI
    while delta < -math.pi:
        delta += TWO_PI
    return delta


def ecgsyn_derivatives(t: float, state: np.ndarray, params: ModelParams) -> np.ndarray:
    """Right-hand side of the ECGSYN system.

    ``(x, y)`` is pulled softly onto the unit circle and rotates at
    ``omega``; ``z`` receives one Gaussian push per wave and is pulled
    linearly toward the baseline ``z0(t)``.
    """
    x, y, z = state
    omega = params.omega

    alpha = 1.0 - math.sqrt(x * x + y * y)
    theta = math.atan2(y, x)

    dz = 0.0
    for amplitude, width, position in params.waves:
        delta = wrap_phase(theta - position)
        dz -= amplitude * omega * delta * math.exp(-(delta * delta) / (2.0 * width * width))
    dz -= z - params.baseline(t)

    return np.array((alpha * x - omega * y, alpha * y + omega * x, dz))


def synthesize(
    params: ECGSynParameters,
    duration: float,
    sampling_rate: float,
    tolerance: float = 1e-6,
    warmup: float = 0.0,
    min_step: float = DEFAULT_MIN_STEP,
) -> tuple[np.ndarray, np.ndarray]:
    """Integrate the model from ``(1, 0, 0)`` and return the scaled ECG.

    Args:
        params: wave and rhythm parameters.
        duration: output length in seconds.
        sampling_rate: output sampling rate in Hz.
        tolerance: local error tolerance of the integrator.
        warmup: seconds integrated before the output window and discarded.
        min_step: lower bound on the integrator step size.

    Returns:
        ``(time, ecg)`` with ``round(duration * sampling_rate)`` uniform
        samples over ``[0, duration]``; ``ecg`` is in mV.
    """
    if duration <= 0:
        raise ConfigurationError("duration", f"must be > 0, got {duration}")
    if warmup < 0:
        raise ConfigurationError("warmup", f"must be >= 0, got {warmup}")
    n_points = int(round(duration * sampling_rate))
    if n_points < 2:
        raise ConfigurationError(
            "duration",
            f"{duration} s at {sampling_rate} Hz yields fewer than 2 samples",
        )

    model = ModelParams.from_parameters(params)
    if warmup == 0:
        trajectory = solve_ode(
            ecgsyn_derivatives,
            INITIAL_STATE,
            (0.0, duration),
            n_points=n_points,
            params=model,
            tolerance=tolerance,
            min_step=min_step,
        )
        time = trajectory.t
    else:
        spacing = duration / (n_points - 1)
        trajectory = solve_ode(
            ecgsyn_derivatives,
            INITIAL_STATE,
            (0.0, warmup + duration),
            params=model,
            tolerance=tolerance,
            min_step=min_step,
            max_step=spacing / 2,
        )
        time = np.arange(n_points) * spacing
        trajectory = resample_trajectory(trajectory, warmup + time)

    return time, trajectory.component(2) * AMPLITUDE_SCALE
