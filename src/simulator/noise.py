"""Composable additive noise and artifact synthesis for ECG traces."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy.signal import lfilter

from src.ecg_system.exceptions import ConfigurationError


def _check_amplitude(name: str, value: float) -> None:
    if value < 0:
        raise ConfigurationError(name, f"amplitude must be >= 0, got {value}")


@dataclass(frozen=True)
class BaselineWander:
    """Low-frequency sinusoidal wander (respiration, movement)."""

    amplitude: float    # mV
    frequency: float    # Hz

    def __post_init__(self) -> None:
        _check_amplitude("baseline.amplitude", self.amplitude)


@dataclass(frozen=True)
class PowerlineInterference:
    """Mains hum at 50 or 60 Hz."""

    amplitude: float    # mV
    frequency: int = 50

    def __post_init__(self) -> None:
        _check_amplitude("powerline.amplitude", self.amplitude)
        if self.frequency not in (50, 60):
            raise ConfigurationError(
                "powerline.frequency", f"must be 50 or 60 Hz, got {self.frequency}",
            )


@dataclass(frozen=True)
class MuscleArtifact:
    """Irregular high-frequency EMG contamination."""

    amplitude: float    # mV

    def __post_init__(self) -> None:
        _check_amplitude("muscle.amplitude", self.amplitude)


@dataclass(frozen=True)
class GaussianNoise:
    """Additive white Gaussian noise; *amplitude* is the standard deviation."""

    amplitude: float    # mV

    def __post_init__(self) -> None:
        _check_amplitude("gaussian.amplitude", self.amplitude)


@dataclass(frozen=True)
class ElectrodeMotion:
    """Decaying random walk with rare spikes (loose electrode).

    Attributes:
        step: range of the uniform increment per sample (mV).
        decay: per-sample retention factor of the walk.
        spike_probability: per-sample probability of a spike.
        spike_amplitude: range of the uniform spike (mV).
    """

    step: float = 0.01
    decay: float = 0.99
    spike_probability: float = 0.001
    spike_amplitude: float = 0.5


@dataclass(frozen=True)
class MuscleTremor:
    """Physiological tremor: random-amplitude tones from 8 to 30 Hz."""

    intensity: float = 0.05


@dataclass(frozen=True)
class NoiseOptions:
    """Set of additive noise components; ``None`` members are skipped."""

    baseline: BaselineWander | None = None
    powerline: PowerlineInterference | None = None
    muscle: MuscleArtifact | None = None
    gaussian: GaussianNoise | None = None
    electrode_motion: ElectrodeMotion | None = None
    tremor: MuscleTremor | None = None

    @property
    def is_empty(self) -> bool:
        return all(
            component is None
            for component in (
                self.baseline, self.powerline, self.muscle,
                self.gaussian, self.electrode_motion, self.tremor,
            )
        )


NOISE_PRESETS: dict[str, NoiseOptions] = {
    "clean": NoiseOptions(),
    "low": NoiseOptions(
        baseline=BaselineWander(amplitude=0.05, frequency=0.15),
        gaussian=GaussianNoise(amplitude=0.01),
    ),
    "medium": NoiseOptions(
        baseline=BaselineWander(amplitude=0.1, frequency=0.25),
        powerline=PowerlineInterference(amplitude=0.02, frequency=50),
        muscle=MuscleArtifact(amplitude=0.03),
        gaussian=GaussianNoise(amplitude=0.02),
    ),
    "high": NoiseOptions(
        baseline=BaselineWander(amplitude=0.2, frequency=0.3),
        powerline=PowerlineInterference(amplitude=0.05, frequency=50),
        muscle=MuscleArtifact(amplitude=0.08),
        gaussian=GaussianNoise(amplitude=0.05),
        electrode_motion=ElectrodeMotion(),
        tremor=MuscleTremor(intensity=0.02),
    ),
}


def noise_preset(name: str) -> NoiseOptions:
    try:
        return NOISE_PRESETS[name]
    except KeyError:
        valid = ", ".join(NOISE_PRESETS)
        raise ConfigurationError("noise", f"unknown preset '{name}'. Valid: {valid}") from None


def add_baseline_wander(
    signal: np.ndarray,
    time: np.ndarray,
    config: BaselineWander,
) -> np.ndarray:
    return signal + config.amplitude * np.sin(2 * np.pi * config.frequency * time)


def add_powerline_interference(
    signal: np.ndarray,
    time: np.ndarray,
    config: PowerlineInterference,
) -> np.ndarray:
    return signal + config.amplitude * np.sin(2 * np.pi * config.frequency * time)


def add_muscle_artifact(
    signal: np.ndarray,
    time: np.ndarray,
    rng: np.random.Generator,
    config: MuscleArtifact,
) -> np.ndarray:
    """Add EMG-like noise; frequency and phase are redrawn for every sample."""
    n = signal.shape[0]
    envelope = rng.random(n) - 0.5
    freq = rng.uniform(20.0, 50.0, n)
    phase = rng.uniform(0.0, 2 * np.pi, n)
    return signal + config.amplitude * envelope * np.sin(2 * np.pi * freq * time + phase)


def box_muller(rng: np.random.Generator, n: int) -> np.ndarray:
    """Standard normal variates from pairs of uniforms (Box-Muller transform)."""
    u1 = 1.0 - rng.random(n)    # (0, 1], keeps log finite
    u2 = rng.random(n)
    return np.sqrt(-2.0 * np.log(u1)) * np.cos(2 * np.pi * u2)


def add_gaussian_noise(
    signal: np.ndarray,
    rng: np.random.Generator,
    config: GaussianNoise,
) -> np.ndarray:
    return signal + config.amplitude * box_muller(rng, signal.shape[0])


def add_electrode_motion(
    signal: np.ndarray,
    rng: np.random.Generator,
    config: ElectrodeMotion,
) -> np.ndarray:
    """Add a leaky random walk driven by small steps and occasional spikes."""
    n = signal.shape[0]
    drive = (rng.random(n) - 0.5) * config.step
    spikes = rng.random(n) < config.spike_probability
    drive[spikes] += (rng.random(int(spikes.sum())) - 0.5) * config.spike_amplitude
    # current[i] = decay * (current[i-1] + drive[i])
    walk = lfilter([config.decay], [1.0, -config.decay], drive)
    return signal + walk


def add_muscle_tremor(
    signal: np.ndarray,
    time: np.ndarray,
    rng: np.random.Generator,
    config: MuscleTremor,
) -> np.ndarray:
    n = signal.shape[0]
    tremor = np.zeros(n)
    for freq in range(8, 31, 2):
        tremor += config.intensity * rng.random(n) * np.sin(
            2 * np.pi * freq * time + rng.uniform(0.0, 2 * np.pi, n),
        )
    return signal + tremor


def apply_noise(
    signal: np.ndarray,
    time: np.ndarray,
    rng: np.random.Generator,
    options: NoiseOptions | None,
) -> np.ndarray:
    """Sum every configured component into *signal*; absent ones are skipped."""
    if options is None:
        return signal
    out = signal
    if options.baseline is not None:
        out = add_baseline_wander(out, time, options.baseline)
    if options.powerline is not None:
        out = add_powerline_interference(out, time, options.powerline)
    if options.muscle is not None:
        out = add_muscle_artifact(out, time, rng, options.muscle)
    if options.gaussian is not None:
        out = add_gaussian_noise(out, rng, options.gaussian)
    if options.electrode_motion is not None:
        out = add_electrode_motion(out, rng, options.electrode_motion)
    if options.tremor is not None:
        out = add_muscle_tremor(out, time, rng, options.tremor)
    return out
