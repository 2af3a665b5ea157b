"""ECGSYN wave parameters, defaults and functional parameter updates."""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

import numpy as np

from src.ecg_system.exceptions import ConfigurationError

WAVE_NAMES = ("P", "Q", "R", "S", "T")


@dataclass(frozen=True)
class WaveParameters:
    """Gaussian kernel describing one wave of the beat.

    Attributes:
        amplitude: peak contribution in mV.
        width: angular Gaussian width in radians (> 0).
        position: angular position on the limit cycle in radians.
    """

    amplitude: float
    width: float
    position: float

    def __post_init__(self) -> None:
        if not self.width > 0:
            raise ConfigurationError("width", f"wave width must be > 0, got {self.width}")

    def scaled(self, amplitude: float = 1.0, width: float = 1.0) -> WaveParameters:
        """Return a copy with amplitude and width multiplied by the given factors."""
        return replace(self, amplitude=self.amplitude * amplitude, width=self.width * width)


@dataclass(frozen=True)
class ECGSynParameters:
    """Complete parameter set for one noise-free ECGSYN trace."""

    P: WaveParameters
    Q: WaveParameters
    R: WaveParameters
    S: WaveParameters
    T: WaveParameters
    heart_rate: float                            # bpm
    respiratory_rate: float | None = None        # breaths per minute
    respiratory_amplitude: float | None = None   # raw model units

    def __post_init__(self) -> None:
        if not self.heart_rate > 0:
            raise ConfigurationError(
                "heart_rate", f"must be > 0, got {self.heart_rate}",
            )

    @property
    def rr_interval(self) -> float:
        """Mean beat duration in seconds."""
        return 60.0 / self.heart_rate

    @property
    def omega(self) -> float:
        """Angular velocity of the limit cycle in rad/s."""
        return 2.0 * math.pi / self.rr_interval

    @property
    def has_respiration(self) -> bool:
        return bool(self.respiratory_rate) and bool(self.respiratory_amplitude)

    def waves(self) -> tuple[WaveParameters, ...]:
        """The five waves in P, Q, R, S, T order."""
        return tuple(getattr(self, name) for name in WAVE_NAMES)

    def with_waves(self, **waves: WaveParameters) -> ECGSynParameters:
        return replace(self, **waves)


DEFAULT_ECGSYN_PARAMS = ECGSynParameters(
    P=WaveParameters(amplitude=0.15, width=0.09, position=-math.pi / 3),
    Q=WaveParameters(amplitude=-0.025, width=0.066, position=-math.pi / 12),
    R=WaveParameters(amplitude=1.6, width=0.11, position=0.0),
    S=WaveParameters(amplitude=-0.25, width=0.066, position=math.pi / 12),
    T=WaveParameters(amplitude=0.35, width=0.142, position=math.pi / 2),
    heart_rate=60.0,
)

# Respiratory baseline modulation, off in the defaults. Pass as custom
# parameters (or merge onto a parameter set) to enable it.
RESPIRATION_DEFAULTS: dict[str, float] = {
    "respiratory_rate": 15.0,
    "respiratory_amplitude": 0.01,
}

_PARAM_FIELDS = {f.name for f in fields(ECGSynParameters)}
_WAVE_FIELDS = {f.name for f in fields(WaveParameters)}


def merge_custom_params(
    params: ECGSynParameters,
    custom: Mapping[str, Any] | None,
) -> ECGSynParameters:
    """Overlay a partial parameter mapping onto *params*.

    Wave entries may be a full :class:`WaveParameters` or a mapping with any
    subset of ``amplitude``, ``width`` and ``position``; the latter is merged
    onto the current wave.

    Raises:
        ConfigurationError: for unknown parameter or wave field names.
    """
    if not custom:
        return params

    updates: dict[str, Any] = {}
    for key, value in custom.items():
        if key not in _PARAM_FIELDS:
            raise ConfigurationError("custom_params", f"unknown parameter '{key}'")
        if key in WAVE_NAMES and not isinstance(value, WaveParameters):
            unknown = set(value) - _WAVE_FIELDS
            if unknown:
                raise ConfigurationError(
                    "custom_params", f"unknown wave field(s) {sorted(unknown)} for {key}",
                )
            value = replace(getattr(params, key), **dict(value))
        updates[key] = value
    return replace(params, **updates)


# Relative spread per wave for amplitude / width, absolute spread for position (rad).
_AMPLITUDE_SPREAD = {"P": 2.0, "Q": 3.0, "R": 1.5, "S": 3.0, "T": 2.5}
_WIDTH_SPREAD = {"P": 1.0, "Q": 1.0, "R": 1.0, "S": 1.0, "T": 1.5}
_POSITION_SPREAD = {"P": 0.3, "Q": 0.2, "R": 0.0, "S": 0.2, "T": 0.4}
HEART_RATE_JITTER = 0.03
# Jittered widths never shrink below this fraction of the original.
MIN_WIDTH_FACTOR = 0.1


def apply_biological_variation(
    params: ECGSynParameters,
    rng: np.random.Generator,
    variation: float = 0.3,
) -> ECGSynParameters:
    """Jitter wave morphology and heart rate to mimic beat-to-beat patient variety.

    ``variation=0`` returns *params* unchanged without drawing from *rng*.
    """
    if variation < 0:
        raise ConfigurationError("variation", f"must be >= 0, got {variation}")
    if variation == 0:
        return params

    def spread(scale: float) -> float:
        return (rng.random() - 0.5) * scale

    waves = {}
    for name in WAVE_NAMES:
        wave = getattr(params, name)
        waves[name] = WaveParameters(
            amplitude=wave.amplitude * (1 + spread(variation * _AMPLITUDE_SPREAD[name])),
            width=wave.width * max(
                MIN_WIDTH_FACTOR, 1 + spread(variation * _WIDTH_SPREAD[name]),
            ),
            position=wave.position + spread(_POSITION_SPREAD[name]),
        )
    heart_rate = params.heart_rate * (1 + spread(HEART_RATE_JITTER))
    return replace(params, heart_rate=heart_rate, **waves)
