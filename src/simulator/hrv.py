"""Heart-rate-variability RR interval generator.

RR(t) = base_rr * (1 + RSA + LF + VLF + walk), with respiratory sinus
arrhythmia at the breathing frequency, a 0.1 Hz Mayer-wave LF term, a
0.02 Hz VLF term and a slow bounded random walk.
"""

from __future__ import annotations

import math

import numpy as np

from src.ecg_system.exceptions import ConfigurationError

LF_FREQUENCY_HZ = 0.1
VLF_FREQUENCY_HZ = 0.02
WALK_STEP = 0.02
WALK_LIMIT = 0.1


class HRVGenerator:
    """Stateful RR series generator; successive calls continue the same clock.

    Args:
        rng: random source for the walk increments.
    """

    def __init__(self, rng: np.random.Generator | None = None) -> None:
        self._rng = rng if rng is not None else np.random.default_rng()
        self._time = 0.0
        self._walk = 0.0

    @property
    def elapsed(self) -> float:
        return self._time

    def reset(self) -> None:
        self._time = 0.0
        self._walk = 0.0

    def next_rr(
        self,
        base_rr: float,
        respiratory_rate: float = 15.0,
        lf_power: float = 0.04,
        hf_power: float = 0.06,
        vlf_power: float = 0.02,
    ) -> float:
        """Draw one RR interval (s) and advance the internal clock by it."""
        if base_rr <= 0:
            raise ConfigurationError("base_rr", f"must be > 0, got {base_rr}")
        t = self._time
        rsa = hf_power * math.sin(2 * math.pi * respiratory_rate / 60.0 * t)
        lf = lf_power * math.sin(2 * math.pi * LF_FREQUENCY_HZ * t)
        vlf = vlf_power * math.sin(2 * math.pi * VLF_FREQUENCY_HZ * t)
        self._walk += (self._rng.random() - 0.5) * WALK_STEP
        self._walk = min(max(self._walk, -WALK_LIMIT), WALK_LIMIT)

        rr = base_rr * (1.0 + rsa + lf + vlf + self._walk)
        self._time += rr
        return rr

    def generate_rr_intervals(
        self,
        base_rr: float,
        duration: float,
        respiratory_rate: float = 15.0,
        lf_power: float = 0.04,
        hf_power: float = 0.06,
        vlf_power: float = 0.02,
    ) -> np.ndarray:
        """RR intervals covering *duration* seconds of the internal clock."""
        if duration <= 0:
            raise ConfigurationError("duration", f"must be > 0, got {duration}")
        end = self._time + duration
        intervals = []
        while self._time < end:
            intervals.append(
                self.next_rr(base_rr, respiratory_rate, lf_power, hf_power, vlf_power),
            )
        return np.asarray(intervals)

    def heart_rate_for(self, base_heart_rate: float, duration: float) -> float:
        """Mean heart rate (bpm) over the next *duration* seconds."""
        if base_heart_rate <= 0:
            raise ConfigurationError("heart_rate", f"must be > 0, got {base_heart_rate}")
        intervals = self.generate_rr_intervals(60.0 / base_heart_rate, duration)
        return 60.0 / float(intervals.mean())
