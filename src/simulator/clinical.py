"""Clinical context adjustments: QT rate correction, ischaemia progression,
exercise response and demographic parameter shifts.

Adjustments act on :class:`ECGSynParameters`. Changes that have no
parameter counterpart in the single-oscillator model (ST level, J-point
depression) are returned as an ST offset in mV for the post-processing stage.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

import numpy as np

from src.ecg_system.exceptions import ConfigurationError
from src.simulator.parameters import ECGSynParameters, WaveParameters

logger = logging.getLogger(__name__)

# ----------------------------------------------------------------------
# QT correction
# ----------------------------------------------------------------------

NORMAL_QTC = 0.42          # s
FRAMINGHAM_SLOPE = 0.154


def _check_rr(rr: float) -> None:
    if not rr > 0:
        raise ConfigurationError("rr", f"must be > 0, got {rr}")


def qtc_bazett(qt: float, rr: float) -> float:
    """QTc = QT / sqrt(RR), both in seconds."""
    _check_rr(rr)
    return qt / math.sqrt(rr)


def qtc_fridericia(qt: float, rr: float) -> float:
    """QTc = QT / cbrt(RR)."""
    _check_rr(rr)
    return qt / rr ** (1.0 / 3.0)


def qtc_framingham(qt: float, rr: float) -> float:
    """QTc = QT + 0.154 (1 - RR)."""
    _check_rr(rr)
    return qt + FRAMINGHAM_SLOPE * (1.0 - rr)


QT_CORRECTIONS: dict[str, Callable[[float, float], float]] = {
    "bazett": qtc_bazett,
    "fridericia": qtc_fridericia,
    "framingham": qtc_framingham,
}


def expected_qt(rr: float, method: str = "bazett") -> float:
    """QT interval (s) whose corrected value is the normal QTc at this *rr*.

    Inverts the named correction formula.
    """
    _check_rr(rr)
    if method == "bazett":
        return NORMAL_QTC * math.sqrt(rr)
    if method == "fridericia":
        return NORMAL_QTC * rr ** (1.0 / 3.0)
    if method == "framingham":
        return NORMAL_QTC - FRAMINGHAM_SLOPE * (1.0 - rr)
    valid = ", ".join(QT_CORRECTIONS)
    raise ConfigurationError("qt_method", f"unknown method '{method}'. Valid: {valid}")


# ----------------------------------------------------------------------
# Ischaemia progression and exercise
# ----------------------------------------------------------------------

MAX_ISCHEMIC_ST_MV = 0.3
MAX_EXERCISE_J_DEPRESSION_MV = 0.1
RESTING_EXERCISE_HR = 70.0
MIN_Q_WIDTH = 0.01


@dataclass(frozen=True)
class Adjustment:
    """Adjusted parameters plus an ST-segment offset in mV (negative = depression)."""

    params: ECGSynParameters
    st_offset: float = 0.0


def _check_fraction(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(name, f"must be within [0, 1], got {value}")


def simulate_ischemia_progression(params: ECGSynParameters, stage: float) -> Adjustment:
    """Gradual ischaemia; *stage* runs from 0 (none) to 1 (full).

    ST rises linearly to 0.3 mV, T waves become hyperacute, and past the
    midpoint a pathological Q wave develops.
    """
    _check_fraction("ischemia", stage)
    t_wave = params.T.scaled(amplitude=1 + 0.5 * stage, width=1 + 0.2 * stage)
    q_wave = params.Q
    if stage > 0.5:
        late = (stage - 0.5) * 2
        q_wave = WaveParameters(-0.1 * late, max(MIN_Q_WIDTH, 0.04 * late), params.Q.position)
    return Adjustment(
        params=params.with_waves(T=t_wave, Q=q_wave),
        st_offset=MAX_ISCHEMIC_ST_MV * stage,
    )


def simulate_exercise(params: ECGSynParameters, intensity: float, age: float = 30.0) -> Adjustment:
    """Exercise response; *intensity* runs from 0 (rest) to 1 (maximal effort).

    Heart rate rises linearly from 70 bpm toward the age-predicted maximum,
    atrial contribution grows, and the J point is depressed by up to 0.1 mV.
    """
    _check_fraction("exercise_intensity", intensity)
    max_heart_rate = 220.0 - age
    heart_rate = RESTING_EXERCISE_HR + (max_heart_rate - RESTING_EXERCISE_HR) * intensity
    if not heart_rate > 0:
        raise ConfigurationError("age", f"yields non-positive heart rate {heart_rate}")
    return Adjustment(
        params=replace(
            params,
            heart_rate=heart_rate,
            P=params.P.scaled(amplitude=1 + 0.3 * intensity),
        ),
        st_offset=-MAX_EXERCISE_J_DEPRESSION_MV * intensity,
    )


# ----------------------------------------------------------------------
# Demographics
# ----------------------------------------------------------------------


class Sex(Enum):
    MALE = "male"
    FEMALE = "female"


@dataclass(frozen=True)
class Demographics:
    age: float      # years
    sex: Sex = Sex.MALE

    def __post_init__(self) -> None:
        if self.age < 0:
            raise ConfigurationError("age", f"must be >= 0, got {self.age}")
        object.__setattr__(self, "sex", Sex(self.sex))


def adjust_for_demographics(
    params: ECGSynParameters,
    demographics: Demographics,
    rng: Optional[np.random.Generator] = None,
) -> ECGSynParameters:
    """Shift rate and morphology for age group and sex.

    Neonates (< 1 y) get 120-160 bpm and a narrower QRS, children (< 10 y)
    80-100 bpm, adults over 65 a slightly wider QRS and smaller P wave.
    Women get a smaller QRS and +3 bpm. Rate draws use the midpoint when
    *rng* is ``None``.
    """
    u = rng.random() if rng is not None else 0.5
    age = demographics.age
    heart_rate = params.heart_rate
    qrs_width = 1.0
    qrs_amplitude = 1.0
    p_amplitude = 1.0

    if age < 1:
        heart_rate = 120.0 + u * 40.0
        qrs_width = 0.7
    elif age < 10:
        heart_rate = 80.0 + u * 20.0
    elif age > 65:
        qrs_width = 1.05
        p_amplitude = 0.9

    if demographics.sex is Sex.FEMALE:
        qrs_amplitude = 0.85
        heart_rate += 3.0

    logger.debug("Demographic adjustment: age %.1f, %s, %.1f bpm", age, demographics.sex.value, heart_rate)
    return replace(
        params,
        heart_rate=heart_rate,
        P=params.P.scaled(amplitude=p_amplitude),
        Q=params.Q.scaled(amplitude=qrs_amplitude, width=qrs_width),
        R=params.R.scaled(amplitude=qrs_amplitude, width=qrs_width),
        S=params.S.scaled(amplitude=qrs_amplitude, width=qrs_width),
    )
