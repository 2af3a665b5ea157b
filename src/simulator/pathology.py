"""Pathology identifiers and parameter-level pathology transforms.

Two transform families exist: ``BASELINE`` with modest deltas and
``ENHANCED`` with clinically exaggerated deltas. Every transform is a pure
function ``(params, rng) -> params`` returning a new parameter set.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from enum import Enum
from typing import Callable, Optional

import numpy as np

from src.ecg_system.exceptions import ConfigurationError
from src.simulator.parameters import ECGSynParameters, WaveParameters

logger = logging.getLogger(__name__)

PathologyTransform = Callable[[ECGSynParameters, Optional[np.random.Generator]], ECGSynParameters]

# Width used for waves that a pathology removes entirely.
ABSENT_WIDTH = 0.01


class Pathology(Enum):
    """Closed set of supported cardiac conditions."""

    NORMAL = "normal"
    ATRIAL_FIBRILLATION = "atrialFibrillation"
    FIRST_DEGREE_AV_BLOCK = "firstDegreeAVBlock"
    VENTRICULAR_TACHYCARDIA = "ventricularTachycardia"
    STEMI = "stemi"
    BRADYCARDIA = "bradycardia"
    TACHYCARDIA = "tachycardia"
    COMPLETE_HEART_BLOCK = "completeHeartBlock"
    LBBB = "lbbb"
    RBBB = "rbbb"
    HYPERKALEMIA = "hyperkalemia"
    HYPOKALEMIA = "hypokalemia"
    LVH = "lvh"
    PERICARDITIS = "pericarditis"

    @classmethod
    def parse(cls, value: Pathology | str) -> Pathology:
        """Resolve an enum member, its value (``"atrialFibrillation"``) or name.

        Raises:
            ConfigurationError: for unknown identifiers.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            pass
        try:
            return cls[str(value).upper()]
        except KeyError:
            valid = ", ".join(p.value for p in cls)
            raise ConfigurationError(
                "pathology", f"unknown pathology '{value}'. Valid: {valid}",
            ) from None


class PathologyFamily(Enum):
    BASELINE = "baseline"
    ENHANCED = "enhanced"

    @classmethod
    def parse(cls, value: PathologyFamily | str) -> PathologyFamily:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ConfigurationError(
                "pathology_family", f"unknown family '{value}'",
            ) from None


# ----------------------------------------------------------------------
# Baseline family
# ----------------------------------------------------------------------


def _identity(
    base: ECGSynParameters, rng: np.random.Generator | None = None,
) -> ECGSynParameters:
    return base


def _baseline_atrial_fibrillation(
    base: ECGSynParameters, rng: np.random.Generator | None = None,
) -> ECGSynParameters:
    # RR irregularity is applied during post-processing.
    return base.with_waves(P=base.P.scaled(amplitude=0.0))


def _baseline_first_degree_av_block(
    base: ECGSynParameters, rng: np.random.Generator | None = None,
) -> ECGSynParameters:
    return base.with_waves(P=WaveParameters(base.P.amplitude, base.P.width, -math.pi / 2))


def _baseline_ventricular_tachycardia(
    base: ECGSynParameters, rng: np.random.Generator | None = None,
) -> ECGSynParameters:
    return replace(
        base,
        heart_rate=180.0,
        Q=base.Q.scaled(width=2.0),
        R=base.R.scaled(width=2.0),
        S=base.S.scaled(width=2.0),
    )


def _baseline_stemi(
    base: ECGSynParameters, rng: np.random.Generator | None = None,
) -> ECGSynParameters:
    return base.with_waves(
        S=base.S.scaled(amplitude=0.5),
        T=WaveParameters(base.T.amplitude * 1.5, base.T.width, math.pi / 3),
    )


def _with_heart_rate(rate: float) -> PathologyTransform:
    def transform(
        base: ECGSynParameters, rng: np.random.Generator | None = None,
    ) -> ECGSynParameters:
        return replace(base, heart_rate=rate)

    return transform


BASELINE_TRANSFORMS: dict[Pathology, PathologyTransform] = {
    Pathology.NORMAL: _identity,
    Pathology.ATRIAL_FIBRILLATION: _baseline_atrial_fibrillation,
    Pathology.FIRST_DEGREE_AV_BLOCK: _baseline_first_degree_av_block,
    Pathology.VENTRICULAR_TACHYCARDIA: _baseline_ventricular_tachycardia,
    Pathology.STEMI: _baseline_stemi,
    Pathology.BRADYCARDIA: _with_heart_rate(45.0),
    Pathology.TACHYCARDIA: _with_heart_rate(120.0),
}


# ----------------------------------------------------------------------
# Enhanced family
# ----------------------------------------------------------------------


def _rebuild(base: ECGSynParameters, heart_rate: float | None = None, **waves) -> ECGSynParameters:
    """New parameter set with selected waves and heart rate replaced."""
    if heart_rate is not None:
        return replace(base, heart_rate=heart_rate, **waves)
    return replace(base, **waves)


def _absent(wave: WaveParameters) -> WaveParameters:
    return WaveParameters(0.0, ABSENT_WIDTH, wave.position)


def _enhanced_atrial_fibrillation(
    base: ECGSynParameters, rng: np.random.Generator | None = None,
) -> ECGSynParameters:
    # Ventricular response varies between 90 and 130 bpm.
    u = rng.random() if rng is not None else 0.5
    return _rebuild(base, heart_rate=90.0 + u * 40.0, P=_absent(base.P))


def _enhanced_first_degree_av_block(
    base: ECGSynParameters, rng: np.random.Generator | None = None,
) -> ECGSynParameters:
    # P wave moved much earlier: PR > 200 ms.
    return _rebuild(base, P=WaveParameters(base.P.amplitude, base.P.width, -math.pi * 0.6))


def _enhanced_ventricular_tachycardia(
    base: ECGSynParameters, rng: np.random.Generator | None = None,
) -> ECGSynParameters:
    return _rebuild(
        base,
        heart_rate=180.0,
        P=_absent(base.P),
        Q=WaveParameters(-0.4, 0.15, base.Q.position - 0.1),
        R=WaveParameters(2.5, 0.2, base.R.position),
        S=WaveParameters(-0.8, 0.15, base.S.position + 0.1),
        T=WaveParameters(-0.6, 0.2, base.T.position),
    )


def _enhanced_stemi(
    base: ECGSynParameters, rng: np.random.Generator | None = None,
) -> ECGSynParameters:
    return _rebuild(
        base,
        Q=WaveParameters(-0.3, 0.08, base.Q.position),
        R=base.R.scaled(amplitude=0.7),
        S=WaveParameters(-0.05, 0.03, base.S.position),
        T=WaveParameters(0.8, 0.2, math.pi / 3),
    )


def _enhanced_complete_heart_block(
    base: ECGSynParameters, rng: np.random.Generator | None = None,
) -> ECGSynParameters:
    # Ventricular escape rhythm; atrial/ventricular dissociation is not modelled.
    return _rebuild(
        base,
        heart_rate=40.0,
        P=base.P.scaled(amplitude=1.2),
        R=base.R.scaled(amplitude=1.3),
    )


def _enhanced_bradycardia(
    base: ECGSynParameters, rng: np.random.Generator | None = None,
) -> ECGSynParameters:
    return _rebuild(base, heart_rate=45.0, T=base.T.scaled(amplitude=1.2, width=1.1))


def _enhanced_tachycardia(
    base: ECGSynParameters, rng: np.random.Generator | None = None,
) -> ECGSynParameters:
    return _rebuild(
        base,
        heart_rate=140.0,
        P=WaveParameters(base.P.amplitude * 0.7, base.P.width, -math.pi / 4),
        T=base.T.scaled(amplitude=0.8, width=0.9),
    )


def _enhanced_lbbb(
    base: ECGSynParameters, rng: np.random.Generator | None = None,
) -> ECGSynParameters:
    return _rebuild(
        base,
        Q=_absent(base.Q),
        R=WaveParameters(1.8, 0.18, base.R.position),
        S=WaveParameters(-0.1, 0.18, base.S.position + 0.15),
        T=WaveParameters(-0.4, base.T.width, base.T.position),
    )


def _enhanced_rbbb(
    base: ECGSynParameters, rng: np.random.Generator | None = None,
) -> ECGSynParameters:
    return _rebuild(
        base,
        R=WaveParameters(1.2, 0.06, base.R.position),
        S=WaveParameters(-0.8, 0.12, base.S.position),
        T=WaveParameters(-0.3, base.T.width, base.T.position),
    )


def _enhanced_hyperkalemia(
    base: ECGSynParameters, rng: np.random.Generator | None = None,
) -> ECGSynParameters:
    # Flattened P, widened QRS, tall narrow tented T.
    return _rebuild(
        base,
        P=base.P.scaled(amplitude=0.5, width=1.5),
        Q=base.Q.scaled(width=1.3),
        R=base.R.scaled(width=1.3),
        S=base.S.scaled(width=1.3),
        T=WaveParameters(1.2, 0.08, base.T.position),
    )


def _enhanced_hypokalemia(
    base: ECGSynParameters, rng: np.random.Generator | None = None,
) -> ECGSynParameters:
    # U waves are added during post-processing.
    return _rebuild(base, T=WaveParameters(0.1, base.T.width * 1.5, base.T.position))


def _enhanced_lvh(
    base: ECGSynParameters, rng: np.random.Generator | None = None,
) -> ECGSynParameters:
    return _rebuild(
        base,
        R=WaveParameters(2.8, base.R.width, base.R.position),
        S=WaveParameters(-1.2, base.S.width, base.S.position),
        T=WaveParameters(-0.3, base.T.width * 1.1, base.T.position),
    )


def _enhanced_pericarditis(
    base: ECGSynParameters, rng: np.random.Generator | None = None,
) -> ECGSynParameters:
    return _rebuild(
        base,
        P=base.P.scaled(amplitude=1.2),
        S=WaveParameters(-0.05, 0.02, base.S.position),
        T=WaveParameters(0.6, 0.25, math.pi / 3.5),
    )


ENHANCED_TRANSFORMS: dict[Pathology, PathologyTransform] = {
    Pathology.NORMAL: _identity,
    Pathology.ATRIAL_FIBRILLATION: _enhanced_atrial_fibrillation,
    Pathology.FIRST_DEGREE_AV_BLOCK: _enhanced_first_degree_av_block,
    Pathology.VENTRICULAR_TACHYCARDIA: _enhanced_ventricular_tachycardia,
    Pathology.STEMI: _enhanced_stemi,
    Pathology.COMPLETE_HEART_BLOCK: _enhanced_complete_heart_block,
    Pathology.BRADYCARDIA: _enhanced_bradycardia,
    Pathology.TACHYCARDIA: _enhanced_tachycardia,
    Pathology.LBBB: _enhanced_lbbb,
    Pathology.RBBB: _enhanced_rbbb,
    Pathology.HYPERKALEMIA: _enhanced_hyperkalemia,
    Pathology.HYPOKALEMIA: _enhanced_hypokalemia,
    Pathology.LVH: _enhanced_lvh,
    Pathology.PERICARDITIS: _enhanced_pericarditis,
}

TRANSFORM_FAMILIES: dict[PathologyFamily, dict[Pathology, PathologyTransform]] = {
    PathologyFamily.BASELINE: BASELINE_TRANSFORMS,
    PathologyFamily.ENHANCED: ENHANCED_TRANSFORMS,
}


def get_transform(
    pathology: Pathology | str,
    family: PathologyFamily | str = PathologyFamily.ENHANCED,
) -> PathologyTransform:
    """Look up the transform for *pathology* in the preferred *family*.

    A pathology defined only in the other family uses that family's
    definition of the same pathology.
    """
    pathology = Pathology.parse(pathology)
    family = PathologyFamily.parse(family)

    preferred = TRANSFORM_FAMILIES[family]
    if pathology in preferred:
        return preferred[pathology]
    for other_family, table in TRANSFORM_FAMILIES.items():
        if pathology in table:
            logger.debug(
                "%s not defined in %s family; using %s definition",
                pathology.value, family.value, other_family.value,
            )
            return table[pathology]
    raise ConfigurationError("pathology", f"no transform defined for '{pathology.value}'")


def apply_pathology(
    params: ECGSynParameters,
    pathology: Pathology | str,
    family: PathologyFamily | str = PathologyFamily.ENHANCED,
    rng: np.random.Generator | None = None,
) -> ECGSynParameters:
    """Return the pathology-adjusted copy of *params*."""
    return get_transform(pathology, family)(params, rng)
