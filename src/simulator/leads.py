"""Multi-lead derivation strategies.

Both strategies share one interface: given the requested lead names, the
source (Lead II equivalent) result, and a callback that regenerates the trace
with per-wave amplitude weights, return one :class:`ECGResult` per lead.
Every derived lead shares the source's ``time`` array and sampling rate.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Callable, Iterable, Mapping

from src.ecg_system.exceptions import ConfigurationError
from src.ecg_system.schemas import ECGResult

logger = logging.getLogger(__name__)

STANDARD_LEADS = (
    "I", "II", "III", "aVR", "aVL", "aVF",
    "V1", "V2", "V3", "V4", "V5", "V6",
)
LIMB_LEADS = STANDARD_LEADS[:6]

LEAD_SCALARS: dict[str, float] = {
    "I": 0.8,
    "II": 1.0,
    "III": 0.6,
    "aVR": -0.5,
    "aVL": 0.4,
    "aVF": 0.7,
    "V1": 0.3,
    "V2": 0.5,
    "V3": 0.8,
    "V4": 1.0,
    "V5": 0.9,
    "V6": 0.7,
}

# Hexaxial reference angles (degrees); precordial leads use their approximate
# horizontal-plane direction.
LEAD_ANGLES_DEG: dict[str, float] = {
    "I": 0.0,
    "II": 60.0,
    "III": 120.0,
    "aVR": -150.0,
    "aVL": -30.0,
    "aVF": 90.0,
    "V1": 120.0,
    "V2": 90.0,
    "V3": 75.0,
    "V4": 60.0,
    "V5": 30.0,
    "V6": 0.0,
}

DEFAULT_HEART_AXIS_DEG = 60.0

# Relative projection of atrial, ventricular depolarisation and repolarisation.
P_WEIGHT = 0.8
QRS_WEIGHT = 1.0
T_WEIGHT = 0.7

# Called with a mapping of wave name -> amplitude factor.
Regenerate = Callable[[Mapping[str, float]], ECGResult]


def _check_leads(leads: Iterable[str]) -> list[str]:
    names = list(leads)
    unknown = [name for name in names if name not in LEAD_SCALARS]
    if unknown:
        raise ConfigurationError(
            "leads", f"unknown lead(s) {unknown}. Valid: {', '.join(STANDARD_LEADS)}",
        )
    return names


class LeadDerivation(ABC):
    """Strategy turning one source trace into a set of named leads."""

    name: str = ""

    @abstractmethod
    def derive(
        self,
        leads: Iterable[str],
        source: ECGResult,
        regenerate: Regenerate,
    ) -> dict[str, ECGResult]:
        """Return ``{lead: result}`` in the order of *leads*.

        Raises:
            ConfigurationError: if any lead name is not a standard lead.
        """


class ScalarLeadDerivation(LeadDerivation):
    """Multiply the source trace by a fixed per-lead factor."""

    name = "scalar"

    def __init__(self, scalars: Mapping[str, float] | None = None) -> None:
        self.scalars = dict(LEAD_SCALARS if scalars is None else scalars)

    def derive(self, leads, source, regenerate=None):
        derived = {}
        for lead in _check_leads(leads):
            derived[lead] = source.with_signal(source.signal * self.scalars[lead], lead=lead)
        return derived


class EinthovenLeadDerivation(LeadDerivation):
    """Project each wave onto the lead axis and regenerate the trace.

    A lead at angle ``a`` sees ``cos(axis - a)`` of the cardiac vector; the
    P, QRS and T amplitudes are scaled by that projection times
    :data:`P_WEIGHT`, :data:`QRS_WEIGHT` and :data:`T_WEIGHT`.

    Args:
        heart_axis: mean electrical axis in degrees.
    """

    name = "einthoven"

    def __init__(self, heart_axis: float = DEFAULT_HEART_AXIS_DEG) -> None:
        self.heart_axis = heart_axis

    def projection(self, lead: str) -> float:
        angle = math.radians(self.heart_axis - LEAD_ANGLES_DEG[lead])
        return math.cos(angle)

    def wave_weights(self, lead: str) -> dict[str, float]:
        """Amplitude factor per wave for *lead*."""
        projection = self.projection(lead)
        return {
            "P": projection * P_WEIGHT,
            "Q": projection * QRS_WEIGHT,
            "R": projection * QRS_WEIGHT,
            "S": projection * QRS_WEIGHT,
            "T": projection * T_WEIGHT,
        }

    def derive(self, leads, source, regenerate):
        derived = {}
        for lead in _check_leads(leads):
            weights = self.wave_weights(lead)
            logger.debug("Projecting lead %s (factor %.3f)", lead, self.projection(lead))
            # Regeneration replays the source's random draws, so the grid matches.
            derived[lead] = source.with_signal(regenerate(weights).signal, lead=lead)
        return derived


LEAD_STRATEGIES: dict[str, type[LeadDerivation]] = {
    ScalarLeadDerivation.name: ScalarLeadDerivation,
    EinthovenLeadDerivation.name: EinthovenLeadDerivation,
}


def lead_strategy(name: str, heart_axis: float = DEFAULT_HEART_AXIS_DEG) -> LeadDerivation:
    """Build a derivation strategy by name (``"scalar"`` or ``"einthoven"``)."""
    if name == EinthovenLeadDerivation.name:
        return EinthovenLeadDerivation(heart_axis=heart_axis)
    if name == ScalarLeadDerivation.name:
        return ScalarLeadDerivation()
    valid = ", ".join(LEAD_STRATEGIES)
    raise ConfigurationError("lead_strategy", f"unknown strategy '{name}'. Valid: {valid}")
