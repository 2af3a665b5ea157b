"""ECG synthesis engine: ECGSYN model, pathologies, noise, leads and streaming."""

from src.simulator.clinical import (
    Demographics,
    Sex,
    adjust_for_demographics,
    expected_qt,
    simulate_exercise,
    simulate_ischemia_progression,
)
from src.simulator.generator import (
    ECGGenerator,
    generate_normal_ecg,
    generate_pathological_ecg,
)
from src.simulator.hrv import HRVGenerator
from src.simulator.leads import (
    LEAD_SCALARS,
    EinthovenLeadDerivation,
    LeadDerivation,
    ScalarLeadDerivation,
    lead_strategy,
)
from src.simulator.noise import NOISE_PRESETS, NoiseOptions
from src.simulator.parameters import (
    DEFAULT_ECGSYN_PARAMS,
    RESPIRATION_DEFAULTS,
    ECGSynParameters,
    WaveParameters,
)
from src.simulator.pathology import Pathology, PathologyFamily
from src.simulator.streaming import ECGStream

__all__ = [
    "ECGGenerator",
    "generate_normal_ecg",
    "generate_pathological_ecg",
    "HRVGenerator",
    "LEAD_SCALARS",
    "LeadDerivation",
    "ScalarLeadDerivation",
    "EinthovenLeadDerivation",
    "lead_strategy",
    "NoiseOptions",
    "NOISE_PRESETS",
    "ECGSynParameters",
    "WaveParameters",
    "DEFAULT_ECGSYN_PARAMS",
    "RESPIRATION_DEFAULTS",
    "Pathology",
    "PathologyFamily",
    "ECGStream",
    "Demographics",
    "Sex",
    "adjust_for_demographics",
    "expected_qt",
    "simulate_exercise",
    "simulate_ischemia_progression",
]
