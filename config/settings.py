"""Configuration management for the ECG synthesis engine."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from src.ecg_system.exceptions import ConfigurationError

SOLVER_ACCURACY_PRESETS: dict[str, float] = {
    "standard": 1e-5,
    "high": 1e-7,
    "ultra": 1e-9,
}


def tolerance_for(accuracy: str) -> float:
    """Integrator tolerance for a named accuracy preset."""
    try:
        return SOLVER_ACCURACY_PRESETS[accuracy]
    except KeyError:
        valid = ", ".join(SOLVER_ACCURACY_PRESETS)
        raise ConfigurationError("accuracy", f"unknown preset '{accuracy}'. Valid: {valid}") from None


@dataclass
class GeneratorConfig:
    """Defaults for :class:`src.simulator.generator.ECGGenerator`."""

    sampling_rate: int = 1000
    duration: float = 10.0
    heart_rate: float = 60.0
    solver_tolerance: float = 1e-6
    min_step: float = 1e-8
    pathology_family: str = "enhanced"
    lead_strategy: str = "scalar"
    """Multi-lead derivation: 'scalar' (fixed per-lead factors) or
    'einthoven' (per-wave axis projection, regenerates each lead)."""
    heart_axis_deg: float = 60.0
    seed: Optional[int] = None


@dataclass
class Settings:
    """Top-level application settings."""

    generator: GeneratorConfig = field(default_factory=GeneratorConfig)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        generator = GeneratorConfig()
        if "ECG_SAMPLING_RATE" in os.environ:
            generator.sampling_rate = int(os.environ["ECG_SAMPLING_RATE"])
        if "ECG_SOLVER_TOLERANCE" in os.environ:
            generator.solver_tolerance = float(os.environ["ECG_SOLVER_TOLERANCE"])
        if os.getenv("ECG_SEED"):
            generator.seed = int(os.environ["ECG_SEED"])
        return cls(
            generator=generator,
            log_level=os.getenv("ECG_LOG_LEVEL", "INFO"),
        )

    @classmethod
    def from_yaml(cls, path: str) -> Settings:
        """Load settings from YAML config file."""
        config_path = Path(path)
        if not config_path.exists():
            return cls()
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        settings = cls()
        if "generator" in data:
            generator = dict(data["generator"])
            if "accuracy" in generator:
                generator["solver_tolerance"] = tolerance_for(generator.pop("accuracy"))
            settings.generator = GeneratorConfig(**generator)
        if "log_level" in data:
            settings.log_level = data["log_level"]
        return settings
