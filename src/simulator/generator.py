"""ECG generator facade: single entry point for trace, multi-lead and stream generation."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Iterable, Mapping, Optional

import numpy as np

from src.ecg_system.exceptions import ConfigurationError
from src.ecg_system.schemas import ECGResult, GenerationOptions, ResultMetadata
from src.simulator.clinical import (
    adjust_for_demographics,
    simulate_exercise,
    simulate_ischemia_progression,
)
from src.simulator.hrv import HRVGenerator
from src.simulator.leads import LIMB_LEADS, LeadDerivation, ScalarLeadDerivation, lead_strategy
from src.simulator.model import synthesize
from src.simulator.noise import NoiseOptions, apply_noise, noise_preset
from src.simulator.parameters import (
    DEFAULT_ECGSYN_PARAMS,
    ECGSynParameters,
    apply_biological_variation,
    merge_custom_params,
)
from src.simulator.pathology import Pathology, PathologyFamily, apply_pathology
from src.simulator.postprocessing import apply_post_processing
from src.simulator.streaming import ECGStream
from src.solver.rk45 import DEFAULT_MIN_STEP

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)

# Lowest rate that still resolves a QRS complex.
MIN_SAMPLING_RATE = 250
DEFAULT_SAMPLING_RATE = 1000


def _check_sampling_rate(sampling_rate: float) -> int:
    if sampling_rate < MIN_SAMPLING_RATE:
        raise ConfigurationError(
            "sampling_rate",
            f"must be >= {MIN_SAMPLING_RATE} Hz to resolve the QRS complex, got {sampling_rate}",
        )
    return int(sampling_rate)


def _resolve_noise(noise: NoiseOptions | str | None) -> Optional[NoiseOptions]:
    if isinstance(noise, str):
        return noise_preset(noise)
    return noise


class ECGGenerator:
    """Facade for generating synthetic ECG traces.

    Args:
        sampling_rate: default output rate in Hz (>= 250).
        seed: random seed for reproducibility. ``None`` for non-deterministic.
        rng: explicit random source; takes precedence over *seed*.
        pathology_family: preferred transform family, ``"enhanced"`` or ``"baseline"``.
        leads: multi-lead derivation strategy (fixed scalars by default).
        min_step: integrator step-size floor.
        defaults: options used when a call passes none.

    Raises:
        ConfigurationError: if *sampling_rate* is below 250 Hz.
    """

    def __init__(
        self,
        sampling_rate: int = DEFAULT_SAMPLING_RATE,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
        pathology_family: PathologyFamily | str = PathologyFamily.ENHANCED,
        leads: LeadDerivation | None = None,
        min_step: float = DEFAULT_MIN_STEP,
        defaults: GenerationOptions | None = None,
    ) -> None:
        self.sampling_rate = _check_sampling_rate(sampling_rate)
        self.pathology_family = PathologyFamily.parse(pathology_family)
        self.leads = leads if leads is not None else ScalarLeadDerivation()
        self.min_step = min_step
        self.defaults = defaults if defaults is not None else GenerationOptions()
        self._rng = rng if rng is not None else np.random.default_rng(seed)

    @classmethod
    def from_settings(cls, settings: Settings) -> ECGGenerator:
        """Build a generator from :class:`config.settings.Settings`."""
        cfg = settings.generator
        return cls(
            sampling_rate=cfg.sampling_rate,
            seed=cfg.seed,
            pathology_family=cfg.pathology_family,
            leads=lead_strategy(cfg.lead_strategy, heart_axis=cfg.heart_axis_deg),
            min_step=cfg.min_step,
            defaults=GenerationOptions(
                duration=cfg.duration,
                heart_rate=cfg.heart_rate,
                solver_tolerance=cfg.solver_tolerance,
            ),
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve_sampling_rate(self, override: Optional[float] = None) -> int:
        if override is None:
            return self.sampling_rate
        return _check_sampling_rate(override)

    def generate(self, options: GenerationOptions | None = None, **overrides) -> ECGResult:
        """Generate one Lead II equivalent trace.

        Keyword *overrides* replace fields of *options* (or of the
        generator's defaults), e.g. ``generate(duration=2, pathology="stemi")``.

        Raises:
            ConfigurationError: for any invalid option.
        """
        options = self._options(options, overrides)
        return self._run(options, self._rng)

    def generate_multi_lead(
        self,
        options: GenerationOptions | None = None,
        leads: Iterable[str] = LIMB_LEADS,
        **overrides,
    ) -> dict[str, ECGResult]:
        """Generate a trace and derive each requested lead from it.

        One seed is drawn per call and replayed for every regeneration, so
        all leads share the source's random draws and time axis.
        """
        options = self._options(options, overrides)
        seed = int(self._rng.integers(0, 2**63 - 1))
        source = self._run(options, np.random.default_rng(seed))

        def regenerate(weights: Mapping[str, float]) -> ECGResult:
            return self._run(options, np.random.default_rng(seed), wave_weights=weights)

        return self.leads.derive(leads, source, regenerate)

    def generate_stream(
        self,
        options: GenerationOptions | None = None,
        chunk_duration: float = 1.0,
        hrv: HRVGenerator | bool | None = None,
        **overrides,
    ) -> ECGStream:
        """Lazily generate consecutive chunks of *chunk_duration* seconds.

        ``options.duration`` is the total length; ``None`` streams forever.
        Without *options* or a ``duration`` override the stream is unbounded.
        Pass ``hrv=True`` to vary the heart rate per chunk with a fresh
        :class:`HRVGenerator` sharing this generator's random source.
        """
        if options is None and "duration" not in overrides:
            overrides = {**overrides, "duration": None}
        options = self._options(options, overrides)
        if hrv is True:
            hrv = HRVGenerator(self._rng)
        return ECGStream(self, options, chunk_duration, hrv=hrv or None)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _options(self, options: GenerationOptions | None, overrides: dict) -> GenerationOptions:
        options = options if options is not None else self.defaults
        if overrides:
            options = replace(options, **overrides)
        return options

    def _parameters(
        self,
        options: GenerationOptions,
        pathology: Pathology,
        rng: np.random.Generator,
    ) -> tuple[ECGSynParameters, float]:
        """Parameter set for one run and the ST offset (mV) of the clinical adjustments."""
        params = replace(DEFAULT_ECGSYN_PARAMS, heart_rate=options.heart_rate)
        if options.demographics is not None:
            params = adjust_for_demographics(params, options.demographics, rng)
        st_offset = 0.0
        if options.exercise_intensity is not None:
            adjustment = simulate_exercise(params, options.exercise_intensity)
            params, st_offset = adjustment.params, st_offset + adjustment.st_offset
        params = apply_pathology(params, pathology, self.pathology_family, rng)
        if options.ischemia is not None:
            adjustment = simulate_ischemia_progression(params, options.ischemia)
            params, st_offset = adjustment.params, st_offset + adjustment.st_offset
        params = apply_biological_variation(params, rng, options.variation)
        return merge_custom_params(params, options.custom_params), st_offset

    def _run(
        self,
        options: GenerationOptions,
        rng: np.random.Generator,
        wave_weights: Mapping[str, float] | None = None,
    ) -> ECGResult:
        sampling_rate = self.resolve_sampling_rate(options.sampling_rate)
        if options.duration is None or not options.duration > 0:
            raise ConfigurationError("duration", f"must be > 0, got {options.duration}")
        if not options.heart_rate > 0:
            raise ConfigurationError("heart_rate", f"must be > 0, got {options.heart_rate}")
        if not options.solver_tolerance > 0:
            raise ConfigurationError(
                "solver_tolerance", f"must be > 0, got {options.solver_tolerance}",
            )
        if options.variation < 0:
            raise ConfigurationError("variation", f"must be >= 0, got {options.variation}")
        pathology = Pathology.parse(options.pathology)
        noise = _resolve_noise(options.noise)

        params, st_offset = self._parameters(options, pathology, rng)
        weights = dict(wave_weights or {})
        if weights:
            params = params.with_waves(**{
                name: getattr(params, name).scaled(amplitude=weight)
                for name, weight in weights.items()
            })

        time, signal = synthesize(
            params,
            options.duration,
            sampling_rate,
            tolerance=options.solver_tolerance,
            warmup=options.warmup,
            min_step=self.min_step,
        )
        time, signal = apply_post_processing(
            pathology, time, signal, params.heart_rate, rng,
            st_offset=st_offset,
            atrial_weight=weights.get("P", 1.0),
            repolarisation_weight=weights.get("T", 1.0),
        )
        signal = apply_noise(signal, time, rng, noise)

        logger.debug(
            "Generated %s: %d samples at %d Hz, %.1f bpm",
            pathology.value, signal.shape[0], sampling_rate, params.heart_rate,
        )
        return ECGResult(
            time=time,
            signal=signal,
            sampling_rate=sampling_rate,
            metadata=ResultMetadata(
                duration=options.duration,
                heart_rate=params.heart_rate,
                pathology=pathology.value,
                noise=noise,
            ),
        )


# ----------------------------------------------------------------------
# Convenience functions
# ----------------------------------------------------------------------


def generate_normal_ecg(
    duration: float = 10.0,
    heart_rate: float = 70.0,
    sampling_rate: int = DEFAULT_SAMPLING_RATE,
    seed: int | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Clean normal sinus rhythm as ``(time, signal)``."""
    result = ECGGenerator(sampling_rate=sampling_rate, seed=seed).generate(
        duration=duration, heart_rate=heart_rate,
    )
    return result.time, result.signal


def generate_pathological_ecg(
    pathology: Pathology | str,
    duration: float = 10.0,
    sampling_rate: int = DEFAULT_SAMPLING_RATE,
    seed: int | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Clean trace of *pathology* at its transform's heart rate, as ``(time, signal)``."""
    result = ECGGenerator(sampling_rate=sampling_rate, seed=seed).generate(
        duration=duration, pathology=pathology,
    )
    return result.time, result.signal
