"""Data classes for the requests and results of the ECG engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import TYPE_CHECKING, Any, Mapping, Optional

import numpy as np

if TYPE_CHECKING:
    from src.simulator.clinical import Demographics
    from src.simulator.noise import NoiseOptions


@dataclass(frozen=True)
class ResultMetadata:
    """Generation context carried alongside a trace."""

    duration: float                      # requested duration (s)
    heart_rate: float                    # effective bpm after transforms
    pathology: str                       # pathology identifier value
    noise: Optional[NoiseOptions] = None
    lead: Optional[str] = None           # None for the source (Lead II) trace

    def to_dict(self) -> dict[str, Any]:
        return {
            "duration": self.duration,
            "heart_rate": self.heart_rate,
            "pathology": self.pathology,
            "noise": asdict(self.noise) if self.noise is not None else None,
            "lead": self.lead,
        }


@dataclass(frozen=True)
class ECGResult:
    """One generated time series.

    ``time`` and ``signal`` are index-aligned. Their length is
    ``round(duration * sampling_rate)`` except for atrial fibrillation, whose
    irregular resampling yields a non-uniform grid of variable length.
    Callers retaining a result for comparison must not modify the arrays.
    """

    time: np.ndarray        # seconds
    signal: np.ndarray      # mV
    sampling_rate: int      # Hz
    metadata: ResultMetadata

    def __post_init__(self) -> None:
        if self.time.shape != self.signal.shape:
            raise ValueError(
                f"time {self.time.shape} and signal {self.signal.shape} must be aligned"
            )

    def __len__(self) -> int:
        return int(self.signal.shape[0])

    @property
    def duration(self) -> float:
        return self.metadata.duration

    def with_signal(self, signal: np.ndarray, lead: Optional[str] = None) -> ECGResult:
        """Sibling result sharing this result's time axis."""
        return replace(self, signal=signal, metadata=replace(self.metadata, lead=lead))

    def with_time_offset(self, offset: float) -> ECGResult:
        return replace(self, time=self.time + offset)

    def to_dict(self) -> dict[str, Any]:
        """Plain-Python representation for JSON consumers."""
        return {
            "time": self.time.tolist(),
            "signal": self.signal.tolist(),
            "sampling_rate": self.sampling_rate,
            "metadata": self.metadata.to_dict(),
        }


@dataclass(frozen=True)
class GenerationOptions:
    """Per-call generation request.

    Attributes:
        duration: seconds to generate. Streaming also accepts ``None`` or
            ``math.inf`` for an unbounded stream.
        heart_rate: bpm before the pathology transform.
        pathology: :class:`~src.simulator.pathology.Pathology` member or its
            identifier string.
        noise: noise components, or the name of a noise preset.
        custom_params: partial parameter override applied last.
        solver_tolerance: local error tolerance of the integrator.
        sampling_rate: Hz; ``None`` uses the generator's rate.
        variation: strength of the biological variation jitter (0 disables).
        warmup: seconds integrated and discarded before the output window.
        ischemia: ischaemia progression stage in [0, 1], or ``None``.
        exercise_intensity: exercise effort in [0, 1], or ``None``.
        demographics: age and sex adjustment, or ``None``.
    """

    duration: Optional[float] = 10.0
    heart_rate: float = 60.0
    pathology: Any = "normal"
    noise: Optional[NoiseOptions | str] = None
    custom_params: Optional[Mapping[str, Any]] = None
    solver_tolerance: float = 1e-6
    sampling_rate: Optional[int] = None
    variation: float = 0.0
    warmup: float = 0.0
    ischemia: Optional[float] = None
    exercise_intensity: Optional[float] = None
    demographics: Optional[Demographics] = None
