"""Chunked, lazily evaluated ECG generation."""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import TYPE_CHECKING, Iterator, Optional

from src.ecg_system.exceptions import ConfigurationError
from src.ecg_system.schemas import ECGResult, GenerationOptions
from src.simulator.hrv import HRVGenerator

if TYPE_CHECKING:
    from src.simulator.generator import ECGGenerator

logger = logging.getLogger(__name__)

# Chunks shorter than this many samples cannot be integrated onto a grid.
MIN_CHUNK_SAMPLES = 2


class ECGStream(Iterator[ECGResult]):
    """Iterator of consecutive, time-contiguous :class:`ECGResult` chunks.

    Each chunk runs the full generation pipeline from the model's initial
    state, so oscillator phase is not continuous across chunk boundaries.
    Chunk ``k`` has its time axis shifted by ``k * chunk_duration``. When
    *options.duration* is ``None`` or infinite the stream never ends and the
    caller decides when to stop pulling.

    Every chunk grid includes both of its end points, so the last sample of
    chunk ``k`` and the first sample of chunk ``k + 1`` share one timestamp.
    Drop one of them when concatenating chunks into a single trace.

    A stream is single-use and must not be advanced from two call sites at
    once; build a new one to restart.

    Args:
        generator: generator running each chunk.
        options: per-chunk options; ``duration`` is the total stream length.
        chunk_duration: seconds per chunk.
        hrv: optional HRV source; when given, each chunk's heart rate is the
            mean HRV rate over that chunk around ``options.heart_rate``.
    """

    def __init__(
        self,
        generator: ECGGenerator,
        options: GenerationOptions,
        chunk_duration: float = 1.0,
        hrv: Optional[HRVGenerator] = None,
    ) -> None:
        if not chunk_duration > 0:
            raise ConfigurationError("chunk_duration", f"must be > 0, got {chunk_duration}")
        total = options.duration
        if total is not None and not total > 0:
            raise ConfigurationError("duration", f"must be > 0, got {total}")

        self._generator = generator
        self._options = options
        self._chunk_duration = chunk_duration
        self._total = None if total is None or math.isinf(total) else float(total)
        self._hrv = hrv
        self._sampling_rate = generator.resolve_sampling_rate(options.sampling_rate)
        self._index = 0
        self._finished = False

    @property
    def chunks_emitted(self) -> int:
        return self._index

    @property
    def elapsed(self) -> float:
        """Stream time covered by the chunks emitted so far (s)."""
        return self._index * self._chunk_duration

    @property
    def is_unbounded(self) -> bool:
        return self._total is None

    def __iter__(self) -> ECGStream:
        return self

    def __next__(self) -> ECGResult:
        if self._finished:
            raise StopIteration

        offset = self.elapsed
        duration = self._chunk_duration
        if self._total is not None:
            duration = min(duration, self._total - offset)
            if round(duration * self._sampling_rate) < MIN_CHUNK_SAMPLES:
                logger.debug("Stream finished after %d chunks", self._index)
                self._finished = True
                raise StopIteration

        heart_rate = self._options.heart_rate
        if self._hrv is not None:
            heart_rate = self._hrv.heart_rate_for(heart_rate, duration)

        chunk_options = replace(self._options, duration=duration, heart_rate=heart_rate)
        logger.debug(
            "Generating chunk %d: [%.3f, %.3f] s at %.1f bpm",
            self._index, offset, offset + duration, heart_rate,
        )
        # Errors propagate to this pull; the index only advances on success.
        chunk = self._generator.generate(chunk_options)
        self._index += 1
        return chunk.with_time_offset(offset)
