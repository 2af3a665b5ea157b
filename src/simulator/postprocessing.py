"""Pathology-specific signal edits applied after integration.

Stages run in a fixed order and only for the pathology that needs them:
ST elevation (STEMI), U waves (hypokalemia), fibrillatory baseline and RR
irregularisation (atrial fibrillation), AV dissociation (complete heart block).
"""

from __future__ import annotations

import logging

import numpy as np

from src.simulator.pathology import Pathology

logger = logging.getLogger(__name__)

# ST elevation assumes a fixed 70 bpm cycle regardless of the configured rate.
ST_REFERENCE_HEART_RATE = 70.0
ST_WINDOW = (0.35, 0.44)
ST_PEAK_MV = 0.3

U_WINDOW = (0.65, 0.80)
U_PEAK_MV = 0.15

FIBRILLATION_FREQUENCIES_HZ = np.arange(350.0, 601.0, 50.0)
FIBRILLATION_AMPLITUDE_MV = 0.02

RR_RANGE = (0.4, 1.5)


def _window_phase(time: np.ndarray, beat: float, window: tuple[float, float]):
    """Mask of samples inside *window* (fractions of *beat*) and their 0..1 phase."""
    start, end = window
    local = np.mod(time, beat)
    mask = (local > start * beat) & (local < end * beat)
    phase = (local[mask] - start * beat) / ((end - start) * beat)
    return mask, phase


def add_st_elevation(
    signal: np.ndarray,
    time: np.ndarray,
    amplitude: float = ST_PEAK_MV,
) -> np.ndarray:
    """Add a Gaussian bump of *amplitude* mV across the ST segment of every beat.

    A negative *amplitude* depresses the segment.
    """
    beat = 60.0 / ST_REFERENCE_HEART_RATE
    mask, phase = _window_phase(time, beat, ST_WINDOW)
    out = signal.copy()
    out[mask] += amplitude * np.exp(-((phase - 0.5) ** 2) * 10.0)
    return out


def add_u_waves(
    signal: np.ndarray,
    time: np.ndarray,
    heart_rate: float,
    amplitude: float = U_PEAK_MV,
) -> np.ndarray:
    """Add a U wave late in each cycle of the configured heart rate."""
    beat = 60.0 / heart_rate
    mask, phase = _window_phase(time, beat, U_WINDOW)
    out = signal.copy()
    out[mask] += amplitude * np.exp(-((phase - 0.5) ** 2) / 0.05)
    return out


def add_fibrillatory_waves(
    signal: np.ndarray,
    time: np.ndarray,
    rng: np.random.Generator,
    amplitude: float = FIBRILLATION_AMPLITUDE_MV,
) -> np.ndarray:
    """Superimpose fixed-frequency sinusoids with random phases (f waves)."""
    phases = rng.uniform(0.0, 2 * np.pi, FIBRILLATION_FREQUENCIES_HZ.shape[0])
    f_waves = np.zeros_like(signal)
    for freq, phase in zip(FIBRILLATION_FREQUENCIES_HZ, phases):
        f_waves += amplitude * np.sin(2 * np.pi * freq * time + phase)
    return signal + f_waves


def make_irregular(
    time: np.ndarray,
    signal: np.ndarray,
    heart_rate: float,
    rng: np.random.Generator,
) -> tuple[np.ndarray, np.ndarray]:
    """Rebuild the trace beat by beat with random RR intervals.

    Each new beat draws ``rr ~ U(0.4, 1.5) * avg_rr`` and copies the samples
    of the next source beat whose local phase ``t mod avg_rr`` is below
    ``min(rr, avg_rr)``. Source beats are reused cyclically; samples past the
    end of the source time span are dropped.

    Returns:
        ``(time, signal)`` on a strictly increasing, non-uniform grid whose
        length generally differs from the input.
    """
    if time.shape[0] == 0:
        return time.copy(), signal.copy()

    avg_rr = 60.0 / heart_rate
    end_time = float(time[-1])
    local = np.mod(time, avg_rr)
    source_beat = np.floor(time / avg_rr).astype(np.int64)
    n_source_beats = max(1, int(np.floor(end_time / avg_rr)))

    new_time: list[np.ndarray] = []
    new_signal: list[np.ndarray] = []
    current = 0.0
    beat_index = 0
    while current < end_time:
        rr = avg_rr * rng.uniform(*RR_RANGE)
        in_beat = source_beat == beat_index % n_source_beats
        keep = in_beat & (local < min(rr, avg_rr))
        shifted = current + local[keep]
        within = shifted <= end_time
        new_time.append(shifted[within])
        new_signal.append(signal[keep][within])

        current += rr
        beat_index += 1

    logger.debug(
        "RR irregularisation: %d beats, %d -> %d samples",
        beat_index, time.shape[0], sum(len(t) for t in new_time),
    )
    return np.concatenate(new_time), np.concatenate(new_signal)


def simulate_av_dissociation(signal: np.ndarray) -> np.ndarray:
    """Identity pass.

    Independent atrial and ventricular clocks would need two coupled
    oscillators in the model; until then the escape rhythm from the
    parameter transform is returned unchanged.
    """
    return signal


def apply_post_processing(
    pathology: Pathology,
    time: np.ndarray,
    signal: np.ndarray,
    heart_rate: float,
    rng: np.random.Generator,
    st_offset: float = 0.0,
    atrial_weight: float = 1.0,
    repolarisation_weight: float = 1.0,
) -> tuple[np.ndarray, np.ndarray]:
    """Run the post-processing stages relevant to *pathology* in order.

    Args:
        st_offset: extra ST level in mV (ischaemia, exercise J-point
            depression), added on top of any STEMI elevation.
        atrial_weight: lead projection applied to fibrillatory waves.
        repolarisation_weight: lead projection applied to ST and U additions.
    """
    st_level = st_offset + (ST_PEAK_MV if pathology == Pathology.STEMI else 0.0)
    if st_level:
        signal = add_st_elevation(signal, time, st_level * repolarisation_weight)
    if pathology == Pathology.HYPOKALEMIA:
        signal = add_u_waves(signal, time, heart_rate, U_PEAK_MV * repolarisation_weight)
    if pathology == Pathology.ATRIAL_FIBRILLATION:
        signal = add_fibrillatory_waves(
            signal, time, rng, FIBRILLATION_AMPLITUDE_MV * atrial_weight,
        )
        time, signal = make_irregular(time, signal, heart_rate, rng)
    if pathology == Pathology.COMPLETE_HEART_BLOCK:
        logger.debug("AV dissociation is not modelled; signal passed through")
        signal = simulate_av_dissociation(signal)
    return time, signal
