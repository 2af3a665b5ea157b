"""Tests for the noise synthesis components."""

import numpy as np
import pytest

from src.ecg_system.exceptions import ConfigurationError
from src.simulator.noise import (
    NOISE_PRESETS,
    BaselineWander,
    ElectrodeMotion,
    GaussianNoise,
    MuscleArtifact,
    MuscleTremor,
    NoiseOptions,
    PowerlineInterference,
    add_baseline_wander,
    add_electrode_motion,
    add_gaussian_noise,
    add_muscle_artifact,
    add_muscle_tremor,
    add_powerline_interference,
    apply_noise,
    box_muller,
    noise_preset,
)


class TestNoisePresets:
    def test_all_presets_exist(self):
        assert set(NOISE_PRESETS.keys()) == {"clean", "low", "medium", "high"}

    def test_clean_preset_empty(self):
        assert NOISE_PRESETS["clean"].is_empty
        assert not NOISE_PRESETS["high"].is_empty

    def test_unknown_preset(self):
        with pytest.raises(ConfigurationError, match="noise"):
            noise_preset("extreme")


class TestValidation:
    def test_negative_amplitude_rejected(self):
        with pytest.raises(ConfigurationError):
            GaussianNoise(amplitude=-0.1)

    @pytest.mark.parametrize("freq", [50, 60])
    def test_mains_frequencies(self, freq):
        assert PowerlineInterference(amplitude=0.1, frequency=freq).frequency == freq

    def test_other_mains_frequency_rejected(self):
        with pytest.raises(ConfigurationError, match="powerline"):
            PowerlineInterference(amplitude=0.1, frequency=55)


class TestIndividualStages:
    def test_baseline_wander_is_sinusoid(self, clean_signal, time_array):
        out = add_baseline_wander(clean_signal, time_array, BaselineWander(0.2, 0.5))
        np.testing.assert_allclose(out, 0.2 * np.sin(2 * np.pi * 0.5 * time_array))
        # Smooth at 1 kHz sampling
        assert np.max(np.abs(np.diff(out))) < 0.01

    def test_powerline_periodic(self, clean_signal, time_array):
        out = add_powerline_interference(
            clean_signal, time_array, PowerlineInterference(0.05, 60),
        )
        spectrum = np.abs(np.fft.rfft(out))
        freqs = np.fft.rfftfreq(len(out), d=time_array[1] - time_array[0])
        assert freqs[np.argmax(spectrum)] == pytest.approx(60.0, abs=1.0)

    def test_muscle_artifact_bounded(self, clean_signal, time_array, rng):
        out = add_muscle_artifact(clean_signal, time_array, rng, MuscleArtifact(0.1))
        assert np.all(np.abs(out) <= 0.05 + 1e-12)
        assert np.std(out) > 0

    def test_box_muller_standard_normal(self, rng):
        z = box_muller(rng, 20000)
        assert np.all(np.isfinite(z))
        assert abs(np.mean(z)) < 0.03
        assert abs(np.std(z) - 1.0) < 0.03

    def test_gaussian_noise_stats(self, clean_signal, rng):
        out = add_gaussian_noise(clean_signal, rng, GaussianNoise(0.10))
        assert abs(np.mean(out)) < 0.02
        assert abs(np.std(out) - 0.10) < 0.02

    def test_electrode_motion_drifts(self, clean_signal, rng):
        out = add_electrode_motion(clean_signal, rng, ElectrodeMotion(spike_probability=0.01))
        assert np.std(out) > 0
        assert np.all(np.isfinite(out))

    def test_tremor(self, clean_signal, time_array, rng):
        out = add_muscle_tremor(clean_signal, time_array, rng, MuscleTremor(0.01))
        assert np.all(np.abs(out) <= 12 * 0.01 + 1e-12)


class TestApplyNoise:
    def test_none_is_identity(self, time_array, rng):
        signal = np.sin(time_array)
        assert apply_noise(signal, time_array, rng, None) is signal

    def test_empty_options_identity(self, time_array, rng):
        signal = np.sin(time_array)
        np.testing.assert_array_equal(apply_noise(signal, time_array, rng, NoiseOptions()), signal)

    def test_gaussian_increases_variance(self, time_array, rng):
        signal = np.sin(2 * np.pi * time_array)
        noisy = apply_noise(
            signal, time_array, rng, NoiseOptions(gaussian=GaussianNoise(0.1)),
        )
        assert np.var(noisy) > np.var(signal)

    def test_components_stack(self, clean_signal, time_array):
        options = NoiseOptions(
            baseline=BaselineWander(0.1, 0.25),
            powerline=PowerlineInterference(0.02, 50),
        )
        out = apply_noise(clean_signal, time_array, np.random.default_rng(0), options)
        expected = (
            0.1 * np.sin(2 * np.pi * 0.25 * time_array)
            + 0.02 * np.sin(2 * np.pi * 50 * time_array)
        )
        np.testing.assert_allclose(out, expected, atol=1e-12)

    def test_reproducible_with_seed(self, clean_signal, time_array):
        options = NOISE_PRESETS["high"]
        a = apply_noise(clean_signal, time_array, np.random.default_rng(3), options)
        b = apply_noise(clean_signal, time_array, np.random.default_rng(3), options)
        np.testing.assert_array_equal(a, b)
