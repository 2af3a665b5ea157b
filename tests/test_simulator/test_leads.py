"""Tests for multi-lead derivation strategies."""

import math

import numpy as np
import pytest

from src.ecg_system.exceptions import ConfigurationError
from src.ecg_system.schemas import ECGResult, ResultMetadata
from src.simulator.leads import (
    LEAD_SCALARS,
    STANDARD_LEADS,
    EinthovenLeadDerivation,
    ScalarLeadDerivation,
    lead_strategy,
)


@pytest.fixture
def source():
    time = np.linspace(0.0, 1.0, 101)
    return ECGResult(
        time=time,
        signal=np.sin(2 * np.pi * time),
        sampling_rate=500,
        metadata=ResultMetadata(duration=1.0, heart_rate=60.0, pathology="normal"),
    )


class TestScalar:
    def test_table(self):
        assert set(LEAD_SCALARS) == set(STANDARD_LEADS)
        assert LEAD_SCALARS["II"] == 1.0
        assert LEAD_SCALARS["aVR"] == -0.5

    def test_derive_scales_and_shares_time(self, source):
        leads = ScalarLeadDerivation().derive(["I", "aVR", "V4"], source, regenerate=None)
        assert list(leads) == ["I", "aVR", "V4"]
        np.testing.assert_allclose(leads["I"].signal, 0.8 * source.signal)
        np.testing.assert_allclose(leads["aVR"].signal, -0.5 * source.signal)
        for name, result in leads.items():
            assert result.time is source.time
            assert result.sampling_rate == source.sampling_rate
            assert result.metadata.lead == name

    def test_unknown_lead(self, source):
        with pytest.raises(ConfigurationError, match="leads"):
            ScalarLeadDerivation().derive(["II", "V7"], source, regenerate=None)


class TestEinthoven:
    def test_projection(self):
        strategy = EinthovenLeadDerivation(heart_axis=60.0)
        assert strategy.projection("II") == pytest.approx(1.0)
        assert strategy.projection("aVL") == pytest.approx(0.0, abs=1e-12)
        assert strategy.projection("aVR") == pytest.approx(math.cos(math.radians(210)))

    def test_wave_weights(self):
        weights = EinthovenLeadDerivation().wave_weights("II")
        assert weights == pytest.approx({"P": 0.8, "Q": 1.0, "R": 1.0, "S": 1.0, "T": 0.7})

    def test_derive_uses_regenerated_signal(self, source):
        calls = []

        def regenerate(weights):
            calls.append(dict(weights))
            return source.with_signal(source.signal * weights["R"])

        leads = EinthovenLeadDerivation().derive(["II", "aVR"], source, regenerate)
        assert len(calls) == 2
        assert calls[1]["R"] < 0
        np.testing.assert_allclose(leads["II"].signal, source.signal)
        assert leads["aVR"].time is source.time

    def test_unknown_lead(self, source):
        with pytest.raises(ConfigurationError):
            EinthovenLeadDerivation().derive(["X"], source, lambda w: source)


class TestFactory:
    def test_by_name(self):
        assert isinstance(lead_strategy("scalar"), ScalarLeadDerivation)
        strategy = lead_strategy("einthoven", heart_axis=30.0)
        assert isinstance(strategy, EinthovenLeadDerivation)
        assert strategy.heart_axis == 30.0

    def test_unknown(self):
        with pytest.raises(ConfigurationError, match="lead_strategy"):
            lead_strategy("vectorcardiogram")
