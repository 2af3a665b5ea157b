"""Tests for pathology identifiers and parameter transforms."""

import math
import typing

import numpy as np
import pytest

from src.ecg_system.exceptions import ConfigurationError
from src.simulator.parameters import DEFAULT_ECGSYN_PARAMS, ECGSynParameters
from src.simulator.pathology import (
    BASELINE_TRANSFORMS,
    ENHANCED_TRANSFORMS,
    Pathology,
    PathologyFamily,
    apply_pathology,
    get_transform,
)


class TestParse:
    def test_member_passthrough(self):
        assert Pathology.parse(Pathology.STEMI) is Pathology.STEMI

    def test_value(self):
        assert Pathology.parse("atrialFibrillation") is Pathology.ATRIAL_FIBRILLATION

    def test_name(self):
        assert Pathology.parse("first_degree_av_block") is Pathology.FIRST_DEGREE_AV_BLOCK

    def test_unknown(self):
        with pytest.raises(ConfigurationError, match="pathology"):
            Pathology.parse("wenckebach")

    def test_family(self):
        assert PathologyFamily.parse("Baseline") is PathologyFamily.BASELINE
        with pytest.raises(ConfigurationError):
            PathologyFamily.parse("experimental")


class TestRegistry:
    def test_enhanced_family_is_complete(self):
        assert set(ENHANCED_TRANSFORMS) == set(Pathology)

    def test_baseline_family_subset(self):
        assert set(BASELINE_TRANSFORMS) < set(Pathology)

    def test_fallback_uses_same_pathology(self):
        assert Pathology.LBBB not in BASELINE_TRANSFORMS
        transform = get_transform(Pathology.LBBB, PathologyFamily.BASELINE)
        assert transform is ENHANCED_TRANSFORMS[Pathology.LBBB]

    def test_preferred_family_wins(self):
        transform = get_transform(Pathology.TACHYCARDIA, "baseline")
        assert transform is BASELINE_TRANSFORMS[Pathology.TACHYCARDIA]


@pytest.mark.parametrize("pathology", list(Pathology))
@pytest.mark.parametrize("family", list(PathologyFamily))
def test_transforms_return_new_valid_params(pathology, family, rng):
    result = apply_pathology(DEFAULT_ECGSYN_PARAMS, pathology, family, rng)
    assert isinstance(result, ECGSynParameters)
    assert result.heart_rate > 0
    assert all(w.width > 0 for w in result.waves())


@pytest.mark.parametrize("transform", [
    *BASELINE_TRANSFORMS.values(), *ENHANCED_TRANSFORMS.values(),
])
def test_transform_signatures(transform):
    hints = typing.get_type_hints(transform)
    assert hints["base"] is ECGSynParameters
    assert hints["return"] is ECGSynParameters
    assert hints["rng"] == typing.Optional[np.random.Generator]
    assert transform(DEFAULT_ECGSYN_PARAMS) is not None


class TestEnhancedTransforms:
    def test_normal_is_identity(self):
        assert apply_pathology(DEFAULT_ECGSYN_PARAMS, "normal") is DEFAULT_ECGSYN_PARAMS

    def test_atrial_fibrillation(self, rng):
        for _ in range(20):
            p = apply_pathology(DEFAULT_ECGSYN_PARAMS, Pathology.ATRIAL_FIBRILLATION, rng=rng)
            assert p.P.amplitude == 0.0
            assert 90.0 <= p.heart_rate < 130.0

    def test_atrial_fibrillation_without_rng(self):
        p = apply_pathology(DEFAULT_ECGSYN_PARAMS, Pathology.ATRIAL_FIBRILLATION)
        assert p.heart_rate == 110.0

    def test_ventricular_tachycardia(self):
        p = apply_pathology(DEFAULT_ECGSYN_PARAMS, Pathology.VENTRICULAR_TACHYCARDIA)
        assert p.heart_rate == 180.0
        assert p.R.amplitude == 2.5
        assert p.T.amplitude < 0
        assert p.P.amplitude == 0.0

    def test_first_degree_block_moves_p_earlier(self):
        p = apply_pathology(DEFAULT_ECGSYN_PARAMS, Pathology.FIRST_DEGREE_AV_BLOCK)
        assert p.P.position == pytest.approx(-math.pi * 0.6)
        assert p.P.position < DEFAULT_ECGSYN_PARAMS.P.position

    @pytest.mark.parametrize("pathology, rate", [
        (Pathology.BRADYCARDIA, 45.0),
        (Pathology.TACHYCARDIA, 140.0),
        (Pathology.COMPLETE_HEART_BLOCK, 40.0),
    ])
    def test_rate_pathologies(self, pathology, rate):
        assert apply_pathology(DEFAULT_ECGSYN_PARAMS, pathology).heart_rate == rate

    def test_hyperkalemia_tall_narrow_t(self):
        p = apply_pathology(DEFAULT_ECGSYN_PARAMS, Pathology.HYPERKALEMIA)
        assert p.T.amplitude > DEFAULT_ECGSYN_PARAMS.T.amplitude
        assert p.T.width < DEFAULT_ECGSYN_PARAMS.T.width
        assert p.R.width == pytest.approx(DEFAULT_ECGSYN_PARAMS.R.width * 1.3)

    def test_keeps_unrelated_fields(self):
        p = apply_pathology(DEFAULT_ECGSYN_PARAMS, Pathology.LVH)
        assert p.P == DEFAULT_ECGSYN_PARAMS.P
        assert p.heart_rate == DEFAULT_ECGSYN_PARAMS.heart_rate


class TestBaselineTransforms:
    @pytest.mark.parametrize("pathology, rate", [
        (Pathology.BRADYCARDIA, 45.0),
        (Pathology.TACHYCARDIA, 120.0),
        (Pathology.VENTRICULAR_TACHYCARDIA, 180.0),
    ])
    def test_rates(self, pathology, rate):
        p = apply_pathology(DEFAULT_ECGSYN_PARAMS, pathology, PathologyFamily.BASELINE)
        assert p.heart_rate == rate

    def test_stemi(self):
        p = apply_pathology(DEFAULT_ECGSYN_PARAMS, Pathology.STEMI, PathologyFamily.BASELINE)
        assert p.S.amplitude == pytest.approx(-0.125)
        assert p.T.amplitude == pytest.approx(0.525)

    def test_afib_does_not_consume_randomness(self):
        rng = np.random.default_rng(1)
        state = rng.bit_generator.state
        apply_pathology(DEFAULT_ECGSYN_PARAMS, "atrialFibrillation", "baseline", rng)
        assert rng.bit_generator.state == state
