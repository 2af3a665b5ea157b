"""Tests for QT correction, ischaemia progression, exercise and demographics."""

import math

import numpy as np
import pytest

from src.ecg_system.exceptions import ConfigurationError
from src.simulator.clinical import (
    NORMAL_QTC,
    QT_CORRECTIONS,
    Demographics,
    Sex,
    adjust_for_demographics,
    expected_qt,
    qtc_bazett,
    qtc_framingham,
    qtc_fridericia,
    simulate_exercise,
    simulate_ischemia_progression,
)
from src.simulator.parameters import DEFAULT_ECGSYN_PARAMS


class TestQTCorrection:
    def test_identity_at_one_second(self):
        for correct in (qtc_bazett, qtc_fridericia, qtc_framingham):
            assert correct(0.4, 1.0) == pytest.approx(0.4)

    def test_known_values(self):
        assert qtc_bazett(0.36, 0.81) == pytest.approx(0.4)
        assert qtc_fridericia(0.4, 0.512) == pytest.approx(0.5)
        assert qtc_framingham(0.35, 0.5) == pytest.approx(0.35 + 0.154 * 0.5)

    @pytest.mark.parametrize("method", sorted(QT_CORRECTIONS))
    @pytest.mark.parametrize("rr", [0.5, 0.857, 1.2])
    def test_expected_qt_corrects_to_normal(self, method, rr):
        qt = expected_qt(rr, method)
        assert QT_CORRECTIONS[method](qt, rr) == pytest.approx(NORMAL_QTC)

    def test_faster_rate_shorter_qt(self):
        assert expected_qt(0.5) < expected_qt(1.0) < expected_qt(1.5)

    def test_bazett_inverse(self):
        assert expected_qt(0.64) == pytest.approx(NORMAL_QTC * math.sqrt(0.64))

    @pytest.mark.parametrize("rr", [0.0, -0.8])
    def test_invalid_rr(self, rr):
        with pytest.raises(ConfigurationError, match="rr"):
            qtc_bazett(0.4, rr)

    def test_unknown_method(self):
        with pytest.raises(ConfigurationError) as info:
            expected_qt(1.0, "hodges")
        assert info.value.parameter == "qt_method"


class TestIschemiaProgression:
    def test_stage_zero_unchanged(self):
        adj = simulate_ischemia_progression(DEFAULT_ECGSYN_PARAMS, 0.0)
        assert adj.params == DEFAULT_ECGSYN_PARAMS
        assert adj.st_offset == 0.0

    def test_early_stage_keeps_q(self):
        adj = simulate_ischemia_progression(DEFAULT_ECGSYN_PARAMS, 0.5)
        assert adj.params.Q == DEFAULT_ECGSYN_PARAMS.Q
        assert adj.params.T.amplitude == pytest.approx(0.35 * 1.25)
        assert adj.params.T.width == pytest.approx(0.142 * 1.1)
        assert adj.st_offset == pytest.approx(0.15)

    def test_full_stage_pathological_q(self):
        adj = simulate_ischemia_progression(DEFAULT_ECGSYN_PARAMS, 1.0)
        assert adj.params.Q.amplitude == pytest.approx(-0.1)
        assert adj.params.Q.width == pytest.approx(0.04)
        assert adj.params.Q.position == DEFAULT_ECGSYN_PARAMS.Q.position
        assert adj.params.T.amplitude == pytest.approx(0.35 * 1.5)
        assert adj.st_offset == pytest.approx(0.3)

    def test_q_width_floor_just_past_midpoint(self):
        adj = simulate_ischemia_progression(DEFAULT_ECGSYN_PARAMS, 0.55)
        assert adj.params.Q.width == pytest.approx(0.01)

    @pytest.mark.parametrize("stage", [-0.1, 1.01])
    def test_out_of_range(self, stage):
        with pytest.raises(ConfigurationError, match="ischemia"):
            simulate_ischemia_progression(DEFAULT_ECGSYN_PARAMS, stage)


class TestExercise:
    def test_rest(self):
        adj = simulate_exercise(DEFAULT_ECGSYN_PARAMS, 0.0)
        assert adj.params.heart_rate == pytest.approx(70.0)
        assert adj.params.P == DEFAULT_ECGSYN_PARAMS.P
        assert adj.st_offset == 0.0

    def test_maximal_effort(self):
        adj = simulate_exercise(DEFAULT_ECGSYN_PARAMS, 1.0)
        assert adj.params.heart_rate == pytest.approx(190.0)
        assert adj.params.P.amplitude == pytest.approx(0.15 * 1.3)
        assert adj.st_offset == pytest.approx(-0.1)

    def test_age_lowers_maximum(self):
        adj = simulate_exercise(DEFAULT_ECGSYN_PARAMS, 1.0, age=70)
        assert adj.params.heart_rate == pytest.approx(150.0)

    def test_invalid_intensity(self):
        with pytest.raises(ConfigurationError, match="exercise_intensity"):
            simulate_exercise(DEFAULT_ECGSYN_PARAMS, 1.5)


class TestDemographics:
    def test_sex_from_string(self):
        assert Demographics(age=30, sex="female").sex is Sex.FEMALE

    def test_negative_age(self):
        with pytest.raises(ConfigurationError, match="age"):
            Demographics(age=-1)

    def test_neonate(self):
        p = adjust_for_demographics(DEFAULT_ECGSYN_PARAMS, Demographics(age=0.2))
        assert p.heart_rate == pytest.approx(140.0)
        assert p.R.width == pytest.approx(0.11 * 0.7)

    def test_child_rate_range(self, rng):
        for _ in range(20):
            p = adjust_for_demographics(DEFAULT_ECGSYN_PARAMS, Demographics(age=6), rng)
            assert 80.0 <= p.heart_rate <= 100.0

    def test_elderly(self):
        p = adjust_for_demographics(DEFAULT_ECGSYN_PARAMS, Demographics(age=80))
        assert p.heart_rate == DEFAULT_ECGSYN_PARAMS.heart_rate
        assert p.P.amplitude == pytest.approx(0.15 * 0.9)
        assert p.S.width == pytest.approx(0.066 * 1.05)

    def test_female_adult(self):
        p = adjust_for_demographics(
            DEFAULT_ECGSYN_PARAMS, Demographics(age=40, sex=Sex.FEMALE),
        )
        assert p.heart_rate == pytest.approx(63.0)
        assert p.R.amplitude == pytest.approx(1.6 * 0.85)
        assert p.T == DEFAULT_ECGSYN_PARAMS.T

    def test_single_draw(self):
        rng = np.random.default_rng(9)
        adjust_for_demographics(DEFAULT_ECGSYN_PARAMS, Demographics(age=30), rng)
        expected = np.random.default_rng(9)
        expected.random()
        assert rng.random() == expected.random()
