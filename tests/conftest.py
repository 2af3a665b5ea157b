"""Shared pytest fixtures for ECG synthesis engine tests."""

from __future__ import annotations

import numpy as np
import pytest

from src.simulator.generator import ECGGenerator


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def generator():
    """Seeded generator at 500 Hz to keep integration runs short."""
    return ECGGenerator(sampling_rate=500, seed=42)


@pytest.fixture
def time_array():
    return np.arange(2000) / 1000.0


@pytest.fixture
def clean_signal(time_array):
    return np.zeros_like(time_array)
