"""
Test configuration and fixtures for discrete-hmm.

This file contains pytest configuration and shared fixtures
for testing the discrete HMM package.
"""

import pytest
import tempfile
import numpy as np
from pathlib import Path

from discrete_hmm.config import reset_config
from discrete_hmm.hmm.model import HiddenMarkovModel


@pytest.fixture(autouse=True)
def fresh_config():
    """Give every test the default configuration."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def toy_parameters():
    """Hand-picked 2-state, 2-symbol parameters (pi, A, B)."""
    pi = np.array([0.6, 0.4])
    A = np.array([[0.7, 0.3],
                  [0.4, 0.6]])
    B = np.array([[0.9, 0.1],
                  [0.2, 0.8]])
    return pi, A, B


@pytest.fixture
def toy_model(toy_parameters):
    """2-state model over symbols A/B set to the toy parameters."""
    model = HiddenMarkovModel(["S1", "S2"], ["A", "B"], name="toy")
    model.set_parameters(*toy_parameters)
    return model


@pytest.fixture
def alternating_sequence():
    """Training sequence that strictly alternates between A and B."""
    return ["A", "B", "A", "B", "A", "B", "A", "B"]


@pytest.fixture
def asymmetric_model():
    """
    2-state model that starts out leaning towards alternation.

    A uniform start is a fixed point of Baum-Welch (every state looks the
    same), so models that should learn structure start asymmetric.
    """
    model = HiddenMarkovModel(["S1", "S2"], ["A", "B"], name="asymmetric")
    model.set_parameters(
        np.array([0.7, 0.3]),
        np.array([[0.3, 0.7],
                  [0.7, 0.3]]),
        np.array([[0.7, 0.3],
                  [0.3, 0.7]])
    )
    return model


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
