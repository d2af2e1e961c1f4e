# Shared fixtures: seeded generators, random states and a fresh engine state.

import numpy as np
import pytest

from densmat_simulator.engine.state import DensityMatrixState
from densmat_simulator.framework.results import ExperimentResult
from densmat_simulator.framework.rng import RngEngine

from tests.reference import random_density_matrix


@pytest.fixture
def np_rng():
    """Seeded numpy generator for building random test states."""
    return np.random.default_rng(1234)


@pytest.fixture
def rng():
    """Seeded engine random source."""
    return RngEngine(seed=42)


@pytest.fixture
def result():
    return ExperimentResult()


@pytest.fixture
def rho3(np_rng):
    """Random full-rank 3-qubit density matrix."""
    return random_density_matrix(3, np_rng)


@pytest.fixture
def state3(rho3):
    """Engine state over 3 qubits initialized to ``rho3``."""
    state = DensityMatrixState()
    state.initialize_qreg(3)
    state.initialize_creg(4, 4)
    state.qreg.initialize_from_matrix(rho3)
    return state
