import numpy as np
import pytest

from fogsim.application import build_application
from fogsim.config import GlobalParams
from fogsim.topology import build_topology
from fogsim.workload import generate_sensors


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def topology():
    return build_topology(3)


@pytest.fixture
def app(rng):
    return build_application(3, rng)


@pytest.fixture
def sensors(topology, rng):
    return generate_sensors(topology, 60, rng)


@pytest.fixture
def short_run():
    return GlobalParams(sim_time=10.0)
