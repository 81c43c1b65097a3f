import matplotlib
matplotlib.use("Agg")

import pytest

from simulation_config import SimParams


@pytest.fixture
def small_params():
    return SimParams(particle_count_per_galaxy=200, galaxy_count=1)


@pytest.fixture
def ring_params():
    return SimParams(
        particle_count_per_galaxy=150,
        galaxy_count=3,
        distance_between_galaxies=0.8,
        galaxy_bulk_velocity=0.1,
    )
