import dataclasses
import math

import pytest

from simulation_config import ConfigurationError, EllipticalParams, SimParams, SpiralParams


def test_defaults():
    params = SimParams()
    assert params.gravity_constant == pytest.approx(1e-6)
    assert params.central_mass == 1_000_000.0
    assert params.softening == pytest.approx(0.01)
    assert params.particle_count_per_galaxy == 10_000
    assert params.galaxy_count == 1
    assert params.halo_velocity == 2.0
    assert params.halo_radius == 2.0


def test_derived_counts():
    params = SimParams(particle_count_per_galaxy=10_000, galaxy_count=2, particles_per_group=64)
    assert params.total_particles == 20_000
    assert params.work_group_count == 313


def test_parameters_are_immutable():
    params = SimParams()
    with pytest.raises(dataclasses.FrozenInstanceError):
        params.galaxy_count = 3


@pytest.mark.parametrize("overrides", [
    {"galaxy_count": 0},
    {"galaxy_count": 1.5},
    {"particle_count_per_galaxy": 0},
    {"central_mass": 0.0},
    {"central_mass": -5.0},
    {"softening": 0.0},
    {"gravity_constant": math.nan},
    {"halo_radius": -1.0},
    {"halo_velocity": -2.0},
    {"time_step": math.inf},
    {"particles_per_group": 0},
    {"galaxy_count": 2, "distance_between_galaxies": 0.0},
])
def test_invalid_sim_params_are_rejected(overrides):
    with pytest.raises(ConfigurationError):
        SimParams(**overrides)


def test_configuration_error_is_a_value_error():
    with pytest.raises(ValueError):
        SimParams(galaxy_count=0)


@pytest.mark.parametrize("overrides", [
    {"bulge_fraction": 1.2},
    {"bulge_scale_radius": 0.0},
    {"disk_scale_height": -0.01},
    {"disk_inner_radius": 0.7},
    {"bulge_dispersion": -0.1},
])
def test_invalid_elliptical_shape(overrides):
    with pytest.raises(ConfigurationError):
        EllipticalParams(**overrides)


@pytest.mark.parametrize("overrides", [
    {"bulge_fraction": -0.1},
    {"bulge_std": 0.0},
    {"arm_width": -0.02},
    {"bulge_inner_radius": 0.3},
    {"gravity_scale": 0.0},
    {"arm_count": 0},
    {"arm_count": 1.5},
])
def test_invalid_spiral_shape(overrides):
    with pytest.raises(ConfigurationError):
        SpiralParams(**overrides)
