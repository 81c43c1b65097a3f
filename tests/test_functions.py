import os

import numpy as np
import pytest

from functions import (
    SIM_PARAMS_DTYPE,
    compute_centre_of_mass,
    compute_kinetic_energy,
    compute_total_momentum,
    load_particles_npz,
    particle_buffer,
    rotation_curve,
    save_particles_npz,
    sim_params_buffer,
    view_configuration,
)
from galaxy_classes import PARTICLE_DTYPE, empty_particles
from galaxy_generation_functions import generate, generate_labelled
from simulation_config import SimParams


def test_particle_record_is_packed():
    assert PARTICLE_DTYPE.itemsize == 40
    assert [PARTICLE_DTYPE.fields[name][1] for name in ("pos", "vel", "acc", "mass")] == [0, 12, 24, 36]


def test_particle_buffer_layout(small_params):
    particles = generate("spiral", small_params, seed=3)
    buffer = particle_buffer(particles)
    assert len(buffer) == 40 * len(particles)

    rows = np.frombuffer(buffer, dtype="<f4").reshape(-1, 10)
    np.testing.assert_array_equal(rows[:, 0:3], particles["pos"])
    np.testing.assert_array_equal(rows[:, 3:6], particles["vel"])
    np.testing.assert_array_equal(rows[:, 6:9], 0.0)
    np.testing.assert_array_equal(rows[:, 9], particles["mass"])
    assert rows[0, 9] == small_params.central_mass


def test_particle_buffer_rejects_other_layouts():
    with pytest.raises(ValueError):
        particle_buffer(np.zeros((4, 10), dtype=np.float32))


def test_sim_params_buffer():
    params = SimParams(particle_count_per_galaxy=500, galaxy_count=2, galaxy_bulk_velocity=0.1)
    buffer = sim_params_buffer(params)
    assert len(buffer) == 52

    block = np.frombuffer(buffer, dtype=SIM_PARAMS_DTYPE)[0]
    assert block["delta_t"] == np.float32(params.time_step)
    assert block["calibrate"] == np.float32(params.softening)
    assert block["num_particles"] == 1000
    assert block["particles_per_group"] == 64
    assert block["num_galaxies"] == 2
    assert block["galaxy_velocity"] == np.float32(0.1)
    assert block["halo_radius"] == 2.0


def test_snapshot_round_trip(tmp_path, ring_params):
    particles, labels = generate_labelled("elliptical", ring_params, seed=1)
    path = tmp_path / "ellipticals.npz"
    save_particles_npz(path, particles, labels)

    loaded, loaded_labels = load_particles_npz(path)
    assert loaded.tobytes() == particles.tobytes()
    np.testing.assert_array_equal(loaded_labels, labels)


def test_snapshot_with_mismatched_fields_is_rejected(tmp_path):
    path = tmp_path / "broken.npz"
    np.savez(path, pos=np.zeros((3, 3)), vel=np.zeros((2, 3)), acc=np.zeros((3, 3)),
             mass=np.ones(3), labels=np.array(["", "", ""]))
    with pytest.raises(ValueError, match="vel"):
        load_particles_npz(path)


def test_energy_and_momentum():
    velocities = np.array([[1.0, 0.0, 0.0], [0.0, -2.0, 0.0]])
    masses = np.array([2.0, 1.0])
    assert compute_kinetic_energy(velocities, masses) == pytest.approx(0.5 * (2.0 * 1.0 + 1.0 * 4.0))
    np.testing.assert_allclose(compute_total_momentum(velocities, masses), [2.0, -2.0, 0.0])
    positions = np.array([[0.0, 0.0, 0.0], [3.0, 0.0, 0.0]])
    np.testing.assert_allclose(compute_centre_of_mass(positions, masses), [1.0, 0.0, 0.0])


def test_rotation_curve_of_a_rigid_ring():
    angles = np.linspace(0.0, 2.0 * np.pi, 64, endpoint=False)
    positions = 1.2 * np.column_stack([np.cos(angles), np.sin(angles), np.zeros_like(angles)]) + [5.0, 0.0, 0.0]
    velocities = 2.0 * np.column_stack([-np.sin(angles), np.cos(angles), np.zeros_like(angles)]) + [0.1, 0.0, 0.0]

    r, v = rotation_curve(positions, velocities, [5.0, 0.0, 0.0], [0.1, 0.0, 0.0], bins=4, r_max=2.0)
    np.testing.assert_allclose(r, [0.25, 0.75, 1.25, 1.75])
    assert v[2] == pytest.approx(2.0)
    assert np.isnan(v[0]) and np.isnan(v[1]) and np.isnan(v[3])


def test_view_configuration_writes_png(tmp_path):
    params = SimParams(particle_count_per_galaxy=300, galaxy_count=2)
    particles, labels = generate_labelled("spiral", params, seed=2)
    path = view_configuration(particles, labels, title="preview", output_dir=str(tmp_path))
    assert os.path.exists(path)
    assert path.endswith("preview.png")


def test_view_configuration_handles_lone_centres(tmp_path):
    particles = empty_particles(1)
    particles["mass"] = 1e6
    labels = np.array(["central"])
    path = view_configuration(particles, labels, title="lone", output_dir=str(tmp_path))
    assert os.path.exists(path)
