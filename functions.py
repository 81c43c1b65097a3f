import os
import time
import numpy as np
import matplotlib.pyplot as plt

from galaxy_classes import PARTICLE_DTYPE, Population, empty_particles
from mass_density import surface_density
from simulation_config import SimParams

# Uniform block read by the integrator, field order and widths fixed by the shader
SIM_PARAMS_DTYPE = np.dtype([
    ("delta_t", "<f4"),
    ("gravity", "<f4"),
    ("calibrate", "<f4"),
    ("central_mass", "<f4"),
    ("num_particles", "<u4"),
    ("particles_per_group", "<u4"),
    ("triangle_size", "<f4"),
    ("num_galaxies", "<u4"),
    ("distance_between_galaxies", "<f4"),
    ("galaxy_velocity", "<f4"),
    ("halo_velocity", "<f4"),
    ("halo_radius", "<f4"),
    ("time", "<f4"),
])

#GPU upload
def particle_buffer(particles: np.ndarray) -> bytes:
    """Raw bytes for the storage buffer: 10 float32 per particle (pos, vel, acc, mass)."""
    if particles.dtype != PARTICLE_DTYPE:
        raise ValueError(f"Expected particle dtype {PARTICLE_DTYPE}, got {particles.dtype}")
    return np.ascontiguousarray(particles).tobytes()

def sim_params_buffer(sim_params: SimParams) -> bytes:
    block = np.zeros(1, dtype=SIM_PARAMS_DTYPE)
    block["delta_t"] = sim_params.time_step
    block["gravity"] = sim_params.gravity_constant
    block["calibrate"] = sim_params.softening
    block["central_mass"] = sim_params.central_mass
    block["num_particles"] = sim_params.total_particles
    block["particles_per_group"] = sim_params.particles_per_group
    block["triangle_size"] = sim_params.triangle_size
    block["num_galaxies"] = sim_params.galaxy_count
    block["distance_between_galaxies"] = sim_params.distance_between_galaxies
    block["galaxy_velocity"] = sim_params.galaxy_bulk_velocity
    block["halo_velocity"] = sim_params.halo_velocity
    block["halo_radius"] = sim_params.halo_radius
    block["time"] = sim_params.time
    return block.tobytes()

#Snapshots
def save_particles_npz(path, particles: np.ndarray, labels: np.ndarray = None):
    """
    Save a configuration you can reload later.
    path: e.g., "Outputs/spiral_42.npz"
    """
    if labels is None:
        labels = np.full(len(particles), "", dtype='U7')
    np.savez(file=path, pos=particles["pos"], vel=particles["vel"], acc=particles["acc"],
             mass=particles["mass"], labels=labels)

def load_particles_npz(path):
    """Load a snapshot written by save_particles_npz. Returns (particles, labels)."""
    with np.load(path) as galaxy_data:
        positions = galaxy_data['pos'].astype(np.float32)
        velocities = galaxy_data['vel'].astype(np.float32)
        accelerations = galaxy_data['acc'].astype(np.float32)
        masses = galaxy_data['mass'].astype(np.float32)
        labels = galaxy_data['labels']

    N_particles = len(masses)
    for name, array in (("pos", positions), ("vel", velocities), ("acc", accelerations)):
        if array.shape != (N_particles, 3):
            raise ValueError(f"Snapshot field {name!r} has shape {array.shape}, expected {(N_particles, 3)}")
    if labels.shape != (N_particles,):
        raise ValueError(f"Snapshot labels have shape {labels.shape}, expected {(N_particles,)}")

    particles = empty_particles(N_particles)
    particles["pos"] = positions
    particles["vel"] = velocities
    particles["acc"] = accelerations
    particles["mass"] = masses
    return particles, labels

#Diagnostic Functions
def compute_kinetic_energy(velocities, masses):
    velocities = np.asarray(velocities, dtype=np.float64)
    KE = 0.5 * np.sum(np.asarray(masses, dtype=np.float64) * np.sum(velocities**2, axis=1))
    return KE

def compute_total_momentum(velocities, masses):
    return np.sum(np.asarray(masses, dtype=np.float64)[:, None] * np.asarray(velocities, dtype=np.float64), axis=0)

def compute_centre_of_mass(positions, masses):
    return np.average(np.asarray(positions, dtype=np.float64), weights=masses, axis=0)

def rotation_curve(positions, velocities, center, bulk_velocity, bins: int = 20, r_max: float = None):
    """
    Mean tangential speed in radial bins around a galaxy centre.

    The tangential direction is (-Δy, Δx, 0)/|.|, matching the direction velocities are generated along.
    Returns bin centres and mean speeds (NaN for empty bins).
    """
    offsets = np.asarray(positions, dtype=np.float64) - np.asarray(center, dtype=np.float64)
    relative = np.asarray(velocities, dtype=np.float64) - np.asarray(bulk_velocity, dtype=np.float64)
    d = np.linalg.norm(offsets, axis=1)
    in_plane = np.hypot(offsets[:, 0], offsets[:, 1])
    keep = in_plane > 0
    tangent = np.column_stack([-offsets[keep, 1], offsets[keep, 0]]) / in_plane[keep, None]
    v_t = np.sum(tangent * relative[keep, :2], axis=1)
    d = d[keep]

    if r_max is None:
        r_max = float(d.max()) if len(d) else 1.0
    edges = np.linspace(0.0, r_max, bins + 1)
    which = np.digitize(d, edges) - 1
    speeds = np.full(bins, np.nan)
    for b in range(bins):
        members = which == b
        if np.any(members):
            speeds[b] = v_t[members].mean()
    return 0.5 * (edges[:-1] + edges[1:]), speeds

#Visualisation
POPULATION_COLOURS = {
    Population.Central.value: 'red',
    Population.Bulge.value: 'gold',
    Population.Disk.value: 'deepskyblue',
    Population.Arm.value: 'white',
}

def view_configuration(particles: np.ndarray, labels: np.ndarray, title: str, output_dir: str = "Outputs", show: bool = False):
    """Scatter by population, projected surface density and the first galaxy's rotation curve. Returns the PNG path."""
    positions = particles["pos"].astype(np.float64)
    masses = particles["mass"].astype(np.float64)
    satellites = labels != Population.Central.value

    plt.style.use('dark_background')
    fig, (ax_xy, ax_density, ax_curve) = plt.subplots(1, 3, figsize=(15, 5))

    for population, colour in POPULATION_COLOURS.items():
        members = labels == population
        if np.any(members):
            size = 12 if population == Population.Central.value else 0.5
            ax_xy.scatter(positions[members, 0], positions[members, 1], s=size, c=colour, alpha=0.6, linewidths=0, label=population)
    ax_xy.set_aspect('equal', 'box')
    ax_xy.set_xlabel('x'); ax_xy.set_ylabel('y')
    ax_xy.legend(loc='upper right', markerscale=4, fontsize='small')

    # Central masses would swamp the colour scale
    density, extent = surface_density(positions[satellites], masses[satellites])
    ax_density.imshow(np.log10(density.T + 1e-3), origin='lower', cmap='inferno',
                      extent=(-extent, extent, -extent, extent))
    ax_density.set_xlabel('x'); ax_density.set_ylabel('y')
    ax_density.set_title('log10 surface density')

    per_galaxy = np.flatnonzero(~satellites)
    stop = per_galaxy[1] if len(per_galaxy) > 1 else len(particles)
    r, v = rotation_curve(positions[1:stop], particles["vel"][1:stop], positions[0], particles["vel"][0])
    ax_curve.plot(r, v, color='white')
    ax_curve.set_xlabel('r'); ax_curve.set_ylabel('mean tangential speed')

    fig.suptitle(title)
    fig.tight_layout()
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, f"{title}.png")
    fig.savefig(path)
    if show:
        plt.show()
    plt.close(fig)
    return path

def elapsed_time(start_time):
    return time.time() - start_time
