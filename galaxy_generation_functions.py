import math
import logging as log
import numpy as np
from typing import Literal

from galaxy_classes import GalaxyFrame, Morphology, Population, empty_particles
from simulation_config import ConfigurationError, EllipticalParams, SimParams, SpiralParams

MAX_SAMPLING_ATTEMPTS = 10_000      # Per particle, before a rejection loop gives up

class SamplingExhaustedError(RuntimeError):
    """Raised when a rejection loop cannot find an accepted position."""


#Galaxy Layout
def galaxy_layout(sim_params: SimParams) -> list[GalaxyFrame]:
    """
    Place galaxy centres and bulk velocities.

    - A single galaxy sits at the origin and drifts along +x at galaxy_bulk_velocity.
    - Several galaxies sit on a ring of radius distance_between_galaxies at θ_i = 2πi/N,
      each moving towards the ring centre so the scenario is convergent.
    """
    if sim_params.galaxy_count == 1:
        return [GalaxyFrame(0, np.zeros(3), np.array([sim_params.galaxy_bulk_velocity, 0.0, 0.0]))]

    frames = []
    for i in range(int(sim_params.galaxy_count)):
        theta = 2.0 * np.pi * i / sim_params.galaxy_count
        radial = np.array([np.sin(theta), np.cos(theta), 0.0])
        frames.append(GalaxyFrame(
            i,
            radial * sim_params.distance_between_galaxies,
            -radial * sim_params.galaxy_bulk_velocity,
        ))
    return frames

#Rejection sampling
def rejection_sample(draw, r_min: float, r_max: float, population: Population):
    """Redraw until r_min <= |offset| <= r_max. Returns the offset and the number of draws used."""
    for attempt in range(1, MAX_SAMPLING_ATTEMPTS + 1):
        offset = draw()
        r = math.sqrt(offset[0]**2 + offset[1]**2 + offset[2]**2)
        if r_min <= r <= r_max:          # NaN/inf draws fall through and are retried
            return offset, attempt
    raise SamplingExhaustedError(
        f"{population} sampling exhausted after {MAX_SAMPLING_ATTEMPTS} attempts "
        f"(accept region {r_min} <= |r| <= {r_max})"
    )

def _open_uniform(rng: np.random.Generator) -> float:
    """Uniform draw on the open interval (0, 1), so -ln(u) is finite and strictly positive."""
    u = rng.random()
    while u == 0.0:
        u = rng.random()
    return u

#Elliptical sampling
def draw_elliptical_bulge(rng: np.random.Generator, shape: EllipticalParams):
    """Exponential radius r = -a ln(u) with an isotropic direction."""
    r = -shape.bulge_scale_radius * math.log(_open_uniform(rng))
    theta = 2.0 * math.pi * rng.random()
    phi = math.acos(2.0 * rng.random() - 1.0)
    return (
        r * math.sin(phi) * math.cos(theta),
        r * math.sin(phi) * math.sin(theta),
        r * math.cos(phi),
    )

def draw_elliptical_disk(rng: np.random.Generator, shape: EllipticalParams):
    """
    Exponential in-plane radius with a symmetric vertical profile
    z = h (2w - 1) sqrt(-ln u'), which has heavier tails than a Gaussian.
    """
    r = -shape.disk_scale_radius * math.log(_open_uniform(rng))
    theta = 2.0 * math.pi * rng.random()
    z = shape.disk_scale_height * (2.0 * rng.random() - 1.0) * math.sqrt(-math.log(_open_uniform(rng)))
    return (r * math.cos(theta), r * math.sin(theta), z)

def sample_elliptical_particle(rng: np.random.Generator, shape: EllipticalParams):
    if rng.random() < shape.bulge_fraction:
        offset, attempts = rejection_sample(
            lambda: draw_elliptical_bulge(rng, shape), 0.0, shape.outer_radius, Population.Bulge)
        return offset, Population.Bulge, attempts
    offset, attempts = rejection_sample(
        lambda: draw_elliptical_disk(rng, shape), shape.disk_inner_radius, shape.outer_radius, Population.Disk)
    return offset, Population.Disk, attempts

#Spiral sampling
def draw_spiral_bulge(rng: np.random.Generator, shape: SpiralParams):
    x, y, z = rng.normal(0.0, shape.bulge_std, size=3)
    return (x, y, z * shape.vertical_width)

def winding_angle(k: int, N_total: int, shape: SpiralParams) -> float:
    # N_total is the particle count of the whole run, not of one galaxy
    return k * (shape.arm_length * math.pi / (N_total * 0.8))

def arm_angle(k: int, N_total: int, shape: SpiralParams) -> float:
    """Angle along the arm for generation index k; arms take turns by k modulo arm_count."""
    return winding_angle(k, N_total, shape) + (k % int(shape.arm_count)) * 2.0 * math.pi / shape.arm_count

def draw_spiral_arm(rng: np.random.Generator, k: int, N_total: int, shape: SpiralParams):
    """
    Deterministic arm placement for index k with Gaussian scatter.

    r = max(arm_size * sqrt(θ), bulge_std) so the arms start at the bulge edge rather than collapsing onto the centre.
    """
    r = max(shape.arm_size * math.sqrt(winding_angle(k, N_total, shape)), shape.bulge_std)
    arm_theta = arm_angle(k, N_total, shape)
    deviation = rng.normal(0.0, shape.arm_width)
    z = rng.normal(0.0, shape.arm_width) * shape.vertical_width
    return ((r + deviation) * math.cos(arm_theta), (r + deviation) * math.sin(arm_theta), z)

def sample_spiral_particle(rng: np.random.Generator, k: int, N_total: int, shape: SpiralParams):
    if rng.random() < shape.bulge_fraction:
        offset, attempts = rejection_sample(
            lambda: draw_spiral_bulge(rng, shape),
            shape.bulge_inner_radius, shape.bulge_outer_radius, Population.Bulge)
        return offset, Population.Bulge, attempts
    return draw_spiral_arm(rng, k, N_total, shape), Population.Arm, 1

#Velocity field
def circular_speed(d: np.ndarray, sim_params: SimParams, morphology: Morphology, shape) -> np.ndarray:
    """
    Rotation curve at distance d from the galaxy centre.

    Elliptical: softened point mass summed in quadrature with a cored halo,
        v_c^2 = G M d^2 / (d^2 + eps)^1.5,   v_h^2 = v_halo^2 d^2 / (d^2 + r_halo^2)
    Spiral: gravity acts as a single rate constant, v = sqrt(G * gravity_scale / d).
    """
    d = np.asarray(d, dtype=np.float64)
    d2 = d * d
    if morphology == Morphology.Elliptical:
        v_central2 = sim_params.gravity_constant * sim_params.central_mass * d2 / (d2 + sim_params.softening) ** 1.5
        v_halo2 = sim_params.halo_velocity**2 * d2 / (d2 + sim_params.halo_radius**2)
        return np.sqrt(v_central2 + v_halo2)
    return np.sqrt(sim_params.gravity_constant * shape.gravity_scale / d)

def draw_dispersion(rng: np.random.Generator, population: Population, shape) -> np.ndarray:
    """Uniform velocity scatter; hot bulges get an isotropic kick, cold disks and arms a flattened one."""
    if population == Population.Bulge:
        scale = np.full(3, shape.bulge_dispersion)
    else:
        scale = np.array([shape.disk_dispersion, shape.disk_dispersion, shape.vertical_dispersion])
    return rng.uniform(-1.0, 1.0, size=3) * scale

def orbital_velocities(offsets: np.ndarray, dispersion: np.ndarray, frame: GalaxyFrame,
                       sim_params: SimParams, morphology: Morphology, shape) -> np.ndarray:
    """Tangential circular motion in the galactic plane, plus dispersion, plus the galaxy's bulk velocity."""
    d = np.linalg.norm(offsets, axis=1)
    speed = circular_speed(d, sim_params, morphology, shape)

    # Rotate 90 degrees about z, dropping the out-of-plane component
    tangent = np.column_stack([-offsets[:, 1], offsets[:, 0], np.zeros(len(offsets))])
    tangent /= np.linalg.norm(tangent, axis=1, keepdims=True)

    return tangent * speed[:, None] + dispersion + frame.velocity

#Galaxy sampling
def sample_galaxy(rng: np.random.Generator, frame: GalaxyFrame, sim_params: SimParams,
                  morphology: Morphology, shape):
    """
    Draw the non-central particles of one galaxy.

    Returns offsets relative to the centre (N-1, 3), velocities (N-1, 3) and labels (N-1).
    The stream is consumed particle by particle: population, position (with retries), dispersion.
    """
    N_particles = int(sim_params.particle_count_per_galaxy)
    offsets = np.zeros((N_particles - 1, 3))
    dispersion = np.zeros((N_particles - 1, 3))
    labels = np.empty(N_particles - 1, dtype='U7')
    draws = 0

    for k in range(N_particles - 1):
        if morphology == Morphology.Elliptical:
            offset, population, attempts = sample_elliptical_particle(rng, shape)
        else:
            offset, population, attempts = sample_spiral_particle(rng, k, sim_params.total_particles, shape)
        offsets[k] = offset
        labels[k] = population.value
        dispersion[k] = draw_dispersion(rng, population, shape)
        draws += attempts

    log.debug(f"{frame}: {N_particles - 1} particles sampled with {draws - (N_particles - 1)} rejections")

    velocities = orbital_velocities(offsets, dispersion, frame, sim_params, morphology, shape)
    return offsets, velocities, labels

#Particle Assembler
def assemble_galaxy(block: np.ndarray, frame: GalaxyFrame, sim_params: SimParams,
                    offsets: np.ndarray, velocities: np.ndarray):
    """Fill one galaxy block: the central mass first, then the sampled particles at unit mass."""
    block["pos"][0] = frame.center
    block["vel"][0] = frame.velocity
    block["mass"][0] = sim_params.central_mass
    block[1:]["pos"] = offsets + frame.center
    block[1:]["vel"] = velocities
    block[1:]["mass"] = 1.0
    block["acc"] = 0.0

def default_shape(morphology: Morphology):
    return EllipticalParams() if morphology == Morphology.Elliptical else SpiralParams()

def resolve_morphology(morphology: str) -> Morphology:
    try:
        return Morphology(morphology)
    except ValueError:
        raise ConfigurationError(f"Unknown morphology: {morphology!r}") from None

def generate_labelled(
        morphology: Literal["elliptical", "spiral"],
        sim_params: SimParams,
        seed: int,
        shape: EllipticalParams | SpiralParams | None = None,
):
    """
    Generate the initial particle field and a parallel array of population labels.

    Galaxy-major order; each block opens with its central particle. The seed fully
    determines the output. Either the whole field is returned or an exception is raised.
    """
    morphology = resolve_morphology(morphology)
    if shape is None:
        shape = default_shape(morphology)
    expected = EllipticalParams if morphology == Morphology.Elliptical else SpiralParams
    if not isinstance(shape, expected):
        raise ConfigurationError(f"{morphology} galaxies need {expected.__name__}, got {type(shape).__name__}")

    log.info(f"Generating {sim_params.galaxy_count} {morphology} galaxy(s) of "
             f"{sim_params.particle_count_per_galaxy} particles (seed={seed})")

    rng = np.random.default_rng(seed)
    N_particles = int(sim_params.particle_count_per_galaxy)
    particles = empty_particles(sim_params.total_particles)
    labels = np.empty(sim_params.total_particles, dtype='U7')

    for frame in galaxy_layout(sim_params):
        block = slice(frame.index * N_particles, (frame.index + 1) * N_particles)
        offsets, velocities, galaxy_labels = sample_galaxy(rng, frame, sim_params, morphology, shape)
        assemble_galaxy(particles[block], frame, sim_params, offsets, velocities)
        labels[block.start] = Population.Central.value
        labels[block.start + 1:block.stop] = galaxy_labels

    return particles, labels

def generate(
        morphology: Literal["elliptical", "spiral"],
        sim_params: SimParams,
        seed: int,
        shape: EllipticalParams | SpiralParams | None = None,
) -> np.ndarray:
    particles, _ = generate_labelled(morphology, sim_params, seed, shape)
    return particles
