#Please input initial conditions and parameters for the galaxy generation below.
import math
from dataclasses import dataclass, fields

class ConfigurationError(ValueError):
    """Raised when a parameter set cannot produce a valid particle field."""


def _require(condition: bool, message: str):
    if not condition:
        raise ConfigurationError(message)

def _require_finite(params):
    for f in fields(params):
        value = getattr(params, f.name)
        _require(math.isfinite(value), f"{f.name} must be finite, got {value!r}")


@dataclass(frozen=True)
class SimParams:
    """
    Simulation-wide parameters, shared with the integrator as its uniform block.

    Units are model units: G * central_mass ~ 1 places the rotation curve near unity
    at the edge of a galaxy of radius ~0.5.
    """
    time_step: float = 0.0005
    gravity_constant: float = 1e-6
    softening: float = 0.01                     # Added to d^2, keeps forces finite as d -> 0
    central_mass: float = 1_000_000.0
    particle_count_per_galaxy: int = 10_000
    particles_per_group: int = 64               # Compute work-group size
    triangle_size: float = 0.002                # Per-instance sprite size
    galaxy_count: int = 1
    distance_between_galaxies: float = 0.5      # Ring radius when galaxy_count > 1
    galaxy_bulk_velocity: float = 0.0
    halo_velocity: float = 2.0                  # Asymptotic halo rotation speed
    halo_radius: float = 2.0                    # Halo core radius
    time: float = 0.0

    def __post_init__(self):
        _require_finite(self)
        _require(int(self.galaxy_count) == self.galaxy_count and self.galaxy_count >= 1,
                 f"galaxy_count must be a positive integer, got {self.galaxy_count!r}")
        _require(int(self.particle_count_per_galaxy) == self.particle_count_per_galaxy
                 and self.particle_count_per_galaxy >= 1,
                 f"particle_count_per_galaxy must be a positive integer, got {self.particle_count_per_galaxy!r}")
        _require(int(self.particles_per_group) == self.particles_per_group and self.particles_per_group >= 1,
                 f"particles_per_group must be a positive integer, got {self.particles_per_group!r}")
        for name in ("time_step", "gravity_constant", "softening", "central_mass",
                     "triangle_size", "halo_radius"):
            _require(getattr(self, name) > 0, f"{name} must be positive, got {getattr(self, name)!r}")
        _require(self.distance_between_galaxies > 0 or self.galaxy_count == 1,
                 "distance_between_galaxies must be positive when galaxy_count > 1")
        _require(self.distance_between_galaxies >= 0, "distance_between_galaxies must not be negative")
        _require(self.halo_velocity >= 0, f"halo_velocity must not be negative, got {self.halo_velocity!r}")
        _require(self.time >= 0, f"time must not be negative, got {self.time!r}")

    @property
    def total_particles(self) -> int:
        return int(self.particle_count_per_galaxy) * int(self.galaxy_count)

    @property
    def work_group_count(self) -> int:
        # Compute dispatch size for one integration tick
        return -(-self.total_particles // int(self.particles_per_group))


@dataclass(frozen=True)
class EllipticalParams:
    bulge_fraction: float = 0.4
    bulge_scale_radius: float = 0.05            # Exponential scale r = -a ln(u)
    disk_scale_radius: float = 0.15
    disk_scale_height: float = 0.01
    outer_radius: float = 0.6                   # Rejection bound for both populations
    disk_inner_radius: float = 0.02             # Keeps disk particles off the central mass
    bulge_dispersion: float = 0.075             # Uniform +/- per axis
    disk_dispersion: float = 0.025              # Uniform +/- in plane
    vertical_dispersion: float = 0.005          # Uniform +/- out of plane

    def __post_init__(self):
        _require_finite(self)
        _require(0.0 <= self.bulge_fraction <= 1.0,
                 f"bulge_fraction must lie in [0, 1], got {self.bulge_fraction!r}")
        for name in ("bulge_scale_radius", "disk_scale_radius", "disk_scale_height", "outer_radius"):
            _require(getattr(self, name) > 0, f"{name} must be positive, got {getattr(self, name)!r}")
        _require(0 <= self.disk_inner_radius < self.outer_radius,
                 "disk_inner_radius must lie in [0, outer_radius)")
        for name in ("bulge_dispersion", "disk_dispersion", "vertical_dispersion"):
            _require(getattr(self, name) >= 0, f"{name} must not be negative, got {getattr(self, name)!r}")


@dataclass(frozen=True)
class SpiralParams:
    bulge_fraction: float = 0.2
    arm_count: int = 2                          # Arms take turns by generation index
    bulge_std: float = 0.1                      # Also the innermost arm radius
    arm_length: float = 6.0                     # Arm winding in units of pi over the whole run
    arm_size: float = 0.1                       # r = arm_size * sqrt(theta)
    arm_width: float = 0.02                     # Gaussian scatter about the arm
    vertical_width: float = 0.2                 # z scatter as a fraction of the in-plane scatter
    bulge_inner_radius: float = 0.02
    bulge_outer_radius: float = 0.3
    gravity_scale: float = 1000.0               # v = sqrt(G * gravity_scale / d)
    bulge_dispersion: float = 0.075
    disk_dispersion: float = 0.025
    vertical_dispersion: float = 0.005

    def __post_init__(self):
        _require_finite(self)
        _require(0.0 <= self.bulge_fraction <= 1.0,
                 f"bulge_fraction must lie in [0, 1], got {self.bulge_fraction!r}")
        _require(int(self.arm_count) == self.arm_count and self.arm_count >= 1,
                 f"arm_count must be a positive integer, got {self.arm_count!r}")
        for name in ("bulge_std", "arm_length", "arm_size", "bulge_outer_radius", "gravity_scale"):
            _require(getattr(self, name) > 0, f"{name} must be positive, got {getattr(self, name)!r}")
        _require(0 <= self.bulge_inner_radius < self.bulge_outer_radius,
                 "bulge_inner_radius must lie in [0, bulge_outer_radius)")
        for name in ("arm_width", "vertical_width", "bulge_dispersion", "disk_dispersion", "vertical_dispersion"):
            _require(getattr(self, name) >= 0, f"{name} must not be negative, got {getattr(self, name)!r}")


#Run parameters
MORPHOLOGY = "spiral"                   # elliptical/spiral
GALAXY_COUNT = 2
PARTICLES_PER_GALAXY = 10_000
GALAXY_BULK_VELOCITY = 0.05
SEED = 42
OUTPUT_DIR = "Outputs"
HEADLESS = False                        # Skip the preview figure

#Configure logging
LOG_LEVEL = 'INFO'  # 'DEBUG', 'INFO', 'ERROR'
LOG_FORMAT = '[%(levelname)s] %(message)s'
