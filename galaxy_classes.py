from dataclasses import dataclass
from enum import StrEnum
import numpy as np

#Galaxy Classes
class Morphology(StrEnum):
    Elliptical = "elliptical"
    Spiral = "spiral"

class Population(StrEnum):
    Central = "central"
    Bulge = "bulge"
    Disk = "disk"
    Arm = "arm"

# Packed record read verbatim by the GPU upload path: 10 x float32, 40 bytes
PARTICLE_DTYPE = np.dtype([
    ("pos", "<f4", (3,)),
    ("vel", "<f4", (3,)),
    ("acc", "<f4", (3,)),
    ("mass", "<f4"),
])

def empty_particles(N_particles: int) -> np.ndarray:
    return np.zeros(N_particles, dtype=PARTICLE_DTYPE)

@dataclass(frozen=True)
class GalaxyFrame:
    """Center and bulk velocity of one galaxy in model space."""
    index: int
    center: np.ndarray
    velocity: np.ndarray

    def __str__(self) -> str:
        return f"galaxy_{self.index}@({self.center[0]:.3f}, {self.center[1]:.3f}, {self.center[2]:.3f})"
