import numpy as np
from numba import njit

# Surface densities are projected onto the x-y plane over the window [origin, origin + box_size)^2

#Nearest Grid Point assignment
def NGP(positions: np.ndarray, grid_size: int, box_size: float, masses: np.ndarray = None, origin=(0.0, 0.0)) -> np.ndarray:
    density = np.zeros((grid_size, grid_size), dtype=float)
    # Normalize to grid indices
    xy = positions[:, :2] - np.asarray(origin, dtype=float)
    indices = np.floor(xy / box_size * grid_size).astype(int)
    # Only use in-bounds indices
    inside = (indices[:, 0] >= 0) & (indices[:, 0] < grid_size) & (indices[:, 1] >= 0) & (indices[:, 1] < grid_size)
    if masses is None:
        masses_in = np.ones(np.count_nonzero(inside))
    else:
        masses_in = np.asarray(masses, dtype=float)[inside]
    # Use np.add.at for proper accumulation
    np.add.at(density, (indices[inside, 0], indices[inside, 1]), masses_in)
    return density

#Cloud-in-Cell assignment (corners falling off the window are dropped)
@njit(parallel=False, fastmath=True, cache=True)
def _CIC(xy: np.ndarray, grid_size: int, box_size: float, masses: np.ndarray) -> np.ndarray:

    density = np.zeros((grid_size, grid_size), dtype=np.float64)
    inverse_cell_size = grid_size / box_size  # Pre-compute inverse

    for p in range(xy.shape[0]):
        scaled_x = xy[p, 0] * inverse_cell_size
        scaled_y = xy[p, 1] * inverse_cell_size

        # Floor and fractional parts
        i = int(np.floor(scaled_x))
        j = int(np.floor(scaled_y))
        dx = scaled_x - i
        dy = scaled_y - j

        mass = masses[p]

        i_in = i >= 0 and i < grid_size
        i1_in = i + 1 >= 0 and i + 1 < grid_size
        j_in = j >= 0 and j < grid_size
        j1_in = j + 1 >= 0 and j + 1 < grid_size

        # 4 corner contributions
        if i_in and j_in:
            density[i, j] += mass * (1.0 - dx) * (1.0 - dy)
        if i1_in and j_in:
            density[i + 1, j] += mass * dx * (1.0 - dy)
        if i_in and j1_in:
            density[i, j + 1] += mass * (1.0 - dx) * dy
        if i1_in and j1_in:
            density[i + 1, j + 1] += mass * dx * dy

    return density

def CIC(positions: np.ndarray, grid_size: int, box_size: float, masses: np.ndarray = None, origin=(0.0, 0.0)) -> np.ndarray:
    xy = np.ascontiguousarray(positions[:, :2], dtype=np.float64) - np.asarray(origin, dtype=np.float64)
    if masses is None:
        masses = np.ones(len(xy))
    return _CIC(xy, grid_size, float(box_size), np.ascontiguousarray(masses, dtype=np.float64))

def surface_density(positions, masses, grid_size: int = 128, extent: float = None, method: str = "CIC"):
    """
    Projected mass per unit area on a square window centred on the origin.
    Returns (density, extent) with density[i, j] indexed by (x, y).
    """
    if extent is None:
        extent = 1.05 * float(np.max(np.abs(positions[:, :2]))) if len(positions) else 1.0
    if not extent > 0:
        extent = 1.0
    box_size = 2.0 * extent
    if method == "CIC":
        mass_grid = CIC(positions, grid_size, box_size, masses, origin=(-extent, -extent))
    elif method == "NGP":
        mass_grid = NGP(positions, grid_size, box_size, masses, origin=(-extent, -extent))
    else:
        raise ValueError(f"Unknown interpolation method: {method!r}")
    cell_area = (box_size / grid_size) ** 2
    return mass_grid / cell_area, extent
