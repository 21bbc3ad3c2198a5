"""Island shaping: radial falloff mask generation and caching."""

from functools import lru_cache

import numpy as np
from numpy.typing import NDArray

# Shape constants for the falloff curve v^a / (v^a + (b - b*v)^a)
FALLOFF_STEEPNESS = 3.0
FALLOFF_SHIFT = 2.2


def evaluate_falloff(values: NDArray[np.float64]) -> NDArray[np.float64]:
    """Evaluate the falloff curve for normalised edge distances in [0, 1].

    0 maps to 0 and 1 maps to 1, rising monotonically in between with
    most of the rise close to the edge.
    """
    a = FALLOFF_STEEPNESS
    b = FALLOFF_SHIFT
    numerator = np.power(values, a)
    return numerator / (numerator + np.power(b - b * values, a))


def generate_falloff_map(size: int) -> NDArray[np.float32]:
    """Generate a square falloff mask, low in the centre and high at the edges.

    Cell coordinates are mapped to [-1, 1] on both axes and the curve is
    evaluated at max(|x|, |y|), so the mask is invariant under 90 degree
    rotation and reaches exactly 1 on the outermost ring.

    Args:
        size: Side length in cells.

    Returns:
        Array of shape (size, size), float32, values in [0, 1]. Sizes
        below 1 give an empty (0, 0) mask.
    """
    if size <= 0:
        return np.zeros((0, 0), dtype=np.float32)
    if size > 1:
        # Integer numerators keep coords[i] == -coords[-1 - i] exactly
        coords = (2.0 * np.arange(size) - (size - 1)) / (size - 1)
    else:
        coords = np.zeros(1)
    xx, yy = np.meshgrid(coords, coords)

    # Distance to the nearest edge in Chebyshev terms
    edge_distance = np.maximum(np.abs(xx), np.abs(yy))

    return evaluate_falloff(edge_distance).astype(np.float32)


@lru_cache(maxsize=16)
def cached_falloff_map(size: int) -> NDArray[np.float32]:
    """Return a shared, read-only falloff mask for ``size``.

    The mask is position independent, so one instance serves every
    chunk of the same size and can be read from any worker thread.
    """
    falloff = generate_falloff_map(size)
    falloff.flags.writeable = False
    return falloff
