"""Height field composition: noise plus optional island falloff."""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from ..exceptions import DimensionMismatchError
from .falloff import cached_falloff_map
from .noise import NormalizeMode, generate_noise_map


@dataclass(frozen=True)
class MapData:
    """Height field for one chunk, including its one-cell border."""

    height_map: NDArray[np.float32]

    @property
    def size(self) -> int:
        """Side length of the bordered grid."""
        return self.height_map.shape[0]


def apply_falloff(
    noise_map: NDArray[np.float32],
    falloff_map: NDArray[np.float32] | None,
) -> NDArray[np.float32]:
    """Subtract a falloff mask from a noise map and clamp into [0, 1].

    Neither input is modified. Without a mask the noise map is returned
    as is.

    Args:
        noise_map: Raw height field.
        falloff_map: Mask of identical shape, or None to skip blending.

    Returns:
        The composed height field.

    Raises:
        DimensionMismatchError: If the shapes differ.
    """
    if falloff_map is None:
        return noise_map

    if noise_map.shape != falloff_map.shape:
        raise DimensionMismatchError(
            f"Falloff mask shape {falloff_map.shape} does not match "
            f"height field shape {noise_map.shape}"
        )

    return np.clip(noise_map - falloff_map, 0.0, 1.0).astype(np.float32)


def compose_height_map(
    chunk_size: int,
    scale: float,
    octaves: int,
    persistence: float,
    lacunarity: float,
    seed: int,
    offset: tuple[float, float] = (0.0, 0.0),
    normalize_mode: NormalizeMode = NormalizeMode.LOCAL,
    use_falloff: bool = False,
) -> NDArray[np.float32]:
    """Generate the bordered height field for a chunk.

    The grid is ``chunk_size + 2`` on each side; the extra ring holds
    the neighbouring chunk's samples for seam-correct normals.

    Returns:
        Array of shape (chunk_size + 2, chunk_size + 2), float32.
    """
    bordered_size = chunk_size + 2
    noise_map = generate_noise_map(
        bordered_size,
        bordered_size,
        scale,
        octaves,
        persistence,
        lacunarity,
        seed,
        offset,
        normalize_mode,
    )

    falloff_map = cached_falloff_map(bordered_size) if use_falloff else None
    return apply_falloff(noise_map, falloff_map)
