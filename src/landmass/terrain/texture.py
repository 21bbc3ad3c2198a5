"""Preview images for height fields: greyscale and banded colour maps."""

from typing import Sequence

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, Field


class TerrainType(BaseModel, frozen=True):
    """A colour band that starts at ``height``."""

    name: str = Field(default="", description="Label for the band")
    height: float = Field(description="Lowest height (inclusive) painted in this colour")
    colour: tuple[int, int, int] = Field(description="RGB colour, 0-255 per channel")


def texture_from_height_map(height_map: NDArray[np.float32]) -> NDArray[np.uint8]:
    """Greyscale RGB image: 0 is black, 1 is white.

    Args:
        height_map: Height field, values expected in [0, 1].

    Returns:
        Array of shape (rows, cols, 3), uint8.
    """
    grey = np.clip(height_map, 0.0, 1.0) * 255.0
    grey = np.rint(grey).astype(np.uint8)
    return np.repeat(grey[..., np.newaxis], 3, axis=-1)


def colour_map_from_height_map(
    height_map: NDArray[np.float32],
    regions: Sequence[TerrainType],
) -> NDArray[np.uint8]:
    """Paint each cell with the colour of the highest band it reaches.

    Bands are applied in ascending height order, so a cell ends up with
    the last band whose threshold it meets or exceeds. Cells below every
    band stay zero.

    Args:
        height_map: Height field.
        regions: Colour bands in any order.

    Returns:
        Array of shape (rows, cols, 3), uint8.
    """
    colour_map = np.zeros(height_map.shape + (3,), dtype=np.uint8)
    for region in sorted(regions, key=lambda r: r.height):
        colour_map[height_map >= region.height] = region.colour
    return colour_map
