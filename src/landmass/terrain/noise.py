"""Noise generation functions for chunked height fields.

Provides vectorised 2D gradient (Perlin) noise and the multi-octave
height map generator with local and global normalisation.
"""

from enum import Enum

import numpy as np
from numpy.typing import ArrayLike, NDArray

# Smallest usable sampling scale; anything at or below zero is bumped here.
MIN_SCALE = 0.0001

# Per-octave offsets are drawn from [-OCTAVE_OFFSET_RANGE, OCTAVE_OFFSET_RANGE).
OCTAVE_OFFSET_RANGE = 100_000

# Ken Perlin's reference permutation. The noise itself is seedless;
# seeds only move the sampling window through the octave offsets.
_PERMUTATION = np.array([
    151, 160, 137, 91, 90, 15, 131, 13, 201, 95, 96, 53, 194, 233, 7, 225,
    140, 36, 103, 30, 69, 142, 8, 99, 37, 240, 21, 10, 23, 190, 6, 148,
    247, 120, 234, 75, 0, 26, 197, 62, 94, 252, 219, 203, 117, 35, 11, 32,
    57, 177, 33, 88, 237, 149, 56, 87, 174, 20, 125, 136, 171, 168, 68, 175,
    74, 165, 71, 134, 139, 48, 27, 166, 77, 146, 158, 231, 83, 111, 229, 122,
    60, 211, 133, 230, 220, 105, 92, 41, 55, 46, 245, 40, 244, 102, 143, 54,
    65, 25, 63, 161, 1, 216, 80, 73, 209, 76, 132, 187, 208, 89, 18, 169,
    200, 196, 135, 130, 116, 188, 159, 86, 164, 100, 109, 198, 173, 186, 3, 64,
    52, 217, 226, 250, 124, 123, 5, 202, 38, 147, 118, 126, 255, 82, 85, 212,
    207, 206, 59, 227, 47, 16, 58, 17, 182, 189, 28, 42, 223, 183, 170, 213,
    119, 248, 152, 2, 44, 154, 163, 70, 221, 153, 101, 155, 167, 43, 172, 9,
    129, 22, 39, 253, 19, 98, 108, 110, 79, 113, 224, 232, 178, 185, 112, 104,
    218, 246, 97, 228, 251, 34, 242, 193, 238, 210, 144, 12, 191, 179, 162, 241,
    81, 51, 145, 235, 249, 14, 239, 107, 49, 192, 214, 31, 181, 199, 106, 157,
    184, 84, 204, 176, 115, 121, 50, 45, 127, 4, 150, 254, 138, 236, 205, 93,
    222, 114, 67, 29, 24, 72, 243, 141, 128, 195, 78, 66, 215, 61, 156, 180,
], dtype=np.int64)

# Doubled so corner lookups never need to wrap
_P = np.concatenate([_PERMUTATION, _PERMUTATION])

_GRADIENTS = np.array(
    [[1, 1], [-1, 1], [1, -1], [-1, -1], [1, 0], [-1, 0], [0, 1], [0, -1]],
    dtype=np.float64,
)


class NormalizeMode(str, Enum):
    """How raw octave sums are mapped onto the output range."""

    LOCAL = "local"
    GLOBAL = "global"


def _fade(t: NDArray[np.float64]) -> NDArray[np.float64]:
    """6t^5 - 15t^4 + 10t^3"""
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def _grad(
    hashed: NDArray[np.int64],
    dx: NDArray[np.float64],
    dy: NDArray[np.float64],
) -> NDArray[np.float64]:
    g = _GRADIENTS[hashed & 7]
    return g[..., 0] * dx + g[..., 1] * dy


def perlin_noise(x: ArrayLike, y: ArrayLike) -> NDArray[np.float64]:
    """Sample 2D gradient noise at arbitrary coordinates.

    Inputs are broadcast against each other, so a row vector of x
    samples and a column vector of y samples yield a full grid.

    Args:
        x: Sample x coordinates.
        y: Sample y coordinates.

    Returns:
        Noise values in [0, 1], 0.5 on integer lattice points.
    """
    x, y = np.broadcast_arrays(
        np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64)
    )

    x_floor = np.floor(x)
    y_floor = np.floor(y)
    xf = x - x_floor
    yf = y - y_floor
    xi = x_floor.astype(np.int64) & 255
    yi = y_floor.astype(np.int64) & 255

    u = _fade(xf)
    v = _fade(yf)

    h00 = _P[_P[xi] + yi]
    h01 = _P[_P[xi] + yi + 1]
    h10 = _P[_P[xi + 1] + yi]
    h11 = _P[_P[xi + 1] + yi + 1]

    g00 = _grad(h00, xf, yf)
    g10 = _grad(h10, xf - 1.0, yf)
    g01 = _grad(h01, xf, yf - 1.0)
    g11 = _grad(h11, xf - 1.0, yf - 1.0)

    bottom = g00 + u * (g10 - g00)
    top = g01 + u * (g11 - g01)
    value = bottom + v * (top - bottom)

    return np.clip((value + 1.0) * 0.5, 0.0, 1.0)


def octave_offsets(
    seed: int,
    octaves: int,
    offset: tuple[float, float] = (0.0, 0.0),
) -> NDArray[np.float64]:
    """Draw one sampling offset per octave from a seeded stream.

    The caller's y offset is subtracted rather than added, so moving a
    chunk centre "up" in world space moves the sampling window down.

    Args:
        seed: Seed for the offset stream.
        octaves: Number of octaves.
        offset: Caller-supplied (x, y) translation.

    Returns:
        Array of shape (octaves, 2).
    """
    # SeedSequence entropy must be non-negative; the sign word keeps -n apart from n
    rng = np.random.default_rng([abs(seed), 1 if seed < 0 else 0])
    raw = rng.integers(
        -OCTAVE_OFFSET_RANGE, OCTAVE_OFFSET_RANGE, size=(max(octaves, 0), 2)
    ).astype(np.float64)
    raw[:, 0] += offset[0]
    raw[:, 1] -= offset[1]
    return raw


def max_possible_height(octaves: int, persistence: float) -> float:
    """Sum of octave amplitudes, the theoretical peak of the raw sum."""
    total = 0.0
    amplitude = 1.0
    for _ in range(octaves):
        total += amplitude
        amplitude *= persistence
    return total


def inverse_lerp(
    a: float, b: float, values: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Map [a, b] onto [0, 1], clamped. A degenerate range maps to 0."""
    if a == b:
        return np.zeros_like(values)
    return np.clip((values - a) / (b - a), 0.0, 1.0)


def generate_noise_map(
    width: int,
    height: int,
    scale: float,
    octaves: int,
    persistence: float,
    lacunarity: float,
    seed: int,
    offset: tuple[float, float] = (0.0, 0.0),
    normalize_mode: NormalizeMode = NormalizeMode.LOCAL,
) -> NDArray[np.float32]:
    """Generate a multi-octave noise height map.

    Each octave samples the noise at
    ``(position - half_extent + octave_offset) / scale * frequency``,
    rescales it to [-1, 1] and weights it by the octave amplitude.

    ``octaves`` and ``lacunarity`` are expected to be validated by the
    caller (see ``NoiseSettings``); only ``scale`` is guarded here.

    Args:
        width: Output width in cells.
        height: Output height in cells.
        scale: Sampling scale; values <= 0 are replaced by MIN_SCALE.
        octaves: Number of noise layers to sum.
        persistence: Amplitude multiplier between octaves.
        lacunarity: Frequency multiplier between octaves.
        seed: Seed for the per-octave offsets.
        offset: World-space (x, y) offset of the sampling window.
        normalize_mode: LOCAL remaps the grid's own min/max to [0, 1];
            GLOBAL divides by the theoretical peak so neighbouring
            chunks line up, clamping only the low end at 0.

    Returns:
        Array of shape (height, width), float32.
    """
    offsets = octave_offsets(seed, octaves, offset)

    if scale <= 0:
        scale = MIN_SCALE

    half_width = width / 2.0
    half_height = height / 2.0
    xs = np.arange(width, dtype=np.float64) - half_width
    ys = np.arange(height, dtype=np.float64) - half_height

    noise_map = np.zeros((height, width), dtype=np.float64)
    amplitude = 1.0
    frequency = 1.0

    for offset_x, offset_y in offsets:
        sample_x = (xs + offset_x) / scale * frequency
        sample_y = (ys + offset_y) / scale * frequency
        value = perlin_noise(sample_x[np.newaxis, :], sample_y[:, np.newaxis])
        noise_map += (value * 2.0 - 1.0) * amplitude

        amplitude *= persistence
        frequency *= lacunarity

    if normalize_mode == NormalizeMode.LOCAL:
        min_height = float(noise_map.min()) if noise_map.size else 0.0
        max_height = float(noise_map.max()) if noise_map.size else 0.0
        result = inverse_lerp(min_height, max_height, noise_map)
    else:
        peak = max_possible_height(octaves, persistence)
        if peak == 0:
            result = np.zeros_like(noise_map)
        else:
            # No upper clamp: values above 1 mark unusually tall terrain
            result = np.maximum((noise_map + 1.0) / peak, 0.0)

    return result.astype(np.float32)
