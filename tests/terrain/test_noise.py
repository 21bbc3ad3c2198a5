"""Tests for noise generation functions."""

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from landmass.terrain.noise import (
    NormalizeMode,
    generate_noise_map,
    inverse_lerp,
    max_possible_height,
    octave_offsets,
    perlin_noise,
)


def _noise(**overrides) -> np.ndarray:
    params = dict(
        width=32,
        height=32,
        scale=20.0,
        octaves=4,
        persistence=0.5,
        lacunarity=2.0,
        seed=42,
        offset=(0.0, 0.0),
        normalize_mode=NormalizeMode.LOCAL,
    )
    params.update(overrides)
    return generate_noise_map(**params)


class TestPerlinNoise:
    """Tests for the raw gradient noise."""

    def test_output_range(self) -> None:
        """Values stay within [0, 1]."""
        xs = np.linspace(-50, 50, 200)
        values = perlin_noise(xs[np.newaxis, :], xs[:, np.newaxis] * 0.37)
        assert values.min() >= 0.0
        assert values.max() <= 1.0

    def test_lattice_points_are_half(self) -> None:
        """Noise is 0.5 on integer coordinates."""
        xs = np.arange(-5, 5, dtype=np.float64)
        np.testing.assert_array_equal(perlin_noise(xs, xs + 3), 0.5)

    def test_broadcasts_to_grid(self) -> None:
        """Row and column vectors produce a full grid."""
        values = perlin_noise(np.zeros((1, 7)) + 0.3, np.zeros((4, 1)) + 0.6)
        assert values.shape == (4, 7)

    def test_continuous(self) -> None:
        """Nearby samples have nearby values."""
        xs = np.linspace(0.0, 10.0, 10001)
        values = perlin_noise(xs, 0.5)
        assert np.abs(np.diff(values)).max() < 0.01

    def test_not_constant(self) -> None:
        """Off-lattice samples vary."""
        xs = np.linspace(0.1, 20.1, 500)
        assert np.std(perlin_noise(xs, 0.3)) > 0.01


class TestOctaveOffsets:
    """Tests for per-octave offset generation."""

    def test_shape(self) -> None:
        """One (x, y) pair per octave."""
        assert octave_offsets(1, 5).shape == (5, 2)

    def test_zero_octaves(self) -> None:
        """Zero octaves yield no offsets."""
        assert octave_offsets(1, 0).shape == (0, 2)

    def test_y_offset_subtracted(self) -> None:
        """Caller x is added, caller y is subtracted."""
        base = octave_offsets(7, 3)
        shifted = octave_offsets(7, 3, (10.0, 10.0))
        np.testing.assert_array_equal(shifted - base, [[10.0, -10.0]] * 3)

    def test_negative_seeds(self) -> None:
        """Negative seeds are accepted and stay distinct from each other and their positives."""
        minus_one = octave_offsets(-1, 4)
        minus_two = octave_offsets(-2, 4)

        assert minus_one.shape == (4, 2)
        assert not np.array_equal(minus_one, minus_two)
        assert not np.array_equal(minus_one, octave_offsets(1, 4))
        np.testing.assert_array_equal(minus_one, octave_offsets(-1, 4))

    def test_range(self) -> None:
        """Random part lies within the offset range."""
        offsets = octave_offsets(3, 64)
        assert np.all(np.abs(offsets) <= 100_000)


class TestHelpers:
    """Tests for normalisation helpers."""

    def test_max_possible_height(self) -> None:
        """Sum of persistence powers."""
        assert max_possible_height(4, 0.5) == 1.875
        assert max_possible_height(0, 0.5) == 0.0

    def test_inverse_lerp_degenerate(self) -> None:
        """Equal bounds map everything to 0."""
        np.testing.assert_array_equal(inverse_lerp(2.0, 2.0, np.array([1.0, 2.0])), 0.0)


class TestGenerateNoiseMap:
    """Tests for multi-octave height map generation."""

    def test_output_shape(self) -> None:
        """Output is (height, width)."""
        assert _noise(width=20, height=10).shape == (10, 20)

    def test_output_dtype(self) -> None:
        """Output is float32."""
        assert _noise().dtype == np.float32

    def test_deterministic_with_same_seed(self) -> None:
        """Same parameters produce identical output."""
        np.testing.assert_array_equal(_noise(seed=123), _noise(seed=123))

    def test_deterministic_across_threads(self) -> None:
        """Concurrent calls reproduce the single-threaded result bit for bit."""
        expected = _noise(seed=9, normalize_mode=NormalizeMode.GLOBAL)
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(
                pool.map(
                    lambda _: _noise(seed=9, normalize_mode=NormalizeMode.GLOBAL),
                    range(8),
                )
            )
        for result in results:
            np.testing.assert_array_equal(result, expected)

    def test_negative_seed(self) -> None:
        """Negative seeds generate valid, seed-dependent maps."""
        grid = _noise(seed=-42, normalize_mode=NormalizeMode.GLOBAL)

        assert grid.shape == _noise().shape
        assert np.all(np.isfinite(grid))
        assert grid.min() >= 0.0
        assert not np.allclose(grid, _noise(seed=-43, normalize_mode=NormalizeMode.GLOBAL))

    def test_different_seed_different_output(self) -> None:
        """Different seeds produce different output."""
        assert not np.allclose(_noise(seed=123), _noise(seed=456))

    def test_local_normalisation_bounds(self) -> None:
        """Local mode spans exactly [0, 1]."""
        result = _noise(normalize_mode=NormalizeMode.LOCAL)
        assert result.min() == 0.0
        assert result.max() == 1.0

    def test_global_never_negative(self) -> None:
        """Global mode clamps the low end at 0."""
        result = _noise(normalize_mode=NormalizeMode.GLOBAL)
        assert result.min() >= 0.0
        assert not np.isnan(result).any()

    def test_global_upper_end_not_clamped(self) -> None:
        """Global mode lets tall terrain exceed 1."""
        result = _noise(
            width=64, height=64, octaves=1, scale=10.0, normalize_mode=NormalizeMode.GLOBAL
        )
        assert result.max() > 1.0

    def test_global_adjacent_windows_line_up(self) -> None:
        """Shifting the offset shifts the grid, so chunks tile seamlessly."""
        base = _noise(normalize_mode=NormalizeMode.GLOBAL)
        east = _noise(offset=(8.0, 0.0), normalize_mode=NormalizeMode.GLOBAL)
        north = _noise(offset=(0.0, 8.0), normalize_mode=NormalizeMode.GLOBAL)

        np.testing.assert_array_equal(east[:, :-8], base[:, 8:])
        np.testing.assert_array_equal(north[8:, :], base[:-8, :])

    @pytest.mark.parametrize("scale", [0.0, -5.0])
    def test_non_positive_scale_is_tolerated(self, scale: float) -> None:
        """Scale <= 0 is replaced by a small epsilon instead of failing."""
        result = _noise(scale=scale)
        assert np.isfinite(result).all()

    @pytest.mark.parametrize("mode", list(NormalizeMode))
    def test_zero_octaves_is_flat(self, mode: NormalizeMode) -> None:
        """No octaves gives a flat zero grid in either mode."""
        result = _noise(octaves=0, normalize_mode=mode)
        np.testing.assert_array_equal(result, 0.0)

    def test_more_octaves_more_detail(self) -> None:
        """More octaves adds higher frequency detail."""
        low = _noise(width=64, height=64, octaves=1)
        high = _noise(width=64, height=64, octaves=6)

        grad_low = np.abs(np.diff(low, axis=0)).mean()
        grad_high = np.abs(np.diff(high, axis=0)).mean()
        assert grad_high > grad_low

    def test_reference_scenario(self) -> None:
        """16x16 global grid: finite, non-negative and reproducible."""
        params = dict(
            width=16,
            height=16,
            scale=50.0,
            octaves=4,
            persistence=0.5,
            lacunarity=2.0,
            seed=42,
            offset=(0.0, 0.0),
            normalize_mode=NormalizeMode.GLOBAL,
        )
        first = generate_noise_map(**params)
        second = generate_noise_map(**params)

        assert first.shape == (16, 16)
        assert not np.isnan(first).any()
        assert first.min() >= 0.0
        np.testing.assert_array_equal(first, second)
