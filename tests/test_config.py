"""Tests for configuration loading and validation."""

import pytest
from pydantic import ValidationError

from landmass.config import (
    ChunkSettings,
    GeneratorConfig,
    NoiseSettings,
    TerrainSettings,
    default_regions,
    find_config,
    list_configs,
    load_config,
    resolve_chunk_size,
)
from landmass.exceptions import UnsupportedChunkSizeError
from landmass.terrain.curve import CurveMode
from landmass.terrain.noise import MIN_SCALE, NormalizeMode


class TestDefaults:
    """Tests for default configuration values."""

    def test_default_config(self) -> None:
        """Defaults describe the largest smooth-shaded chunk."""
        config = GeneratorConfig()

        assert config.noise.normalize_mode == NormalizeMode.GLOBAL
        assert config.terrain.curve_mode == CurveMode.SMOOTH
        assert config.map_chunk_size == 241
        assert config.chunks.preview_lod == 0
        assert config.tick.tick_duration_ms == 16
        assert config.regions == default_regions()

    def test_flat_shading_uses_smaller_table(self) -> None:
        """Flat-shaded chunks come from their own size table."""
        config = GeneratorConfig(terrain=TerrainSettings(use_flat_shading=True))
        assert config.map_chunk_size == 97

    def test_height_range(self) -> None:
        """Min and max height follow the curve ends and both scales."""
        terrain = TerrainSettings(uniform_scale=2.0, height_multiplier=10.0)
        assert terrain.min_height == 0.0
        assert terrain.max_height == pytest.approx(20.0)

    def test_linear_mode_keeps_default_keys(self) -> None:
        """Switching to linear mode interpolates the default keys, not the identity."""
        terrain = TerrainSettings(curve_mode="linear")
        assert float(terrain.curve.evaluate(0.25)) == pytest.approx(0.03125)
        assert float(terrain.curve.evaluate(0.7)) == pytest.approx(0.525)


class TestNoiseClamps:
    """Tests for noise parameter clamping."""

    @pytest.mark.parametrize("scale", [0.0, -3.0])
    def test_scale(self, scale: float) -> None:
        """Non-positive scale becomes the minimum."""
        assert NoiseSettings(scale=scale).scale == MIN_SCALE

    def test_octaves(self) -> None:
        """Negative octave counts become zero."""
        assert NoiseSettings(octaves=-2).octaves == 0

    def test_persistence(self) -> None:
        """Persistence is kept within [0, 1]."""
        assert NoiseSettings(persistence=1.5).persistence == 1.0
        assert NoiseSettings(persistence=-0.5).persistence == 0.0

    def test_lacunarity(self) -> None:
        """Lacunarity below 1 becomes 1."""
        assert NoiseSettings(lacunarity=0.5).lacunarity == 1.0


class TestValidation:
    """Tests for rejected values."""

    def test_chunk_size_index_out_of_range(self) -> None:
        """Indices past the size table are rejected."""
        with pytest.raises(ValidationError):
            ChunkSettings(chunk_size_index=9)

    def test_preview_lod_out_of_range(self) -> None:
        """Preview LOD must be supported."""
        with pytest.raises(ValidationError):
            ChunkSettings(preview_lod=5)

    def test_bad_curve(self) -> None:
        """Curves with repeated key times are rejected."""
        with pytest.raises(ValidationError):
            TerrainSettings(height_curve=[(0.5, 0.0), (0.5, 1.0)])

    def test_resolve_chunk_size(self) -> None:
        """Table entries gain the shared edge vertex."""
        assert resolve_chunk_size(0, flat_shaded=False) == 49
        assert resolve_chunk_size(2, flat_shaded=True) == 97
        with pytest.raises(UnsupportedChunkSizeError):
            resolve_chunk_size(3, flat_shaded=True)


class TestLoading:
    """Tests for TOML loading."""

    def test_load_config(self, tmp_path) -> None:
        """Values from TOML override the defaults."""
        path = tmp_path / "test.toml"
        path.write_text(
            """
[noise]
seed = 7
scale = 30.0
normalize_mode = "local"

[terrain]
use_falloff = true
curve_mode = "linear"
height_curve = [[0.0, 0.0], [1.0, 1.0]]

[chunks]
chunk_size_index = 1

[[regions]]
name = "water"
height = 0.0
colour = [0, 0, 255]
"""
        )

        config = load_config(path)

        assert config.noise.seed == 7
        assert config.noise.normalize_mode == NormalizeMode.LOCAL
        assert config.terrain.use_falloff
        assert config.terrain.curve.evaluate(0.25) == pytest.approx(0.25)
        assert config.map_chunk_size == 73
        assert len(config.regions) == 1
        assert config.regions[0].colour == (0, 0, 255)

    def test_load_missing(self, tmp_path) -> None:
        """Missing files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.toml")

    def test_bundled_configs(self) -> None:
        """Bundled configs are listed and load."""
        names = list_configs()
        assert "default" in names
        assert "island" in names

        for name in names:
            assert isinstance(load_config(find_config(name)), GeneratorConfig)

    def test_find_by_path(self, tmp_path) -> None:
        """Explicit paths are returned as given."""
        path = tmp_path / "custom.toml"
        path.write_text("")
        assert find_config(str(path)) == path

    def test_find_unknown(self) -> None:
        """Unknown names raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            find_config("no_such_config")

    def test_unknown_name_lists_bundled(self) -> None:
        """The error for an unknown name names the bundled configs."""
        with pytest.raises(FileNotFoundError, match="island"):
            find_config("no_such_config")

    def test_missing_path(self, tmp_path) -> None:
        """A path that does not exist is not looked up among bundled configs."""
        with pytest.raises(FileNotFoundError):
            find_config(str(tmp_path / "default.toml"))

    def test_bundled_by_name(self) -> None:
        """Bare names resolve inside the bundled configs directory."""
        path = find_config("default")
        assert path.name == "default.toml"
        assert path.parent.name == "configs"
