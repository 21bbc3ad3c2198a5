"""Generator configuration models and TOML loading."""

import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, PrivateAttr, field_validator, model_validator

from .exceptions import UnsupportedChunkSizeError
from .terrain.curve import CurveMode, HeightCurve
from .terrain.mesh import (
    NUM_SUPPORTED_LODS,
    SUPPORTED_CHUNK_SIZES,
    SUPPORTED_FLATSHADED_CHUNK_SIZES,
    supports_all_lods,
)
from .terrain.noise import MIN_SCALE, NormalizeMode
from .terrain.texture import TerrainType


class NoiseSettings(BaseModel):
    """Noise sampling parameters.

    Out-of-range values are clamped rather than rejected so a config
    always produces renderable terrain.
    """

    scale: float = Field(default=50.0, description="Sampling scale, larger is smoother")
    octaves: int = Field(default=4, description="Number of noise layers")
    persistence: float = Field(default=0.5, description="Amplitude multiplier per octave")
    lacunarity: float = Field(default=2.0, description="Frequency multiplier per octave")
    seed: int = Field(default=0, description="Seed for per-octave offsets")
    offset: tuple[float, float] = Field(
        default=(0.0, 0.0), description="World-space offset added to every chunk centre"
    )
    normalize_mode: NormalizeMode = Field(
        default=NormalizeMode.GLOBAL,
        description="local: per-grid min/max; global: comparable across chunks",
    )

    @field_validator("scale")
    @classmethod
    def _clamp_scale(cls, value: float) -> float:
        return value if value > 0 else MIN_SCALE

    @field_validator("octaves")
    @classmethod
    def _clamp_octaves(cls, value: int) -> int:
        return max(value, 0)

    @field_validator("persistence")
    @classmethod
    def _clamp_persistence(cls, value: float) -> float:
        return min(max(value, 0.0), 1.0)

    @field_validator("lacunarity")
    @classmethod
    def _clamp_lacunarity(cls, value: float) -> float:
        return max(value, 1.0)


class TerrainSettings(BaseModel):
    """Mesh shaping parameters."""

    uniform_scale: float = Field(default=2.5, description="World units per grid cell")
    height_multiplier: float = Field(default=28.0, description="Height after the curve")
    height_curve: list[tuple[float, float]] = Field(
        default_factory=lambda: [(0.0, 0.0), (0.4, 0.05), (1.0, 1.0)],
        description="(time, value) keys of the height response curve",
    )
    curve_mode: CurveMode = Field(default=CurveMode.SMOOTH, description="Key interpolation")
    use_falloff: bool = Field(default=False, description="Subtract the island falloff mask")
    use_flat_shading: bool = Field(default=False, description="Build flat-shaded meshes")

    _curve: HeightCurve = PrivateAttr()

    @field_validator("height_curve")
    @classmethod
    def _check_curve(cls, value: list[tuple[float, float]]) -> list[tuple[float, float]]:
        HeightCurve(value)
        return value

    def model_post_init(self, __context: object) -> None:
        self._curve = HeightCurve(self.height_curve, self.curve_mode)

    @property
    def curve(self) -> HeightCurve:
        """Height response curve built from ``height_curve``."""
        return self._curve

    @property
    def min_height(self) -> float:
        """Lowest mesh height in world units."""
        return self.uniform_scale * self.height_multiplier * float(self._curve.evaluate(0.0))

    @property
    def max_height(self) -> float:
        """Highest mesh height in world units."""
        return self.uniform_scale * self.height_multiplier * float(self._curve.evaluate(1.0))


class ChunkSettings(BaseModel):
    """Chunk size and preview LOD selection."""

    chunk_size_index: int = Field(
        default=len(SUPPORTED_CHUNK_SIZES) - 1,
        ge=0,
        le=len(SUPPORTED_CHUNK_SIZES) - 1,
        description="Index into SUPPORTED_CHUNK_SIZES",
    )
    flatshaded_chunk_size_index: int = Field(
        default=len(SUPPORTED_FLATSHADED_CHUNK_SIZES) - 1,
        ge=0,
        le=len(SUPPORTED_FLATSHADED_CHUNK_SIZES) - 1,
        description="Index into SUPPORTED_FLATSHADED_CHUNK_SIZES",
    )
    preview_lod: int = Field(
        default=0, ge=0, le=NUM_SUPPORTED_LODS - 1, description="LOD used by previews"
    )


class TickSettings(BaseModel):
    """Main loop timing."""

    tick_duration_ms: int = Field(default=16, ge=1, description="Time between queue drains")


def default_regions() -> list[TerrainType]:
    """Colour bands used when a config declares none."""
    return [
        TerrainType(name="deep_water", height=0.0, colour=(30, 60, 160)),
        TerrainType(name="shallow_water", height=0.3, colour=(50, 100, 200)),
        TerrainType(name="sand", height=0.4, colour=(210, 200, 125)),
        TerrainType(name="grass", height=0.45, colour=(85, 150, 25)),
        TerrainType(name="forest", height=0.55, colour=(60, 105, 20)),
        TerrainType(name="rock", height=0.6, colour=(90, 70, 65)),
        TerrainType(name="high_rock", height=0.7, colour=(75, 60, 55)),
        TerrainType(name="snow", height=0.9, colour=(255, 255, 255)),
    ]


def resolve_chunk_size(index: int, flat_shaded: bool) -> int:
    """Interior vertices per chunk side for a size table entry.

    Raises:
        UnsupportedChunkSizeError: If ``index`` is outside the table.
    """
    table = SUPPORTED_FLATSHADED_CHUNK_SIZES if flat_shaded else SUPPORTED_CHUNK_SIZES
    if not 0 <= index < len(table):
        raise UnsupportedChunkSizeError(
            f"Chunk size index {index} outside 0..{len(table) - 1}"
            f" ({'flat-shaded' if flat_shaded else 'smooth'} table)"
        )
    return table[index] + 1


class GeneratorConfig(BaseModel):
    """Complete configuration for a map generator.

    Passed explicitly to everything that needs chunk dimensions.
    """

    noise: NoiseSettings = Field(default_factory=NoiseSettings)
    terrain: TerrainSettings = Field(default_factory=TerrainSettings)
    chunks: ChunkSettings = Field(default_factory=ChunkSettings)
    tick: TickSettings = Field(default_factory=TickSettings)
    regions: list[TerrainType] = Field(default_factory=default_regions)

    @model_validator(mode="after")
    def _check_chunk_size(self) -> "GeneratorConfig":
        if not supports_all_lods(self.map_chunk_size):
            raise ValueError(
                f"Chunk size {self.map_chunk_size} cannot be stepped by every LOD"
            )
        return self

    @property
    def map_chunk_size(self) -> int:
        """Interior vertices per chunk side for the active size table."""
        if self.terrain.use_flat_shading:
            return resolve_chunk_size(self.chunks.flatshaded_chunk_size_index, True)
        return resolve_chunk_size(self.chunks.chunk_size_index, False)


def _configs_dir() -> Path:
    return Path(__file__).parent.parent.parent / "configs"


def load_config(config_path: Path) -> GeneratorConfig:
    """Read a generator config from TOML.

    Tables that are left out fall back to their defaults, so a file only
    needs the settings it changes.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        tomllib.TOMLDecodeError: If the file is not valid TOML.
        pydantic.ValidationError: If a value is outside its allowed range.
    """
    with open(config_path, "rb") as config_file:
        return GeneratorConfig.model_validate(tomllib.load(config_file))


def find_config(name: str) -> Path:
    """Resolve a config name or path to a TOML file.

    Anything that looks like a path (a separator or a ``.toml`` suffix)
    is used as given. A bare name such as ``island`` is looked up among
    the bundled configs.

    Raises:
        FileNotFoundError: If nothing matches.
    """
    candidate = Path(name)
    if candidate.suffix == ".toml" or len(candidate.parts) > 1:
        if not candidate.is_file():
            raise FileNotFoundError(f"No config file at {candidate}")
        return candidate

    bundled = _configs_dir() / f"{name}.toml"
    if bundled.is_file():
        return bundled

    raise FileNotFoundError(
        f"Unknown config {name!r}; bundled configs are {', '.join(list_configs()) or 'none'}"
    )


def list_configs() -> list[str]:
    """Names of the bundled TOML configs, sorted."""
    return sorted(path.stem for path in _configs_dir().glob("*.toml"))
