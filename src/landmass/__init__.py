"""Chunked procedural terrain: height fields, meshes and background dispatch."""

from .chunks import (
    ChunkManager,
    LODMesh,
    TerrainChunk,
    chunk_center,
    chunk_coords,
    chunks_in_range,
)
from .config import (
    ChunkSettings,
    GeneratorConfig,
    NoiseSettings,
    TerrainSettings,
    TickSettings,
    find_config,
    load_config,
)
from .dispatch import DispatchQueue
from .exceptions import (
    DimensionMismatchError,
    DispatcherClosedError,
    TerrainError,
    UnsupportedChunkSizeError,
    UnsupportedLODError,
)
from .mapgen import DrawMode, MapGenerator
from .tick import TickLoop, TickResult, run_ticks

__all__ = [
    # Config
    "ChunkSettings",
    "GeneratorConfig",
    "NoiseSettings",
    "TerrainSettings",
    "TickSettings",
    "find_config",
    "load_config",
    # Generation
    "DrawMode",
    "MapGenerator",
    # Dispatch
    "DispatchQueue",
    # Chunks
    "ChunkManager",
    "LODMesh",
    "TerrainChunk",
    "chunk_center",
    "chunk_coords",
    "chunks_in_range",
    # Tick
    "TickLoop",
    "TickResult",
    "run_ticks",
    # Exceptions
    "TerrainError",
    "DimensionMismatchError",
    "UnsupportedLODError",
    "UnsupportedChunkSizeError",
    "DispatcherClosedError",
]
