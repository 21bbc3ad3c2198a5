"""Procedural terrain generation package.

Coherent noise height fields, island falloff masks, height response
curves and LOD-aware mesh construction for chunked worlds.
"""

from .curve import CurveMode, HeightCurve
from .falloff import cached_falloff_map, generate_falloff_map
from .heightmap import MapData, apply_falloff, compose_height_map
from .mesh import (
    NUM_SUPPORTED_LODS,
    SUPPORTED_CHUNK_SIZES,
    SUPPORTED_FLATSHADED_CHUNK_SIZES,
    MeshData,
    build_terrain_mesh,
    lod_stride,
)
from .noise import NormalizeMode, generate_noise_map, perlin_noise
from .texture import TerrainType, colour_map_from_height_map, texture_from_height_map

__all__ = [
    "CurveMode",
    "HeightCurve",
    "MapData",
    "MeshData",
    "NUM_SUPPORTED_LODS",
    "NormalizeMode",
    "SUPPORTED_CHUNK_SIZES",
    "SUPPORTED_FLATSHADED_CHUNK_SIZES",
    "TerrainType",
    "apply_falloff",
    "build_terrain_mesh",
    "cached_falloff_map",
    "colour_map_from_height_map",
    "compose_height_map",
    "generate_falloff_map",
    "generate_noise_map",
    "lod_stride",
    "perlin_noise",
    "texture_from_height_map",
]
