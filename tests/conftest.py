"""Shared test fixtures for terrain tests."""

import time
from typing import Callable, Iterator

import pytest

from landmass.config import ChunkSettings, GeneratorConfig, NoiseSettings, TerrainSettings
from landmass.mapgen import MapGenerator
from landmass.terrain.noise import NormalizeMode


def _wait_until(predicate: Callable[[], bool], timeout: float = 10.0) -> None:
    deadline = time.time() + timeout
    while not predicate():
        if time.time() > deadline:
            pytest.fail("Timed out waiting for background work")
        time.sleep(0.001)


@pytest.fixture
def wait_until() -> Callable[..., None]:
    """Poll a predicate until it holds, failing the test after a timeout."""
    return _wait_until


@pytest.fixture
def small_config() -> GeneratorConfig:
    """Smallest supported chunk (49 vertices per side), global noise, linear curve."""
    return GeneratorConfig(
        noise=NoiseSettings(
            scale=25.0,
            octaves=4,
            persistence=0.5,
            lacunarity=2.0,
            seed=42,
            normalize_mode=NormalizeMode.GLOBAL,
        ),
        terrain=TerrainSettings(
            height_multiplier=20.0,
            height_curve=[(0.0, 0.0), (1.0, 1.0)],
            curve_mode="linear",
        ),
        chunks=ChunkSettings(chunk_size_index=0, flatshaded_chunk_size_index=0),
    )


@pytest.fixture
def generator(small_config: GeneratorConfig) -> Iterator[MapGenerator]:
    """MapGenerator over the small config, shut down after the test."""
    gen = MapGenerator(small_config, max_workers=4)
    yield gen
    gen.shutdown()
