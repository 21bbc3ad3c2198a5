"""Map generation orchestration.

Owns the two dispatch queues (height fields and meshes) and turns the
configuration into per-chunk generation calls.
"""

from concurrent.futures import Future
from enum import Enum
from typing import Callable

import numpy as np
import structlog
from numpy.typing import NDArray

from .config import GeneratorConfig
from .dispatch import DispatchQueue
from .terrain.falloff import generate_falloff_map
from .terrain.heightmap import MapData, compose_height_map
from .terrain.mesh import MeshData, build_terrain_mesh
from .terrain.texture import colour_map_from_height_map, texture_from_height_map

logger = structlog.get_logger()


class DrawMode(str, Enum):
    """What a preview produces."""

    NOISE_MAP = "noise_map"
    COLOUR_MAP = "colour_map"
    MESH = "mesh"
    FALLOFF_MAP = "falloff_map"


class MapGenerator:
    """Generates chunk height fields and meshes, on or off the main thread.

    Usage:
        generator = MapGenerator(config)
        generator.request_map_data((0.0, 0.0), on_map_data)

        # main loop
        while running:
            generator.update()
    """

    def __init__(
        self,
        config: GeneratorConfig | None = None,
        max_workers: int | None = None,
    ):
        self.config = config or GeneratorConfig()
        self._map_queue: DispatchQueue[tuple[float, float], MapData] = DispatchQueue(
            self.generate_map_data, name="map_data", max_workers=max_workers
        )
        self._mesh_queue: DispatchQueue[tuple[MapData, int], MeshData] = DispatchQueue(
            self._mesh_from_request, name="mesh_data", max_workers=max_workers
        )

    @property
    def map_chunk_size(self) -> int:
        """Interior vertices per chunk side."""
        return self.config.map_chunk_size

    @property
    def in_flight(self) -> int:
        """Requests still being computed on worker threads."""
        return self._map_queue.in_flight + self._mesh_queue.in_flight

    def generate_map_data(self, center: tuple[float, float] = (0.0, 0.0)) -> MapData:
        """Generate the bordered height field for the chunk at ``center``.

        Pure with respect to the configuration, so it is safe to call from
        several worker threads at once.
        """
        noise = self.config.noise
        offset = (center[0] + noise.offset[0], center[1] + noise.offset[1])

        height_map = compose_height_map(
            self.map_chunk_size,
            noise.scale,
            noise.octaves,
            noise.persistence,
            noise.lacunarity,
            noise.seed,
            offset,
            noise.normalize_mode,
            use_falloff=self.config.terrain.use_falloff,
        )
        height_map.flags.writeable = False

        logger.debug(
            "map_data_generated",
            center=center,
            size=height_map.shape[0],
            falloff=self.config.terrain.use_falloff,
        )
        return MapData(height_map=height_map)

    def generate_mesh_data(self, map_data: MapData, lod: int) -> MeshData:
        """Build the mesh for ``map_data`` at ``lod`` using the terrain settings."""
        terrain = self.config.terrain
        return build_terrain_mesh(
            map_data.height_map,
            terrain.height_multiplier,
            terrain.curve,
            lod,
            flat_shaded=terrain.use_flat_shading,
        )

    def _mesh_from_request(self, request: tuple[MapData, int]) -> MeshData:
        map_data, lod = request
        return self.generate_mesh_data(map_data, lod)

    def request_map_data(
        self,
        center: tuple[float, float],
        callback: Callable[[MapData], None],
    ) -> "Future[MapData]":
        """Generate map data in the background; ``callback`` runs in ``update``."""
        return self._map_queue.request(center, callback)

    def request_mesh_data(
        self,
        map_data: MapData,
        lod: int,
        callback: Callable[[MeshData], None],
    ) -> "Future[MeshData]":
        """Build a mesh in the background; ``callback`` runs in ``update``."""
        return self._mesh_queue.request((map_data, lod), callback)

    def update(self) -> int:
        """Deliver finished map data, then finished meshes.

        Call once per tick from the main loop.

        Returns:
            Number of callbacks invoked.
        """
        return self._map_queue.process_completed() + self._mesh_queue.process_completed()

    def preview(self, draw_mode: DrawMode = DrawMode.NOISE_MAP) -> NDArray[np.uint8] | MeshData:
        """Generate the centre chunk synchronously for display.

        Returns:
            An RGB image for the map modes, or MeshData for MESH.
        """
        draw_mode = DrawMode(draw_mode)

        if draw_mode == DrawMode.FALLOFF_MAP:
            return texture_from_height_map(generate_falloff_map(self.map_chunk_size))

        map_data = self.generate_map_data((0.0, 0.0))
        if draw_mode == DrawMode.NOISE_MAP:
            return texture_from_height_map(map_data.height_map)
        if draw_mode == DrawMode.COLOUR_MAP:
            return colour_map_from_height_map(map_data.height_map, self.config.regions)
        return self.generate_mesh_data(map_data, self.config.chunks.preview_lod)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting requests and release worker threads."""
        self._map_queue.shutdown(wait=wait)
        self._mesh_queue.shutdown(wait=wait)

    def __enter__(self) -> "MapGenerator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()
