"""Chunk coordinates and per-chunk generation requests."""

import math
from dataclasses import dataclass
from typing import Callable, Sequence

import structlog

from .mapgen import MapGenerator
from .terrain.heightmap import MapData
from .terrain.mesh import MeshData

logger = structlog.get_logger()


def chunk_spacing(chunk_size: int) -> int:
    """Distance between neighbouring chunk centres.

    Neighbours share their edge row of vertices, so the spacing is one
    less than the number of vertices per side.
    """
    return chunk_size - 1


def chunk_coords(x: float, y: float, chunk_size: int) -> tuple[int, int]:
    """Convert a world position to the coordinates of the nearest chunk."""
    spacing = chunk_spacing(chunk_size)
    return (math.floor(x / spacing + 0.5), math.floor(y / spacing + 0.5))


def chunk_center(chunk_x: int, chunk_y: int, chunk_size: int) -> tuple[float, float]:
    """World position of a chunk's centre."""
    spacing = chunk_spacing(chunk_size)
    return (float(chunk_x * spacing), float(chunk_y * spacing))


def chunks_in_range(
    center: tuple[int, int], radius: int
) -> list[tuple[int, int]]:
    """Chunk coordinates within ``radius`` chunks of ``center`` (square)."""
    cx, cy = center
    return [
        (cx + dx, cy + dy)
        for dy in range(-radius, radius + 1)
        for dx in range(-radius, radius + 1)
    ]


@dataclass
class LODMesh:
    """One level of detail of a chunk's mesh."""

    lod: int
    mesh: MeshData | None = None
    has_requested_mesh: bool = False

    @property
    def has_mesh(self) -> bool:
        return self.mesh is not None

    def request_mesh(
        self,
        generator: MapGenerator,
        map_data: MapData,
        on_ready: Callable[["LODMesh"], None] | None = None,
    ) -> None:
        """Ask the generator for this LOD's mesh; ``on_ready`` fires on delivery."""
        self.has_requested_mesh = True

        def on_mesh_data(mesh: MeshData) -> None:
            self.mesh = mesh
            if on_ready:
                on_ready(self)

        generator.request_mesh_data(map_data, self.lod, on_mesh_data)


class TerrainChunk:
    """A chunk that fetches its height field, then meshes per LOD.

    All state changes happen inside callbacks, which run on the thread
    calling ``MapGenerator.update``. Results arriving after ``discard``
    are ignored.
    """

    def __init__(
        self,
        coord: tuple[int, int],
        generator: MapGenerator,
        on_updated: Callable[["TerrainChunk"], None] | None = None,
    ):
        self.coord = coord
        self.generator = generator
        self.on_updated = on_updated
        self.center = chunk_center(coord[0], coord[1], generator.map_chunk_size)

        self.map_data: MapData | None = None
        self.lod_meshes: dict[int, LODMesh] = {}
        self.current_lod: int | None = None
        self.discarded = False

        self._target_lod: int | None = None
        self._map_requested = False

    @property
    def mesh(self) -> MeshData | None:
        """Mesh at the current LOD, if one has been delivered."""
        if self.current_lod is None:
            return None
        return self.lod_meshes[self.current_lod].mesh

    def request_map_data(self) -> None:
        """Request the height field once."""
        if self._map_requested:
            return
        self._map_requested = True
        self.generator.request_map_data(self.center, self._on_map_data_received)

    def _on_map_data_received(self, map_data: MapData) -> None:
        if self.discarded:
            logger.debug("stale_map_data_ignored", coord=self.coord)
            return
        self.map_data = map_data
        if self._target_lod is not None:
            self.set_lod(self._target_lod)

    def set_lod(self, lod: int) -> None:
        """Switch to ``lod``, requesting its mesh if it hasn't been built yet.

        Before the height field arrives this only records the target.
        """
        self._target_lod = lod
        if self.map_data is None:
            self.request_map_data()
            return

        lod_mesh = self.lod_meshes.get(lod)
        if lod_mesh is None:
            lod_mesh = self.lod_meshes[lod] = LODMesh(lod=lod)

        if lod_mesh.has_mesh:
            self._show(lod)
        elif not lod_mesh.has_requested_mesh:
            lod_mesh.request_mesh(self.generator, self.map_data, self._on_lod_mesh_ready)

    def _on_lod_mesh_ready(self, lod_mesh: LODMesh) -> None:
        if self.discarded:
            logger.debug("stale_mesh_ignored", coord=self.coord, lod=lod_mesh.lod)
            return
        # A later set_lod may have moved on to a different level
        if lod_mesh.lod == self._target_lod:
            self._show(lod_mesh.lod)

    def _show(self, lod: int) -> None:
        if self.current_lod == lod:
            return
        self.current_lod = lod
        logger.debug("chunk_lod_changed", coord=self.coord, lod=lod)
        if self.on_updated:
            self.on_updated(self)

    def discard(self) -> None:
        """Ignore any results still in flight for this chunk."""
        self.discarded = True


class ChunkManager:
    """Creates terrain chunks around a viewer and assigns their LODs.

    ``detail_levels[i]`` is the LOD for chunks ``i`` chunks away from the
    viewer's chunk (Chebyshev distance); farther chunks use the last entry.
    Chunks are never evicted.
    """

    def __init__(
        self,
        generator: MapGenerator,
        detail_levels: Sequence[int] = (0,),
        on_chunk_updated: Callable[[TerrainChunk], None] | None = None,
    ):
        if not detail_levels:
            raise ValueError("detail_levels must name at least one LOD")
        self.generator = generator
        self.detail_levels = tuple(detail_levels)
        self.on_chunk_updated = on_chunk_updated
        self._chunks: dict[tuple[int, int], TerrainChunk] = {}

    @property
    def chunk_count(self) -> int:
        return len(self._chunks)

    def get_chunk(self, coord: tuple[int, int]) -> TerrainChunk | None:
        """Get an existing chunk, or None."""
        return self._chunks.get(coord)

    def lod_for_distance(self, distance: int) -> int:
        """LOD for a chunk ``distance`` chunks from the viewer."""
        return self.detail_levels[min(distance, len(self.detail_levels) - 1)]

    def _get_or_create_chunk(self, coord: tuple[int, int]) -> TerrainChunk:
        chunk = self._chunks.get(coord)
        if chunk is None:
            chunk = TerrainChunk(coord, self.generator, self.on_chunk_updated)
            self._chunks[coord] = chunk
            chunk.request_map_data()
        return chunk

    def update_viewer(
        self, viewer_x: float, viewer_y: float, radius: int
    ) -> list[TerrainChunk]:
        """Make sure every chunk within ``radius`` exists at the right LOD.

        Returns:
            The chunks in range, nearest ring first.
        """
        viewer_chunk = chunk_coords(viewer_x, viewer_y, self.generator.map_chunk_size)
        coords = sorted(
            chunks_in_range(viewer_chunk, radius),
            key=lambda c: max(abs(c[0] - viewer_chunk[0]), abs(c[1] - viewer_chunk[1])),
        )

        visible = []
        for coord in coords:
            distance = max(abs(coord[0] - viewer_chunk[0]), abs(coord[1] - viewer_chunk[1]))
            chunk = self._get_or_create_chunk(coord)
            chunk.set_lod(self.lod_for_distance(distance))
            visible.append(chunk)
        return visible
