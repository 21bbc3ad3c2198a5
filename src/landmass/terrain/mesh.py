"""Terrain mesh construction from bordered height fields.

Converts a height field into vertices, triangles, UVs and normals at a
requested level of detail. The one-cell border around the chunk is
sampled for normal calculation only, so edge normals match the
neighbouring chunk and no lighting seam appears between them.
"""

from dataclasses import dataclass

import numpy as np
import structlog
from numpy.typing import ArrayLike, NDArray

from ..exceptions import DimensionMismatchError, UnsupportedLODError
from .curve import HeightCurve

logger = structlog.get_logger()

# Quads per chunk side at LOD 0. Every entry is divisible by every LOD stride.
SUPPORTED_CHUNK_SIZES = (48, 72, 96, 120, 144, 168, 192, 216, 240)

# Flat shading triples the vertex count, so only the smaller sizes qualify
SUPPORTED_FLATSHADED_CHUNK_SIZES = (48, 72, 96)

NUM_SUPPORTED_LODS = 5


def lod_stride(lod: int) -> int:
    """Vertex sampling stride for a LOD: 1, 2, 4, 6, 8."""
    if not 0 <= lod < NUM_SUPPORTED_LODS:
        raise UnsupportedLODError(
            f"LOD {lod} outside supported range 0..{NUM_SUPPORTED_LODS - 1}"
        )
    return 1 if lod == 0 else lod * 2


def supports_all_lods(chunk_size: int) -> bool:
    """Whether every supported LOD steps a chunk of ``chunk_size`` vertices evenly."""
    return all(
        (chunk_size - 1) % lod_stride(lod) == 0 for lod in range(NUM_SUPPORTED_LODS)
    )


def vertices_per_line(chunk_size: int, lod: int) -> int:
    """Mesh vertices along one side of a chunk interior at ``lod``."""
    return (chunk_size - 1) // lod_stride(lod) + 1


@dataclass(frozen=True)
class MeshData:
    """A finished terrain mesh.

    Arrays are made read-only on construction. In flat-shaded meshes
    every triangle owns its three vertices and carries a face normal.
    """

    vertices: NDArray[np.float32]  # (V, 3) x, y (height), z
    triangles: NDArray[np.int32]  # (T, 3) indices into vertices
    uvs: NDArray[np.float32]  # (V, 2)
    normals: NDArray[np.float32]  # (V, 3) unit length
    flat_shaded: bool = False

    def __post_init__(self) -> None:
        for array in (self.vertices, self.triangles, self.uvs, self.normals):
            array.flags.writeable = False

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.triangles)


def _normalize(vectors: NDArray[np.float64]) -> NDArray[np.float64]:
    lengths = np.linalg.norm(vectors, axis=-1, keepdims=True)
    return np.divide(
        vectors, lengths, out=np.zeros_like(vectors), where=lengths > 0
    )


def surface_normals(
    positions: NDArray[np.float64],
    triangles: NDArray[np.int64],
) -> NDArray[np.float64]:
    """Unit normal of each triangle: normalize((B - A) x (C - A))."""
    a = positions[triangles[:, 0]]
    b = positions[triangles[:, 1]]
    c = positions[triangles[:, 2]]
    return _normalize(np.cross(b - a, c - a))


def _sample_indices(size: int, stride: int, bordered: bool) -> NDArray[np.int64]:
    """Grid rows/columns visited at ``stride``, border ring included."""
    if not bordered:
        if (size - 1) % stride != 0:
            raise UnsupportedLODError(
                f"Stride {stride} does not evenly divide a {size}-vertex grid"
            )
        return np.arange(0, size, stride, dtype=np.int64)

    interior = size - 2
    if interior < 1:
        raise DimensionMismatchError(
            f"Bordered height field of size {size} has no interior"
        )
    if (interior - 1) % stride != 0:
        raise UnsupportedLODError(
            f"Stride {stride} does not evenly divide a {interior}-vertex chunk"
        )
    inner = np.arange(1, interior + 1, stride, dtype=np.int64)
    return np.concatenate(([0], inner, [size - 1]))


def _quad_triangles(count: int) -> NDArray[np.int64]:
    """Two triangles per quad of a count x count vertex grid, row-major.

    With rows running towards -z, (a, d, c) and (d, a, b) both face +y.
    """
    grid = np.arange(count * count, dtype=np.int64).reshape(count, count)
    a = grid[:-1, :-1]
    b = grid[:-1, 1:]
    c = grid[1:, :-1]
    d = grid[1:, 1:]
    first = np.stack([a, d, c], axis=-1)
    second = np.stack([d, a, b], axis=-1)
    return np.stack([first, second], axis=2).reshape(-1, 3)


def build_terrain_mesh(
    height_map: ArrayLike,
    height_multiplier: float,
    height_curve: HeightCurve,
    lod: int,
    flat_shaded: bool = False,
    bordered: bool = True,
) -> MeshData:
    """Build a terrain mesh from a height field.

    Args:
        height_map: Square height field. With ``bordered`` it carries a
            one-cell ring of neighbour samples around the N x N interior.
        height_multiplier: Scale applied after the curve.
        height_curve: Response curve evaluated at each raw height.
        lod: Level of detail, see ``lod_stride``.
        flat_shaded: Give every triangle its own vertices and face normal.
        bordered: Treat the outer ring as normal-only border cells
            (default), so an M x M grid meshes an (M - 2) x (M - 2)
            interior: 16 x 16 gives 196 vertices. When False the whole
            grid is interior (16 x 16 gives 256 vertices and 450
            triangles) and edge normals only see the chunk's own
            triangles.

    Returns:
        The finished MeshData. Shared-vertex meshes have
        ``((N - 1) / stride + 1) ** 2`` vertices; flat-shaded meshes
        have three per triangle.

    Raises:
        DimensionMismatchError: If the height field is not square.
        UnsupportedLODError: If the LOD cannot step the interior evenly.
    """
    height_map = np.asarray(height_map)
    if height_map.ndim != 2 or height_map.shape[0] != height_map.shape[1]:
        raise DimensionMismatchError(
            f"Height field must be square, got shape {height_map.shape}"
        )

    stride = lod_stride(lod)
    size = height_map.shape[0]
    border = 1 if bordered else 0
    mesh_size = size - 2 * border
    indices = _sample_indices(size, stride, bordered)
    count = len(indices)

    # Positions are centred on the interior; border cells sit one step outside
    top_left_x = (mesh_size - 1) / -2.0
    top_left_z = (mesh_size - 1) / 2.0
    local = (indices - border).astype(np.float64)

    sampled = height_map[np.ix_(indices, indices)]
    heights = height_curve.evaluate(sampled) * height_multiplier

    positions = np.empty((count, count, 3), dtype=np.float64)
    positions[..., 0] = top_left_x + local[np.newaxis, :]
    positions[..., 1] = heights
    positions[..., 2] = top_left_z - local[:, np.newaxis]
    positions = positions.reshape(-1, 3)

    percent = local / (mesh_size - 1) if mesh_size > 1 else np.zeros_like(local)
    uvs = np.empty((count, count, 2), dtype=np.float64)
    uvs[..., 0] = percent[np.newaxis, :]
    uvs[..., 1] = percent[:, np.newaxis]
    uvs = uvs.reshape(-1, 2)

    triangles = _quad_triangles(count)
    face_normals = surface_normals(positions, triangles)

    is_border = np.zeros((count, count), dtype=bool)
    if bordered:
        is_border[0, :] = is_border[-1, :] = True
        is_border[:, 0] = is_border[:, -1] = True
    is_border = is_border.ravel()

    # Border triangles still shade the real vertices they touch
    accumulated = np.zeros_like(positions)
    for corner in range(3):
        np.add.at(accumulated, triangles[:, corner], face_normals)

    mesh_triangles = ~is_border[triangles].any(axis=1)
    interior_ids = np.flatnonzero(~is_border)
    remap = np.full(count * count, -1, dtype=np.int64)
    remap[interior_ids] = np.arange(len(interior_ids))

    vertices = positions[interior_ids]
    mesh_uvs = uvs[interior_ids]
    normals = _normalize(accumulated[interior_ids])
    mesh_indices = remap[triangles[mesh_triangles]]

    if flat_shaded:
        flat_order = mesh_indices.ravel()
        vertices = vertices[flat_order]
        mesh_uvs = mesh_uvs[flat_order]
        normals = np.repeat(face_normals[mesh_triangles], 3, axis=0)
        mesh_indices = np.arange(len(flat_order), dtype=np.int64).reshape(-1, 3)

    logger.debug(
        "terrain_mesh_built",
        lod=lod,
        stride=stride,
        flat_shaded=flat_shaded,
        vertices=len(vertices),
        triangles=len(mesh_indices),
    )

    return MeshData(
        vertices=vertices.astype(np.float32),
        triangles=mesh_indices.astype(np.int32),
        uvs=mesh_uvs.astype(np.float32),
        normals=normals.astype(np.float32),
        flat_shaded=flat_shaded,
    )
