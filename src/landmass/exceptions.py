"""Custom exceptions for terrain generation."""


class TerrainError(Exception):
    """Base exception for terrain errors."""

    pass


class DimensionMismatchError(TerrainError):
    """Raised when grids that must share a shape do not."""

    pass


class UnsupportedLODError(TerrainError):
    """Raised when a LOD cannot step the chunk's interior evenly."""

    pass


class UnsupportedChunkSizeError(TerrainError):
    """Raised when a chunk size index is outside the supported table."""

    pass


class DispatcherClosedError(TerrainError):
    """Raised when work is requested from a dispatcher after shutdown."""

    pass
