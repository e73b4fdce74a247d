"""Exceptions raised while turning a bounding box into a snapshot."""

from typing import Optional

from .models.geo import TileCoordinate


class MapSnapError(Exception):
    """Base class for all snapshot pipeline errors."""


class InvalidCoordinate(MapSnapError, ValueError):
    """Coordinates that cannot be projected or describe an inverted box."""


class TileFetchError(MapSnapError):
    """A single tile could not be retrieved or decoded."""

    def __init__(self, message: str, tile: Optional[TileCoordinate] = None):
        super().__init__(message)
        self.tile = tile


class MosaicError(MapSnapError):
    """Assembling the tile grid failed. Wraps the first tile failure."""

    def __init__(self, message: str, tile: Optional[TileCoordinate] = None):
        super().__init__(message)
        self.tile = tile


class CropError(MapSnapError):
    """The derived crop box does not fit inside the mosaic."""
