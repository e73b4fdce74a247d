"""Data models for map snapshots."""

from .geo import (
    TILE_SIZE,
    BoundingBox,
    CropBox,
    GeoPoint,
    ProjectedPoint,
    TileCoordinate,
    TileGrid,
)

__all__ = [
    "TILE_SIZE",
    "BoundingBox",
    "CropBox",
    "GeoPoint",
    "ProjectedPoint",
    "TileCoordinate",
    "TileGrid",
]
