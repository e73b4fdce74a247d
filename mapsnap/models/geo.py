"""Geographic and tile-space models."""

from dataclasses import dataclass

from pydantic import BaseModel, Field

# Slippy-map tiles are always 256x256
TILE_SIZE = 256


class GeoPoint(BaseModel):
    """A latitude/longitude pair in degrees."""

    latitude: float = Field(..., gt=-90, lt=90, description="Latitude in degrees")
    longitude: float = Field(..., description="Longitude in degrees")

    @classmethod
    def parse(cls, text: str) -> "GeoPoint":
        """Parse a ``"lat,long"`` string, tolerating a trailing ``.png``."""
        if text.endswith(".png"):
            text = text[: -len(".png")]
        parts = text.split(",")
        if len(parts) != 2:
            raise ValueError(f"Expected 'lat,long', got {text!r}")
        return cls(latitude=float(parts[0]), longitude=float(parts[1]))

    def to_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


class BoundingBox(BaseModel):
    """Rectangle given by its top-left and bottom-right corners."""

    top_left: GeoPoint
    bottom_right: GeoPoint


@dataclass(frozen=True)
class TileCoordinate:
    """Integer address of a tile in the slippy-map pyramid."""

    zoom: int
    x_tile: int
    y_tile: int

    @property
    def path(self) -> str:
        """Request path on the tile server."""
        return f"/tiles/{self.zoom}/{self.x_tile}/{self.y_tile}.png"

    def __str__(self) -> str:
        return f"{self.zoom}/{self.x_tile}/{self.y_tile}"


@dataclass(frozen=True)
class ProjectedPoint:
    """Tile index plus the point's fractional position inside that tile."""

    x_tile: int
    y_tile: int
    x_frac: float
    y_frac: float

    @property
    def x(self) -> float:
        """Full fractional x in tile units."""
        return self.x_tile + self.x_frac

    @property
    def y(self) -> float:
        """Full fractional y in tile units."""
        return self.y_tile + self.y_frac


@dataclass(frozen=True)
class TileGrid:
    """Inclusive rectangle of tile indices covering a bounding box."""

    zoom: int
    x_min: int
    y_min: int
    x_max: int
    y_max: int

    @property
    def cols(self) -> int:
        return self.x_max - self.x_min + 1

    @property
    def rows(self) -> int:
        return self.y_max - self.y_min + 1

    @property
    def pixel_size(self) -> tuple[int, int]:
        """(width, height) of the stitched canvas."""
        return (self.cols * TILE_SIZE, self.rows * TILE_SIZE)

    def slots(self) -> list[tuple[int, int]]:
        """All (row, col) offsets in row-major order."""
        return [(row, col) for row in range(self.rows) for col in range(self.cols)]

    def tile_at(self, row: int, col: int) -> TileCoordinate:
        return TileCoordinate(zoom=self.zoom, x_tile=self.x_min + col, y_tile=self.y_min + row)

    def __len__(self) -> int:
        return self.cols * self.rows


@dataclass(frozen=True)
class CropBox:
    """Pixel rectangle inside a mosaic."""

    left: int
    top: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height

    def to_pil_box(self) -> tuple[int, int, int, int]:
        """(left, upper, right, lower) as expected by ``Image.crop``."""
        return (self.left, self.top, self.right, self.bottom)

    def fits_within(self, size: tuple[int, int]) -> bool:
        width, height = size
        return (
            self.left >= 0
            and self.top >= 0
            and self.width > 0
            and self.height > 0
            and self.right <= width
            and self.bottom <= height
        )
