"""API request/response models."""

from pydantic import BaseModel, Field

from ..models.geo import GeoPoint


class ConvertRequest(BaseModel):
    """Request to convert a point to tile coordinates."""

    lat: float
    long: float
    zoom: int = Field(..., ge=0, le=24)


class ConvertResponse(BaseModel):
    """Tile containing a point, plus the point's position inside it."""

    x_tile: int
    y_tile: int
    x_frac: float
    y_frac: float


class SnapshotRequest(BaseModel):
    """Bounding box given as its top-left and bottom-right corners."""

    latitude_top_left: float = Field(..., gt=-90, lt=90)
    longitude_top_left: float
    latitude_bottom_right: float = Field(..., gt=-90, lt=90)
    longitude_bottom_right: float

    @property
    def top_left(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude_top_left, longitude=self.longitude_top_left)

    @property
    def bottom_right(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude_bottom_right, longitude=self.longitude_bottom_right)
