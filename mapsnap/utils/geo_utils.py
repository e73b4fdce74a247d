"""Web Mercator slippy-tile math."""

import math

from ..errors import InvalidCoordinate
from ..models.geo import ProjectedPoint, TileGrid

# Latitude at which the Web Mercator square ends
MAX_LATITUDE = math.degrees(math.atan(math.sinh(math.pi)))


def project(lat: float, lon: float, zoom: int) -> ProjectedPoint:
    """
    Project a geographic point onto the tile grid at a zoom level.

    Uses the standard OSM slippy-map formula. The result is split into the
    integer tile index and the point's fractional offset within that tile.

    Args:
        lat: Latitude in degrees, strictly between -90 and 90
        lon: Longitude in degrees
        zoom: Zoom level (>= 0)

    Returns:
        ProjectedPoint with tile indices and fractions in [0, 1)

    Raises:
        InvalidCoordinate: If the point cannot be projected onto the grid
    """
    if zoom < 0:
        raise InvalidCoordinate(f"Zoom must be non-negative, got {zoom}")
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise InvalidCoordinate(f"Coordinates must be finite, got ({lat}, {lon})")
    if not -90 < lat < 90:
        raise InvalidCoordinate(f"Latitude {lat} is outside (-90, 90)")

    n = 2 ** zoom
    lat_rad = math.radians(lat)

    x_full = ((lon + 180) / 360) * n
    y_full = ((1 - math.log(math.tan(lat_rad) + 1 / math.cos(lat_rad)) / math.pi) / 2) * n

    x_tile = math.floor(x_full)
    y_tile = math.floor(y_full)

    if not (0 <= x_tile < n and 0 <= y_tile < n):
        raise InvalidCoordinate(
            f"({lat}, {lon}) falls outside the zoom {zoom} tile grid "
            f"(tile {x_tile}, {y_tile}); latitude must lie within "
            f"+/-{MAX_LATITUDE:.4f} and longitude within [-180, 180)"
        )

    return ProjectedPoint(
        x_tile=x_tile,
        y_tile=y_tile,
        x_frac=x_full % 1,
        y_frac=y_full % 1,
    )


def grid_for_corners(tl: ProjectedPoint, br: ProjectedPoint, zoom: int) -> TileGrid:
    """
    Get the inclusive tile rectangle spanned by two projected corners.

    Raises:
        InvalidCoordinate: If the bottom-right corner lies above or to the
            left of the top-left corner
    """
    if br.x < tl.x or br.y < tl.y:
        raise InvalidCoordinate(
            f"Bottom-right corner ({br.x:.6f}, {br.y:.6f}) lies before "
            f"top-left corner ({tl.x:.6f}, {tl.y:.6f}) in tile space"
        )
    return TileGrid(zoom=zoom, x_min=tl.x_tile, y_min=tl.y_tile, x_max=br.x_tile, y_max=br.y_tile)
