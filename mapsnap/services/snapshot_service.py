"""End-to-end bounding box snapshot pipeline."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..config import AppConfig
from ..errors import InvalidCoordinate
from ..models.geo import BoundingBox, CropBox, GeoPoint, ProjectedPoint, TileGrid
from ..utils.geo_utils import grid_for_corners, project
from .crop_service import CropService, compute_crop_box
from .mosaic_service import MosaicService, TileSource
from .raster_service import PillowRasterService, RasterBackend

logger = logging.getLogger(__name__)


@dataclass
class SnapshotPlan:
    """Everything derivable from the corners before any tile is fetched."""

    zoom: int
    top_left: ProjectedPoint
    bottom_right: ProjectedPoint
    grid: TileGrid
    crop_box: CropBox


@dataclass
class SnapshotResult:
    """Output of a snapshot request."""

    image: Any
    png: bytes
    plan: SnapshotPlan


def plan_snapshot(bbox: BoundingBox, zoom: int, max_tiles: Optional[int] = None) -> SnapshotPlan:
    """
    Project both corners and work out the tile grid and crop box.

    Args:
        bbox: Rectangle to render
        zoom: Zoom level
        max_tiles: Largest allowed tile grid, or None for no limit

    Raises:
        InvalidCoordinate: If a corner cannot be projected, the corners
            are inverted or the grid holds more than ``max_tiles`` tiles
    """
    tl = project(bbox.top_left.latitude, bbox.top_left.longitude, zoom)
    br = project(bbox.bottom_right.latitude, bbox.bottom_right.longitude, zoom)
    grid = grid_for_corners(tl, br, zoom)
    if max_tiles is not None and len(grid) > max_tiles:
        raise InvalidCoordinate(
            f"Bounding box needs {grid.cols}x{grid.rows} = {len(grid)} tiles "
            f"at zoom {zoom}, limit is {max_tiles}"
        )
    return SnapshotPlan(
        zoom=zoom,
        top_left=tl,
        bottom_right=br,
        grid=grid,
        crop_box=compute_crop_box(tl, br),
    )


class SnapshotService:
    """Produces a fixed-size PNG of a geographic rectangle."""

    def __init__(
        self,
        fetcher: TileSource,
        raster: Optional[RasterBackend] = None,
        zoom: int = 19,
        output_size: tuple[int, int] = (100, 100),
        max_concurrency: int = 16,
        max_tiles: Optional[int] = 1024,
    ):
        """
        Initialize snapshot service.

        Args:
            fetcher: Tile source
            raster: Raster backend shared by the mosaic and crop steps
            zoom: Zoom level used for every snapshot
            output_size: Final (width, height) in pixels
            max_concurrency: Maximum number of tile fetches in flight
            max_tiles: Largest tile grid a single snapshot may request
        """
        self.raster = raster or PillowRasterService()
        self.zoom = zoom
        self.max_tiles = max_tiles
        self.output_size = output_size
        self.mosaic_service = MosaicService(fetcher, raster=self.raster, max_concurrency=max_concurrency)
        self.crop_service = CropService(raster=self.raster)

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        fetcher: TileSource,
        raster: Optional[RasterBackend] = None,
    ) -> "SnapshotService":
        return cls(
            fetcher,
            raster=raster,
            zoom=config.zoom,
            output_size=config.output_size,
            max_concurrency=config.max_concurrent_fetches,
            max_tiles=config.max_tiles,
        )

    async def render(self, top_left: GeoPoint, bottom_right: GeoPoint) -> SnapshotResult:
        """
        Render the rectangle between two corners.

        Args:
            top_left: North-west corner
            bottom_right: South-east corner

        Returns:
            SnapshotResult with the final image and its PNG encoding

        Raises:
            InvalidCoordinate: Bad or inverted corners, or a box needing too many tiles
            MosaicError: A tile could not be fetched
            CropError: Internal inconsistency between grid and crop box
        """
        bbox = BoundingBox(top_left=top_left, bottom_right=bottom_right)
        plan = plan_snapshot(bbox, self.zoom, max_tiles=self.max_tiles)
        logger.info(
            "Snapshot tiles x=%d..%d y=%d..%d at zoom %d",
            plan.grid.x_min, plan.grid.x_max, plan.grid.y_min, plan.grid.y_max, plan.zoom,
        )

        mosaic = await self.mosaic_service.assemble_grid(plan.grid)
        image = self.crop_service.crop_and_resize(
            mosaic, plan.top_left, plan.bottom_right, self.output_size
        )
        return SnapshotResult(image=image, png=self.raster.encode_png(image), plan=plan)

    async def render_png(self, top_left: GeoPoint, bottom_right: GeoPoint) -> bytes:
        """Render the rectangle and return PNG bytes."""
        result = await self.render(top_left, bottom_right)
        return result.png
