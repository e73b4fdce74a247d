"""Assemble a grid of tiles into one contiguous canvas."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from ..errors import MosaicError, TileFetchError
from ..models.geo import TILE_SIZE, ProjectedPoint, TileGrid
from ..utils.geo_utils import grid_for_corners
from .raster_service import WHITE, PillowRasterService, RasterBackend

logger = logging.getLogger(__name__)


class TileSource(Protocol):
    """Anything that can fetch a tile by index."""

    async def fetch_tile(self, zoom: int, x_tile: int, y_tile: int) -> Any:
        ...


@dataclass
class Mosaic:
    """Stitched canvas covering ``grid``."""

    image: Any
    grid: TileGrid

    @property
    def size(self) -> tuple[int, int]:
        return self.grid.pixel_size


class MosaicService:
    """Fetches every tile of a grid concurrently and stitches them together."""

    def __init__(
        self,
        fetcher: TileSource,
        raster: Optional[RasterBackend] = None,
        max_concurrency: int = 16,
    ):
        """
        Initialize mosaic service.

        Args:
            fetcher: Tile source (normally a TileFetcher)
            raster: Raster backend used for the canvas
            max_concurrency: Maximum number of tile fetches in flight
        """
        self.fetcher = fetcher
        self.raster = raster or PillowRasterService()
        self.max_concurrency = max_concurrency

    async def assemble(self, tl: ProjectedPoint, br: ProjectedPoint, zoom: int) -> Mosaic:
        """
        Build the mosaic spanning two projected corners.

        Args:
            tl: Projected top-left corner
            br: Projected bottom-right corner
            zoom: Zoom level both corners were projected at

        Returns:
            Mosaic of size (cols * 256, rows * 256)

        Raises:
            InvalidCoordinate: If ``br`` lies before ``tl``
            MosaicError: If any tile fails to load
        """
        grid = grid_for_corners(tl, br, zoom)
        return await self.assemble_grid(grid)

    async def assemble_grid(self, grid: TileGrid) -> Mosaic:
        logger.info(
            "Assembling %dx%d mosaic at zoom %d from tile (%d, %d)",
            grid.cols, grid.rows, grid.zoom, grid.x_min, grid.y_min,
        )
        tiles = await self._fetch_all(grid)

        canvas = self.raster.new_canvas(grid.pixel_size, WHITE)
        for row, col in grid.slots():
            canvas = self.raster.composite(canvas, tiles[(row, col)], (col * TILE_SIZE, row * TILE_SIZE))

        return Mosaic(image=canvas, grid=grid)

    async def _fetch_all(self, grid: TileGrid) -> dict[tuple[int, int], Any]:
        """
        Fetch every tile of the grid.

        All requests are issued up front and joined. The first failure cancels
        whatever is still in flight and aborts the whole mosaic.

        Returns:
            Tiles keyed by (row, col)
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def fetch(row: int, col: int) -> Any:
            tile = grid.tile_at(row, col)
            async with semaphore:
                return await self.fetcher.fetch_tile(tile.zoom, tile.x_tile, tile.y_tile)

        tasks = {slot: asyncio.ensure_future(fetch(*slot)) for slot in grid.slots()}

        try:
            await asyncio.gather(*tasks.values())
        except TileFetchError as e:
            logger.warning("Tile fetch failed, aborting mosaic: %s", e)
            raise MosaicError(f"Failed to assemble mosaic: {e}", tile=e.tile) from e
        finally:
            for task in tasks.values():
                if not task.done():
                    task.cancel()
            # Let cancelled fetches unwind so their results are discarded
            await asyncio.gather(*tasks.values(), return_exceptions=True)

        return {slot: task.result() for slot, task in tasks.items()}
