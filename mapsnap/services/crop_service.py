"""Crop a stitched mosaic to the exact bounding box and resize it."""

import logging
import math
from typing import Any, Optional

from ..errors import CropError, InvalidCoordinate
from ..models.geo import TILE_SIZE, CropBox, ProjectedPoint
from .mosaic_service import Mosaic
from .raster_service import PillowRasterService, RasterBackend

logger = logging.getLogger(__name__)


def _axis_extent(
    tl_tile: int,
    tl_frac: float,
    br_tile: int,
    br_frac: float,
    tile_size: int,
) -> tuple[int, int]:
    """Get (offset, length) in pixels along one axis of the mosaic."""
    offset = math.floor(tl_frac * tile_size)

    if tl_tile == br_tile:
        span = br_frac - tl_frac
    else:
        # Rest of the first tile, full tiles in between, covered part of the last
        span = 1 - tl_frac + br_frac + (br_tile - tl_tile - 1)

    if span < 0:
        raise InvalidCoordinate("Bottom-right corner lies before top-left corner")

    # Zero-area boxes still produce one pixel
    length = max(1, math.ceil(span * tile_size))
    return offset, length


def compute_crop_box(
    tl: ProjectedPoint,
    br: ProjectedPoint,
    tile_size: int = TILE_SIZE,
) -> CropBox:
    """
    Derive the pixel rectangle of a bounding box within its mosaic.

    The mosaic's origin is the top-left corner of ``tl``'s tile.

    Args:
        tl: Projected top-left corner
        br: Projected bottom-right corner
        tile_size: Tile edge length in pixels

    Returns:
        CropBox relative to the mosaic origin
    """
    left, width = _axis_extent(tl.x_tile, tl.x_frac, br.x_tile, br.x_frac, tile_size)
    top, height = _axis_extent(tl.y_tile, tl.y_frac, br.y_tile, br.y_frac, tile_size)
    return CropBox(left=left, top=top, width=width, height=height)


class CropService:
    """Turns a mosaic into the final fixed-size, fully opaque image."""

    def __init__(self, raster: Optional[RasterBackend] = None):
        self.raster = raster or PillowRasterService()

    def crop_and_resize(
        self,
        mosaic: Mosaic,
        tl: ProjectedPoint,
        br: ProjectedPoint,
        output_size: tuple[int, int],
    ) -> Any:
        """
        Crop a mosaic to the box between two corners and resize it.

        Args:
            mosaic: Stitched tile canvas
            tl: Projected top-left corner
            br: Projected bottom-right corner
            output_size: Final (width, height)

        Returns:
            Opaque image of exactly ``output_size``

        Raises:
            CropError: If the derived box falls outside the mosaic
        """
        box = compute_crop_box(tl, br)
        mosaic_size = self.raster.size(mosaic.image)

        logger.debug(
            "Fractions: tl=(%.6f, %.6f) br=(%.6f, %.6f)",
            tl.x_frac, tl.y_frac, br.x_frac, br.y_frac,
        )
        logger.info(
            "Crop box left=%d top=%d width=%d height=%d in %dx%d mosaic",
            box.left, box.top, box.width, box.height, *mosaic_size,
        )

        if not box.fits_within(mosaic_size):
            raise CropError(
                f"Crop box {box.to_pil_box()} is outside the "
                f"{mosaic_size[0]}x{mosaic_size[1]} mosaic"
            )

        image = self.raster.flatten(mosaic.image)
        image = self.raster.crop(image, box)
        return self.raster.resize(image, output_size)
