"""Map snapshot services."""

from .raster_service import PillowRasterService, RasterBackend
from .tile_service import TileFetcher
from .mosaic_service import Mosaic, MosaicService
from .crop_service import CropService, compute_crop_box
from .snapshot_service import SnapshotPlan, SnapshotResult, SnapshotService, plan_snapshot

__all__ = [
    "PillowRasterService",
    "RasterBackend",
    "TileFetcher",
    "Mosaic",
    "MosaicService",
    "CropService",
    "compute_crop_box",
    "SnapshotPlan",
    "SnapshotResult",
    "SnapshotService",
    "plan_snapshot",
]
