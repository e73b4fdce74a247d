"""Bounding box snapshot endpoints."""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from ...config import AppConfig, get_config
from ...errors import InvalidCoordinate, MapSnapError
from ...models.geo import GeoPoint
from ...services.snapshot_service import SnapshotService
from ...services.tile_service import TileFetcher
from ..schemas import SnapshotRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def create_tile_fetcher(config: AppConfig) -> TileFetcher:
    """Create a per-request tile fetcher for the configured backend."""
    return TileFetcher.from_config(config)


async def render_snapshot(top_left: GeoPoint, bottom_right: GeoPoint) -> Response:
    """Render a snapshot and wrap it in a PNG response.

    Tile, mosaic and crop failures all surface as a plain 500; no partial
    image is ever returned.
    """
    config = get_config()

    try:
        async with create_tile_fetcher(config) as fetcher:
            service = SnapshotService.from_config(config, fetcher)
            png = await service.render_png(top_left, bottom_right)
    except InvalidCoordinate as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MapSnapError:
        logger.exception("Snapshot failed for %s -> %s", top_left.to_tuple(), bottom_right.to_tuple())
        raise HTTPException(status_code=500, detail="Internal Server Error")

    return Response(content=png, media_type="image/png")


@router.post("/api/snapshot")
async def create_snapshot(request: SnapshotRequest):
    """Render the bounding box described in the request body."""
    logger.info("Received /api/snapshot request")
    return await render_snapshot(request.top_left, request.bottom_right)


@router.get("/turn/{top_left}/{bottom_right}")
async def turn(top_left: str, bottom_right: str):
    """Render a bounding box given as ``/turn/{lat,long}/{lat,long}.png``."""
    logger.info("Received /turn request")
    try:
        tl = GeoPoint.parse(top_left)
        br = GeoPoint.parse(bottom_right)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid corner: {e}")

    return await render_snapshot(tl, br)
