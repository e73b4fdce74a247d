"""Point to tile conversion endpoint."""

import logging

from fastapi import APIRouter, HTTPException

from ...errors import InvalidCoordinate
from ...utils.geo_utils import project
from ..schemas import ConvertRequest, ConvertResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/convert", response_model=ConvertResponse)
async def convert(request: ConvertRequest):
    """Convert a latitude/longitude to the tile containing it."""
    logger.info("Received /convert request")
    try:
        point = project(request.lat, request.long, request.zoom)
    except InvalidCoordinate as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info("Converted to tile (%d, %d)", point.x_tile, point.y_tile)
    return ConvertResponse(
        x_tile=point.x_tile,
        y_tile=point.y_tile,
        x_frac=point.x_frac,
        y_frac=point.y_frac,
    )
