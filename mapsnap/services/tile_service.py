"""Tile fetching from a slippy-map tile server."""

import logging
from typing import Any, Optional

import httpx

from ..config import AppConfig
from ..errors import TileFetchError
from ..models.geo import TILE_SIZE, TileCoordinate
from .raster_service import PillowRasterService, RasterBackend

logger = logging.getLogger(__name__)

# A 256x256 RGBA PNG is well under this even uncompressed
MAX_TILE_BYTES = 4 * 1024 * 1024


class TileFetcher:
    """Fetches 256x256 raster tiles from ``{base_url}/tiles/{z}/{x}/{y}.png``."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        raster: Optional[RasterBackend] = None,
        client: Optional[httpx.AsyncClient] = None,
        max_bytes: int = MAX_TILE_BYTES,
    ):
        """
        Initialize tile fetcher.

        Args:
            base_url: Tile server base URL, e.g. ``http://localhost:8080``
            timeout: Per-request timeout in seconds
            raster: Backend used to decode tile payloads (Pillow by default)
            client: Optional pre-built client; the fetcher only closes
                clients it created itself
            max_bytes: Largest accepted tile payload in bytes
        """
        self.base_url = base_url.rstrip("/")
        self.raster = raster or PillowRasterService()
        self.max_bytes = max_bytes
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_config(cls, config: AppConfig, raster: Optional[RasterBackend] = None) -> "TileFetcher":
        """Create a fetcher for the configured tile backend."""
        return cls(config.backend_url, timeout=config.tile_timeout, raster=raster)

    def tile_url(self, tile: TileCoordinate) -> str:
        return f"{self.base_url}{tile.path}"

    async def fetch_tile(self, zoom: int, x_tile: int, y_tile: int) -> Any:
        """
        Download and decode a single tile.

        Args:
            zoom: Zoom level
            x_tile: Tile X index
            y_tile: Tile Y index

        Returns:
            Decoded 256x256 RGBA tile image

        Raises:
            TileFetchError: On network failure, timeout, non-2xx status or a
                payload that is not a 256x256 image
        """
        tile = TileCoordinate(zoom=zoom, x_tile=x_tile, y_tile=y_tile)
        url = self.tile_url(tile)
        logger.debug("Fetching tile %s from %s", tile, url)

        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TileFetchError(
                f"Tile {tile} returned HTTP {e.response.status_code}", tile=tile
            ) from e
        except httpx.HTTPError as e:
            raise TileFetchError(f"Tile {tile} request failed: {e!r}", tile=tile) from e

        if len(response.content) > self.max_bytes:
            raise TileFetchError(
                f"Tile {tile} payload is {len(response.content)} bytes, "
                f"limit is {self.max_bytes}",
                tile=tile,
            )

        try:
            image = self.raster.decode(response.content)
        except ValueError as e:
            raise TileFetchError(f"Tile {tile} payload is not an image: {e}", tile=tile) from e

        size = self.raster.size(image)
        if size != (TILE_SIZE, TILE_SIZE):
            raise TileFetchError(
                f"Tile {tile} is {size[0]}x{size[1]}, expected {TILE_SIZE}x{TILE_SIZE}",
                tile=tile,
            )

        return image

    async def aclose(self):
        """Close the HTTP client."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
