"""Shared test fixtures."""

import asyncio
import re
from io import BytesIO

import httpx
import numpy as np
import pytest
from PIL import Image

from mapsnap.errors import TileFetchError
from mapsnap.models.geo import GeoPoint, TileCoordinate

TILE_PATH = re.compile(r"^/tiles/(\d+)/(\d+)/(\d+)\.png$")


def tile_color(x_tile: int, y_tile: int) -> tuple[int, int, int, int]:
    """Distinct opaque color for each tile index."""
    return (x_tile % 251, y_tile % 241, (x_tile + y_tile) % 239, 255)


def make_png(size=(256, 256), color=(128, 128, 128, 255)) -> bytes:
    buffer = BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeRaster:
    """In-memory RasterBackend over numpy arrays (H x W x C, uint8).

    ``decode`` accepts raw 256x256 RGBA buffers. Composite offsets are
    recorded so tests can check tile placement.
    """

    def __init__(self):
        self.composites = []
        self.operations = []

    def decode(self, data):
        return np.frombuffer(data, dtype=np.uint8).reshape(256, 256, 4).copy()

    def size(self, image):
        return (image.shape[1], image.shape[0])

    def new_canvas(self, size, background=(255, 255, 255, 255)):
        self.operations.append("new_canvas")
        width, height = size
        return np.full((height, width, 4), background, dtype=np.uint8)

    def composite(self, canvas, image, offset):
        self.operations.append("composite")
        self.composites.append(offset)
        x, y = offset
        h, w = image.shape[:2]
        region = canvas[y:y + h, x:x + w].astype(float)
        src = image.astype(float)
        alpha = src[..., 3:] / 255
        out = np.empty_like(region)
        out[..., :3] = src[..., :3] * alpha + region[..., :3] * (1 - alpha)
        out[..., 3:] = src[..., 3:] + region[..., 3:] * (1 - alpha)
        canvas[y:y + h, x:x + w] = np.round(out).astype(np.uint8)
        return canvas

    def flatten(self, image, background=(255, 255, 255)):
        self.operations.append("flatten")
        alpha = image[..., 3:].astype(float) / 255
        rgb = image[..., :3] * alpha + np.array(background, dtype=float) * (1 - alpha)
        return np.round(rgb).astype(np.uint8)

    def crop(self, image, box):
        self.operations.append("crop")
        return image[box.top:box.bottom, box.left:box.right].copy()

    def resize(self, image, size):
        self.operations.append("resize")
        width, height = size
        rows = np.arange(height) * image.shape[0] // height
        cols = np.arange(width) * image.shape[1] // width
        return image[rows][:, cols]

    def encode_png(self, image):
        return image.tobytes()


class FakeTileSource:
    """Tile source returning numpy tiles, with optional failures and delays."""

    def __init__(self, fail_at=None, block_others=False, delays=None):
        self.fail_at = set(fail_at or [])
        self.block_others = block_others
        self.delays = delays or {}
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.cancelled = 0

    async def fetch_tile(self, zoom, x_tile, y_tile):
        self.calls.append((zoom, x_tile, y_tile))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if (x_tile, y_tile) in self.fail_at:
                raise TileFetchError(
                    f"Tile {zoom}/{x_tile}/{y_tile} returned HTTP 500",
                    tile=TileCoordinate(zoom, x_tile, y_tile),
                )
            if self.block_others:
                await asyncio.Event().wait()
            await asyncio.sleep(self.delays.get((x_tile, y_tile), 0))
            return np.full((256, 256, 4), tile_color(x_tile, y_tile), dtype=np.uint8)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        finally:
            self.in_flight -= 1


def tile_server_handler(fail_at=None, size=(256, 256)):
    """httpx.MockTransport handler serving solid PNG tiles."""
    fail_at = set(fail_at or [])

    def handler(request: httpx.Request) -> httpx.Response:
        match = TILE_PATH.match(request.url.path)
        if not match:
            return httpx.Response(404)
        zoom, x_tile, y_tile = (int(v) for v in match.groups())
        if (x_tile, y_tile) in fail_at:
            return httpx.Response(500, text="tile backend exploded")
        return httpx.Response(
            200,
            content=make_png(size, tile_color(x_tile, y_tile)),
            headers={"Content-Type": "image/png"},
        )

    return handler


@pytest.fixture
def fake_raster():
    return FakeRaster()


@pytest.fixture
def fake_tiles():
    """Factory for FakeTileSource instances."""
    return FakeTileSource


@pytest.fixture
def mock_tile_server():
    """Factory for httpx clients backed by a fake tile server."""

    def factory(fail_at=None, size=(256, 256)):
        transport = httpx.MockTransport(tile_server_handler(fail_at=fail_at, size=size))
        return httpx.AsyncClient(transport=transport)

    return factory


@pytest.fixture
def london_top_left():
    return GeoPoint(latitude=51.5, longitude=-0.1)


@pytest.fixture
def london_bottom_right():
    return GeoPoint(latitude=51.49, longitude=-0.09)


@pytest.fixture
def small_top_left():
    """Corner a few hundred metres west of Tower Bridge."""
    return GeoPoint(latitude=51.5060, longitude=-0.0790)


@pytest.fixture
def small_bottom_right():
    return GeoPoint(latitude=51.5055, longitude=-0.0780)


@pytest.fixture
def quadrant_mosaic_image():
    """512x512 RGBA canvas with a different color per 256px quadrant."""
    arr = np.zeros((512, 512, 4), dtype=np.uint8)
    arr[:256, :256] = [255, 0, 0, 255]
    arr[:256, 256:] = [0, 255, 0, 255]
    arr[256:, :256] = [0, 0, 255, 255]
    arr[256:, 256:] = [0, 0, 0, 0]
    return Image.fromarray(arr)
