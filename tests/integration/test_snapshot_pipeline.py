"""End-to-end snapshot tests against a mocked tile server."""

import asyncio
from io import BytesIO

import httpx
import pytest
from PIL import Image

from mapsnap.config import AppConfig
from mapsnap.errors import InvalidCoordinate, MosaicError, TileFetchError
from mapsnap.models.geo import BoundingBox, GeoPoint
from mapsnap.services.snapshot_service import SnapshotService, plan_snapshot
from mapsnap.services.tile_service import TileFetcher
from mapsnap.utils.geo_utils import project

from conftest import tile_color, tile_server_handler


def render(service, tl, br):
    return asyncio.run(service.render(tl, br))


class TestLondonSnapshot:
    """The reference bounding box over central London at zoom 19."""

    def test_corners_are_close_in_tile_space(self, london_top_left, london_bottom_right):
        tl = project(london_top_left.latitude, london_top_left.longitude, 19)
        br = project(london_bottom_right.latitude, london_bottom_right.longitude, 19)
        assert 0 <= br.x_tile - tl.x_tile < 32
        assert 0 <= br.y_tile - tl.y_tile < 32

    def test_full_pipeline(self, london_top_left, london_bottom_right):
        requested = []
        serve_tile = tile_server_handler()

        def handler(request):
            requested.append(str(request.url))
            return serve_tile(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

        service = SnapshotService(TileFetcher("http://tiles.test", client=client), zoom=19)
        result = render(service, london_top_left, london_bottom_right)

        grid = result.plan.grid
        assert (grid.x_min, grid.x_max) == (261998, 262012)
        assert grid.y_min == result.plan.top_left.y_tile
        assert grid.y_max == result.plan.bottom_right.y_tile
        assert len(requested) == grid.cols * grid.rows
        assert set(requested) == {
            f"http://tiles.test/tiles/19/{x}/{y}.png"
            for x in range(grid.x_min, grid.x_max + 1)
            for y in range(grid.y_min, grid.y_max + 1)
        }

        decoded = Image.open(BytesIO(result.png))
        assert decoded.format == "PNG"
        assert decoded.size == (100, 100)
        assert decoded.mode == "RGB"
        assert "A" not in decoded.getbands()


class TestSmallSnapshot:
    """Snapshots spanning a handful of tiles."""

    def test_output_size_from_config(self, mock_tile_server, small_top_left, small_bottom_right):
        config = AppConfig(output_width=64, output_height=48)
        fetcher = TileFetcher("http://tiles.test", client=mock_tile_server())
        service = SnapshotService.from_config(config, fetcher)
        result = render(service, small_top_left, small_bottom_right)
        assert result.image.size == (64, 48)

    def test_single_tile_box_uses_tile_color(self, mock_tile_server):
        tl = project(51.5, -0.1, 10)
        # Both corners inside the same zoom 10 tile
        top_left = GeoPoint(latitude=51.5, longitude=-0.1)
        bottom_right = GeoPoint(latitude=51.499, longitude=-0.099)
        service = SnapshotService(TileFetcher("http://tiles.test", client=mock_tile_server()), zoom=10)
        result = render(service, top_left, bottom_right)

        assert len(result.plan.grid) == 1
        expected = tile_color(tl.x_tile, tl.y_tile)[:3]
        assert result.image.getpixel((50, 50)) == expected

    def test_degenerate_box_still_renders(self, mock_tile_server, small_top_left):
        service = SnapshotService(TileFetcher("http://tiles.test", client=mock_tile_server()))
        result = render(service, small_top_left, small_top_left)
        assert result.plan.crop_box.width == 1
        assert result.plan.crop_box.height == 1
        assert result.image.size == (100, 100)

    def test_fake_raster_pipeline(self, fake_tiles, fake_raster, small_top_left, small_bottom_right):
        service = SnapshotService(fake_tiles(), raster=fake_raster, output_size=(100, 100))
        result = render(service, small_top_left, small_bottom_right)
        assert result.image.shape == (100, 100, 3)
        assert fake_raster.operations[0] == "new_canvas"
        assert fake_raster.operations[-3:] == ["flatten", "crop", "resize"]


class TestSnapshotFailures:
    """Failures abort the request without producing an image."""

    def test_tile_failure_aborts(self, mock_tile_server, small_top_left, small_bottom_right):
        plan = plan_snapshot(BoundingBox(top_left=small_top_left, bottom_right=small_bottom_right), 19)
        bad_tile = (plan.grid.x_max, plan.grid.y_max)
        client = mock_tile_server(fail_at=[bad_tile])
        service = SnapshotService(TileFetcher("http://tiles.test", client=client))

        with pytest.raises(MosaicError) as exc_info:
            render(service, small_top_left, small_bottom_right)
        assert isinstance(exc_info.value.__cause__, TileFetchError)
        assert (exc_info.value.tile.x_tile, exc_info.value.tile.y_tile) == bad_tile

    def test_inverted_corners(self, mock_tile_server, small_top_left, small_bottom_right):
        service = SnapshotService(TileFetcher("http://tiles.test", client=mock_tile_server()))
        with pytest.raises(InvalidCoordinate):
            render(service, small_bottom_right, small_top_left)

    def test_plan_rejects_inverted_longitude(self):
        bbox = BoundingBox(
            top_left=GeoPoint(latitude=51.5, longitude=-0.09),
            bottom_right=GeoPoint(latitude=51.49, longitude=-0.1),
        )
        with pytest.raises(InvalidCoordinate):
            plan_snapshot(bbox, 19)


class TestTileLimit:
    """Oversized boxes are rejected before any tile is requested."""

    @pytest.fixture
    def wide_box(self):
        # Roughly 50 km x 40 km; about a million tiles at zoom 19
        return BoundingBox(
            top_left=GeoPoint(latitude=51.5, longitude=-0.1),
            bottom_right=GeoPoint(latitude=51.0, longitude=0.5),
        )

    def test_plan_rejects_oversized_grid(self, wide_box):
        with pytest.raises(InvalidCoordinate, match="limit is 1024"):
            plan_snapshot(wide_box, 19, max_tiles=1024)

    def test_plan_without_limit(self, wide_box):
        plan = plan_snapshot(wide_box, 12)
        assert len(plan.grid) > 1

    def test_limit_is_inclusive(self, small_top_left, small_bottom_right):
        bbox = BoundingBox(top_left=small_top_left, bottom_right=small_bottom_right)
        tiles = len(plan_snapshot(bbox, 19).grid)
        assert len(plan_snapshot(bbox, 19, max_tiles=tiles).grid) == tiles
        with pytest.raises(InvalidCoordinate):
            plan_snapshot(bbox, 19, max_tiles=tiles - 1)

    def test_service_rejects_before_fetching(self, fake_tiles, fake_raster, wide_box):
        source = fake_tiles()
        service = SnapshotService(source, raster=fake_raster)
        with pytest.raises(InvalidCoordinate):
            render(service, wide_box.top_left, wide_box.bottom_right)
        assert source.calls == []
        assert fake_raster.operations == []

    def test_limit_from_config(self, fake_tiles, fake_raster, small_top_left, small_bottom_right):
        source = fake_tiles()
        service = SnapshotService.from_config(AppConfig(max_tiles=1), source, raster=fake_raster)
        with pytest.raises(InvalidCoordinate):
            render(service, small_top_left, small_bottom_right)
        assert source.calls == []
