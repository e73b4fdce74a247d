"""Command-line interface for map snapshots."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .config import AppConfig, get_config, parse_size
from .errors import InvalidCoordinate, MapSnapError
from .models.geo import BoundingBox, GeoPoint
from .services.snapshot_service import SnapshotService, plan_snapshot
from .services.tile_service import TileFetcher
from .utils.geo_utils import project as project_point

console = Console()


def parse_corner(ctx, param, value: Optional[str]) -> Optional[GeoPoint]:
    """Click callback turning ``"lat,long"`` into a GeoPoint."""
    if value is None:
        return None
    try:
        return GeoPoint.parse(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """MapSnap - Snapshot a bounding box from a slippy-map tile server."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@main.command()
@click.option("--lat", type=float, required=True, help="Latitude")
@click.option("--lon", type=float, required=True, help="Longitude")
@click.option("--zoom", "-z", type=int, default=None, help="Zoom level (default from config)")
def project(lat: float, lon: float, zoom: Optional[int]):
    """Show the tile containing a point."""
    zoom = get_config().zoom if zoom is None else zoom

    try:
        point = project_point(lat, lon, zoom)
    except InvalidCoordinate as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    table = Table(title=f"({lat}, {lon}) at zoom {zoom}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("x_tile", str(point.x_tile))
    table.add_row("y_tile", str(point.y_tile))
    table.add_row("x_frac", f"{point.x_frac:.6f}")
    table.add_row("y_frac", f"{point.y_frac:.6f}")
    console.print(table)


@main.command()
@click.option("--top-left", "-t", required=True, callback=parse_corner, help="Top-left corner as 'lat,long'")
@click.option("--bottom-right", "-b", required=True, callback=parse_corner, help="Bottom-right corner as 'lat,long'")
@click.option("--zoom", "-z", type=int, default=None, help="Zoom level (default from config)")
def plan(top_left: GeoPoint, bottom_right: GeoPoint, zoom: Optional[int]):
    """Show the tile grid and crop box for a bounding box without fetching."""
    config = get_config()
    zoom = config.zoom if zoom is None else zoom
    bbox = BoundingBox(top_left=top_left, bottom_right=bottom_right)

    try:
        snapshot_plan = plan_snapshot(bbox, zoom, max_tiles=config.max_tiles)
    except InvalidCoordinate as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    grid = snapshot_plan.grid
    box = snapshot_plan.crop_box
    width, height = grid.pixel_size

    table = Table(title=f"Snapshot plan at zoom {zoom}")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Tile X range", f"{grid.x_min} .. {grid.x_max}")
    table.add_row("Tile Y range", f"{grid.y_min} .. {grid.y_max}")
    table.add_row("Tile Grid", f"{grid.cols} x {grid.rows} = {len(grid)} tiles")
    table.add_row("Mosaic Size", f"{width} x {height} px")
    table.add_row("Crop Offset", f"({box.left}, {box.top})")
    table.add_row("Crop Size", f"{box.width} x {box.height} px")
    console.print(table)


@main.command()
@click.option("--top-left", "-t", required=True, callback=parse_corner, help="Top-left corner as 'lat,long'")
@click.option("--bottom-right", "-b", required=True, callback=parse_corner, help="Bottom-right corner as 'lat,long'")
@click.option("--output", "-o", type=click.Path(), required=True, help="Output PNG path")
@click.option("--zoom", "-z", type=int, default=None, help="Zoom level (default from config)")
@click.option("--size", "-s", default=None, help="Output size as WIDTHxHEIGHT")
@click.option("--server", default=None, help="Tile server base URL")
def snapshot(
    top_left: GeoPoint,
    bottom_right: GeoPoint,
    output: str,
    zoom: Optional[int],
    size: Optional[str],
    server: Optional[str],
):
    """Fetch, stitch and crop the tiles for a bounding box into a PNG."""
    config = get_config()
    overrides = {}
    if zoom is not None:
        overrides["zoom"] = zoom
    if server:
        overrides["tile_server_url"] = server
    if size:
        try:
            overrides["output_width"], overrides["output_height"] = parse_size(size)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--size") from e
    try:
        config = AppConfig(**{**config.model_dump(), **overrides})
    except ValidationError as e:
        errors = "; ".join(f"{err['loc'][0]}: {err['msg']}" for err in e.errors())
        raise click.BadParameter(errors) from e

    console.print(f"[bold]Tile server:[/bold] {config.backend_url}")

    async def run() -> bytes:
        async with TileFetcher.from_config(config) as fetcher:
            service = SnapshotService.from_config(config, fetcher)
            with console.status("Fetching tiles..."):
                return await service.render_png(top_left, bottom_right)

    try:
        png = asyncio.run(run())
    except MapSnapError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(png)

    console.print(
        f"[green]Saved {config.output_width}x{config.output_height} snapshot:[/green] {output_path}"
    )


@main.command()
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", "-p", type=int, default=8000, help="Bind port")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str, port: int, reload: bool):
    """Run the HTTP API."""
    import uvicorn

    console.print(f"[bold]Serving MapSnap API on[/bold] http://{host}:{port}")
    uvicorn.run("mapsnap.api.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    main()
