"""MapSnap API - FastAPI application."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import get_config
from .routers import snapshots, tiles

app = FastAPI(
    title="MapSnap API",
    description="Bounding box snapshots stitched from slippy-map tiles",
    version=__version__,
)

# CORS middleware - allow all origins in development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(tiles.router, tags=["tiles"])
app.include_router(snapshots.router, tags=["snapshots"])


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.get("/api/config")
async def get_api_config():
    """Get API configuration (non-sensitive)."""
    config = get_config()
    return {
        "build_environment": config.build_environment,
        "tile_server_url": config.backend_url,
        "tile_timeout": config.tile_timeout,
        "max_concurrent_fetches": config.max_concurrent_fetches,
        "max_tiles": config.max_tiles,
        "zoom": config.zoom,
        "output_width": config.output_width,
        "output_height": config.output_height,
    }
