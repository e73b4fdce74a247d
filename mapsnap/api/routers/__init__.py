"""API routers for MapSnap."""

from . import snapshots, tiles

__all__ = ["snapshots", "tiles"]
