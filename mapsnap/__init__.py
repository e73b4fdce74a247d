"""MapSnap - bounding-box snapshots assembled from slippy-map tiles."""

__version__ = "0.1.0"
