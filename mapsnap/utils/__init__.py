"""Utility functions for map snapshots."""

from .geo_utils import (
    MAX_LATITUDE,
    grid_for_corners,
    project,
)
from .image_utils import (
    decode_image,
    encode_png,
    flatten_alpha,
    resize_image,
)

__all__ = [
    "MAX_LATITUDE",
    "grid_for_corners",
    "project",
    "decode_image",
    "encode_png",
    "flatten_alpha",
    "resize_image",
]
