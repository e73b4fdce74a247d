"""Raster operations used to stitch, crop and resize tiles.

The mosaic and crop services only talk to a ``RasterBackend``. The default
backend is Pillow; tests substitute an in-memory implementation.
"""

from typing import Any, Protocol

from PIL import Image

from ..models.geo import CropBox
from ..utils.image_utils import decode_image, encode_png, flatten_alpha, resize_image

# Opaque white, used for blank canvas slots and when flattening
WHITE = (255, 255, 255, 255)


class RasterBackend(Protocol):
    """Operations the snapshot pipeline needs from an image library."""

    def decode(self, data: bytes) -> Any:
        """Decode encoded bytes into a 4-channel image."""
        ...

    def size(self, image: Any) -> tuple[int, int]:
        """Get (width, height)."""
        ...

    def new_canvas(self, size: tuple[int, int], background: tuple[int, int, int, int] = WHITE) -> Any:
        """Create a blank 4-channel canvas."""
        ...

    def composite(self, canvas: Any, image: Any, offset: tuple[int, int]) -> Any:
        """Alpha-blend ``image`` over ``canvas`` at ``offset``."""
        ...

    def flatten(self, image: Any, background: tuple[int, int, int] = WHITE[:3]) -> Any:
        """Remove transparency against an opaque background."""
        ...

    def crop(self, image: Any, box: CropBox) -> Any:
        ...

    def resize(self, image: Any, size: tuple[int, int]) -> Any:
        ...

    def encode_png(self, image: Any) -> bytes:
        ...


class PillowRasterService:
    """RasterBackend backed by Pillow."""

    def __init__(self, resample: int = Image.Resampling.LANCZOS):
        """
        Initialize Pillow raster backend.

        Args:
            resample: Pillow resampling filter used for every resize
        """
        self.resample = resample

    def decode(self, data: bytes) -> Image.Image:
        return decode_image(data, mode="RGBA")

    def size(self, image: Image.Image) -> tuple[int, int]:
        return image.size

    def new_canvas(
        self,
        size: tuple[int, int],
        background: tuple[int, int, int, int] = WHITE,
    ) -> Image.Image:
        return Image.new("RGBA", size, background)

    def composite(
        self,
        canvas: Image.Image,
        image: Image.Image,
        offset: tuple[int, int],
    ) -> Image.Image:
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        canvas.alpha_composite(image, dest=offset)
        return canvas

    def flatten(
        self,
        image: Image.Image,
        background: tuple[int, int, int] = WHITE[:3],
    ) -> Image.Image:
        return flatten_alpha(image, background)

    def crop(self, image: Image.Image, box: CropBox) -> Image.Image:
        return image.crop(box.to_pil_box())

    def resize(self, image: Image.Image, size: tuple[int, int]) -> Image.Image:
        return resize_image(image, size, resample=self.resample)

    def encode_png(self, image: Image.Image) -> bytes:
        return encode_png(image)
