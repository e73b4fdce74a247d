"""Image processing utilities."""

from io import BytesIO

from PIL import Image, UnidentifiedImageError


def decode_image(data: bytes, mode: str = "RGBA") -> Image.Image:
    """Decode encoded image bytes and convert to ``mode``.

    Raises:
        ValueError: If the bytes are not a readable image
    """
    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
    ) as e:
        raise ValueError(f"Could not decode image: {e}") from e
    return image.convert(mode)


def encode_png(image: Image.Image) -> bytes:
    """Encode an image as PNG bytes."""
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def flatten_alpha(
    image: Image.Image,
    background: tuple[int, int, int] = (255, 255, 255),
) -> Image.Image:
    """Composite an image onto an opaque background and drop the alpha channel."""
    if image.mode != "RGBA":
        image = image.convert("RGBA")

    flattened = Image.new("RGB", image.size, background)
    flattened.paste(image, mask=image.split()[3])
    return flattened


def resize_image(
    image: Image.Image,
    size: tuple[int, int],
    resample: int = Image.Resampling.LANCZOS,
) -> Image.Image:
    """Resize image to specified size."""
    return image.resize(size, resample=resample)
