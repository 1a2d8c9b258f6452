"""Image utility functions for encoding drawings and inspecting surfaces."""

import base64
import binascii
import io
import re
from typing import Optional, Tuple
from PIL import Image, ImageOps, UnidentifiedImageError


DATA_URI_PREFIX = re.compile(r"^data:image/\w+;base64,")

WHITE = (255, 255, 255, 255)

UPLOAD_SIZE = (512, 512)


def encode_png(image: Image.Image) -> bytes:
    """Encode an image as PNG bytes.

    Args:
        image: PIL Image object

    Returns:
        PNG file bytes
    """
    output = io.BytesIO()
    image.save(output, format="PNG")
    return output.getvalue()


def decode_png(image_bytes: bytes) -> Image.Image:
    """Decode image bytes into a fully loaded RGBA image."""
    image = Image.open(io.BytesIO(image_bytes))
    image.load()
    return image.convert("RGBA")


def strip_data_uri_prefix(drawing_data: str) -> str:
    """Remove a leading ``data:image/...;base64,`` prefix if present."""
    return DATA_URI_PREFIX.sub("", drawing_data, count=1)


def decode_drawing(drawing_data: str) -> Image.Image:
    """Decode a data URI or bare base64 string into an RGBA image.

    Args:
        drawing_data: ``data:image/png;base64,...`` or plain base64

    Returns:
        The decoded image in RGBA mode

    Raises:
        ValueError: If the data is not valid base64 or not an image
    """
    try:
        raw = base64.b64decode(strip_data_uri_prefix(drawing_data), validate=True)
        return decode_png(raw)
    except (binascii.Error, UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Drawing data is not a valid image: {e}") from e


def surface_to_data_url(surface: Image.Image) -> str:
    """Serialize a surface as a PNG data URI."""
    encoded = base64.b64encode(encode_png(surface)).decode("utf-8")
    return f"data:image/png;base64,{encoded}"


def is_surface_empty(surface: Optional[Image.Image]) -> bool:
    """Check whether every channel of every pixel is zero.

    Scans the full surface; a single non-zero channel anywhere makes it
    non-empty. A missing surface is treated as empty.

    Args:
        surface: The raster surface to inspect

    Returns:
        True if the surface holds only fully transparent black pixels
    """
    if surface is None:
        return True

    if surface.mode != "RGBA":
        surface = surface.convert("RGBA")

    # getextrema() returns one (min, max) pair per band
    return all(high == 0 for _, high in surface.getextrema())


def flatten_on_white(image: Image.Image) -> Image.Image:
    """Composite an image with transparency onto a white background."""
    background = Image.new("RGBA", image.size, WHITE)
    background.alpha_composite(image.convert("RGBA"))
    return background


def prepare_drawing_for_upload(
    image_bytes: bytes,
    size: Tuple[int, int] = UPLOAD_SIZE
) -> bytes:
    """Fit a drawing inside a white square so vision models see it clearly.

    The drawing keeps its aspect ratio and is centered on a white canvas of
    ``size``.

    Args:
        image_bytes: The original drawing as PNG (or any Pillow format)
        size: Target canvas size

    Returns:
        PNG bytes of the padded RGB image
    """
    flattened = flatten_on_white(decode_png(image_bytes))
    padded = ImageOps.pad(flattened.convert("RGB"), size, color=WHITE[:3])
    return encode_png(padded)
