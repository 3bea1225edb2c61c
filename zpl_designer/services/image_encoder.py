"""Convert uploaded images into ZPL ``^GFA`` bitmap payloads.

The image is shrunk to fit the requested box, flattened onto white, reduced to
1 bit per pixel with a fixed threshold and packed MSB first, each row padded
with blank bits to a whole byte.
"""
import io
import logging
from typing import Tuple

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from zpl_designer.api.models.schemas import ImageEncodingResult
from zpl_designer.core.errors import EncodingError
from zpl_designer.services.units import round_half_up
from zpl_designer.utils.helpers import to_data_url

logger = logging.getLogger(__name__)

LUMINANCE_THRESHOLD = 128
DEFAULT_MAX_SIZE = 800


def fit_within(size: Tuple[int, int], max_width: int, max_height: int) -> Tuple[int, int]:
    """Shrink ``size`` to fit the box keeping aspect ratio; never enlarge."""
    width, height = size
    if width > max_width:
        height = round_half_up(height * (max_width / width))
        width = max_width
    if height > max_height:
        width = round_half_up(width * (max_height / height))
        height = max_height
    return max(1, width), max(1, height)


def flatten_on_white(image: Image.Image) -> Image.Image:
    """Composite onto an opaque white background so transparency prints blank"""
    rgba = image.convert("RGBA")
    background = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
    background.alpha_composite(rgba)
    return background.convert("RGB")


def pack_monochrome(image: Image.Image) -> Tuple[str, int, int]:
    """Return ``(hex_payload, total_bytes, bytes_per_row)`` for an RGB image.

    A pixel is ink when (R + G + B) / 3 falls below the threshold. ``packbits``
    fills each row MSB first and pads the last byte of the row with zeros.
    """
    pixels = np.asarray(image.convert("RGB"), dtype=np.uint16)
    ink = pixels.sum(axis=2) < 3 * LUMINANCE_THRESHOLD
    packed = np.packbits(ink, axis=1)
    bytes_per_row = int(packed.shape[1])
    total_bytes = int(packed.size)
    return packed.tobytes().hex().upper(), total_bytes, bytes_per_row


def image_to_zpl(
    image_bytes: bytes,
    max_width: int = DEFAULT_MAX_SIZE,
    max_height: int = DEFAULT_MAX_SIZE,
) -> ImageEncodingResult:
    """Encode raw image bytes into a monochrome graphic field payload."""
    try:
        with Image.open(io.BytesIO(image_bytes)) as source:
            source.load()
            # honour camera rotation tags the way browsers do
            upright = ImageOps.exif_transpose(source)
            original_size = upright.size
            image = upright.convert("RGBA")
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
        logger.warning(f"Image decoding failed: {e}")
        raise EncodingError(f"Could not decode image: {e}") from e

    width, height = fit_within(original_size, max_width, max_height)
    try:
        if (width, height) != original_size:
            image = image.resize((width, height), Image.Resampling.LANCZOS)
        flattened = flatten_on_white(image)
    except (ValueError, MemoryError) as e:
        logger.warning(f"Image rasterization failed: {e}")
        raise EncodingError(f"Could not rasterize image: {e}") from e

    hex_payload, total_bytes, bytes_per_row = pack_monochrome(flattened)

    preview = io.BytesIO()
    flattened.save(preview, format="PNG")

    logger.debug(
        f"Encoded {original_size[0]}x{original_size[1]} image as {width}x{height}, {total_bytes} bytes"
    )
    return ImageEncodingResult(
        hex_payload=hex_payload,
        total_bytes=total_bytes,
        bytes_per_row=bytes_per_row,
        width=width,
        height=height,
        preview_image=to_data_url(preview.getvalue()),
    )
