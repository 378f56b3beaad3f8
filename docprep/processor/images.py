"""
Image size-budget optimization.

Attachments are bounded twice: a fixed 1600px bounding box with a 2MB soft
target, then the caller-configured hard ceiling. The resize/encode loop runs
at most twice and never iterates further.
"""

import io
import math
from typing import Tuple

from PIL import Image

from docprep.utils.errors import ImageProcessingError
from docprep.utils.logging import get_logger

logger = get_logger(__name__)

MAX_DIMENSION = 1600
SOFT_TARGET_BYTES = 2 * 1024 * 1024
SECOND_PASS_MAX_SCALE = 0.95
RESAMPLE = Image.Resampling.BILINEAR

WHITE = (255, 255, 255)
_OPAQUE_MODES = {"RGB", "L"}


def fit_dimensions(width: int, height: int, max_dimension: int = MAX_DIMENSION) -> Tuple[int, int]:
    """
    Compute the size that fits a bounding box, preserving aspect ratio.

    Args:
        width: Current width
        height: Current height
        max_dimension: Bounding box side

    Returns:
        (width, height), unchanged when both sides already fit
    """
    if width <= max_dimension and height <= max_dimension:
        return width, height

    aspect = width / height
    if aspect > 1.0:
        return max_dimension, max(1, round(max_dimension / aspect))
    return max(1, round(max_dimension * aspect)), max_dimension


def flatten_image(image: Image.Image, background: Tuple[int, int, int] = WHITE) -> Image.Image:
    """
    Return an opaque image that PNG can encode without an alpha channel.

    Transparent pixels are composited onto the background colour; palette,
    CMYK and high bit-depth images are converted to RGB.
    """
    if image.mode in _OPAQUE_MODES:
        return image

    if image.mode == "P" and "transparency" in image.info:
        image = image.convert("RGBA")

    if image.mode in ("RGBA", "LA", "PA") or image.mode.endswith("a"):
        rgba = image.convert("RGBA")
        flattened = Image.new("RGB", rgba.size, background)
        flattened.paste(rgba, mask=rgba.getchannel("A"))
        return flattened

    return image.convert("RGB")


def encode_png(image: Image.Image) -> bytes:
    """Encode an image as PNG bytes."""
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG")
    except (OSError, ValueError) as e:
        logger.warning(f"PNG compression failed: {e}")
        raise ImageProcessingError(str(e)) from e
    return buffer.getvalue()


def optimize_image(image: Image.Image, max_size_mb: int) -> Tuple[Image.Image, bytes]:
    """
    Shrink and re-encode an image until it fits the size budget.

    Args:
        image: Source image, any mode
        max_size_mb: Hard ceiling for the encoded bytes, in MB

    Returns:
        Tuple of (optimized image, PNG bytes)

    Raises:
        ImageProcessingError: If the image cannot be encoded or still exceeds
            the ceiling after the second pass
    """
    max_size_bytes = max_size_mb * 1024 * 1024
    logger.debug(
        f"Optimizing image {image.width}x{image.height} "
        f"(mode {image.mode}, max {max_size_mb}MB)"
    )

    width, height = fit_dimensions(image.width, image.height)
    if (width, height) != image.size:
        logger.debug(f"Scaling down from {image.width}x{image.height} to {width}x{height}")
        optimized = image.resize((width, height), RESAMPLE)
    else:
        optimized = image

    optimized = flatten_image(optimized)
    buffer = encode_png(optimized)
    logger.debug(f"Initial PNG size: {len(buffer)} bytes")

    if len(buffer) > SOFT_TARGET_BYTES:
        scale = min(SECOND_PASS_MAX_SCALE, math.sqrt(SOFT_TARGET_BYTES / len(buffer)))
        new_width = max(1, int(optimized.width * scale))
        new_height = max(1, int(optimized.height * scale))
        logger.debug(f"Buffer too large, scaling to {new_width}x{new_height} (scale: {scale:.2f})")

        optimized = optimized.resize((new_width, new_height), RESAMPLE)
        buffer = encode_png(optimized)
        logger.debug(f"Second pass PNG size: {len(buffer)} bytes")

    if len(buffer) > max_size_bytes:
        logger.warning(f"Failed to optimize image to target size: {len(buffer)} > {max_size_bytes}")
        raise ImageProcessingError(
            "Could not optimize image to target size",
            {"size_bytes": len(buffer), "max_size_bytes": max_size_bytes},
        )

    logger.debug(f"Optimized image to {optimized.width}x{optimized.height}, {len(buffer)} bytes")
    return optimized, buffer
