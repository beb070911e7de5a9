"""Base image and mask handling for the inpainting collaborator.

The kiosk always edits the same plaza photo.  The inpainting vendor receives
it as a JPEG data URI together with a PNG mask in which white marks the
editable central plaza and black marks everything that must stay unchanged.

When no mask file is configured on disk a mask is synthesized: a white
ellipse centred on the image, covering the central plaza.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import re
from pathlib import Path

from PIL import Image, ImageDraw

logger = logging.getLogger(__name__)

JPEG_QUALITY = 90

# Ellipse size as a fraction of image width/height.
MASK_ELLIPSE_FRACTION = (0.5, 0.35)

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.*)$", re.DOTALL)


def load_base_image(path: Path) -> Image.Image:
    """Load the plaza photo as RGB.

    Raises:
        FileNotFoundError: If the configured base image does not exist
    """
    if not path.is_file():
        raise FileNotFoundError(f"Base image not found: {path}")
    with Image.open(path) as img:
        return img.convert("RGB")


def synthesize_plaza_mask(size: tuple[int, int]) -> Image.Image:
    """Create a black mask with a white central ellipse of the given size."""
    width, height = size
    fw, fh = MASK_ELLIPSE_FRACTION
    half_w = width * fw / 2
    half_h = height * fh / 2
    cx, cy = width / 2, height / 2

    mask = Image.new("L", size, 0)
    draw = ImageDraw.Draw(mask)
    draw.ellipse((cx - half_w, cy - half_h, cx + half_w, cy + half_h), fill=255)
    return mask


def load_mask(path: Path, size: tuple[int, int]) -> Image.Image:
    """Load the inpainting mask as a single-channel image matching *size*.

    Falls back to :func:`synthesize_plaza_mask` when *path* does not exist.
    A mask whose dimensions differ from the base image is resized with
    nearest-neighbour sampling so it stays strictly black and white.
    """
    if not path.is_file():
        logger.info(f"Mask not found at {path}, synthesizing plaza mask {size}")
        return synthesize_plaza_mask(size)

    with Image.open(path) as img:
        mask = img.convert("L")

    if mask.size != size:
        logger.warning(f"Mask size {mask.size} differs from base image {size}, resizing")
        mask = mask.resize(size, Image.Resampling.NEAREST)
    return mask


def to_data_uri(image: Image.Image, format: str = "JPEG") -> str:
    """Encode *image* as a base64 data URI (JPEG or PNG)."""
    buffer = io.BytesIO()
    if format.upper() == "JPEG":
        image.convert("RGB").save(buffer, format="JPEG", quality=JPEG_QUALITY)
        mime = "image/jpeg"
    else:
        image.save(buffer, format="PNG")
        mime = "image/png"
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def is_data_uri(value: str) -> bool:
    return value.startswith("data:")


def decode_data_uri(uri: str) -> tuple[bytes, str]:
    """Decode a base64 data URI.

    Returns:
        Tuple of (raw bytes, mime type)

    Raises:
        ValueError: If *uri* is not a base64 data URI
    """
    match = _DATA_URI_RE.match(uri)
    if not match:
        raise ValueError("Not a base64 data URI")
    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e
    return data, match.group("mime")


def encode_plaza_images(base_image_path: Path, mask_image_path: Path) -> tuple[str, str]:
    """Load the base image and mask and return them as (JPEG, PNG) data URIs."""
    base = load_base_image(base_image_path)
    mask = load_mask(mask_image_path, base.size)
    return to_data_uri(base, "JPEG"), to_data_uri(mask, "PNG")
