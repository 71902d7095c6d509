from __future__ import annotations

import asyncio
import io
import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .config import ImageSource
from .errors import InputValidationError

_LOGGER = logging.getLogger("pianomorph.images")
SUPPORTED_IMAGE_FORMATS = frozenset({"JPEG", "PNG", "GIF", "WEBP"})


def sniff_image_mime(data: bytes) -> str:
    """Return the MIME type Pillow identifies for ``data``."""
    if not data:
        raise InputValidationError("Image file is empty")
    try:
        with Image.open(io.BytesIO(data)) as image:
            image_format = image.format
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise InputValidationError("File is not a readable image") from exc
    if image_format not in SUPPORTED_IMAGE_FORMATS:
        raise InputValidationError(f"Unsupported image format: {image_format}")
    return Image.MIME[image_format]


def image_source_from_bytes(data: bytes) -> ImageSource:
    return ImageSource(data=data, mime_type=sniff_image_mime(data))


async def load_image_file(path: str | Path) -> ImageSource:
    """Read and identify an image file off the event loop."""
    target = Path(path).expanduser()
    try:
        data = await asyncio.to_thread(target.read_bytes)
    except OSError as exc:
        raise InputValidationError(f"Could not read image {target}: {exc}") from exc
    source = image_source_from_bytes(data)
    _LOGGER.info("Loaded image %s (%s, %d bytes)", target, source.mime_type, len(data))
    return source
