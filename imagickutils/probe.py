from __future__ import annotations

from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .errors import NotAnImageError
from .models import ImageInfo


def probe_image(path: Path) -> ImageInfo:
    """Read width, height and format from the image header.

    Pillow opens lazily, so the pixel data is never decoded here.

    Raises:
        NotAnImageError: if the file cannot be parsed as an image.
    """
    try:
        with Image.open(path) as image:
            width, height = image.size
            return ImageInfo(path, width, height, image.format)
    except UnidentifiedImageError as exc:
        raise NotAnImageError(f"cannot identify image file {path}") from exc
    except Image.DecompressionBombError as exc:
        raise NotAnImageError(f"image too large to probe: {exc}") from exc
    except OSError as exc:
        raise NotAnImageError(f"cannot read {path}: {exc}") from exc
