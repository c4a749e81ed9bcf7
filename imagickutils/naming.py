from __future__ import annotations

import re
from pathlib import Path

from .models import ImageInfo

WHATSAPP_PATTERNS = (
    re.compile(r"\AIMG-\d{8}-WA\d{4,}(?: ?\(\d+\))?\.(?:jpe?g|png|webp)\Z", re.IGNORECASE),
    re.compile(
        r"\AWhatsApp Image \d{4}-\d{2}-\d{2} at \d{1,2}\.\d{2}\.\d{2}(?: [AP]M)?(?: ?\(\d+\))?\.(?:jpe?g|png|webp)\Z",
        re.IGNORECASE,
    ),
)
DOWNSIZED_PATTERN = re.compile(r"\.(?:\d+p?-)?q\d{1,3}\.\w+\Z")
EXTENSION_PATTERN = re.compile(r"(?:\.\w{3,4})?\Z")


def is_whatsapp_image(path: Path) -> bool:
    return any(pattern.match(path.name) for pattern in WHATSAPP_PATTERNS)


def is_downsized(path: Path) -> bool:
    return DOWNSIZED_PATTERN.search(path.name) is not None


def skip_reason(path: Path, skip_whatsapp: bool, skip_downsized: bool) -> str | None:
    if skip_whatsapp and is_whatsapp_image(path):
        return "looks like a WhatsApp image"
    if skip_downsized and is_downsized(path):
        return "looks like it's already downsized"
    return None


def should_downsize(info: ImageInfo, downsize_to: str) -> bool:
    """``downsize_to`` is ``""`` or a pixel count such as ``"1024"``."""
    if not downsize_to:
        return False
    return info.shortest_side > int(downsize_to)


def downsized_suffix(quality: int, size: str | None) -> str:
    if size:
        return f".{size}-q{quality}.jpg"
    return f".q{quality}.jpg"


def downsized_output_path(path: Path, quality: int, size: str | None) -> Path:
    # a trailing 3-4 character extension is replaced, anything shorter stays in the name
    name = path.name
    stem = name[: EXTENSION_PATTERN.search(name).start()] or name
    return path.with_name(f"{stem}{downsized_suffix(quality, size)}")


def converted_output_path(path: Path, to: str) -> Path:
    return path.with_name(f"{path.name}.{to}")
