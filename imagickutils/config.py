import sys

DEFAULT_DOWNSIZE_QUALITY = 40
DEFAULT_CONVERT_QUALITY = 92
DOWNSIZE_CHOICES = ("", "640", "800", "1024", "1536", "2048")
DEFAULT_DOWNSIZE_TO = "1024"

CONVERT_ENV_VAR = "IMAGICKUTILS_CONVERT"
# Windows ships an unrelated convert.exe (FAT to NTFS), so only trust magick there.
CONVERT_TOOL_NAMES = ("magick",) if sys.platform.startswith("win") else ("convert", "magick")
DRY_RUN_TOOL_NAME = "convert"

IMAGE_SUFFIXES = frozenset({
    ".jpg",
    ".jpeg",
    ".png",
    ".gif",
    ".webp",
    ".bmp",
    ".tif",
    ".tiff",
})

SETTINGS_ORGANIZATION = "imagickutils"
SETTINGS_APPLICATION = "imagickutils"
