from __future__ import annotations

from dataclasses import replace
from pathlib import Path
import logging
import os
import re
import shlex
import shutil
import subprocess
import sys
from typing import Iterable

from send2trash import send2trash

from . import config
from .errors import NotAnImageError, OptionsError, ToolNotFoundError
from .models import (
    BatchResult,
    ConversionRequest,
    ConvertOptions,
    DownsizeOptions,
    ItemResult,
    ProcessResult,
)
from .naming import converted_output_path, downsized_output_path, should_downsize, skip_reason
from .probe import probe_image

WINDOWS_CREATIONFLAGS = (
    getattr(subprocess, "CREATE_NO_WINDOW", 0) if sys.platform.startswith("win") else 0
)
FORMAT_PATTERN = re.compile(r"\A\w+\Z")

logger = logging.getLogger(__name__)


def find_convert_tool(explicit: str | None = None) -> str | None:
    configured = explicit or os.environ.get(config.CONVERT_ENV_VAR)
    if configured:
        return shutil.which(configured) or configured
    for name in config.CONVERT_TOOL_NAMES:
        system_path = shutil.which(name)
        if system_path:
            return system_path
    return None


def check_tool(tool: str | None) -> str:
    if tool is None:
        names = " or ".join(config.CONVERT_TOOL_NAMES)
        raise ToolNotFoundError(f"Cannot find {names} in path")
    path = Path(tool)
    if not path.is_file():
        raise ToolNotFoundError(f"convert path {tool} does not exist")
    if not os.access(path, os.X_OK):
        raise ToolNotFoundError(f"convert path {tool} is not executable")
    return tool


def resolve_tool(convert_path: str | None, dry_run: bool) -> str:
    tool = find_convert_tool(convert_path)
    if dry_run:
        return tool or config.DRY_RUN_TOOL_NAME
    return check_tool(tool)


def run_command(command: list[str]) -> ProcessResult:
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            creationflags=WINDOWS_CREATIONFLAGS,
        )
    except OSError as exc:
        return ProcessResult(127, "", str(exc))
    # file names in ImageMagick messages are not necessarily UTF-8
    return ProcessResult(
        result.returncode,
        result.stdout.decode("utf-8", errors="replace"),
        result.stderr.decode("utf-8", errors="replace"),
    )


def format_command(command: list[str]) -> str:
    return " ".join(shlex.quote(part) for part in command)


def invoke(request: ConversionRequest, tool: str, dry_run: bool) -> ProcessResult | None:
    """Run the conversion, or only log it when ``dry_run`` is set (returns None)."""
    command = request.command(tool)
    if dry_run:
        logger.info("[DRY-RUN] Running %s ...", format_command(command))
        return None
    logger.info("Running %s ...", format_command(command))
    result = run_command(command)
    if result.stderr:
        logger.debug("%s stderr: %s", tool, result.stderr.strip())
    return result


def remove_original(source: Path, trash_original: bool, delete_original: bool) -> str | None:
    """Trash or delete ``source``; returns a warning message when that fails."""
    if trash_original:
        logger.info("Trashing original file %s ...", source)
        try:
            send2trash(str(source))
        except OSError as exc:
            logger.warning("Cannot trash original file %s: %s", source, exc)
            return f"trash failed: {exc}"
    elif delete_original:
        logger.info("Deleting original file %s ...", source)
        try:
            source.unlink()
        except OSError as exc:
            logger.warning("Cannot delete original file %s: %s", source, exc)
            return f"delete failed: {exc}"
    return None


def validate_downsize_options(options: DownsizeOptions) -> None:
    validate_quality(options.quality)
    if options.downsize_to not in config.DOWNSIZE_CHOICES:
        choices = ", ".join(repr(choice) for choice in config.DOWNSIZE_CHOICES)
        raise OptionsError(f"downsize_to must be one of {choices}, got {options.downsize_to!r}")
    validate_cleanup(options.delete_original, options.trash_original)


def validate_convert_options(options: ConvertOptions) -> None:
    if not options.to:
        raise OptionsError("Please specify target format in `to`")
    if not FORMAT_PATTERN.match(options.to):
        raise OptionsError(f"Invalid target format {options.to!r}")
    if options.quality is not None:
        validate_quality(options.quality)
    validate_cleanup(options.delete_original, options.trash_original)


def validate_quality(quality: int) -> None:
    if not 0 <= quality <= 100:
        raise OptionsError(f"quality must be between 0 and 100, got {quality}")


def validate_cleanup(delete_original: bool, trash_original: bool) -> None:
    if delete_original and trash_original:
        raise OptionsError("delete_original and trash_original are mutually exclusive")


def build_downsize_request(source: Path, options: DownsizeOptions) -> ConversionRequest:
    info = probe_image(source)
    arguments = [str(source)]
    size = None
    if should_downsize(info, options.downsize_to):
        size = options.downsize_to
        # ^ fits the shortest side, > only ever shrinks
        arguments += ["-resize", f"{size}^>"]
    arguments += ["-quality", str(options.quality)]
    output = downsized_output_path(source, options.quality, size)
    arguments.append(str(output))
    return ConversionRequest(source, output, tuple(arguments))


def build_convert_request(source: Path, options: ConvertOptions) -> ConversionRequest:
    output = converted_output_path(source, options.to)
    arguments: list[str] = []
    if options.quality:
        arguments += ["-quality", str(options.quality)]
    arguments += [str(source), str(output)]
    return ConversionRequest(source, output, tuple(arguments))


def downsize_image(files: Iterable[Path], options: DownsizeOptions) -> BatchResult:
    try:
        validate_downsize_options(options)
        tool = resolve_tool(options.convert_path, options.dry_run)
    except (OptionsError, ToolNotFoundError) as exc:
        logger.error("%s", exc)
        return BatchResult(400, str(exc))
    items = [downsize_file(Path(source), options, tool) for source in files]
    return BatchResult.from_items(items)


def downsize_file(source: Path, options: DownsizeOptions, tool: str) -> ItemResult:
    """Downsize one file with an already resolved ``tool``.

    Raises:
        OptionsError: if ``options`` are invalid.
    """
    validate_downsize_options(options)
    item_id = str(source)
    logger.info("Processing file %s ...", source)
    if not source.is_file():
        logger.error("No such file %s, skipped", source)
        return ItemResult(item_id, 404, "No such file")
    try:
        request = build_downsize_request(source, options)
    except NotAnImageError as exc:
        logger.error("Filename '%s' is not image (%s), skipped", source, exc)
        return ItemResult(item_id, 415, f"Not an image: {exc}")
    reason = skip_reason(source, options.skip_whatsapp, options.skip_downsized)
    if reason:
        logger.info("Filename '%s' %s, skip downsizing", source, reason)
        return ItemResult(item_id, 304, f"Skipped: {reason}")
    return finish(request, tool, options.dry_run, options.trash_original, options.delete_original)


def convert_image_to(files: Iterable[Path], options: ConvertOptions) -> BatchResult:
    try:
        validate_convert_options(options)
        tool = resolve_tool(options.convert_path, options.dry_run)
    except (OptionsError, ToolNotFoundError) as exc:
        logger.error("%s", exc)
        return BatchResult(400, str(exc))
    items = [convert_file(Path(source), options, tool) for source in files]
    return BatchResult.from_items(items)


def convert_file(source: Path, options: ConvertOptions, tool: str) -> ItemResult:
    logger.info("Processing file %s ...", source)
    if not source.is_file():
        logger.error("No such file %s, skipped", source)
        return ItemResult(str(source), 404, "No such file")
    request = build_convert_request(source, options)
    return finish(request, tool, options.dry_run, options.trash_original, options.delete_original)


def finish(
    request: ConversionRequest,
    tool: str,
    dry_run: bool,
    trash_original: bool,
    delete_original: bool,
) -> ItemResult:
    item_id = str(request.source)
    result = invoke(request, tool, dry_run)
    if result is None:
        return ItemResult(item_id, 200, "OK (dry-run)", request.output)
    if not result.success:
        logger.error(
            "%s for %s failed: exit_code=%s, signal=%d",
            Path(tool).name,
            request.source,
            result.exit_code,
            result.signal,
        )
        if result.stderr:
            logger.error("%s", result.stderr.strip())
        return ItemResult(item_id, 500, f"Failed ({result.describe()})", request.output)
    warning = remove_original(request.source, trash_original, delete_original)
    message = "OK" if warning is None else f"OK, but {warning}"
    return ItemResult(item_id, 200, message, request.output)


def convert_image_to_pdf(files: Iterable[Path], options: ConvertOptions) -> BatchResult:
    return convert_image_to(files, replace(options, to="pdf", quality=None))


def convert_image_to_jpg(files: Iterable[Path], options: ConvertOptions) -> BatchResult:
    return convert_image_to(files, replace(options, to="jpg"))


def convert_image_to_png(files: Iterable[Path], options: ConvertOptions) -> BatchResult:
    return convert_image_to(files, replace(options, to="png"))
