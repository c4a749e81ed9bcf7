from __future__ import annotations

import argparse
from dataclasses import dataclass
import json
import logging
from pathlib import Path
import sys
from typing import Callable, Sequence

from . import config
from .convert import (
    convert_image_to,
    convert_image_to_jpg,
    convert_image_to_pdf,
    convert_image_to_png,
    downsize_image,
)
from .models import BatchResult, ConvertOptions, DownsizeOptions

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class Command:
    name: str
    summary: str
    add_arguments: Callable[[argparse.ArgumentParser], None]
    run: Callable[[argparse.Namespace], BatchResult]
    per_item_output: bool


def quality_type(value: str) -> int:
    try:
        quality = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid quality: {value!r}") from None
    if not 0 <= quality <= 100:
        raise argparse.ArgumentTypeError(f"quality must be between 0 and 100, got {quality}")
    return quality


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("files", nargs="+", type=Path, metavar="file")
    cleanup = parser.add_mutually_exclusive_group()
    cleanup.add_argument(
        "-D",
        "--delete-original",
        action="store_true",
        help="Delete (unlink) the original file after a successful conversion",
    )
    cleanup.add_argument(
        "-T",
        "--trash-original",
        action="store_true",
        help="Move the original file to the trash after a successful conversion",
    )
    parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Log the convert command lines without running them or touching the originals",
    )
    parser.add_argument(
        "--convert-path",
        help=f"Path to ImageMagick's convert (default: ${config.CONVERT_ENV_VAR} or search PATH)",
    )
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    verbosity.add_argument("--quiet", action="store_true", help="Only log warnings and errors")


def add_downsize_arguments(parser: argparse.ArgumentParser) -> None:
    add_common_arguments(parser)
    parser.add_argument(
        "-q",
        "--quality",
        type=quality_type,
        default=config.DEFAULT_DOWNSIZE_QUALITY,
        help="JPEG quality, 0 (best compression) to 100 (best quality)",
    )
    parser.add_argument(
        "--downsize-to",
        choices=config.DOWNSIZE_CHOICES,
        default=config.DEFAULT_DOWNSIZE_TO,
        help="Shrink the shortest side to this many pixels, if it is larger; '' disables",
    )
    parser.add_argument(
        "-S",
        "--dont-downsize",
        "--no-downsize",
        dest="no_downsize",
        action="store_true",
        help="Alias for --downsize-to ''",
    )
    for size in ("1536", "2048"):
        parser.add_argument(
            f"--{size}",
            dest="downsize_shortcut",
            action="store_const",
            const=size,
            help=f"Shortcut for --downsize-to={size}",
        )
    parser.add_argument(
        "--skip-whatsapp",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Skip files named like WhatsApp images, which are already compressed",
    )
    parser.add_argument(
        "--skip-downsized",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Skip files named like this tool's output, e.g. foo.1024-q40.jpg",
    )


def add_convert_arguments(parser: argparse.ArgumentParser) -> None:
    add_common_arguments(parser)
    parser.add_argument("--to", required=True, help="Target format, e.g. pdf, jpg, png")
    add_convert_quality(parser)


def add_fixed_convert_arguments(parser: argparse.ArgumentParser) -> None:
    add_common_arguments(parser)
    add_convert_quality(parser)


def add_convert_quality(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-q",
        "--quality",
        type=quality_type,
        default=config.DEFAULT_CONVERT_QUALITY,
        help="Quality setting (for JPEG/PNG), 0 to 100",
    )


def normalize_downsize_args(args: argparse.Namespace) -> DownsizeOptions:
    if args.no_downsize:
        downsize_to = ""
    elif args.downsize_shortcut:
        downsize_to = args.downsize_shortcut
    else:
        downsize_to = args.downsize_to
    return DownsizeOptions(
        quality=args.quality,
        downsize_to=downsize_to,
        skip_whatsapp=args.skip_whatsapp,
        skip_downsized=args.skip_downsized,
        delete_original=args.delete_original,
        trash_original=args.trash_original,
        dry_run=args.dry_run,
        convert_path=args.convert_path,
    )


def normalize_convert_args(args: argparse.Namespace, to: str = "") -> ConvertOptions:
    return ConvertOptions(
        to=getattr(args, "to", None) or to,
        quality=getattr(args, "quality", None),
        delete_original=args.delete_original,
        trash_original=args.trash_original,
        dry_run=args.dry_run,
        convert_path=args.convert_path,
    )


def command_table() -> dict[str, Command]:
    commands = [
        Command(
            "downsize-image",
            "Reduce image size: recompress to JPEG (quality 40) and downsize to 1024p",
            add_downsize_arguments,
            lambda args: downsize_image(args.files, normalize_downsize_args(args)),
            False,
        ),
        Command(
            "convert-image-to",
            "Convert images with ImageMagick's convert, naming outputs FILE.TO",
            add_convert_arguments,
            lambda args: convert_image_to(args.files, normalize_convert_args(args)),
            True,
        ),
        Command(
            "convert-image-to-pdf",
            "Convert images to PDF (convert-image-to --to pdf)",
            add_common_arguments,
            lambda args: convert_image_to_pdf(args.files, normalize_convert_args(args, "pdf")),
            True,
        ),
        Command(
            "convert-image-to-jpg",
            "Convert images to JPG (convert-image-to --to jpg)",
            add_fixed_convert_arguments,
            lambda args: convert_image_to_jpg(args.files, normalize_convert_args(args, "jpg")),
            True,
        ),
        Command(
            "convert-image-to-png",
            "Convert images to PNG (convert-image-to --to png)",
            add_fixed_convert_arguments,
            lambda args: convert_image_to_png(args.files, normalize_convert_args(args, "png")),
            True,
        ),
    ]
    return {command.name: command for command in commands}


def build_parser(command: Command, prog: str | None = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog or command.name, description=command.summary)
    command.add_arguments(parser)
    return parser


def configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root = logging.getLogger()
    if root.hasHandlers():
        root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def render(result: BatchResult, per_item: bool, as_json: bool) -> str:
    if as_json:
        return json.dumps(result.as_dict(), indent=2)
    lines = []
    if per_item:
        for item in result.items:
            lines.append(f"{item.item_id}\t{item.status}\t{item.message}")
    lines.append(f"{result.status} {result.message} ({result.success_count}/{len(result.items)} succeeded)")
    return "\n".join(lines)


def exit_code(result: BatchResult) -> int:
    if result.success:
        return 0
    if result.status == 400:
        return 2
    return 1


def run(name: str, argv: Sequence[str] | None = None, prog: str | None = None) -> int:
    command = command_table()[name]
    args = build_parser(command, prog).parse_args(argv)
    configure_logging(args.verbose, args.quiet)
    result = command.run(args)
    print(render(result, command.per_item_output, args.json))
    return exit_code(result)


def main(argv: Sequence[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    commands = command_table()
    if not argv or argv[0] not in commands:
        parser = argparse.ArgumentParser(
            prog="imagickutils",
            description="Utilities wrapping ImageMagick's convert",
        )
        parser.add_argument("command", choices=sorted(commands))
        parser.print_usage(sys.stderr)
        if argv and argv[0] in {"-h", "--help"}:
            for command in commands.values():
                print(f"  {command.name:<22} {command.summary}")
            return 0
        print("imagickutils: error: missing or unknown command", file=sys.stderr)
        return 2
    return run(argv[0], argv[1:], prog=f"imagickutils {argv[0]}")


def downsize_image_main() -> None:
    raise SystemExit(run("downsize-image"))


def convert_image_to_main() -> None:
    raise SystemExit(run("convert-image-to"))


def convert_image_to_pdf_main() -> None:
    raise SystemExit(run("convert-image-to-pdf"))


def convert_image_to_jpg_main() -> None:
    raise SystemExit(run("convert-image-to-jpg"))


def convert_image_to_png_main() -> None:
    raise SystemExit(run("convert-image-to-png"))


def umbrella_main() -> None:
    raise SystemExit(main())
