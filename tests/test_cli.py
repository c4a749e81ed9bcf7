from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from imagickutils import cli
from imagickutils.models import BatchResult, ConvertOptions, DownsizeOptions, ItemResult


def _parse(name: str, argv: list[str]):
    return cli.build_parser(cli.command_table()[name]).parse_args(argv)


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda verbose, quiet: None)


def test_downsize_defaults() -> None:
    options = cli.normalize_downsize_args(_parse("downsize-image", ["a.jpg", "b.png"]))
    assert options == DownsizeOptions()


@pytest.mark.parametrize(
    ("argv", "expected"),
    [
        (["--downsize-to", "800"], "800"),
        (["--downsize-to", ""], ""),
        (["--dont-downsize"], ""),
        (["--no-downsize"], ""),
        (["-S"], ""),
        (["--1536"], "1536"),
        (["--2048"], "2048"),
        (["--2048", "-S"], ""),
    ],
)
def test_downsize_aliases(argv: list[str], expected: str) -> None:
    options = cli.normalize_downsize_args(_parse("downsize-image", [*argv, "a.jpg"]))
    assert options.downsize_to == expected


def test_downsize_flags() -> None:
    args = _parse(
        "downsize-image",
        ["-q", "70", "--no-skip-whatsapp", "--no-skip-downsized", "-T", "-n", "a.jpg"],
    )
    options = cli.normalize_downsize_args(args)
    assert options.quality == 70
    assert not options.skip_whatsapp
    assert not options.skip_downsized
    assert options.trash_original
    assert not options.delete_original
    assert options.dry_run
    assert args.files == [Path("a.jpg")]


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["-D", "-T", "a.jpg"],
        ["-q", "101", "a.jpg"],
        ["-q", "high", "a.jpg"],
        ["--downsize-to", "1000", "a.jpg"],
    ],
)
def test_downsize_rejects_bad_arguments(argv: list[str]) -> None:
    with pytest.raises(SystemExit):
        _parse("downsize-image", argv)


def test_convert_requires_target() -> None:
    with pytest.raises(SystemExit):
        _parse("convert-image-to", ["a.jpg"])


def test_convert_options() -> None:
    options = cli.normalize_convert_args(_parse("convert-image-to", ["--to", "webp", "-q", "80", "-D", "a.png"]))
    assert options == ConvertOptions(to="webp", quality=80, delete_original=True)


def test_pdf_wrapper_has_no_quality() -> None:
    args = _parse("convert-image-to-pdf", ["a.jpg"])
    assert not hasattr(args, "quality")
    assert cli.normalize_convert_args(args, "pdf") == ConvertOptions(to="pdf", quality=None)


def test_run_prints_summary_for_downsize(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    calls = []

    def fake_downsize(files, options):
        calls.append((files, options))
        return BatchResult.from_items([ItemResult(str(files[0]), 200, "OK")])

    monkeypatch.setattr(cli, "downsize_image", fake_downsize)
    assert cli.run("downsize-image", ["--2048", "a.png"]) == 0
    assert calls == [([Path("a.png")], DownsizeOptions(downsize_to="2048"))]
    assert capsys.readouterr().out.strip() == "200 All success (1/1 succeeded)"


def test_run_prints_items_for_convert(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    result = BatchResult.from_items(
        [ItemResult("a.jpg", 200, "OK"), ItemResult("b.jpg", 500, "Failed (exit code 1)")]
    )
    monkeypatch.setattr(cli, "convert_image_to_png", lambda files, options: result)
    assert cli.run("convert-image-to-png", ["a.jpg", "b.jpg"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        "a.jpg\t200\tOK",
        "b.jpg\t500\tFailed (exit code 1)",
        "207 Partial success (1/2 succeeded)",
    ]


def test_main_dispatches_with_json(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    seen = []

    def fake_convert(files, options):
        seen.append(options)
        return BatchResult(500, "All files failed", [ItemResult("a.jpg", 404, "No such file")])

    monkeypatch.setattr(cli, "convert_image_to", fake_convert)
    assert cli.main(["convert-image-to", "--to", "pdf", "--json", "a.jpg"]) == 1
    assert seen[0].to == "pdf"
    payload = json.loads(capsys.readouterr().out)
    assert payload["status"] == 500
    assert payload["results"] == [
        {"item_id": "a.jpg", "status": 404, "message": "No such file", "output": None}
    ]


def test_main_without_command(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main([]) == 2
    assert cli.main(["resize"]) == 2
    assert "usage" in capsys.readouterr().err


def test_exit_codes() -> None:
    assert cli.exit_code(BatchResult(200, "All success")) == 0
    assert cli.exit_code(BatchResult(207, "Partial success")) == 0
    assert cli.exit_code(BatchResult(400, "Cannot find convert in path")) == 2
    assert cli.exit_code(BatchResult(500, "All files failed")) == 1


def test_command_table_lists_every_utility() -> None:
    assert set(cli.command_table()) == {
        "downsize-image",
        "convert-image-to",
        "convert-image-to-pdf",
        "convert-image-to-jpg",
        "convert-image-to-png",
    }


def test_configure_logging_levels(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.undo()
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        cli.configure_logging(verbose=True, quiet=False)
        assert root.level == logging.DEBUG
        cli.configure_logging(verbose=False, quiet=True)
        assert root.level == logging.WARNING
        cli.configure_logging(verbose=False, quiet=False)
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
