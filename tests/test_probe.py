from __future__ import annotations

from pathlib import Path

import pytest

from conftest import make_image
from imagickutils.errors import NotAnImageError
from imagickutils.probe import probe_image


def test_probe_reads_dimensions_and_format(tmp_path: Path) -> None:
    path = make_image(tmp_path / "wide.png", 300, 200)
    info = probe_image(path)
    assert (info.width, info.height) == (300, 200)
    assert info.format == "PNG"
    assert info.shortest_side == 200


def test_probe_detects_format_from_content(tmp_path: Path) -> None:
    path = tmp_path / "mislabelled.png"
    make_image(tmp_path / "real.jpg", 40, 60).rename(path)
    assert probe_image(path).format == "JPEG"


def test_probe_rejects_text_file(tmp_path: Path) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("not an image\n", encoding="utf-8")
    with pytest.raises(NotAnImageError):
        probe_image(path)


def test_probe_rejects_truncated_file(tmp_path: Path) -> None:
    path = tmp_path / "empty.jpg"
    path.write_bytes(b"")
    with pytest.raises(NotAnImageError):
        probe_image(path)
