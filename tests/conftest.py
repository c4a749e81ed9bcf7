from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from imagickutils import convert
from imagickutils.models import ProcessResult


def make_image(path: Path, width: int, height: int) -> Path:
    Image.new("RGB", (width, height), (200, 120, 40)).save(path)
    return path


class FakeRunner:
    def __init__(self) -> None:
        self.commands: list[list[str]] = []
        self.results: dict[str, ProcessResult] = {}

    def fail_for(self, source: Path, result: ProcessResult) -> None:
        self.results[str(source)] = result

    def __call__(self, command: list[str]) -> ProcessResult:
        self.commands.append(command)
        for source, result in self.results.items():
            if source in command:
                return result
        return ProcessResult(0)


@pytest.fixture
def fake_tool(tmp_path: Path) -> Path:
    tool_dir = tmp_path / "bin"
    tool_dir.mkdir()
    tool = tool_dir / "convert"
    tool.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    tool.chmod(0o755)
    return tool


@pytest.fixture
def runner(monkeypatch: pytest.MonkeyPatch) -> FakeRunner:
    fake = FakeRunner()
    monkeypatch.setattr(convert, "run_command", fake)
    return fake
