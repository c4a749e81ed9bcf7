from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from . import config


@dataclass(frozen=True)
class ImageInfo:
    path: Path
    width: int
    height: int
    format: str | None

    @property
    def shortest_side(self) -> int:
        return min(self.width, self.height)


@dataclass(frozen=True)
class DownsizeOptions:
    quality: int = config.DEFAULT_DOWNSIZE_QUALITY
    downsize_to: str = config.DEFAULT_DOWNSIZE_TO
    skip_whatsapp: bool = True
    skip_downsized: bool = True
    delete_original: bool = False
    trash_original: bool = False
    dry_run: bool = False
    convert_path: str | None = None


@dataclass(frozen=True)
class ConvertOptions:
    to: str
    quality: int | None = config.DEFAULT_CONVERT_QUALITY
    delete_original: bool = False
    trash_original: bool = False
    dry_run: bool = False
    convert_path: str | None = None


@dataclass(frozen=True)
class ConversionRequest:
    source: Path
    output: Path
    arguments: tuple[str, ...]

    def command(self, tool: str) -> list[str]:
        return [tool, *self.arguments]


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of one external process run.

    On POSIX a negative ``returncode`` means the child was killed by signal
    ``-returncode``.
    """

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def signaled(self) -> bool:
        return self.returncode < 0

    @property
    def signal(self) -> int:
        return -self.returncode if self.returncode < 0 else 0

    @property
    def exit_code(self) -> int | None:
        return None if self.signaled else self.returncode

    def describe(self) -> str:
        if self.signaled:
            return f"killed by signal {self.signal}"
        return f"exit code {self.returncode}"


@dataclass(frozen=True)
class ItemResult:
    item_id: str
    status: int
    message: str
    output: Path | None = None

    @property
    def success(self) -> bool:
        return self.status == 200

    def as_dict(self) -> dict[str, object]:
        return {
            "item_id": self.item_id,
            "status": self.status,
            "message": self.message,
            "output": str(self.output) if self.output is not None else None,
        }


@dataclass(frozen=True)
class BatchResult:
    status: int
    message: str
    items: list[ItemResult] = field(default_factory=list)

    @classmethod
    def from_items(cls, items: list[ItemResult]) -> BatchResult:
        success_count = sum(1 for item in items if item.success)
        if success_count == 0:
            return cls(500, "All files failed", items)
        if success_count == len(items):
            return cls(200, "All success", items)
        return cls(207, "Partial success", items)

    @property
    def success(self) -> bool:
        return 200 <= self.status < 300

    @property
    def success_count(self) -> int:
        return sum(1 for item in self.items if item.success)

    def as_dict(self) -> dict[str, object]:
        return {
            "status": self.status,
            "message": self.message,
            "results": [item.as_dict() for item in self.items],
        }
