# src/multicopy/models.py
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


class ConfigError(Exception):
    """Raised when a settings file cannot be read or parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load config '{path}': {reason}")


@dataclass(frozen=True)
class PathStat:
    is_file: bool
    is_directory: bool
    size_bytes: int
    identity: Tuple[int, int] = (0, 0)


@dataclass(frozen=True)
class FileEntry:
    """A selected file after reading. ``text`` is None when the file is skipped as binary."""
    path: Path
    rel_path: str
    extension: str
    size_bytes: int
    text: Optional[str]


@dataclass(frozen=True)
class Block:
    """One accepted fenced block, never modified after it is appended."""
    path: Path
    rel_path: str
    text: str
    byte_size: int
    truncated: bool = False


@dataclass(frozen=True)
class BundleResult:
    text: str
    blocks: Tuple[Block, ...] = ()
    total_bytes: int = 0
    skipped_binary: int = 0
    skipped_excluded: int = 0
    truncated: bool = False

    @property
    def accepted_count(self) -> int:
        return len(self.blocks)


class BundleStatus(Enum):
    SUCCESS = "success"
    EMPTY_SELECTION = "empty_selection"
    EMPTY_AFTER_FILTERS = "empty_after_filters"
    NOTHING_PRODUCED = "nothing_produced"


@dataclass(frozen=True)
class BundleOutcome:
    status: BundleStatus
    result: Optional[BundleResult] = field(default=None)

    @property
    def ok(self) -> bool:
        return self.status is BundleStatus.SUCCESS
