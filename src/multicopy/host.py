# src/multicopy/host.py
import logging
import os
import stat
import sys
from pathlib import Path
from typing import List, Optional, Protocol

import pyperclip

from multicopy.models import PathStat

logger = logging.getLogger(__name__)

INFO = "info"
WARNING = "warning"

CLIPBOARD = "clipboard"
STDOUT = "stdout"


class Host(Protocol):
    """File system and output services the bundling pipeline calls into."""

    def stat_path(self, ref: Path) -> PathStat: ...

    def list_directory(self, ref: Path) -> List[Path]: ...

    def read_file_bytes(self, ref: Path) -> bytes: ...

    def relative_path(self, ref: Path) -> str: ...

    def deliver_output(self, text: str) -> None: ...

    def notify(self, message: str, level: str = INFO) -> None: ...


class LocalHost:
    """
    Host backed by the local file system.
    ``sink`` is ``"clipboard"``, ``"stdout"`` or a path to write the bundle to.
    """

    def __init__(self, base_dir: Path, sink: str = CLIPBOARD):
        self.base_dir = base_dir
        self.sink = sink

    def stat_path(self, ref: Path) -> PathStat:
        try:
            st = os.stat(ref)
        except FileNotFoundError:
            if not os.path.islink(ref):
                raise
            # Dangling symlink: reported as neither file nor folder.
            link = os.lstat(ref)
            return PathStat(is_file=False, is_directory=False, size_bytes=0,
                            identity=(link.st_dev, link.st_ino))
        return PathStat(
            is_file=stat.S_ISREG(st.st_mode),
            is_directory=stat.S_ISDIR(st.st_mode),
            size_bytes=st.st_size,
            identity=(st.st_dev, st.st_ino),
        )

    def list_directory(self, ref: Path) -> List[Path]:
        return [ref / name for name in os.listdir(ref)]

    def read_file_bytes(self, ref: Path) -> bytes:
        return Path(ref).read_bytes()

    def relative_path(self, ref: Path) -> str:
        """Path relative to the base directory; the full path when it lies outside."""
        try:
            return Path(ref).relative_to(self.base_dir).as_posix()
        except ValueError:
            return Path(ref).as_posix()

    def deliver_output(self, text: str) -> None:
        if self.sink == CLIPBOARD:
            pyperclip.copy(text)
        elif self.sink == STDOUT:
            sys.stdout.write(text)
            sys.stdout.flush()
        else:
            out = Path(self.sink)
            with open(out, "w", encoding="utf-8", newline="") as f:
                f.write(text)
        logger.debug("Delivered %d chars to %s", len(text), self.sink)

    def notify(self, message: str, level: str = INFO) -> None:
        print(f"[{level}] {message}", file=sys.stderr)


def describe_sink(sink: Optional[str]) -> str:
    if sink in (None, CLIPBOARD):
        return "clipboard"
    if sink == STDOUT:
        return "stdout"
    return Path(sink).name
