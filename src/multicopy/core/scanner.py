# src/multicopy/core/scanner.py
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Iterator, List, Set, Tuple

from multicopy.core.formatter import byte_length
from multicopy.core.language import extension_of
from multicopy.core.sniffer import is_binary
from multicopy.host import Host
from multicopy.models import FileEntry

logger = logging.getLogger(__name__)


class SelectionScanner:
    def __init__(self, host: Host):
        self.host = host

    def flatten(self, refs: Iterable[Path]) -> List[Path]:
        """
        Expands the selected files and folders into a flat list of files.
        Folders are walked recursively in listing order. A stat or listing
        failure raises and aborts the whole selection.
        """
        visited: Set[Tuple[int, int]] = set()
        seen: Set[str] = set()
        out: List[Path] = []
        for path in self._walk(refs, visited):
            key = str(path)
            if key in seen:
                continue
            seen.add(key)
            out.append(path)
        return out

    def _walk(self, refs: Iterable[Path], visited: Set[Tuple[int, int]]) -> Iterator[Path]:
        for ref in refs:
            st = self.host.stat_path(ref)
            if st.is_file:
                yield ref
            elif st.is_directory:
                # Symlinked folders can loop back to an ancestor.
                if st.identity in visited:
                    logger.debug("Already visited, not descending again: %s", ref)
                    continue
                visited.add(st.identity)
                yield from self._walk(self.host.list_directory(ref), visited)
            else:
                logger.debug("Neither file nor folder, skipped: %s", ref)

    def read_entry(self, path: Path) -> FileEntry:
        """
        Reads one file. Unreadable and binary files come back with ``text=None``.
        """
        rel_path = self.host.relative_path(path)
        extension = extension_of(path)
        try:
            data = self.host.read_file_bytes(path)
        except OSError as e:
            logger.warning("Skipping %s (read error: %s)", rel_path, e)
            return FileEntry(path, rel_path, extension, 0, None)

        if is_binary(data):
            logger.debug("Binary content, skipped: %s", rel_path)
            return FileEntry(path, rel_path, extension, len(data), None)

        text = data.decode("utf-8-sig", errors="replace")
        try:
            size = self.host.stat_path(path).size_bytes
        except OSError:
            size = byte_length(text)
        return FileEntry(path, rel_path, extension, size, text)

    def read_entries(self, paths: List[Path], workers: int = 1) -> List[FileEntry]:
        """Reads every path; the result keeps the order of ``paths``."""
        if workers <= 1 or len(paths) <= 1:
            return [self.read_entry(p) for p in paths]
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(self.read_entry, paths))


def flatten_selection(refs: Iterable[Path], host: Host) -> List[Path]:
    return SelectionScanner(host).flatten(refs)


def read_entries(paths: List[Path], host: Host, workers: int = 1) -> List[FileEntry]:
    return SelectionScanner(host).read_entries(paths, workers)
