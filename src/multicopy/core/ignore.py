# src/multicopy/core/ignore.py
import logging
from pathlib import Path
from typing import Iterable, List, Sequence

import pathspec

from multicopy.host import Host

logger = logging.getLogger(__name__)

# Appended to every pattern and candidate so a glob only matches the whole
# path; a file path never contains NUL.
_END = "\0"


def _split_alternatives(body: str) -> List[str]:
    parts, depth, start = [], 0, 0
    for i, ch in enumerate(body):
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(body[start:i])
            start = i + 1
    parts.append(body[start:])
    return parts


def expand_braces(glob: str) -> List[str]:
    """Expands ``{a,b}`` alternatives, nested ones included: ``*.{png,jpg}`` -> ``*.png``, ``*.jpg``."""
    depth, start = 0, -1
    for i, ch in enumerate(glob):
        if ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth:
            depth -= 1
            if depth == 0:
                options = _split_alternatives(glob[start + 1:i])
                head, tail = glob[:start], glob[i + 1:]
                if len(options) > 1:
                    return [g for opt in options for g in expand_braces(head + opt + tail)]
                # "{x}" has nothing to choose from and stays literal.
                return [glob[:i + 1] + rest for rest in expand_braces(tail)]
    return [glob]


def _literal_pattern(glob: str) -> str:
    """
    Ignore globs are plain match patterns: a leading '!' or '#' is escaped so
    the gitignore syntax never reads the line as a negation or a comment.
    """
    if glob.startswith(("!", "#")):
        glob = "\\" + glob
    return glob + "/" + _END


class IgnoreMatcher:
    """Case-insensitive whole-path glob matching on top of a PathSpec."""

    def __init__(self, globs: Iterable[str]):
        lines = []
        for glob in globs:
            glob = (glob or "").strip().casefold()
            # A trailing slash names a folder; candidates are always files.
            if not glob or glob.endswith("/"):
                continue
            lines.extend(_literal_pattern(g) for g in expand_braces(glob))
        self.spec = pathspec.PathSpec.from_lines("gitignore", lines)

    def matches(self, rel_path: str) -> bool:
        return self.spec.match_file(match_key(rel_path) + "/" + _END)


def build_ignore_spec(globs: Iterable[str]) -> IgnoreMatcher:
    return IgnoreMatcher(globs)


def match_key(rel_path: str) -> str:
    """Forward slashes, no leading root, case-folded."""
    return rel_path.replace("\\", "/").lstrip("/").casefold()


def filter_ignored(refs: List[Path], globs: Sequence[str], host: Host) -> List[Path]:
    """
    Drops every ref whose path matches any glob.
    With no globs the input list itself is returned.
    """
    if not globs:
        return refs

    matcher = build_ignore_spec(globs)
    kept = []
    for ref in refs:
        rel_path = host.relative_path(ref)
        if matcher.matches(rel_path):
            logger.debug("Ignored by glob: %s", rel_path)
            continue
        kept.append(ref)
    return kept
