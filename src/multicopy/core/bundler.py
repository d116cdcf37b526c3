# src/multicopy/core/bundler.py
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from multicopy.config import BundleConfig, is_markdown
from multicopy.core.formatter import (
    FENCE_CLOSE,
    block_prefix,
    byte_length,
    format_block,
    truncate_utf8,
)
from multicopy.core.ignore import filter_ignored
from multicopy.core.scanner import SelectionScanner
from multicopy.host import Host
from multicopy.models import Block, BundleOutcome, BundleResult, BundleStatus, FileEntry

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n/* ...truncated... */"
SUMMARY_SEPARATOR = " · "


def _partial_block(entry: FileEntry, config: BundleConfig) -> Optional[Block]:
    """
    Cuts the first overflowing file down so that prefix, body and marker fit
    in ``max_bytes``. Returns None when not even the prefix and marker fit.
    """
    formatted = format_block(entry, config)
    prefix = block_prefix(formatted.meta_text, formatted.fence_lang, config)
    suffix = TRUNCATION_MARKER + FENCE_CLOSE
    available = config.max_bytes - byte_length(prefix) - byte_length(suffix)
    if available <= 0:
        return None

    text = prefix + truncate_utf8(formatted.body, available) + suffix
    return Block(entry.path, entry.rel_path, text, byte_length(text), truncated=True)


def accumulate(entries: Iterable[FileEntry], config: BundleConfig) -> BundleResult:
    """
    Formats entries in path order and keeps them while the encoded size of
    block plus separator fits in ``config.max_bytes``. Stops at the first
    block that does not fit; if nothing was kept yet, that block is cut down
    to fit instead.
    """
    blocks: List[Block] = []
    total = 0
    skipped_binary = 0
    skipped_excluded = 0
    truncated = False

    for entry in sorted(entries, key=lambda e: str(e.path)):
        if entry.text is None:
            skipped_binary += 1
            continue
        if config.exclude_markdown and is_markdown(entry.extension):
            skipped_excluded += 1
            continue

        block = format_block(entry, config).block
        next_size = byte_length(block + config.separator)

        if total + next_size > config.max_bytes:
            if not blocks:
                partial = _partial_block(entry, config)
                if partial is not None:
                    blocks.append(partial)
                    total = config.max_bytes
            truncated = True
            logger.debug("Budget of %d bytes reached at %s", config.max_bytes, entry.rel_path)
            break

        blocks.append(Block(entry.path, entry.rel_path, block, byte_length(block)))
        total += next_size

    return BundleResult(
        text=config.separator.join(b.text for b in blocks),
        blocks=tuple(blocks),
        total_bytes=total,
        skipped_binary=skipped_binary,
        skipped_excluded=skipped_excluded,
        truncated=truncated,
    )


def bundle_selection(
    refs: List[Path], config: BundleConfig, host: Host, workers: int = 1
) -> BundleOutcome:
    """
    Runs the whole pipeline for one selection.
    Flattening errors propagate; every other condition is reported through the outcome status.
    """
    if not refs:
        return BundleOutcome(BundleStatus.EMPTY_SELECTION)

    scanner = SelectionScanner(host)
    files = filter_ignored(scanner.flatten(refs), config.ignore_globs, host)
    files = sorted(files, key=str)
    if not files:
        return BundleOutcome(BundleStatus.EMPTY_AFTER_FILTERS)

    entries = scanner.read_entries(files, workers)
    result = accumulate(entries, config)

    if result.text:
        return BundleOutcome(BundleStatus.SUCCESS, result)
    if result.skipped_binary + result.skipped_excluded == len(entries):
        return BundleOutcome(BundleStatus.EMPTY_AFTER_FILTERS, result)
    return BundleOutcome(BundleStatus.NOTHING_PRODUCED, result)


def summary_message(result: BundleResult) -> str:
    parts = [f"Copied {result.accepted_count} file(s)", f"~{result.total_bytes} bytes"]
    if result.skipped_binary:
        parts.append(f"{result.skipped_binary} skipped (binary)")
    if result.skipped_excluded:
        parts.append(f"{result.skipped_excluded} skipped (filtered)")
    if result.truncated:
        parts.append("content truncated at limit")
    return SUMMARY_SEPARATOR.join(parts)
