# src/multicopy/cli.py
import sys
import argparse
import logging
import os
from pathlib import Path
from typing import List, Optional

import pyperclip

from multicopy.config import BundleConfig, find_config_file, load_config
from multicopy.core.bundler import bundle_selection, summary_message
from multicopy.host import CLIPBOARD, INFO, STDOUT, WARNING, Host, LocalHost, describe_sink
from multicopy.models import BundleOutcome, BundleResult, BundleStatus, ConfigError
from multicopy.utils.tokenizer import Tokenizer

EMPTY_MESSAGES = {
    BundleStatus.EMPTY_SELECTION: "No selection. Pass one or more files or folders.",
    BundleStatus.EMPTY_AFTER_FILTERS: "Nothing to copy after applying filters.",
    BundleStatus.NOTHING_PRODUCED: "Nothing copied. Binary files or limit too low.",
}


def create_arg_parser():
    parser = argparse.ArgumentParser(
        prog="multicopy",
        description="Bundle selected files and folders into one fenced text block and copy it to the clipboard.",
    )
    parser.add_argument("paths", type=str, nargs="*", help="Files or folders to bundle")
    parser.add_argument("--base", type=str, default=os.getcwd(), help="Root that relative paths are shown against")
    parser.add_argument("--config", type=str, default=None, help="JSON settings file (default: ./multicopy.json)")

    parser.add_argument("--max-bytes", type=int, default=None, help="Hard cap on the bundle size in bytes")
    parser.add_argument("--max-json-bytes", type=int, default=None, help="Per-file cap for .json files")
    parser.add_argument("--separator", type=str, default=None, help="Text placed between blocks")
    parser.add_argument("--ignore", action="append", default=None, metavar="GLOB", help="Glob to exclude (repeatable)")
    parser.add_argument("--include-markdown", action="store_true", help="Keep markdown files")
    parser.add_argument("--no-headers", action="store_true", help="Omit the Name/Size/Relative path lines")
    parser.add_argument("--metadata-inside-fence", action="store_true", help="Put the metadata lines inside the fence")

    out = parser.add_mutually_exclusive_group()
    out.add_argument("--stdout", action="store_true", help="Print the bundle instead of copying it")
    out.add_argument("-o", "--output", type=str, default=None, help="Write the bundle to a file instead of copying it")

    parser.add_argument("--workers", type=int, default=1, help="Threads used to read files")
    parser.add_argument("--stats", action="store_true", help="Show the largest blocks with token estimates")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def build_config(args: argparse.Namespace, base_dir: Path) -> BundleConfig:
    """Settings file first, then command-line flags on top."""
    config = load_config(find_config_file(base_dir, args.config))
    return config.with_overrides(
        max_bytes=args.max_bytes,
        max_json_bytes=args.max_json_bytes,
        separator=args.separator or None,
        ignore_globs=args.ignore,
        exclude_markdown=False if args.include_markdown else None,
        include_headers=False if args.no_headers else None,
        metadata_inside_fence=True if args.metadata_inside_fence else None,
    )


def print_stats(result: BundleResult) -> None:
    blocks = sorted(result.blocks, key=lambda b: b.byte_size, reverse=True)
    print("\n--- Top 10 Largest Blocks (Est. Tokens) ---", file=sys.stderr)
    print(f"{'Rank':<5} | {'Bytes':<10} | {'Tokens':<10} | {'File Path'}", file=sys.stderr)
    print("-" * 60, file=sys.stderr)
    for i, b in enumerate(blocks[:10]):
        print(f"{i+1:<5} | {b.byte_size:<10} | {Tokenizer.count(b.text):<10} | {b.rel_path}", file=sys.stderr)
    print("-" * 60, file=sys.stderr)


def report(outcome: BundleOutcome, host: Host) -> None:
    """Delivers the bundle and tells the user what happened."""
    if not outcome.ok:
        host.notify(EMPTY_MESSAGES[outcome.status], WARNING)
        return
    host.deliver_output(outcome.result.text)
    host.notify(summary_message(outcome.result), INFO)


def main(argv: Optional[List[str]] = None) -> int:
    try:
        # 1. Setup
        parser = create_arg_parser()
        args = parser.parse_args(argv)

        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

        base_dir = Path(args.base).resolve()
        if not base_dir.is_dir():
            print(f"Error: Invalid directory '{base_dir}'", file=sys.stderr)
            return 1

        try:
            config = build_config(args, base_dir)
        except ConfigError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        sink = STDOUT if args.stdout else (args.output or CLIPBOARD)
        host = LocalHost(base_dir, sink)
        refs = [Path(p).resolve() for p in args.paths]

        print(f"--- multicopy ---", file=sys.stderr)
        print(f"Base:     {base_dir}", file=sys.stderr)
        print(f"Output:   {describe_sink(sink)}", file=sys.stderr)
        print(f"Budget:   {config.max_bytes} bytes", file=sys.stderr)

        # 2. Bundle
        try:
            outcome = bundle_selection(refs, config, host, workers=args.workers)
        except OSError as e:
            print(f"Error reading selection: {e}", file=sys.stderr)
            return 1

        if args.stats and outcome.ok:
            print_stats(outcome.result)

        # 3. Deliver
        try:
            report(outcome, host)
        except (OSError, pyperclip.PyperclipException) as e:
            print(f"Error delivering bundle: {e}", file=sys.stderr)
            return 1
        return 0

    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        return 1

    except Exception as e:
        print(f"An unexpected error occurred: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
