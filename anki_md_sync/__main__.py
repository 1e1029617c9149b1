"""
CLI entry point.

Usage:
    python -m anki_md_sync <file> [<file> ...]
    python -m anki_md_sync <folder>                  (batch: .md files in folder)
    python -m anki_md_sync <folder> --recursive      (all subfolders too)
    python -m anki_md_sync -f files.txt              (paths listed one per line)
    python -m anki_md_sync <file> --deck "Rust"      (deck for files without metadata)
    python -m anki_md_sync <folder> --batch -j 4     (one request per file, 4 files at once)
    python -m anki_md_sync <file> --dry-run
    python -m anki_md_sync --gui
"""

import argparse
import sys
from pathlib import Path

from . import __version__
from . import config
from .ankiconnect import AnkiConnectClient, AnkiConnectError
from .sync import SyncOutcome, sync_files


def _print_banner(target: str, url: str, deck: str, dry_run: bool, batch: bool, jobs: int) -> None:
    """Print a startup banner with run configuration."""
    print()
    print("=" * 60)
    print(f"  Markdown → Anki Sync v{__version__}")
    print("=" * 60)
    print(f"  Target:          {target}")
    print(f"  AnkiConnect URL: {url}")
    print(f"  Default deck:    {deck}")
    if batch:
        print(f"  Requests:        one per file (multi)")
    if jobs > 1:
        print(f"  Parallel files:  {jobs}")
    if dry_run:
        print(f"  Dry run:         YES (nothing will be sent)")
    print("=" * 60)
    print()


def _print_outcome(outcome: SyncOutcome) -> None:
    """Print the per-file summary."""
    print()
    print(f"--- {Path(outcome.file).name} ---")
    if outcome.parse_error is not None:
        print(f"  [error] {outcome.parse_error}")
        return
    print(f"  Deck:    {outcome.deck}")
    print(f"  Synced:  {outcome.succeeded}")
    if outcome.failed:
        print(f"  Failed:  {len(outcome.failed)}")
        for idx, err in outcome.failed:
            line = outcome.cards[idx].line if idx < len(outcome.cards) else 0
            where = f"card {idx}" + (f" (line {line})" if line else "")
            print(f"  [error] {where}: {err.kind.value}: {err.message}")


def run(
    paths: list[Path],
    url: str,
    default_deck: str,
    timeout: float,
    dry_run: bool = False,
    batch: bool = False,
    jobs: int = 1,
    verbose: bool = False,
) -> int:
    """Sync *paths* and return the process exit status."""
    target = str(paths[0]) if len(paths) == 1 else f"{len(paths)} files"
    _print_banner(target, url, default_deck, dry_run, batch, jobs)

    client = AnkiConnectClient(url, timeout=timeout, verbose=verbose)
    if not dry_run:
        print("[sync] Connecting to AnkiConnect...")
        if not client.ping():
            print("[error] Cannot reach AnkiConnect. Is Anki running with AnkiConnect installed?")
            return 1
        try:
            api_version = client.version()
        except AnkiConnectError as e:
            print(f"[error] AnkiConnect stopped answering: {e}")
            return 1
        print(f"[sync] Connected (API version {api_version})")
        print()

    outcomes = sync_files(
        paths, client, default_deck,
        jobs=jobs, batch=batch, dry_run=dry_run,
    )
    for outcome in outcomes:
        _print_outcome(outcome)

    ok_files = sum(1 for o in outcomes if o.ok)
    total_synced = sum(o.succeeded for o in outcomes)
    total_failed = sum(len(o.failed) for o in outcomes)

    print()
    print("=" * 60)
    print(f"  Sync complete! {ok_files}/{len(outcomes)} file(s) clean")
    print(f"  Total: {total_synced} synced, {total_failed} failed")
    print("=" * 60)

    return 0 if ok_files == len(outcomes) else 1


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="anki_md_sync",
        description="Sync Q:/A: flashcards from markdown files into Anki via AnkiConnect",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        help="Markdown files or folders to sync",
    )
    parser.add_argument(
        "-f", "--files-from",
        help="Read additional paths from this file (one per line, # for comments)",
        default=None,
    )
    parser.add_argument(
        "-r", "--recursive",
        action="store_true",
        help="Include .md files in subfolders of any folder given",
    )
    parser.add_argument(
        "--deck",
        help="Deck for files without a 'deck:' metadata entry (default: from config or 'Default')",
        default=None,
    )
    parser.add_argument(
        "--ankiconnect-url",
        help="AnkiConnect endpoint URL (default: from config or http://127.0.0.1:8765)",
        default=None,
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Seconds to wait for each AnkiConnect request (default: 10)",
        default=None,
    )
    parser.add_argument(
        "--batch",
        action="store_true",
        help="Send all cards of a file in one 'multi' request",
    )
    parser.add_argument(
        "-j", "--jobs",
        type=int,
        default=1,
        help="Number of files to sync at the same time",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and show what would be sent without contacting Anki",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print every AnkiConnect request and response",
    )
    parser.add_argument(
        "--gui",
        action="store_true",
        help="Open the desktop window instead",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    if args.gui:
        from .gui import main as gui_main
        gui_main()
        return

    raw_paths = list(args.paths)
    if args.files_from:
        try:
            raw_paths.extend(config.load_file_list(args.files_from))
        except OSError as e:
            print(f"[error] Cannot read file list '{args.files_from}': {e}")
            sys.exit(1)

    paths = config.expand_inputs(raw_paths, recursive=args.recursive)
    if not paths:
        print("[error] No markdown files to sync. Pass files, folders, or -f <list>.")
        sys.exit(1)

    try:
        url = config.get_ankiconnect_url(args.ankiconnect_url)
        deck = config.get_default_deck(args.deck)
        timeout = config.get_timeout(args.timeout)
    except config.ConfigError as e:
        print(f"[error] {e}")
        sys.exit(1)

    sys.exit(run(
        paths, url, deck, timeout,
        dry_run=args.dry_run,
        batch=args.batch,
        jobs=max(1, args.jobs),
        verbose=args.verbose,
    ))


if __name__ == "__main__":
    main()
