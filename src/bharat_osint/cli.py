"""bharat_osint.cli
=================

Command-line console for the analysis pipeline.

Example::

    $ python -m bharat_osint.cli "+91 91234 56789" --csv-out
    $ python -m bharat_osint.cli --batch --file targets.txt --json-out report.json

If neither *TARGET* nor ``--file`` is given the input is read from **STDIN**.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import fields
from pathlib import Path
from typing import NoReturn, Optional

import tomlkit

from .config import OsintConfig
from .core import Orchestrator
from .exporter import write_artifact
from .formatter import render_batch_page, render_log, render_report
from .history import ActivityLog, RecentStore
from .model_client import ReportClient
from .state import RunStatus

__all__ = ["main", "run"]

PROG = "bharat-osint"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_config_from_toml(path: Path) -> OsintConfig:
    """Return an :class:`OsintConfig` initialised from *path* (TOML)."""
    cfg = OsintConfig()
    toml_data = tomlkit.parse(path.read_text(encoding="utf-8")).unwrap()

    # Only apply keys that actually exist on OsintConfig to avoid surprises.
    valid_fields = {f.name for f in fields(cfg)}
    for key, val in toml_data.items():
        if key in valid_fields:
            setattr(cfg, key, val)
    return cfg


def _fail(message: str) -> NoReturn:
    print(f"{PROG}: {message}", file=sys.stderr)
    sys.exit(1)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=PROG, description="Indian phone number OSINT console")

    parser.add_argument(
        "target",
        nargs="?",
        help="Identifier (or comma/newline separated list with --batch). Reads STDIN when omitted.",
    )
    parser.add_argument("--batch", action="store_true", help="Treat input as a list of identifiers.")
    parser.add_argument("--file", metavar="PATH", help="Read the input from PATH instead of TARGET/STDIN.")
    parser.add_argument(
        "--config",
        metavar="TOML",
        help="Path to configuration TOML. Uses built-in defaults when omitted.",
    )
    parser.add_argument("--json", action="store_true", help="Print the JSON export instead of the text summary.")
    parser.add_argument(
        "--json-out",
        nargs="?",
        const="",
        metavar="PATH",
        help="Write the JSON export to PATH (file or directory; export_dir when PATH is omitted).",
    )
    parser.add_argument(
        "--csv-out",
        nargs="?",
        const="",
        metavar="PATH",
        help="Write the CSV export to PATH (file or directory; export_dir when PATH is omitted).",
    )
    parser.add_argument("--page", type=int, default=1, help="Batch results page to display (default 1).")
    parser.add_argument("--recent", action="store_true", help="List recently analysed identifiers and exit.")
    parser.add_argument(
        "--recent-pick",
        type=int,
        metavar="N",
        help="Re-run single mode on the N-th recent identifier (1 = most recent).",
    )
    parser.add_argument("--wipe-recent", action="store_true", help="Forget recently analysed identifiers.")
    parser.add_argument("--show-log", action="store_true", help="Print the activity log to STDERR.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (e.g. DEBUG, INFO, WARNING).")
    return parser


def _read_input(args: argparse.Namespace) -> str:
    if args.file:
        return Path(args.file).read_text(encoding="utf-8")
    if args.target is not None:
        return args.target
    return sys.stdin.read()


# ---------------------------------------------------------------------------
# Async entry-point
# ---------------------------------------------------------------------------

async def main(argv: Optional[list[str]] = None) -> None:  # noqa: D401 – imperative mood
    """Parse *argv* and run one console session.

    When *argv* is **None** ``sys.argv[1:]`` is used.
    """
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING))

    # ------------------------------------------------------------------
    # Load configuration -------------------------------------------------
    # ------------------------------------------------------------------
    try:
        cfg = _load_config_from_toml(Path(args.config)) if args.config else OsintConfig()
    except Exception as exc:
        _fail(f"failed to load config – {exc}")

    recent = RecentStore(cfg.recent_store_path, limit=cfg.max_recent_searches)

    # ------------------------------------------------------------------
    # Recently-used list maintenance ------------------------------------
    # ------------------------------------------------------------------
    if args.wipe_recent:
        recent.clear()
        print("Recent searches wiped.", file=sys.stderr)
    if args.recent:
        for position, identifier in enumerate(recent.entries, 1):
            print(f"{position}. {identifier}")
        return
    if args.wipe_recent and args.target is None and not args.file and args.recent_pick is None:
        return

    # ------------------------------------------------------------------
    # Read input ---------------------------------------------------------
    # ------------------------------------------------------------------
    raw = ""
    if args.recent_pick is None:
        try:
            raw = _read_input(args)
        except FileNotFoundError:
            _fail(f"input file not found: {args.file}")
        except Exception as exc:
            _fail(f"error reading input – {exc}")

    # ------------------------------------------------------------------
    # Run ----------------------------------------------------------------
    # ------------------------------------------------------------------
    activity = ActivityLog(limit=cfg.activity_log_size)
    async with ReportClient(cfg) as client:
        orchestrator = Orchestrator(
            client,
            recent=recent,
            activity=activity,
            items_per_page=cfg.items_per_page,
        )
        if args.recent_pick is not None:
            try:
                run = await orchestrator.select_recent(args.recent_pick - 1)
            except IndexError:
                _fail(f"no recent search #{args.recent_pick}")
        elif args.batch:
            run = await orchestrator.run_batch(raw)
        else:
            run = await orchestrator.run_single(raw)

    state = orchestrator.state

    if run.status is RunStatus.SKIPPED:
        print(f"{PROG}: nothing to analyse", file=sys.stderr)
        return
    if state.error:
        if args.show_log:
            print(render_log(activity.lines), file=sys.stderr, end="")
        _fail(state.error)

    # ------------------------------------------------------------------
    # Write outputs ------------------------------------------------------
    # ------------------------------------------------------------------
    if args.json:
        artifact = orchestrator.export_json()
        print(artifact.content.decode("utf-8") if artifact else "[]")
    elif state.batch_results is not None:
        orchestrator.go_to_page(args.page)
        print(
            render_batch_page(
                orchestrator.page_results(),
                orchestrator.state.current_page,
                max(1, orchestrator.total_pages),
                len(state.batch_results),
            ),
            end="",
        )
    elif state.result is not None:
        print(render_report(state.result), end="")

    # ------------------------------------------------------------------
    # Optional exports --------------------------------------------------
    # ------------------------------------------------------------------
    for destination, build in ((args.json_out, orchestrator.export_json), (args.csv_out, orchestrator.export_csv)):
        if destination is None:
            continue
        artifact = build()
        if artifact is None:
            print(f"{PROG}: nothing to export", file=sys.stderr)
            continue
        try:
            if not destination:
                destination = Path(cfg.export_dir)
                destination.mkdir(parents=True, exist_ok=True)
            written = write_artifact(artifact, destination)
        except OSError as exc:
            _fail(f"cannot write export – {exc}")
        print(f"Exported {written}", file=sys.stderr)

    if args.show_log:
        print(render_log(activity.lines), file=sys.stderr, end="")


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())


# ---------------------------------------------------------------------------
# Module entry-point
# ---------------------------------------------------------------------------

if __name__ == "__main__":  # pragma: no cover – manual invocation only
    run()
