"""Command-line entry point for the stage board."""

from __future__ import annotations

import argparse
import json
from itertools import zip_longest
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.table import Table

from .board import (
    DEFAULT_STAGES,
    BoardState,
    BoardStore,
    InvalidInput,
    command_from_dict,
    tasks_by_stage,
)
from .board.server import DEFAULT_HOST, DEFAULT_PORT, BoardServer
from .utils.logging import LOG_LEVELS, setup_logger


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Stage board task manager")
    parser.add_argument(
        "--stages",
        type=_split_csv,
        default=list(DEFAULT_STAGES),
        help="Comma separated stage labels, entry stage first",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=LOG_LEVELS,
        help="Minimum log level",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Optional file to mirror log records to",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Serve the board over HTTP")
    serve_parser.add_argument("--host", default=DEFAULT_HOST, help="Host to bind to")
    serve_parser.add_argument(
        "--port", type=int, default=DEFAULT_PORT, help="Port to bind to"
    )
    serve_parser.add_argument(
        "--seed",
        type=_split_csv,
        default=[],
        help="Comma separated names of tasks to start with",
    )

    replay_parser = subparsers.add_parser(
        "replay", help="Apply a JSON-lines command script and print the board"
    )
    replay_parser.add_argument("script", type=Path, help="Path to the script")

    return parser.parse_args(argv)


def replay(store: BoardStore, script: Path) -> int:
    """
    Dispatch every command in ``script`` against ``store``.

    Blank lines are skipped. Lines that fail to parse or are rejected by
    the board are logged and counted; they never stop the replay.

    Returns:
        Number of rejected lines
    """
    rejected = 0
    with open(script, encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                command = command_from_dict(json.loads(line))
            except (json.JSONDecodeError, InvalidInput) as exc:
                logger.warning(f"{script}:{line_no}: {exc}")
                rejected += 1
                continue

            result = store.dispatch(command)
            if not result.ok:
                logger.warning(f"{script}:{line_no}: {result.error}")
                rejected += 1
    return rejected


def render_board(state: BoardState, console: Console | None = None) -> None:
    """Print the board as a table with one column per stage."""
    console = console or Console()
    table = Table(title="Board", show_lines=False)
    for label in state.stages:
        table.add_column(label)

    columns = [
        [f"{task.name} [dim]({task.id})[/dim]" for task in tasks]
        for _, tasks in tasks_by_stage(state)
    ]
    for row in zip_longest(*columns, fillvalue=""):
        table.add_row(*row)
    console.print(table)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logger(level=args.log_level, log_file=args.log_file, use_rich=True)

    if not args.stages:
        logger.error("At least one stage is required")
        return 2

    if args.command == "serve":
        store = BoardStore(args.stages, args.seed)
        BoardServer(store=store, host=args.host, port=args.port).run()
        return 0

    store = BoardStore(args.stages)
    try:
        rejected = replay(store, args.script)
    except (OSError, UnicodeDecodeError) as exc:
        logger.error(f"Cannot read script {args.script}: {exc}")
        return 2
    render_board(store.state)
    if rejected:
        logger.warning(f"{rejected} command(s) rejected")
    else:
        logger.success("All commands applied")
    return 1 if rejected else 0


if __name__ == "__main__":
    raise SystemExit(main())
