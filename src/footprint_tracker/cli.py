"""Command-line utilities for footprint_tracker."""

from __future__ import annotations

import argparse
import json
import logging
import logging.handlers
import sys
from pathlib import Path

from .history import summarize_history
from .leaderboard import build_leaderboard, rank_entries
from .logging_pipeline import (
    BoundedQueueHandler,
    configure_structured_logging,
    shutdown_listeners,
)
from .service import CalculatorService
from .session import UserSession
from .settings import get_settings


def _read_stdin() -> str | None:
    """Read JSON payload from stdin if available."""
    try:
        if sys.stdin and not sys.stdin.isatty():
            return sys.stdin.read()
    except IOError as e:
        print(f"Error reading stdin: {e}", file=sys.stderr)
    return None


def _load_json(path: str | None, stdin_payload: str | None) -> dict[str, object]:
    """Load JSON data from file or stdin."""
    if path:
        text = Path(path).read_text(encoding="utf-8")
        return _parse_json_dict(text)
    if stdin_payload:
        return _parse_json_dict(stdin_payload)
    raise ValueError("No input provided. Use --input or pipe JSON via stdin.")


def _parse_json_dict(payload: str) -> dict[str, object]:
    """Parse a JSON string and ensure the result is a dictionary."""

    data = json.loads(payload)
    if not isinstance(data, dict):
        raise ValueError("Input JSON must be an object at the top level.")
    normalised: dict[str, object] = {str(key): value for key, value in data.items()}
    return normalised


def _emit(payload: object) -> None:
    print(json.dumps(payload, separators=(",", ":")))


def _session_from_args(args: argparse.Namespace) -> UserSession:
    return UserSession(user_id=args.user_id, token=args.token)


def _add_identity_arguments(parser: argparse.ArgumentParser, *, user_required: bool) -> None:
    parser.add_argument("--user-id", required=user_required, help="Authenticated user id.")
    parser.add_argument("--token", help="Bearer token for the calculator API.")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip the calculator API and use local computation and storage only.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="footprint-tracker",
        description="Estimate carbon footprints and inspect calculation history.",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit structured JSON logs on stderr.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    calculate = commands.add_parser("calculate", help="Estimate emissions for line items.")
    calculate.add_argument(
        "--input",
        "-i",
        help="Path to calculator input JSON. If omitted, reads from stdin.",
    )
    _add_identity_arguments(calculate, user_required=False)

    history = commands.add_parser("history", help="List stored calculations, newest first.")
    _add_identity_arguments(history, user_required=True)

    summary = commands.add_parser("summary", help="Summarise stored calculations.")
    _add_identity_arguments(summary, user_required=True)

    leaderboard = commands.add_parser("leaderboard", help="Rank users by total emissions.")
    leaderboard.add_argument(
        "--input",
        "-i",
        help='Path to {"rows": [...], "profiles": {...}} JSON. If omitted, reads from stdin.',
    )
    return parser


def _run_calculate(args: argparse.Namespace) -> int:
    data = _load_json(args.input, _read_stdin())
    service = CalculatorService.from_settings(offline=args.offline)
    result = service.calculate(data, _session_from_args(args))
    _emit(result.to_payload())
    return 0


def _run_history(args: argparse.Namespace) -> int:
    service = CalculatorService.from_settings(offline=args.offline)
    records = service.list_calculations(_session_from_args(args))
    _emit([record.to_payload() for record in records])
    return 0


def _run_summary(args: argparse.Namespace) -> int:
    service = CalculatorService.from_settings(offline=args.offline)
    records = service.list_calculations(_session_from_args(args))
    _emit(summarize_history(records).to_dict())
    return 0


def _run_leaderboard(args: argparse.Namespace) -> int:
    data = _load_json(args.input, _read_stdin())
    rows = data.get("rows")
    profiles = data.get("profiles")
    if not isinstance(rows, list):
        raise ValueError("Leaderboard input requires a 'rows' array.")
    entries = build_leaderboard(
        [row for row in rows if isinstance(row, dict)],
        {str(k): str(v) for k, v in profiles.items()} if isinstance(profiles, dict) else None,
    )
    _emit(
        [
            {"rank": rank, **entry.model_dump(mode="json")}
            for rank, entry in rank_entries(entries)
        ]
    )
    return 0


_COMMANDS = {
    "calculate": _run_calculate,
    "history": _run_history,
    "summary": _run_summary,
    "leaderboard": _run_leaderboard,
}


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``footprint-tracker`` command."""
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:  # pragma: no cover - controlled via tests
        exit_code = int(exc.code) if isinstance(exc.code, int) else 1
        return 0 if exit_code == 0 else 1

    package_logger = logging.getLogger("footprint_tracker")
    level = logging.getLevelName(get_settings().log_level)
    listeners: list[logging.handlers.QueueListener] = []
    if args.log_json:
        listeners.append(
            configure_structured_logging(
                package_logger, level=level if isinstance(level, int) else logging.WARNING
            )
        )

    try:
        return _COMMANDS[args.command](args)
    except Exception as exc:
        print(str(exc), file=sys.stderr)
        return 1
    finally:
        shutdown_listeners(listeners)
        for handler in list(package_logger.handlers):
            if isinstance(handler, BoundedQueueHandler):
                package_logger.removeHandler(handler)


if __name__ == "__main__":
    raise SystemExit(main())
