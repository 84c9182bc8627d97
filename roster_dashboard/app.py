"""Command-line entry point for Roster Dashboard."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set

import pandas as pd

from .analyst import RosterAnalyst
from .app_logging import configure_logging, get_logger
from .config_manager import ConfigManager
from .display import classify, display_name
from .grouping import unrecognized_statuses
from .parser import Dataset
from .session import RosterSession
from .snapshot_store import SnapshotError, SnapshotStore

logger = get_logger()

STATUS_LABELS: Dict[str, str] = {
    "total": "По штату",
    "present": "Налицо",
    "vacation": "Отпуск",
    "vacant": "Вакант",
    "recovery": "Реабилитация",
    "hospital": "Госпиталь",
    "soch": "СОЧ",
    "on_task": "На задаче",
}


def parse_filter_args(values: Optional[Sequence[str]]) -> Dict[str, Set[str]]:
    """Turn repeated ``COLUMN=VALUE`` arguments into a filter specification."""

    spec: Dict[str, Set[str]] = {}
    for item in values or []:
        column, sep, value = item.partition("=")
        if not sep or not column.strip():
            raise argparse.ArgumentTypeError(f"Filter must look like COLUMN=VALUE: {item!r}")
        spec.setdefault(column.strip(), set()).add(value.strip())
    return spec


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="roster-dashboard", description=__doc__)
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    parser.add_argument("--data-dir", type=Path, help="snapshot directory override")
    sub = parser.add_subparsers(dest="command", required=True)

    load = sub.add_parser("load", help="parse a roster file and store it as the snapshot")
    load.add_argument("file", type=Path)
    load.add_argument("--images", type=Path, help="folder of photos named after personnel")

    for name, help_text in (("show", "print the filtered roster"), ("groups", "print the grouped roster")):
        view = sub.add_parser(name, help=help_text)
        view.add_argument("--search", default="", help="free-text search")
        view.add_argument(
            "--filter", action="append", metavar="COLUMN=VALUE", help="accepted column value (repeatable)"
        )

    sub.add_parser("stats", help="print status counts for the whole roster")
    sub.add_parser("columns", help="list filterable columns and their values")

    photo = sub.add_parser("photo", help="show which photo a row resolves to")
    photo.add_argument("row", type=int, help="1-based row number in file order")

    ask = sub.add_parser("ask", help="ask the AI assistant about the roster")
    ask.add_argument("question", nargs="?", default="", help="omit for a general analysis")

    sub.add_parser("reset", help="clear the stored snapshot")
    return parser


def _frame(rows: List[Dict[str, str]], headers: List[str]) -> pd.DataFrame:
    return Dataset(headers=headers, rows=rows).to_frame()


def _print_rows(rows: List[Dict[str, str]], headers: List[str]) -> None:
    if not rows:
        print("(no rows)")
        return
    frame = _frame(rows, headers)
    frame.insert(0, "category", [classify(row) for row in rows], allow_duplicates=True)
    print(frame.to_string(index=False))


def _require_loaded(session: RosterSession) -> bool:
    if session.restore_previous():
        return True
    print("No roster loaded. Run 'roster-dashboard load FILE' first.", file=sys.stderr)
    return False


def run(args: argparse.Namespace, config: ConfigManager) -> int:
    data_dir = args.data_dir or config.resolved_data_dir()
    with SnapshotStore(data_dir) as store:
        session = RosterSession(store, bands=config.band_list())

        if args.command == "load":
            if args.images is not None:
                session.load_images(args.images)
            else:
                session.reuse_stored_photos()
            saved = session.load_file(args.file).result()
            print(f"Loaded {session.file_name}: {len(session.rows)} rows, {saved} photos stored")
            return 0

        if args.command == "reset":
            session.reset().result()
            print("Snapshot cleared")
            return 0

        if not _require_loaded(session):
            return 1

        if args.command in {"show", "groups"}:
            session.set_filters(parse_filter_args(args.filter))
            session.search = args.search
            if args.command == "show":
                _print_rows(session.visible_rows, session.headers)
                print(f"\n{session.row_count} of {len(session.rows)} rows")
            else:
                for group in session.groups:
                    print(f"\n== {group.name} ({len(group.rows)})")
                    _print_rows(group.rows, session.headers)
            return 0

        if args.command == "stats":
            counts = session.counts.as_dict()
            frame = pd.DataFrame(
                {"status": [STATUS_LABELS[key] for key in counts], "count": list(counts.values())}
            )
            print(frame.to_string(index=False))
            unknown = unrecognized_statuses(session.rows)
            if unknown:
                print(f"\nCounted as on task (unrecognized): {', '.join(unknown)}")
            return 0

        if args.command == "columns":
            for column in session.available_filter_columns:
                print(f"{column}: {', '.join(session.filter_values(column))}")
            return 0

        if args.command == "photo":
            if not 1 <= args.row <= len(session.rows):
                print(f"Row {args.row} is out of range (1-{len(session.rows)})", file=sys.stderr)
                return 1
            row = session.rows[args.row - 1]
            print(f"{display_name(row)}: {session.photo_for(row).name}")
            return 0

        if args.command == "ask":
            analyst = RosterAnalyst(
                config.resolved_api_key(), config.openai_model, config.sample_rows
            )
            if args.question.strip():
                print(analyst.ask(args.question, session.headers, session.rows))
            else:
                print(analyst.analyze(session.file_name, session.headers, session.rows))
            return 0

    return 2


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the Roster Dashboard command line."""

    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    config = ConfigManager.load()
    try:
        return run(args, config)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))
    except (OSError, ValueError, SnapshotError) as exc:
        logger.error("%s", exc)
        return 1
    return 2


if __name__ == "__main__":
    sys.exit(main())
