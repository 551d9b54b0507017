#!/usr/bin/env python3
"""Scan the Steam and Epic launchers and upsert what they report."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from config import DB_DSN, EPIC_MANIFESTS_DIR, ICONS_DIR_PATH, STEAM_PATH
from db import utils as db_utils
from init import initialize_app


def _resolve_dsn(value: str | None) -> str:
    if not value:
        return DB_DSN
    if "://" in value:
        return value
    return db_utils.sqlite_dsn_for_path(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--steam-path", help="Steam installation directory")
    parser.add_argument("--epic-dir", help="Epic launcher manifests directory")
    parser.add_argument("--db", help="Database DSN or SQLite file path")
    parser.add_argument("--icons-dir", help="Directory for downloaded covers and icons")
    parser.add_argument("--export", help="Write the library to this CSV file afterwards")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    service = initialize_app(
        db_dsn=_resolve_dsn(args.db),
        icons_dir=args.icons_dir or ICONS_DIR_PATH,
        steam_path=args.steam_path or STEAM_PATH,
        epic_manifests_dir=args.epic_dir or EPIC_MANIFESTS_DIR,
    )
    try:
        result = service.index_all()
        print(f"Discovered {result.discovered} games, upserted {result.upserted}.")
        if args.export:
            rows = service.export_library(args.export)
            print(f"Exported {rows} games to {args.export}.")
    finally:
        service.db.dispose()
    return 0


if __name__ == "__main__":  # pragma: no cover - manual execution path
    sys.exit(main())
