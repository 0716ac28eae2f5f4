from __future__ import annotations

import argparse
import sys
from pathlib import Path

from downtime.core.logging import configure_logging
from downtime.db.session import SessionLocal
from downtime.services.stop_import import StopImportError, import_production_stops
from downtime.services.tabular_reader import SUPPORTED_SUFFIXES


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Import a production stops spreadsheet into the configured database."
    )
    parser.add_argument("path", type=Path, help="Spreadsheet or delimited text export.")
    parser.add_argument(
        "--delete-existing",
        action="store_true",
        help="Remove every stored production stop before importing.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Override LOG_LEVEL for this run.",
    )
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    path: Path = args.path
    if not path.is_file():
        print(f"File not found: {path}", file=sys.stderr)
        return 1
    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        print(f"Unsupported file type: {path.suffix or '(none)'}", file=sys.stderr)
        return 1

    session = SessionLocal()
    try:
        summary = import_production_stops(session, path, delete_existing=args.delete_existing)
    except StopImportError as exc:
        print(f"Error importing file: {exc}", file=sys.stderr)
        return 1
    finally:
        session.close()

    print(f"File imported successfully: {summary.processed} processed, {summary.skipped} skipped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
