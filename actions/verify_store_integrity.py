#!/usr/bin/env python3
"""
Check (and optionally repair) the header line of every store file.

**Purpose**: Before starting the server against an existing data directory,
confirm that each entity file exists and starts with the header its schema
expects. Without --repair nothing is written.

**What it does**:
  1. Reads only the first line of each store file.
  2. Reports OK / MISSING / BAD HEADER per entity.
  3. With --repair, creates missing files and rewrites bad headers, leaving
     every data row untouched.
  4. With --rows, also decodes every row and reports malformed ones (field
     count mismatches), which header repair never fixes.

**Usage**:
    From project root:
    ```bash
    python actions/verify_store_integrity.py
    python actions/verify_store_integrity.py --data-dir /srv/hackathon/data --repair
    ```

Exit status is 1 if any problem remains after the run, 0 otherwise.
"""

import argparse
import sys
from pathlib import Path

# Ensure project root is on path for imports
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from hackstore.config.settings import Settings
from hackstore.data.entities import ALL_SCHEMAS
from hackstore.data.integrity import IntegrityAction, IntegrityManager
from hackstore.data.io import iter_raw_lines
from hackstore.data.schemas import ParseError, Schema
from hackstore.utils.logging_config import setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Verify the header line of every hackathon store file."
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Store directory (default: HACKSTORE_DATA_DIR or 'data').",
    )
    parser.add_argument(
        "--repair",
        action="store_true",
        help="Create missing files and rewrite bad header lines.",
    )
    parser.add_argument(
        "--rows",
        action="store_true",
        help="Also decode every data row and report malformed ones.",
    )
    return parser.parse_args(argv)


def decode_rows(schema: Schema, path: Path) -> tuple[int, list[ParseError]]:
    """
    Decode every data row of a store file, collecting malformed ones.

    Unlike Repository.list_all(), a malformed row does not stop the scan, so
    every bad row in the file is reported.

    Returns:
        (number of rows decoded, ParseError per malformed row)
    """
    decoded = 0
    errors = []
    for line_number, raw in enumerate(iter_raw_lines(path), start=1):
        line = raw.rstrip("\r\n")
        if line_number == 1 or not line.strip():
            continue
        try:
            schema.decode_line(line, line_number=line_number, path=path)
        except ParseError as e:
            errors.append(e)
            continue
        decoded += 1
    return decoded, errors


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = Settings.from_env()
    setup_logging(settings.logging.level)

    data_dir = args.data_dir or settings.store.data_dir
    manager = IntegrityManager(data_dir)

    print("=" * 80)
    print(f"Store integrity check: {data_dir}")
    print("=" * 80)

    problems = 0
    for schema in ALL_SCHEMAS:
        path = manager.path_for(schema)

        if manager.check(schema):
            status = "OK"
        elif args.repair:
            action = manager.ensure(schema)
            status = "CREATED" if action is IntegrityAction.CREATED else "REPAIRED"
        else:
            status = "BAD HEADER" if path.exists() else "MISSING"
            problems += 1

        print(f"  {schema.filename:20s} {status}")

        if args.rows and path.exists():
            decoded, errors = decode_rows(schema, path)
            print(f"  {'':20s} {decoded} rows decoded, {len(errors)} malformed")
            for e in errors:
                print(f"  {'':20s} ✗ {e}")
            problems += len(errors)

    print("-" * 80)
    if problems:
        print(f"{problems} problem(s) found." + ("" if args.repair else " Re-run with --repair."))
    else:
        print("All store files are consistent.")
    return 1 if problems else 0


if __name__ == "__main__":
    sys.exit(main())
