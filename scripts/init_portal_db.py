#!/usr/bin/env python3
import argparse
import json
from pathlib import Path

from db.portal_writer import initialize_database
from models.errors import PortalError


def parse_args():
    parser = argparse.ArgumentParser(
        description="Create the local portal SQLite database (idempotent)."
    )
    parser.add_argument(
        "--db",
        default=None,
        help="SQLite DB path (default: BALIKBAYANI_DB or data/portal.db).",
    )
    parser.add_argument(
        "--storage-dir",
        default=None,
        help="Also create this uploads directory.",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    try:
        db_path = initialize_database(args.db)
    except PortalError as e:
        print(json.dumps(e.to_dict(), indent=2))
        return 1

    result = {"db_path": str(db_path)}
    if args.storage_dir:
        storage = Path(args.storage_dir)
        storage.mkdir(parents=True, exist_ok=True)
        result["storage_dir"] = str(storage.resolve())

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
