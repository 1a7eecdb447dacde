"""Purchasing database management CLI.

Creates and drops the cart and purchase tables for the SQL provider of the
active configuration (``PROTEAN_ENV=production`` points at SQLite). The
default in-memory configuration needs no schema, so both commands are no-ops
there.

Usage:
    PROTEAN_ENV=production python src/manage.py setup-db   # Create all tables
    PROTEAN_ENV=production python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys
from pathlib import Path


def _sqlite_data_dir(domain):
    """Create the directory a sqlite:/// URI points into."""
    for _, provider in domain.providers.items():
        uri = provider.conn_info.get("database_uri", "")
        if uri.startswith("sqlite:///"):
            Path(uri.removeprefix("sqlite:///")).parent.mkdir(parents=True, exist_ok=True)


def setup_database():
    from purchasing.domain import purchasing
    from purchasing.utils.db import setup_db

    print("Initializing purchasing domain...")
    purchasing.init()
    _sqlite_data_dir(purchasing)
    print("Creating purchasing database schema...")
    setup_db(purchasing)
    print("Done.")


def drop_database():
    from purchasing.domain import purchasing
    from purchasing.utils.db import drop_db

    print("Initializing purchasing domain...")
    purchasing.init()
    print("Dropping purchasing database schema...")
    drop_db(purchasing)
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Purchasing database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
