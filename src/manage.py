"""Garment ledger database management CLI.

Creates and drops the ledger schema using the setup_db/drop_db utilities.

Usage:
    PROTEAN_ENV=production python src/manage.py setup-db   # Create all tables
    PROTEAN_ENV=production python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def setup_database():
    """Create the ledger database schema."""
    from ledger.domain import ledger
    from ledger.utils.db import setup_db

    print("Initializing ledger domain...")
    ledger.init()
    print("Creating ledger database schema...")
    setup_db(ledger)
    print("Done.")


def drop_database():
    """Drop the ledger database schema."""
    from ledger.domain import ledger
    from ledger.utils.db import drop_db

    print("Initializing ledger domain...")
    ledger.init()
    print("Dropping ledger database schema...")
    drop_db(ledger)
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Garment ledger database management")
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
