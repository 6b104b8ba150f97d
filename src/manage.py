"""Parcelrun Dispatch management CLI.

Usage:
    python src/manage.py setup-db                    # Create all tables
    python src/manage.py drop-db                     # Drop all tables
    python src/manage.py purge-locations --days 30   # Retention sweep (cron)
"""

import argparse
import sys


def _domain():
    from dispatch.domain import dispatch

    print("Initializing dispatch domain...")
    dispatch.init()
    return dispatch


def setup_database():
    from dispatch.utils.db import setup_db

    domain = _domain()
    print("Creating dispatch database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    from dispatch.utils.db import drop_db

    domain = _domain()
    print("Dropping dispatch database schema...")
    drop_db(domain)
    print("Done.")


def purge_locations(days_old: int):
    from dispatch.location.retention import PurgeLocationHistory
    from dispatch.utils.logging import configure_logging

    configure_logging()
    domain = _domain()
    with domain.domain_context():
        deleted = domain.process(PurgeLocationHistory(days_old=days_old), asynchronous=False)
    print(f"Purged {deleted} location samples older than {days_old} days.")


def main():
    parser = argparse.ArgumentParser(description="Parcelrun Dispatch management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    purge_parser = subparsers.add_parser("purge-locations", help="Delete old location samples")
    purge_parser.add_argument(
        "--days",
        type=int,
        default=30,
        help="Delete samples older than this many days (minimum 7)",
    )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "purge-locations":
        purge_locations(args.days)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
