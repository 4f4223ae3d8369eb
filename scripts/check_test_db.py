#!/usr/bin/env python3
"""
Verify the test database configuration.

Tests drop and recreate every table, so they must never point at the
application database.
"""

import os
import sys

from dotenv import load_dotenv


def main() -> None:
    """Check test database configuration."""
    load_dotenv()

    app_db = os.getenv("DATABASE_URL")
    test_db = os.getenv("TEST_DATABASE_URL")

    print("Current configuration:")
    print(f"   Application DB: {app_db}")
    print(f"   Test DB:        {test_db or '(unset: a temporary SQLite file per test)'}")
    print()

    if test_db and test_db == app_db:
        print("✗ TEST_DATABASE_URL is the same as DATABASE_URL.", file=sys.stderr)
        print("  Tests would drop every table of the application database.", file=sys.stderr)
        sys.exit(1)

    if test_db and "test" not in test_db.lower():
        print("⚠ TEST_DATABASE_URL does not contain 'test'; double check it is disposable.")

    print("✓ Test database configuration is safe.")


if __name__ == "__main__":
    main()
