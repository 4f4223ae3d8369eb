#!/usr/bin/env python3
"""
Issue a development bearer token for an existing identity.

Credentials are issued by the identity provider in production; this script
mints a token of the same shape for local runs and manual API testing.

Usage:
    python scripts/create_token.py <identity_id> <patient|doctor|admin> [--minutes 60]
"""

import argparse
import sys
from datetime import timedelta
from uuid import UUID

from clinic_portal.config import settings
from clinic_portal.core.security import Role, create_access_token


def main() -> None:
    """Parse arguments and print a token."""
    parser = argparse.ArgumentParser(
        description="Create a development access token",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/create_token.py 0b7c...e1 patient
  python scripts/create_token.py 0b7c...e1 admin --minutes 15
        """,
    )
    parser.add_argument("identity_id", help="UUID of the patient, doctor or admin")
    parser.add_argument("role", choices=[role.value for role in Role], help="Role carried by the token")
    parser.add_argument(
        "--minutes",
        type=int,
        default=settings.access_token_expire_minutes,
        help="Token lifetime in minutes",
    )
    args = parser.parse_args()

    if settings.is_production:
        print("Error: refusing to mint tokens with production settings", file=sys.stderr)
        sys.exit(1)

    try:
        identity_id = UUID(args.identity_id)
    except ValueError:
        print(f"Error: '{args.identity_id}' is not a valid UUID", file=sys.stderr)
        sys.exit(1)

    token = create_access_token(
        {"sub": str(identity_id), "role": args.role},
        expires_delta=timedelta(minutes=args.minutes),
    )
    print(token)


if __name__ == "__main__":
    main()
