#!/usr/bin/env python3
"""
Utility script to mint an actor token for local use.

Usage:
    python scripts/setup/issue_token.py --user-id 7 --username ana [--admin] [--hours 24]

The token is signed with JWT_SECRET (from the environment or .env), the same
secret the API uses to verify it. Send it in the X-API-Key header when
deleting a memory.
"""

import argparse
import sys
from pathlib import Path

# Make the backend packages importable when run from a checkout
sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "backend"))

from domain.exceptions import ConfigurationError  # noqa: E402
from domain.value_objects.enums import UserRole  # noqa: E402
from infrastructure.auth import generate_jwt_token  # noqa: E402


def issue_token(argv=None):
    """Generate an actor token from command-line arguments."""
    parser = argparse.ArgumentParser(description="Mint a Memories actor token")
    parser.add_argument("--user-id", type=int, required=True, help="Id of the user in the user directory")
    parser.add_argument("--username", required=True, help="Display name")
    parser.add_argument("--admin", action="store_true", help="Issue an admin token")
    parser.add_argument("--hours", type=int, default=None, help="Hours until the token expires")
    args = parser.parse_args(argv)

    role = UserRole.ADMIN if args.admin else UserRole.MEMBER
    token = generate_jwt_token(args.user_id, args.username, role=role, expiration_hours=args.hours)

    print("=" * 60)
    print(f"✅ Token issued for {args.username} (id {args.user_id}, {role})")
    print("=" * 60)
    print()
    print(token)
    print()
    print("📝 Notes:")
    print("  - Send it in the X-API-Key header")
    print("  - Keep it secret; anyone holding it can act as this user")
    print()


if __name__ == "__main__":
    try:
        issue_token()
    except KeyboardInterrupt:
        print("\n\nAborted.")
    except ConfigurationError as e:
        print(f"\n❌ Error: {e}")
        sys.exit(1)
