"""Create a Worktrail user with their own tenant and default workspace.

Usage:
    python -m worktrail.scripts.create_user --email admin@example.com --password <password> [--name NAME]
"""

from __future__ import annotations

import argparse
import sys

from worktrail.db.session import SessionLocal
from worktrail.errors import ValidationError
from worktrail.services.auth import signup


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a Worktrail user")
    parser.add_argument("--email", required=True, help="Email for the new user")
    parser.add_argument("--password", required=True, help="Password for the new user")
    parser.add_argument("--name", default=None, help="Display name")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        try:
            user, workspace = signup(db, args.email, args.password, args.name)
        except ValidationError as e:
            print(f"Error: {e.message}")
            sys.exit(1)
        print(
            f"User '{user.email}' created successfully (id={user.id}, "
            f"workspace={workspace.id})."
        )
    finally:
        db.close()


if __name__ == "__main__":
    main()
