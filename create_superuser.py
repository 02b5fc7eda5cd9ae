#!/usr/bin/env python3
"""
Script to create an administrator account, or promote an existing one.

Usage:
  python3 create_superuser.py --email admin@demiland.com --first-name Demi --last-name Land
  python3 create_superuser.py --email admin@demiland.com --role admin

The password is prompted for when --password is not given.
"""

import sys
import getpass
import argparse
import logging
from dotenv import load_dotenv

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

load_dotenv()

from demiland import create_app  # noqa: E402
from demiland.auth import accounts  # noqa: E402
from demiland.errors import ApiError  # noqa: E402
from demiland.models import ADMIN_ROLES  # noqa: E402


def create_superuser(email, password, first_name, last_name, role):
    existing = accounts.get_user_by_email(email, active_only=False)
    if existing:
        print(f"  ✓ User {email} already exists, setting role to {role}...")
        accounts.update_user(existing.id, {'role': role, 'is_active': True})
        return existing

    print(f"  + Creating {role} account {email}...")
    return accounts.create_user(email, password, first_name, last_name, role=role)


def main():
    parser = argparse.ArgumentParser(description='Create or promote an administrator account')
    parser.add_argument('--email', required=True, help='Account email address')
    parser.add_argument('--password', help='Account password (prompted when omitted)')
    parser.add_argument('--first-name', default='Demiland')
    parser.add_argument('--last-name', default='Admin')
    parser.add_argument('--role', choices=ADMIN_ROLES, default='super-admin')
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        password = args.password
        if not accounts.get_user_by_email(args.email, active_only=False) and not password:
            password = getpass.getpass('Password: ')
            if not password:
                print("A password is required for a new account.")
                return 1
        try:
            user = create_superuser(args.email, password, args.first_name, args.last_name, args.role)
        except ApiError as e:
            print(f"  ✗ {e.message}")
            return 1

    print()
    print(f"Done. {user.email} now has the {args.role} role.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
