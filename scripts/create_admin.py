#!/usr/bin/env python3
"""
Admin user creation script
Creates (or promotes) the storefront administrator account
"""

import getpass
import sys
import os

# Add parent directory to path to import storefront
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from storefront import create_app, db
from storefront.services.seed import ensure_admin


def create_admin():
    app = create_app()

    username = app.config.get('ADMIN_USERNAME') or input('Admin username: ').strip()
    password = app.config.get('ADMIN_PASSWORD') or getpass.getpass('Admin password: ')
    if len(password) < 6:
        print("Password must be at least 6 characters.")
        sys.exit(1)

    with app.app_context():
        db.create_all()
        admin_user = ensure_admin(username, password)

        print("Admin user ready:")
        print(f"Username: {admin_user.username}")
        print(f"Is Admin: {admin_user.is_admin}")


if __name__ == '__main__':
    create_admin()
