#!/usr/bin/env python3
"""
Create (or promote) an administrator account.
Run this once after the database schema has been migrated.

Usage: python scripts/create_admin.py admin@example.org 'a-strong-password'
"""

import sys
sys.path.insert(0, ".")

from app import create_app, db
from app.models import User, UserRole


def create_admin(email, password):
    app = create_app()

    with app.app_context():
        try:
            user = User.query.filter_by(email=email).first()
            if user:
                print(f"  Promoting existing user {email}")
            else:
                user = User(email=email, first_name="Admin", last_name="")
                db.session.add(user)
                print(f"  Creating user {email}")

            user.role = UserRole.ADMIN
            user.is_active = True
            user.set_password(password)
            db.session.commit()
            print("Done! Administrator is ready.")

        except Exception as e:
            print(f"Error: {e}")
            db.session.rollback()
            return 1

    return 0


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(2)
    sys.exit(create_admin(sys.argv[1], sys.argv[2]))
