"""Set a fresh password on the admin account, creating it if needed.

The new password is printed once; store it before closing the terminal.
"""
import os
import secrets

from werkzeug.security import generate_password_hash

from resultportal import app, db
from resultportal.accounts import add_admin
from resultportal.models import Account


def reset_admin_password(email):
    password = secrets.token_urlsafe(12)
    admin = Account.query.filter_by(email=email).first()
    if admin is None:
        add_admin(email, generate_password_hash(password))
    else:
        admin.password_hash = generate_password_hash(password)
    db.session.commit()
    return password


if __name__ == "__main__":
    with app.app_context():
        print(reset_admin_password(os.environ.get('ADMIN_EMAIL', 'admin@school.local').strip().lower()))
