import os
import logging
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from resultportal.config import DevelopmentConfig, ProductionConfig, TestingConfig
from werkzeug.security import generate_password_hash

logger = logging.getLogger(__name__)

app = Flask(__name__, instance_relative_config=True)

# Select config based on FLASK_ENV
env = os.environ.get("FLASK_ENV", "development").lower()
if env == "production":
    app.config.from_object(ProductionConfig)
elif env == "testing":
    app.config.from_object(TestingConfig)
else:
    app.config.from_object(DevelopmentConfig)

# Compute DB URI for development using instance path
if env not in ("production", "testing"):
    os.makedirs(app.instance_path, exist_ok=True)
    app.config['SQLALCHEMY_DATABASE_URI'] = DevelopmentConfig.database_uri(app.instance_path)

db = SQLAlchemy(app)

from resultportal.sheets import SheetMirror

app.extensions['sheet_mirror'] = SheetMirror(
    app.config.get('SHEETS_WORKBOOK_PATH'),
    run_async=app.config.get('SHEETS_ASYNC', True),
)


def bootstrap_admin():
    """Create the admin account named by ADMIN_EMAIL if it does not exist yet."""
    from resultportal.accounts import add_admin
    from resultportal.models import Account
    admin_email = (os.environ.get("ADMIN_EMAIL") or "").strip().lower()
    if not admin_email:
        return None
    existing = Account.query.filter_by(email=admin_email).first()
    if existing:
        return existing
    admin_pw_hash = os.environ.get("ADMIN_PASSWORD_HASH")
    admin_pw_plain = os.environ.get("ADMIN_PASSWORD")
    if not admin_pw_hash and not admin_pw_plain:
        logger.warning("ADMIN_EMAIL is set without ADMIN_PASSWORD; admin account not created")
        return None
    admin = add_admin(
        admin_email,
        admin_pw_hash or generate_password_hash(admin_pw_plain),
        name=os.environ.get("ADMIN_NAME", "Administrator"),
    )
    db.session.commit()
    logger.info("Created bootstrap admin %s", admin_email)
    return admin


with app.app_context():
    from resultportal import models  # noqa: F401
    db.create_all()
    bootstrap_admin()

from resultportal import routes  # noqa: E402,F401
