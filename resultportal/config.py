import os


def _flag(name, default):
    return os.environ.get(name, default).lower() in ("1", "true", "yes", "on")


class BaseConfig:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    PASSWORD_MIN_LENGTH = int(os.environ.get("PASSWORD_MIN_LENGTH", 6))
    # Session token
    AUTH_COOKIE_NAME = os.environ.get("AUTH_COOKIE_NAME", "auth")
    AUTH_TOKEN_MAX_AGE = int(os.environ.get("AUTH_TOKEN_MAX_AGE", 60 * 60 * 24))
    AUTH_COOKIE_SECURE = _flag("AUTH_COOKIE_SECURE", "false")
    ACCOUNT_REFRESH_SECONDS = int(os.environ.get("ACCOUNT_REFRESH_SECONDS", 30))
    # Results
    CLASS_NAMES = [
        c.strip()
        for c in os.environ.get("CLASS_NAMES", "6th,8th,Plus One,Plus Two,D1,D2,D3").split(",")
        if c.strip()
    ]
    PASS_RULE = os.environ.get("PASS_RULE", "total").lower()
    TOP_PERFORMERS_LIMIT = int(os.environ.get("TOP_PERFORMERS_LIMIT", 5))
    TOP_PERFORMERS_MAX = int(os.environ.get("TOP_PERFORMERS_MAX", 50))
    # Spreadsheet mirror
    SHEETS_WORKBOOK_PATH = os.environ.get("SHEETS_WORKBOOK_PATH")
    SHEETS_ASYNC = _flag("SHEETS_ASYNC", "true")

class DevelopmentConfig(BaseConfig):
    # Default to instance/results.db unless overridden
    INSTANCE_PATH = os.environ.get("FLASK_INSTANCE_PATH")
    @staticmethod
    def database_uri(instance_path: str) -> str:
        db_path = os.environ.get("DATABASE_PATH")
        if db_path:
            return f"sqlite:///{db_path}"
        return "sqlite:///" + os.path.join(instance_path, "results.db")

class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_DATABASE_URI", "sqlite:///:memory:")
    SHEETS_ASYNC = False
    SHEETS_WORKBOOK_PATH = None

class ProductionConfig(BaseConfig):
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URI", "sqlite:///results.db")
    AUTH_COOKIE_SECURE = _flag("AUTH_COOKIE_SECURE", "true")
