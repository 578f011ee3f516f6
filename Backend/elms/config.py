# config.py
import os
import urllib.parse
from dotenv import load_dotenv

load_dotenv()

# Database configuration (env defaults)
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_USER = os.getenv("DB_USER", "root")
DB_PASSWORD = os.getenv("DB_PASSWORD", "")
DB_NAME = os.getenv("DB_NAME", "elms")
DB_PORT = int(os.getenv("DB_PORT", 3306))


def database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    password_enc = urllib.parse.quote_plus(DB_PASSWORD)
    return f"mysql+pymysql://{DB_USER}:{password_enc}@{DB_HOST}:{DB_PORT}/{DB_NAME}"


# JWT settings
JWT_ALGORITHM = "HS256"
JWT_EXP_DAYS = int(os.getenv("JWT_EXP_DAYS", "7"))


def get_jwt_secret() -> str:
    """Return the signing key, failing when it is missing or blank."""
    secret = os.getenv("JWT_SECRET")
    if secret is None or not secret.strip():
        raise RuntimeError("JWT_SECRET environment variable is required")
    return secret


def require_jwt_secret() -> None:
    get_jwt_secret()


def is_development() -> bool:
    return os.getenv("APP_ENV", "production").strip().lower() == "development"


def cors_origins():
    raw = os.getenv("CORS_ORIGINS", "*")
    return [item.strip() for item in raw.split(",") if item.strip()] or ["*"]


# Excel import
IMPORT_MAX_WORKERS = int(os.getenv("IMPORT_MAX_WORKERS", "8"))
DEFAULT_IMPORT_PASSWORD_SUFFIX = os.getenv("DEFAULT_IMPORT_PASSWORD_SUFFIX", "123")
