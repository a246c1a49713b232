import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load environment variables from .env if present (container will provide them).
load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    jwt_secret: str
    database_path: str
    debug: bool = False
    access_token_exp_seconds: int = 60 * 60
    refresh_token_exp_seconds: int = 60 * 24 * 60 * 60
    cors_allow_origins: tuple[str, ...] = ("*",)
    static_dir: str = "."
    log_level: str = "INFO"
    store_atomic_writes: bool = False
    enforce_unique_email_on_update: bool = False


def _parse_csv(value: str) -> tuple[str, ...]:
    return tuple(v.strip() for v in value.split(",") if v.strip())


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return strongly-typed settings for the application."""
    debug = _parse_bool(os.getenv("DEBUG", "false"))
    if debug:
        database_path = os.getenv("DEBUG_DATABASE_PATH", "/tmp/debug-database.json")
    else:
        database_path = os.getenv("DATABASE_PATH", "/tmp/database.json")
    cors = os.getenv("CORS_ALLOW_ORIGINS", "*")
    return Settings(
        jwt_secret=os.getenv("JWT_SECRET", "dev-secret-change-me"),
        database_path=database_path,
        debug=debug,
        access_token_exp_seconds=int(os.getenv("ACCESS_TOKEN_EXPIRE_SECONDS", "3600")),
        refresh_token_exp_seconds=int(os.getenv("REFRESH_TOKEN_EXPIRE_SECONDS", "5184000")),
        cors_allow_origins=("*",) if cors.strip() == "*" else _parse_csv(cors),
        static_dir=os.getenv("STATIC_DIR", "."),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        store_atomic_writes=_parse_bool(os.getenv("STORE_ATOMIC_WRITES", "false")),
        enforce_unique_email_on_update=_parse_bool(os.getenv("ENFORCE_UNIQUE_EMAIL_ON_UPDATE", "false")),
    )
