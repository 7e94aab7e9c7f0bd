"""
Application settings, read from the environment (.env supported)
"""
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "False") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class Settings:
    db_path: str
    db_timeout: float
    secret_key: str
    port: int
    debug: bool
    log_level: str
    sse_keepalive_seconds: float


def load_settings() -> Settings:
    return Settings(
        db_path=os.getenv("CANTEEN_DB_PATH", "canteen.db"),
        db_timeout=float(os.getenv("CANTEEN_DB_TIMEOUT", "10")),
        secret_key=os.getenv("SECRET_KEY", "your-secret-key-here"),
        port=int(os.getenv("PORT", "5000")),
        debug=_env_bool("DEBUG"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        sse_keepalive_seconds=float(os.getenv("SSE_KEEPALIVE_SECONDS", "15"))
    )
