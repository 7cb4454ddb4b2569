"""
Application settings read from environment variables.

`load_dotenv()` runs on import so a local `.env` file is honoured during
development; in deployment the variables are injected directly.
"""

import os
from typing import List
from dotenv import load_dotenv

load_dotenv()


def _str_to_bool(v: str | None, default: bool = False) -> bool:
    """Treat "1", "true", "yes" and "on" (any case) as True."""
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))

    _cors_origins_raw = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    cors_origins: List[str] = [o.strip() for o in _cors_origins_raw.split(",") if o.strip()]

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    sql_echo: bool = _str_to_bool(os.getenv("SQL_ECHO"), False)

    # Import pipeline
    import_batch_size: int = int(os.getenv("IMPORT_BATCH_SIZE", "100"))

    # Dashboard
    top_n: int = int(os.getenv("TOP_N", "20"))


settings = Settings()
