# shopledger/core/config.py
import os
from typing import List
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()

ENV_PREFIX = "SHOPLEDGER_"


def _env(name: str, default: str) -> str:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _split_csv(value: str) -> List[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


def _as_bool(value: str) -> bool:
    return (value or "").lower() in {"1", "true", "yes"}


class Settings(BaseModel):
    PROJECT_NAME: str = _env("PROJECT_NAME", "Shop Ledger")
    API_PREFIX: str = _env("API_PREFIX", "/api")

    # ---------- Database ----------
    DATABASE_URL: str = _env("DATABASE_URL", "sqlite:///./shop_ledger.db")
    SQL_ECHO: bool = _as_bool(_env("SQL_ECHO", "false"))
    # Seconds a SQLite connection waits on a locked database
    SQLITE_BUSY_TIMEOUT: float = float(_env("SQLITE_BUSY_TIMEOUT", "15"))

    # CORS (env takes priority)
    CORS_ORIGINS: List[str] = _split_csv(
        _env("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"))

    # ---------- Logging ----------
    LOG_LEVEL: str = _env("LOG_LEVEL", "INFO")
    LOG_FILE: str = _env("LOG_FILE", "")

    # ---------- Business rules ----------
    TIMEZONE: str = _env("TIMEZONE", "Asia/Karachi")
    # Bill / return / invoice number draws before giving up
    NUMBER_MAX_ATTEMPTS: int = int(_env("NUMBER_MAX_ATTEMPTS", "20"))
    DEFAULT_LOW_STOCK_THRESHOLD: int = int(_env("DEFAULT_LOW_STOCK_THRESHOLD", "10"))

    # ---------- Pagination ----------
    DEFAULT_PAGE_SIZE: int = int(_env("DEFAULT_PAGE_SIZE", "10"))
    MAX_PAGE_SIZE: int = int(_env("MAX_PAGE_SIZE", "100"))


settings = Settings()
