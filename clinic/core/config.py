import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


STORAGE_BACKENDS = ("server", "embedded", "files")
DELETE_POLICIES = ("block", "cascade")

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "embedded").strip().lower()

DATABASE_URL = os.getenv("DATABASE_URL", "postgresql://localhost/clinic")
SQLITE_PATH = os.getenv("SQLITE_PATH", "./clinic.db")
DATA_DIR = os.getenv("DATA_DIR", "./data")

DELETE_POLICY = (os.getenv("DELETE_POLICY") or "").strip().lower() or None

SEED_SAMPLE_DATA = _get_bool(os.getenv("SEED_SAMPLE_DATA"), default=True)
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), default=["http://localhost:4200"])


def validate_runtime_config() -> None:
    if STORAGE_BACKEND not in STORAGE_BACKENDS:
        raise RuntimeError(f"STORAGE_BACKEND must be one of {', '.join(STORAGE_BACKENDS)}.")
    if DELETE_POLICY is not None and DELETE_POLICY not in DELETE_POLICIES:
        raise RuntimeError(f"DELETE_POLICY must be one of {', '.join(DELETE_POLICIES)}.")
