# query_studio/core/config.py
"""Environment-driven settings for Query Studio."""

import os
from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from e


# ===== DATABASES =====
# Config database: saved queries, execution logs, request logs
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./query_studio_config.db")

# Data warehouse: default target for builder queries
DATA_WAREHOUSE_URL = os.getenv("DATA_WAREHOUSE_URL", "sqlite:///./query_studio_warehouse.db")

# ===== APPLICATION =====
APPLICATION_ID = os.getenv("APPLICATION_ID", "Unknown")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ===== QUERY BUILDER =====
DEFAULT_DATA_SOURCE = os.getenv("DEFAULT_DATA_SOURCE", "warehouse")
DEFAULT_QUERY_LIMIT = _int_env("DEFAULT_QUERY_LIMIT", 100)
MIN_QUERY_LIMIT = 1
MAX_QUERY_LIMIT = _int_env("MAX_QUERY_LIMIT", 10000)
ROWS_PER_PAGE = _int_env("ROWS_PER_PAGE", 50)

# ===== EXECUTOR =====
QUERY_CACHE_TTL_SECONDS = _int_env("QUERY_CACHE_TTL_SECONDS", 300)
QUERY_CACHE_MAX_ENTRIES = _int_env("QUERY_CACHE_MAX_ENTRIES", 128)
