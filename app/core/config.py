# app/core/config.py

import os
from dotenv import load_dotenv
from app.utils.logger import get_logger

logger = get_logger(__name__)

load_dotenv()

# =====================================================
# APPLICATION
# =====================================================
APP_ENV = os.getenv("APP_ENV")
if APP_ENV not in {"development", "staging", "production", "test"}:
    raise ValueError("APP_ENV must be development | staging | production | test")

IS_PRODUCTION = APP_ENV == "production"

# text | json
LOG_FORMAT = os.getenv("LOG_FORMAT", "text").lower()

# =====================================================
# DATABASE
# =====================================================
DB_TYPE = os.getenv("DB_TYPE")
if DB_TYPE not in {"postgres", "sqlite"}:
    raise ValueError("DB_TYPE must be postgres | sqlite")

if DB_TYPE == "postgres":
    DATABASE_URL = os.getenv("DATABASE_URL")
    if not DATABASE_URL:
        raise ValueError("DATABASE_URL is required for Postgres")

elif DB_TYPE == "sqlite":
    if IS_PRODUCTION:
        raise ValueError("SQLite is NOT allowed in production")
    DATABASE_URL = os.getenv("SQLITE_URL", "sqlite+aiosqlite:///./logistics.db")

# ---- Pool tuning (safe defaults) ----
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", 10))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", 20))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", 30))
DB_ECHO_POOL = os.getenv("DB_ECHO_POOL", "false").lower() == "true"

# ---- SSL ----
DB_SSL_VERIFY = os.getenv("DB_SSL_VERIFY", "true").lower() == "true"
if IS_PRODUCTION and not DB_SSL_VERIFY:
    logger.warning("Running in production with relaxed SSL verification")

# =====================================================
# LOGISTICS
# =====================================================
# All transfer requests originate at this branch
MAIN_STORAGE_BRANCH_ID = os.getenv("MAIN_STORAGE_BRANCH_ID", "B001")

# =====================================================
# SNAPSHOT
# =====================================================
# Shared secret for GET /state/export. Export is disabled while unset.
STATE_EXPORT_KEY = os.getenv("STATE_EXPORT_KEY", "")

SNAPSHOT_PATH = os.getenv("SNAPSHOT_PATH", "data.json")
SNAPSHOT_FLUSH_MINUTES = int(os.getenv("SNAPSHOT_FLUSH_MINUTES", 15))
ENABLE_SNAPSHOT_FLUSH = (
    os.getenv("ENABLE_SNAPSHOT_FLUSH", "true").lower() == "true"
)

# =====================================================
# DOCUMENTS
# =====================================================
DELIVERY_NOTE_DIR = os.getenv("DELIVERY_NOTE_DIR", "generated_pdfs")
