"""
Application Configuration Module

Reads runtime settings from the environment (optionally from a .env file).
Every setting has a sensible default so the ledger can start against a local
PostgreSQL instance without any configuration.
"""

import os
from decimal import Decimal
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Database connection settings
POSTGRES_USER = os.getenv("POSTGRES_USER", "postgres")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
POSTGRES_SERVER = os.getenv("POSTGRES_SERVER", "localhost")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")
POSTGRES_DB = os.getenv("POSTGRES_DB", "ledger_db")

# DATABASE_URL wins over the individual POSTGRES_* parts (used for SQLite in tests)
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+psycopg2://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_SERVER}:{POSTGRES_PORT}/{POSTGRES_DB}",
)

# All stored timestamps are timezone-aware in this zone
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Asia/Dhaka")

LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

CORS_ALLOWED_ORIGINS = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173",
)

# Journal entry numbering
JOURNAL_ENTRY_PREFIX = os.getenv("JOURNAL_ENTRY_PREFIX", "JE")
JOURNAL_ENTRY_PAD_WIDTH = int(os.getenv("JOURNAL_ENTRY_PAD_WIDTH", "6"))
NUMBERING_MAX_RETRIES = int(os.getenv("NUMBERING_MAX_RETRIES", "3"))

# Maximum allowed difference between total debit and total credit
BALANCE_TOLERANCE = Decimal(os.getenv("BALANCE_TOLERANCE", "0.01"))

# Currency
BASE_CURRENCY = os.getenv("BASE_CURRENCY", "BDT")
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "৳")
DEFAULT_EXCHANGE_RATE = Decimal(os.getenv("DEFAULT_EXCHANGE_RATE", "1"))
EXCHANGE_RATE_TTL_SECONDS = int(os.getenv("EXCHANGE_RATE_TTL_SECONDS", "3600"))

# Cognito
COGNITO_REGION = os.getenv("COGNITO_REGION", "eu-north-1")
COGNITO_USER_POOL_ID = os.getenv("COGNITO_USER_POOL_ID")
COGNITO_APP_CLIENT_ID = os.getenv("COGNITO_APP_CLIENT_ID")
