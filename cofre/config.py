"""
Configuration module for the Cofre bot.

Contains constants, settings, and configuration values used throughout the application.
"""

import os
from pathlib import Path

# Version
VERSION = "0.1.0"

# Application paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"
LOG_DIR = PROJECT_ROOT / "logs"

# Persistence configuration
DEFAULT_DB_PATH = Path(os.getenv("COFRE_DB_PATH", str(DATA_DIR / "cofre.db")))
DB_TIMEOUT = 10.0  # seconds
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "sqlite")
STORAGE_BACKENDS = ["sqlite", "memory"]

# NLP configuration
DEFAULT_SPACY_MODEL = os.getenv("SPACY_MODEL", "en_core_web_sm")
MAX_TRANSACTION_TEXT_LENGTH = 500

# Batch categorization
CHUNK_SIZE = int(os.getenv("CATEGORIZATION_CHUNK_SIZE", "5"))
CLASSIFICATION_CONCURRENCY = int(os.getenv("CATEGORIZATION_CONCURRENCY", "5"))

# Budget defaults
DEFAULT_BUDGET_START_DAY = 1
MIN_BUDGET_START_DAY = 1
MAX_BUDGET_START_DAY = 28

# Short-lived invitation codes
ACCESS_TOKEN_TTL = float(os.getenv("ACCESS_TOKEN_TTL", "900"))  # seconds

# Discord configuration
DISCORD_MESSAGE_MAX_LENGTH = 2000
CONFIRMATION_TIMEOUT = 120.0  # seconds
MAX_STATEMENT_SIZE = 2_000_000  # bytes

# Export configuration
EXPORT_FORMATS = ["xlsx", "csv"]

# Logging configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "cofre_bot.log"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Database query limits
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50

# User input limits
MAX_DESCRIPTION_LENGTH = 200
MAX_CUSTOM_PROMPT_LENGTH = 1000

# Error messages
ERROR_MESSAGES = {
    "invalid_token": "Invalid Discord bot token format",
    "spacy_not_found": "spaCy model not found. Please install it with: python -m spacy download {model}",
    "no_vault": "This channel has no vault yet. Use `/create` or `/join <token>`.",
    "pipeline_failed": "Could not categorize your statement right now. Please try again later.",
    "internal_error": "An internal error occurred. Please try again.",
}


def ensure_directories():
    """Ensure required directories exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    LOG_DIR.mkdir(parents=True, exist_ok=True)


def get_log_level():
    """Get the configured log level."""
    import logging

    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get(LOG_LEVEL.upper(), logging.INFO)
