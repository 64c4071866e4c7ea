"""
Studio Crew Configuration
Loads settings from environment variables with sensible defaults.
"""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

_logger = logging.getLogger(__name__)

# Load .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

SAVE_STRATEGIES = ('transaction', 'insert_first')


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Application configuration."""

    # Database: must be set in .env, never hardcode credentials here
    DATABASE_URL = os.getenv('DATABASE_URL')
    if not DATABASE_URL:
        _logger.critical("DATABASE_URL is not set, cannot start. Copy .env.example to .env and configure it.")
        raise ValueError("DATABASE_URL environment variable is not set. Copy .env.example to .env and configure it.")

    # Firm selection happens upstream; this is only the CLI fallback
    DEFAULT_FIRM_ID = os.getenv('DEFAULT_FIRM_ID', '')

    # Timezone
    TIMEZONE = os.getenv('TIMEZONE', 'Asia/Kolkata')

    # Crew saves: 'transaction' wraps delete+insert in one transaction,
    # 'insert_first' inserts the new batch then deletes superseded rows
    CREW_SAVE_STRATEGY = os.getenv('CREW_SAVE_STRATEGY', 'transaction').strip().lower()
    if CREW_SAVE_STRATEGY not in SAVE_STRATEGIES:
        _logger.critical(f"CREW_SAVE_STRATEGY={CREW_SAVE_STRATEGY!r} is not one of {SAVE_STRATEGIES}")
        raise ValueError(f"CREW_SAVE_STRATEGY must be one of {SAVE_STRATEGIES}, got {CREW_SAVE_STRATEGY!r}")

    # Double-booking warnings in the CLI
    CONFLICT_CHECK_ENABLED = _env_flag('CONFLICT_CHECK_ENABLED', 'true')


# Singleton instance
config = Config()
