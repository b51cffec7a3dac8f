import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///data/jobs.db"
DEFAULT_LOG_LEVEL = "INFO"


def load_env() -> None:
    """Load .env from project root if present.
    Values already set in the environment win.
    """
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def get_database_url() -> str:
    return os.getenv("JOBBOARD_DATABASE_URL", "").strip() or DEFAULT_DATABASE_URL


def get_log_level() -> str:
    return os.getenv("JOBBOARD_LOG_LEVEL", "").strip().upper() or DEFAULT_LOG_LEVEL


def get_log_dir() -> Optional[Path]:
    """Directory for log files, or None when file logging is off."""
    raw = os.getenv("JOBBOARD_LOG_DIR", "").strip()
    return Path(raw) if raw else None
