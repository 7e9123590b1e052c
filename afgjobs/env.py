import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_STORE = "data/afgjobs.db"
DEFAULT_QUOTA_CHARS = 5 * 1024 * 1024


def load_env() -> None:
    """Load .env from project root if present."""
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Config:
    store: str = DEFAULT_STORE
    quota_chars: Optional[int] = DEFAULT_QUOTA_CHARS
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    log_to_file: bool = True


def get_config() -> Config:
    """Read runtime configuration from the environment.

    Call load_env() first so values from .env are visible here.
    """
    quota_raw = os.getenv("AFGJOBS_QUOTA_CHARS", "").strip()
    quota: Optional[int] = DEFAULT_QUOTA_CHARS
    if quota_raw:
        try:
            quota = int(quota_raw)
        except ValueError:
            raise SystemExit(f"AFGJOBS_QUOTA_CHARS must be an integer, got {quota_raw!r}")
        if quota <= 0:
            quota = None  # unlimited

    return Config(
        store=os.getenv("AFGJOBS_STORE", "").strip() or DEFAULT_STORE,
        quota_chars=quota,
        log_level=os.getenv("AFGJOBS_LOG_LEVEL", "").strip().upper() or "INFO",
        log_dir=Path(os.getenv("AFGJOBS_LOG_DIR", "").strip() or "logs"),
        log_to_file=_env_flag("AFGJOBS_LOG_FILE", True),
    )
