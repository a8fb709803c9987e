import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from clpd.network.server import DEFAULT_HOST, DEFAULT_PORT
from clpd.services.remote_backend import DEFAULT_REMOTE_URL
from clpd.services.watcher import DEFAULT_POLL_INTERVAL


def default_db_path() -> Path:
    return Path.home() / ".clpd" / "history.db"


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    db_path: Path = field(default_factory=default_db_path)
    max_entries: Optional[int] = None
    poll_interval: float = DEFAULT_POLL_INTERVAL
    remote_url: str = DEFAULT_REMOTE_URL
    listen_host: str = DEFAULT_HOST
    listen_port: int = DEFAULT_PORT
    http_timeout: float = 10.0

    @classmethod
    def from_env(cls, *, env_path: Optional[Path] = None) -> "Settings":
        """Read CLPD_* variables, after loading a .env file if one exists."""
        load_dotenv(dotenv_path=env_path)

        db_path = os.getenv("CLPD_DB_PATH")
        port = _optional_int("CLPD_LISTEN_PORT")

        return cls(
            db_path=Path(db_path).expanduser() if db_path else default_db_path(),
            max_entries=_optional_int("CLPD_MAX_ENTRIES"),
            poll_interval=_float("CLPD_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
            remote_url=os.getenv("CLPD_REMOTE_URL") or DEFAULT_REMOTE_URL,
            listen_host=os.getenv("CLPD_LISTEN_HOST") or DEFAULT_HOST,
            listen_port=port if port is not None else DEFAULT_PORT,
            http_timeout=_float("CLPD_HTTP_TIMEOUT", 10.0),
        )
