import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_HOST = "http://localhost:8080/v1"
DEFAULT_TIMEOUT = 15.0


def load_env(env_path: Optional[Path] = None) -> None:
    """Load .env from the working directory if present.
    Variables already set in the environment are kept.
    """
    env_path = env_path or Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def env_host() -> str:
    return os.getenv("DKRON_HOST") or DEFAULT_HOST


def env_timeout() -> float:
    raw = os.getenv("DKRON_TIMEOUT")
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"DKRON_TIMEOUT must be a number of seconds, got {raw!r}")
