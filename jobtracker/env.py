import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .storage import DEFAULT_SLOT_KEY

BACKENDS = ("json", "sqlite")
DEFAULT_STORES = {
    "json": "data/jobs.json",
    "sqlite": "data/jobs.db",
}


def load_env() -> None:
    """Load .env from the working directory if present."""
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path)


def get_settings(
    store: Optional[str] = None,
    backend: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Resolve runtime settings from the environment.

    Explicit arguments (CLI flags) win over JOBTRACKER_* variables.
    """
    backend = (backend or os.getenv("JOBTRACKER_BACKEND") or "json").lower()
    if backend not in BACKENDS:
        raise ValueError(f"Unsupported backend '{backend}'. Use one of: {', '.join(BACKENDS)}")
    return {
        "backend": backend,
        "store": store or os.getenv("JOBTRACKER_STORE") or DEFAULT_STORES[backend],
        "slot_key": os.getenv("JOBTRACKER_SLOT_KEY") or DEFAULT_SLOT_KEY,
        "log_level": (os.getenv("JOBTRACKER_LOG_LEVEL") or "INFO").upper(),
        "log_dir": os.getenv("JOBTRACKER_LOG_DIR") or "logs",
    }
