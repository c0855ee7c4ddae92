"""
Runtime configuration resolved from the environment.

The CLI lets ``--data-file`` win over ``AGILETM_DATA_FILE``; both fall back to
``agile_data.json`` in the current working directory.
"""
import os
from pathlib import Path
from typing import Optional, Union

DATA_FILE_ENV = "AGILETM_DATA_FILE"
LOG_DIR_ENV = "AGILETM_LOG_DIR"

DEFAULT_DATA_FILENAME = "agile_data.json"
DEFAULT_LOG_DIR = Path.home() / ".local" / "share" / "agiletm" / "logs"


def get_data_file(override: Optional[Union[str, Path]] = None) -> Path:
    """Resolve the path of the persisted tracker document."""
    if override:
        return Path(override)
    env_path = os.getenv(DATA_FILE_ENV)
    if env_path:
        return Path(env_path)
    return Path.cwd() / DEFAULT_DATA_FILENAME

def get_log_dir() -> Path:
    env_dir = os.getenv(LOG_DIR_ENV)
    if env_dir:
        return Path(env_dir)
    return DEFAULT_LOG_DIR
