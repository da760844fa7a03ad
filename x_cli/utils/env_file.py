from pathlib import Path
from typing import Dict, Union

from dotenv import set_key

from .logger import get_logger

logger = get_logger(__name__)


def upsert_env_vars(env_file: Union[str, Path], values: Dict[str, str]) -> Path:
    """
    Write or replace KEY=value lines in a .env file, keeping everything else.

    Args:
        env_file: Path of the .env file (created if missing)
        values: Variables to set

    Returns:
        Path of the written file
    """
    path = Path(env_file)
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch(mode=0o600)
    for key, value in values.items():
        set_key(str(path), key, value, quote_mode="never")
        logger.debug(f"Updated {key} in {path}")
    return path

