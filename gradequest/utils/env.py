import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def _find_project_root(start: Optional[Path] = None) -> Path:
    start = start or Path(__file__).resolve()
    current = start if start.is_dir() else start.parent
    markers = {'pyproject.toml', 'requirements.txt', '.git'}
    while True:
        if any((current / m).exists() for m in markers):
            return current
        if current.parent == current:
            return start if start.is_dir() else start.parent
        current = current.parent


def _resolve_env_filename() -> str:
    env_file = os.getenv('ENV_FILE')
    if env_file:
        return env_file

    env = (os.getenv('ENV') or os.getenv('PYTHON_ENV') or 'local').lower()
    if env in {'prod', 'production'}:
        return '.env.prod'
    return '.env.local'


def load_env(override: bool = False) -> Path:
    '''Load the environment file for the current ENV into os.environ.'''
    root = _find_project_root()
    env_path = Path(_resolve_env_filename())
    if not env_path.is_absolute():
        env_path = root / env_path

    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=override)
    else:
        fallback = root / '.env'
        if fallback.exists():
            load_dotenv(dotenv_path=fallback, override=override)

    return env_path


def env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def env_int(name: str, default: int) -> int:
    raw = env_str(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f'Ignoring non-integer {name}={raw!r}; using {default}')
        return default


def env_float(name: str, default: float) -> float:
    raw = env_str(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f'Ignoring non-numeric {name}={raw!r}; using {default}')
        return default
