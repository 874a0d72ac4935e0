"""
Cross-Platform Path Management Module

Resolves where the intelligence service keeps its runtime files
(SQLite cache, rotating logs) and where it reads the static
reference datasets from.

Uses platformdirs for Windows/macOS/Linux user directories when the
service runs as a frozen build; a development checkout keeps
everything under the project root.

- Cache:  data/ (dev) or the user cache dir
- Logs:   logs/ (dev) or the user log dir
- Static: data/static/ unless STATIC_DATA_DIR is set
"""

import os
import sys
from pathlib import Path
from typing import Optional

import platformdirs

APP_NAME = "SafeIntel"
APP_AUTHOR = "SafeIntel"


def is_frozen() -> bool:
    """Check if running as a PyInstaller frozen executable."""
    return getattr(sys, 'frozen', False)


def get_runtime_root() -> Path:
    """
    Get the runtime root directory.

    For frozen builds: directory containing the executable
    For development: project root directory
    """
    if is_frozen():
        return Path(sys.executable).parent
    return Path(__file__).parent.parent


def get_cache_dir() -> Path:
    """
    Get the cache directory (SQLite intelligence cache).

    Windows: %LOCALAPPDATA%/SafeIntel
    macOS: ~/Library/Caches/SafeIntel
    Linux: ~/.cache/SafeIntel
    """
    override = os.environ.get("SAFEINTEL_CACHE_DIR")
    if override:
        return Path(override)
    if is_frozen():
        return Path(platformdirs.user_cache_dir(APP_NAME, APP_AUTHOR))
    return get_runtime_root() / 'data'


def get_logs_dir() -> Path:
    """
    Get the logs directory.

    Windows: %LOCALAPPDATA%/SafeIntel/logs
    macOS: ~/Library/Logs/SafeIntel
    Linux: ~/.local/state/SafeIntel/log
    """
    override = os.environ.get("SAFEINTEL_LOG_DIR")
    if override:
        return Path(override)
    if is_frozen():
        return Path(platformdirs.user_log_dir(APP_NAME, APP_AUTHOR))
    return get_runtime_root() / 'logs'


def get_static_data_dir() -> Path:
    """Directory holding the read-only state/LGA/road datasets."""
    override = os.environ.get("STATIC_DATA_DIR")
    if override:
        return Path(override)
    return get_runtime_root() / 'data' / 'static'


def get_env_file() -> Optional[Path]:
    """Get the .env file path next to the executable or project root."""
    env_path = get_runtime_root() / '.env'
    if env_path.exists():
        return env_path
    return None


def ensure_dirs_exist() -> None:
    """Create the cache and logs directories if missing."""
    for dir_path in (get_cache_dir(), get_logs_dir()):
        try:
            dir_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            print(f"Warning: Could not create directory {dir_path}: {e}")


def get_intel_cache_db() -> Path:
    """Get the path to the live intelligence cache database."""
    return get_cache_dir() / 'live_intel_cache.db'


def get_runtime_log_file() -> Path:
    """Get the path to the runtime log file."""
    return get_logs_dir() / 'safeintel.log'
