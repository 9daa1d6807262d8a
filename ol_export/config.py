import os
import tempfile
from dotenv import load_dotenv

from .exceptions import ConfigurationError

# Load environment variables from .env file
load_dotenv()

# Integer settings and their defaults, checked by validate_config()
INT_SETTINGS = {
    "OL_EXPORT_INDEX_BATCH_SIZE": 10000,
    "OL_EXPORT_FIELD_SIZE_LIMIT": 64 * 1024 * 1024,
    "OL_EXPORT_PROGRESS_INTERVAL": 1000000,
    "OL_EXPORT_OUTPUT_BUFFER_SIZE": 1024 * 1024,
    "OL_EXPORT_METRICS_PORT": 0,
}


def env_int(name: str, default: int) -> int:
    """
    Read a non-negative integer setting from the environment.

    Raises:
        ConfigurationError: If the variable is set to anything else
    """
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got {value}")
    return value


def validate_config() -> None:
    """Raise ConfigurationError for the first invalid integer setting."""
    for name, default in INT_SETTINGS.items():
        env_int(name, default)


def _setting(name: str) -> int:
    default = INT_SETTINGS[name]
    try:
        return env_int(name, default)
    except ConfigurationError:
        # Reported by validate_config() when the CLI starts
        return default


# Temporary index location (a private directory is created under it per run)
INDEX_DIR = os.getenv("OL_EXPORT_INDEX_DIR", tempfile.gettempdir())
INDEX_BATCH_SIZE = _setting("OL_EXPORT_INDEX_BATCH_SIZE")

# Dump reading
FIELD_SIZE_LIMIT = _setting("OL_EXPORT_FIELD_SIZE_LIMIT")
PROGRESS_INTERVAL = _setting("OL_EXPORT_PROGRESS_INTERVAL")

# Output stream
OUTPUT_BUFFER_SIZE = _setting("OL_EXPORT_OUTPUT_BUFFER_SIZE")

# Logging and metrics
LOG_LEVEL = os.getenv("OL_EXPORT_LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("OL_EXPORT_LOG_FILE") or None
METRICS_PORT = _setting("OL_EXPORT_METRICS_PORT")
