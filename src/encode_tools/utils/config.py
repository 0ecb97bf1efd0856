"""Configuration file management.

Config is stored in TOML format at:
- macOS/Linux: ~/.config/encode-tools/config.toml
- Windows: %APPDATA%\\encode-tools\\config.toml

The [native] table holds the native-preferring option bag and [fallback]
the bag used when a native module is missing:

    [native]
    hash_algorithm = "xxhash3"
    image_format = "webp"

    [fallback]
    hash_algorithm = "sha512"
    image_format = "png"

Usage:
    config = load_config()
    level = get_value(config, "native.compression_level", 3)
"""

import logging
import platform
from pathlib import Path
from typing import Any

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # type: ignore

import tomli_w

from ..constants import APP_NAME
from ..exceptions import ConfigError

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Get platform-appropriate config directory."""
    if platform.system() == "Windows":
        base = Path.home() / "AppData" / "Roaming"
    else:
        base = Path.home() / ".config"
    return base / APP_NAME


def get_config_path() -> Path:
    """Get path to config file."""
    return get_config_dir() / "config.toml"


DEFAULT_CONFIG = {
    "native": {},
    "fallback": {},
}


def load_config(path: Path | None = None) -> dict:
    """Load configuration from file.

    Creates default config if file doesn't exist.

    Args:
        path: Config file. Defaults to get_config_path()

    Returns:
        Dict with configuration values

    Raises:
        ConfigError: If config file is malformed
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        logger.debug(f"No config at {config_path}, writing defaults")
        save_config(DEFAULT_CONFIG, config_path)
        return {key: dict(value) for key, value in DEFAULT_CONFIG.items()}

    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        raise ConfigError(f"Failed to load config: {e}")


def save_config(config: dict, path: Path | None = None) -> None:
    """Save configuration to file.

    Args:
        config: Dict with configuration values
        path: Config file. Defaults to get_config_path()
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "wb") as f:
        tomli_w.dump(config, f)


def load_option_bags(path: Path | None = None) -> tuple[dict, dict]:
    """Read the [native] and [fallback] option bags.

    Returns:
        (native, fallback) dicts, empty when a table is absent

    Raises:
        ConfigError: If a table is not a TOML table
    """
    config = load_config(path)
    bags = []
    for table in ("native", "fallback"):
        bag = get_value(config, table, {})
        if not isinstance(bag, dict):
            raise ConfigError(f"[{table}] must be a table, got {type(bag).__name__}")
        bags.append(bag)
    return bags[0], bags[1]


def get_value(config: dict, key: str, default: Any = None) -> Any:
    """Get a nested config value using dot notation.

    Args:
        config: Config dict
        key: Dot-separated key (e.g., "native.hash_algorithm")
        default: Default value if key not found

    Returns:
        Config value or default

    Example:
        >>> config = {"native": {"hash_algorithm": "xxhash3"}}
        >>> get_value(config, "native.hash_algorithm")
        'xxhash3'
    """
    parts = key.split(".")
    current = config

    for part in parts:
        if isinstance(current, dict) and part in current:
            current = current[part]
        else:
            return default

    return current


def set_value(config: dict, key: str, value: Any) -> None:
    """Set a nested config value using dot notation.

    Args:
        config: Config dict (modified in place)
        key: Dot-separated key
        value: Value to set

    Example:
        >>> config = {}
        >>> set_value(config, "fallback.hash_algorithm", "sha512")
        >>> config
        {'fallback': {'hash_algorithm': 'sha512'}}
    """
    parts = key.split(".")
    current = config

    for part in parts[:-1]:
        if part not in current:
            current[part] = {}
        current = current[part]

    current[parts[-1]] = value
