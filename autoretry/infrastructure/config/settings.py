"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a YAML
configuration file (~/.autoretry/config.yaml), and builds a RetryPolicy
from the `retry.*` keys.
"""

import logging
import math
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from autoretry.domain.exceptions import ConfigurationError
from autoretry.domain.models.policy import RetryPolicy

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".autoretry"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "AUTORETRY_"

UNBOUNDED_VALUES = ("inf", "infinity", "unbounded", "none")
TRUE_VALUES = ("true", "yes", "on", "1")
FALSE_VALUES = ("false", "no", "off", "0")

# config key -> RetryPolicy field
POLICY_KEYS = {
    "retry.max_delay_seconds": "max_delay_seconds",
    "retry.max_retry_attempts": "max_retry_attempts",
    "retry.retry_server_errors": "retry_server_errors",
    "retry.retry_transport_errors": "retry_transport_errors",
    "retry.initial_backoff_seconds": "initial_backoff_seconds",
    "retry.max_backoff_seconds": "max_backoff_seconds",
    "retry.backoff_factor": "backoff_factor",
}

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


def load_configuration(config_file: Optional[Path] = None, env_file: Optional[Path] = None) -> None:
    """Loads configuration from a YAML file and a .env file.

    Priority order (highest to lowest):
    1. Test overrides
    2. Environment Variables
    3. .env file (never overrides variables already set)
    4. YAML configuration file

    Args:
        config_file: Path to the YAML configuration file (DEFAULT_CONFIG_FILE if None).
        env_file: Path to the .env file (searches upwards from cwd if None).

    Raises:
        ConfigurationError: If the YAML file cannot be parsed or is not a mapping.
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}
    config_file = config_file or DEFAULT_CONFIG_FILE

    if config_file.exists():
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(str(config_file), None, f"invalid YAML: {e}") from e
        if isinstance(yaml_config, dict):
            _config.update(_flatten(yaml_config))
            logger.info(f"Loaded configuration from YAML: {config_file}")
        elif yaml_config is not None:
            raise ConfigurationError(str(config_file), yaml_config, "top level must be a mapping")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("Skipping .env file loading (not found).")

    _loaded = True
    logger.debug("Configuration loading process completed.")


def reset_configuration() -> None:
    """Forgets loaded configuration so the next load_configuration() reads again."""
    global _config, _loaded
    _config = {}
    _loaded = False


def _flatten(mapping: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Turns {'retry': {'max_delay_seconds': 5}} into {'retry.max_delay_seconds': 5}."""
    flat: Dict[str, Any] = {}
    for key, value in mapping.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, prefix=f"{full_key}."))
        else:
            flat[full_key] = value
    return flat


def env_var_name(key: str) -> str:
    """'retry.max_delay_seconds' -> 'AUTORETRY_RETRY_MAX_DELAY_SECONDS'."""
    return f"{ENV_PREFIX}{key.upper().replace('.', '_')}"


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable (AUTORETRY_ prefixed, dots become underscores)
    3. YAML config
    4. Default value

    Args:
        key: The configuration key, e.g. 'retry.max_delay_seconds'
        default: Default value if the key is not found

    Returns:
        The configuration value. Environment values are returned as strings.
    """
    if key in _test_config:
        return _test_config[key]

    env_key = env_var_name(key)
    if env_key in os.environ:
        return os.environ[env_key]

    if key in _config:
        return _config[key]

    return default


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


# --- Value Coercion ---

def parse_limit(key: str, value: Any) -> float:
    """Parses a non-negative number where 'inf'/'unbounded' means no threshold."""
    if isinstance(value, bool):
        raise ConfigurationError(key, value, "expected a number")
    if isinstance(value, str):
        text = value.strip().lower()
        if text in UNBOUNDED_VALUES:
            return math.inf
        try:
            value = float(text)
        except ValueError:
            raise ConfigurationError(key, value, "expected a number or 'inf'") from None
    if value is None:
        return math.inf
    if not isinstance(value, (int, float)) or math.isnan(value) or value < 0:
        raise ConfigurationError(key, value, "expected a non-negative number")
    return value


def parse_attempt_limit(key: str, value: Any) -> float:
    """Like parse_limit, but finite values must be whole numbers."""
    limit = parse_limit(key, value)
    if math.isinf(limit):
        return limit
    if not float(limit).is_integer():
        raise ConfigurationError(key, value, "expected a whole number or 'inf'")
    return int(limit)


def _as_positive_float(key: str, value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(key, value, "expected a number") from None
    if isinstance(value, bool) or not math.isfinite(number) or number <= 0:
        raise ConfigurationError(key, value, "expected a positive number")
    return number


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ConfigurationError(key, value, "expected true or false")


_COERCERS = {
    "max_delay_seconds": parse_limit,
    "max_retry_attempts": parse_attempt_limit,
    "retry_server_errors": _as_bool,
    "retry_transport_errors": _as_bool,
    "initial_backoff_seconds": _as_positive_float,
    "max_backoff_seconds": _as_positive_float,
    "backoff_factor": _as_positive_float,
}


def load_retry_policy(**overrides: Any) -> RetryPolicy:
    """Builds a RetryPolicy from configuration.

    Keys that are not configured keep the RetryPolicy defaults. Keyword
    overrides win over configuration and are passed through unchanged
    (None values are ignored).

    Raises:
        ConfigurationError: If a configured value is malformed or rejected
            by RetryPolicy.
    """
    fields: Dict[str, Any] = {}
    for key, field_name in POLICY_KEYS.items():
        value = get_config(key)
        if value is not None:
            fields[field_name] = _COERCERS[field_name](key, value)
    fields.update({name: value for name, value in overrides.items() if value is not None})
    try:
        policy = RetryPolicy(**fields)
    except ValueError as e:
        raise ConfigurationError("retry", fields, str(e)) from e
    logger.debug(f"Loaded retry policy: {policy}")
    return policy


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
