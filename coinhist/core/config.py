"""Configuration module for loading project settings and environment variables."""

import os
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from coinhist.core.exceptions import ConfigError

# Load environment variables from .env file
load_dotenv()

# CoinMarketCap history starts on this day.
DEFAULT_START_DATE = "20130428"

DEFAULTS: Dict[str, Any] = {
    "entity_filter": None,
    "limit": None,
    "concurrency": None,
    "start_date": None,
    "end_date": None,
    "locale": "en",
    "request_timeout": 30,
    "user_agent": "coinhist/0.1",
    "log_level": "INFO",
}

# Environment variable → config key. Env values win over the YAML file.
_ENV_OVERRIDES = {
    "COINHIST_LIMIT": "limit",
    "COINHIST_CONCURRENCY": "concurrency",
    "COINHIST_START_DATE": "start_date",
    "COINHIST_END_DATE": "end_date",
    "COINHIST_LOG_LEVEL": "log_level",
}


def load_config(config_path: str | Path = "config.yaml") -> Dict[str, Any]:
    """
    Load configuration from the specified YAML file.

    Args:
        config_path (str | Path): Path to the configuration file. Defaults to "config.yaml".

    Returns:
        Dict[str, Any]: A dictionary containing the configuration settings,
        with ``COINHIST_*`` environment overrides applied.
    """
    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found at {config_path}")

    with open(config_file, "r", encoding="utf-8") as file:
        config_data = yaml.safe_load(file)

    if not config_data:
        raise ValueError(f"Configuration file {config_path} is empty or invalid.")

    return apply_env_overrides(config_data)


def apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``config`` with any ``COINHIST_*`` variables applied."""
    merged = dict(config)
    for env_name, key in _ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value not in (None, ""):
            merged[key] = value
    return merged


def parse_yyyymmdd(value: Any, option: str) -> str:
    """Validate a ``yyyymmdd`` date option and return it as a string.

    Raises:
        ConfigError: If the value is not a real calendar date in that format.
    """
    text = str(value).strip()
    try:
        datetime.strptime(text, "%Y%m%d")
    except ValueError as exc:
        raise ConfigError(f"{option} must be a yyyymmdd date, got {value!r}") from exc
    if len(text) != 8:
        raise ConfigError(f"{option} must be a yyyymmdd date, got {value!r}")
    return text


def positive_int(value: Any, option: str) -> Optional[int]:
    """Coerce an optional positive-integer option. ``None`` passes through.

    Raises:
        ConfigError: If the value is not an integer >= 1.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigError(f"{option} must be a positive integer, got {value!r}")
    try:
        number = int(str(value).strip())
    except ValueError as exc:
        raise ConfigError(f"{option} must be a positive integer, got {value!r}") from exc
    if number < 1:
        raise ConfigError(f"{option} must be a positive integer, got {value!r}")
    return number


def resolve_options(config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Fill defaults and validate the recognised pipeline options.

    Args:
        config: Parsed config dict (may be ``None`` or partial).

    Returns:
        Dict[str, Any]: Options with every key of :data:`DEFAULTS` present.
        ``start_date`` defaults to :data:`DEFAULT_START_DATE` and ``end_date``
        to today.

    Raises:
        ConfigError: On any invalid option.
    """
    options = dict(DEFAULTS)
    options.update({k: v for k, v in (config or {}).items() if v is not None})

    entity_filter = options["entity_filter"]
    if isinstance(entity_filter, str):
        entity_filter = entity_filter.strip()
        if entity_filter.lower() in ("", "all"):
            entity_filter = None
    elif isinstance(entity_filter, (list, tuple, set)):
        entity_filter = [str(term) for term in entity_filter]
    elif entity_filter is not None:
        raise ConfigError(f"entity_filter must be a name, a list of names or 'all', got {entity_filter!r}")
    options["entity_filter"] = entity_filter

    options["limit"] = positive_int(options["limit"], "limit")
    options["concurrency"] = positive_int(options["concurrency"], "concurrency")
    options["request_timeout"] = positive_int(options["request_timeout"], "request_timeout")

    options["start_date"] = parse_yyyymmdd(options["start_date"] or DEFAULT_START_DATE, "start_date")
    options["end_date"] = parse_yyyymmdd(
        options["end_date"] or date.today().strftime("%Y%m%d"), "end_date"
    )
    if options["start_date"] > options["end_date"]:
        raise ConfigError(
            f"start_date {options['start_date']} is after end_date {options['end_date']}"
        )

    options["locale"] = str(options["locale"]).lower()
    return options
