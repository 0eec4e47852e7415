"""Constants used in the project."""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    RESOLUTION_FAILED = 3


class OutputFormats(Enum):
    """Output formats supported by the CLI."""

    TEXT = "text"
    JSON = "json"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_HEX = "https://hex.pm/api/"
    REPOSITORY_NAME_HEX = "hexpm"
    ROOT_PACKAGE_NAME = "app"
    USER_AGENT = "hexsolve"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    HTTP_CACHE_TTL_SEC = 300
    CONFIG_FILE_NAMES = ("hexsolve.yml", "hexsolve.yaml")


def _config_candidates() -> list:
    """Config file locations in lookup order."""
    candidates = []
    explicit = os.environ.get("HEXSOLVE_CONFIG")
    if explicit:
        candidates.append(explicit)
    candidates.extend(os.path.join(os.getcwd(), name) for name in Constants.CONFIG_FILE_NAMES)
    xdg = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    candidates.append(os.path.join(xdg, "hexsolve", "hexsolve.yml"))
    return candidates


def _load_yaml_config() -> Optional[Dict[str, Any]]:
    """Return the first readable YAML config mapping, or None."""
    for path in _config_candidates():
        if not os.path.isfile(path):
            continue
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Ignoring unreadable config file %s: %s", path, exc)
            continue
        if isinstance(data, dict):
            return data
        logger.warning("Ignoring config file %s: top level is not a mapping", path)
    return None


def _apply_config(cfg: Dict[str, Any]) -> None:
    """Copy known config keys onto Constants, skipping values of the wrong type."""
    sections = {
        "registry": {"url": ("REGISTRY_URL_HEX", str)},
        "http": {
            "request_timeout": ("REQUEST_TIMEOUT", (int, float)),
            "retry_max": ("HTTP_RETRY_MAX", int),
            "retry_base_delay_sec": ("HTTP_RETRY_BASE_DELAY_SEC", (int, float)),
            "cache_ttl_sec": ("HTTP_CACHE_TTL_SEC", (int, float)),
        },
        "resolution": {"root_package": ("ROOT_PACKAGE_NAME", str)},
    }
    for section, keys in sections.items():
        values = cfg.get(section)
        if not isinstance(values, dict):
            continue
        for key, (attribute, expected) in keys.items():
            value = values.get(key)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, expected):
                logger.warning("Ignoring config %s.%s: unexpected value %r", section, key, value)
                continue
            setattr(Constants, attribute, value)


def _apply_env_overrides() -> None:
    url = os.environ.get("HEXSOLVE_REGISTRY_URL")
    if url and url.strip():
        Constants.REGISTRY_URL_HEX = url.strip()


def load_config() -> None:
    """Apply YAML config and environment overrides to Constants."""
    cfg = _load_yaml_config()
    if cfg:
        _apply_config(cfg)
    _apply_env_overrides()


load_config()
