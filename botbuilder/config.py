"""Configuration management for botbuilder.

Combines three layers into one settings dict, each overriding the
previous: built-in defaults, an optional settings.yaml (plus .env) in
a config directory, and the dict passed by the host program. Property
getters give typed access with defaults for the bot and logging.

Key names:
    DEFAULT_CONFIG: Built-in defaults (prefix, use_etf, name).
    merge_config: Right-biased, non-destructive dict merge.
    Config: Central configuration object owned by a Bot.
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import structlog
import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = structlog.get_logger("botbuilder.bot")

DEFAULT_CONFIG: Dict[str, Any] = {
    "prefix": "!",
    "use_etf": True,
    "name": "discord.py Bot",
}

# Alternate spellings for use_etf, checked in order before use_etf itself
_COMPACT_ENCODING_KEYS = ("use_compact_encoding", "useCompactEncoding")

CONFIG_DIR_ENV = "BOTBUILDER_CONFIG_DIR"


def merge_config(
    defaults: Mapping[str, Any], override: Optional[Mapping[str, Any]] = None
) -> Dict[str, Any]:
    """Return a new dict with ``override`` applied on top of ``defaults``.

    Top-level keys only; a key present in ``override`` replaces the
    default value wholesale. Neither input is mutated.
    """
    merged = dict(defaults)
    if override:
        merged.update(override)
    return merged


_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off", ""})


def _as_bool(value: Any) -> bool:
    """Interpret a settings value as a flag; strings like "no" are False."""
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ConfigurationError(
            f"cannot interpret {value!r} as a boolean", found=value
        )
    return bool(value)


def _validate_settings(settings: Mapping[str, Any]) -> None:
    prefix = settings.get("prefix")
    if not isinstance(prefix, str):
        raise ConfigurationError(
            "prefix must be a string",
            setting_name="prefix",
            found=type(prefix).__name__,
        )
    if not prefix:
        logger.warning(
            "empty_command_prefix",
            msg="Every trigger will match its bare name",
        )
    name = settings.get("name")
    if name is not None and not isinstance(name, str):
        raise ConfigurationError(
            "name must be a string",
            setting_name="name",
            found=type(name).__name__,
        )


class Config:
    """Settings for one bot instance.

    Args:
        values: Host-supplied settings; highest precedence.
        config_dir: Directory holding settings.yaml and .env. Falls
            back to $BOTBUILDER_CONFIG_DIR; no files are read when
            neither is set.
    """

    def __init__(
        self,
        values: Optional[Mapping[str, Any]] = None,
        config_dir: Optional[Path] = None,
    ):
        if config_dir is None and os.environ.get(CONFIG_DIR_ENV):
            config_dir = Path(os.environ[CONFIG_DIR_ENV]).expanduser()
        self.config_dir = config_dir

        file_settings: Dict[str, Any] = {}
        if config_dir is not None:
            env_file = config_dir / ".env"
            if env_file.exists():
                load_dotenv(env_file)
            file_settings = self._load_yaml("settings.yaml")

        self.settings = merge_config(
            merge_config(DEFAULT_CONFIG, file_settings), values
        )

    def _load_yaml(self, filename: str) -> dict:
        """Load a YAML configuration file."""
        filepath = self.config_dir / filename
        if not filepath.exists():
            return {}
        with open(filepath, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"{filename} must contain a mapping",
                setting_name=filename,
                found=type(data).__name__,
            )
        return data

    def update(self, values: Optional[Mapping[str, Any]] = None) -> None:
        """Merge ``values`` over the current settings.

        The merged result is validated before it replaces the current
        settings; on ConfigurationError nothing changes.
        """
        candidate = merge_config(self.settings, values)
        _validate_settings(candidate)
        self.settings = candidate

    def as_dict(self) -> Dict[str, Any]:
        """Shallow copy of the merged settings."""
        return dict(self.settings)

    def validate(self):
        """Check settings the router depends on.

        Raises:
            ConfigurationError: prefix or name is not a string.
        """
        _validate_settings(self.settings)

    @property
    def prefix(self) -> str:
        """Command prefix prepended to every trigger (default "!")."""
        return self.settings.get("prefix", DEFAULT_CONFIG["prefix"])

    @property
    def use_etf(self) -> bool:
        """Compact gateway encoding flag.

        ``use_compact_encoding`` / ``useCompactEncoding`` win over
        ``use_etf`` when present.
        """
        for key in _COMPACT_ENCODING_KEYS:
            if key in self.settings:
                return _as_bool(self.settings[key])
        return _as_bool(self.settings.get("use_etf", DEFAULT_CONFIG["use_etf"]))

    @property
    def name(self) -> str:
        """Display name, also used as the logger name."""
        return self.settings.get("name") or DEFAULT_CONFIG["name"]

    @property
    def message_content_intent(self) -> bool:
        """Request the privileged message content intent (default True)."""
        intents = self.settings.get("intents", {})
        return _as_bool(intents.get("message_content", True))

    @property
    def log_dir(self) -> Optional[Path]:
        """Log directory path; None keeps logging console-only."""
        configured = self.settings.get("log_dir")
        if configured:
            return Path(configured).expanduser()
        return None

    @property
    def logging_level(self) -> str:
        """Global log level. Env var BOTBUILDER_LOG_LEVEL takes precedence."""
        log_config = self.settings.get("logging", {})
        return os.environ.get("BOTBUILDER_LOG_LEVEL") or log_config.get("level", "INFO")

    @property
    def logging_subsystem_levels(self) -> dict:
        """Per-subsystem log level overrides. E.g. {"commands": "DEBUG"}."""
        log_config = self.settings.get("logging", {})
        return log_config.get("subsystem_levels", {})

    @property
    def logging_max_file_size_mb(self) -> int:
        """Max size per log file in MB before rotation (default 10)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("max_file_size_mb", 10)

    @property
    def logging_backup_count(self) -> int:
        """Number of rotated log files to keep (default 5)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("backup_count", 5)
