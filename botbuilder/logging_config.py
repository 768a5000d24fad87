"""Logging configuration for botbuilder.

Routes structlog events and discord.py's stdlib records through one
set of handlers, scrubs bot tokens, and splits output into
per-subsystem files.

Stdlib logger → file (only when log_dir is set):
    botbuilder.bot      → bot.log
    botbuilder.commands → commands.log
    botbuilder.events   → events.log
    discord             → gateway.log

All of them also propagate to the root console handler.
"""

import logging
import logging.handlers
import re
import sys
from typing import Any, Dict

import structlog

LOGGER_PREFIX = "botbuilder"

# Subsystem (log file stem) → stdlib logger name
SUBSYSTEMS = {
    "bot": f"{LOGGER_PREFIX}.bot",
    "commands": f"{LOGGER_PREFIX}.commands",
    "events": f"{LOGGER_PREFIX}.events",
    "gateway": "discord",
}

# ---------------------------------------------------------------------------
# Token scrubbing
# ---------------------------------------------------------------------------

_SECRET_PATTERNS = [
    # Authorization header values ("Bot <token>")
    re.compile(r"Bot\s+[A-Za-z0-9_.-]{50,}"),
    # Discord bot tokens: base64 user id . timestamp . hmac
    re.compile(r"[A-Za-z0-9_-]{23,28}\.[A-Za-z0-9_-]{6,7}\.[A-Za-z0-9_-]{27,}"),
]

_REDACTED = "***REDACTED***"


def _scrub_value(value: str) -> str:
    """Scrub tokens from a single string value."""
    for pattern in _SECRET_PATTERNS:
        value = pattern.sub(_REDACTED, value)
    return value


def sanitize_secrets(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """structlog processor that scrubs bot tokens from log events.

    Walks string values (including those nested one level in lists,
    tuples and dicts) and replaces token-shaped text with a
    placeholder.
    """
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = _scrub_value(value)
        elif isinstance(value, (list, tuple)):
            event_dict[key] = type(value)(
                _scrub_value(v) if isinstance(v, str) else v
                for v in value
            )
        elif isinstance(value, dict):
            event_dict[key] = {
                k: _scrub_value(v) if isinstance(v, str) else v
                for k, v in value.items()
            }
    return event_dict


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

# Processors applied to every record, whether it came from structlog or
# from a plain stdlib logger such as discord.py's.
_SHARED_PROCESSORS = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    sanitize_secrets,
]


def _formatter(colors: bool) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(colors=colors),
        ],
    )


def _level(name: str, default: int) -> int:
    return getattr(logging, name.upper(), default) if name else default


def setup_logging(config=None) -> None:
    """Route structlog and discord.py logging to the console and log files.

    Every record reaches the console through the root logger. When the
    config names a log directory, each entry of SUBSYSTEMS also gets
    a RotatingFileHandler on its stdlib logger, so gateway traffic
    from discord.py lands in gateway.log next to the bot's own files.

    Args:
        config: Optional Config instance. Call once without it at
            startup, then again with the bot's config, which also
            turns on structlog's logger cache.
    """
    level = logging.INFO
    subsystem_levels: Dict[str, str] = {}
    log_dir = None
    if config is not None:
        level = _level(config.logging_level, logging.INFO)
        subsystem_levels = config.logging_subsystem_levels
        log_dir = config.log_dir

    if log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            print(
                f"WARNING: Cannot create log directory {log_dir}: {exc}. "
                "Falling back to console-only logging.",
                file=sys.stderr,
            )
            log_dir = None

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Handlers filter by level
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(_formatter(colors=sys.stdout.isatty()))
    root_logger.addHandler(console_handler)

    file_formatter = _formatter(colors=False)
    for subsystem, logger_name in SUBSYSTEMS.items():
        sub_logger = logging.getLogger(logger_name)
        sub_level = _level(subsystem_levels.get(subsystem, ""), level)
        sub_logger.setLevel(sub_level)
        for handler in sub_logger.handlers[:]:
            sub_logger.removeHandler(handler)
            handler.close()
        if log_dir is None:
            continue
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / f"{subsystem}.log",
            maxBytes=config.logging_max_file_size_mb * 1024 * 1024,
            backupCount=config.logging_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(sub_level)
        file_handler.setFormatter(file_formatter)
        sub_logger.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            *_SHARED_PROCESSORS,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=config is not None,
    )
