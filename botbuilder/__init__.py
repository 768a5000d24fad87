"""botbuilder: build discord.py bots with prefix commands and typed events."""

from .bot import Bot
from .commands import CommandContext, CommandRouter
from .config import DEFAULT_CONFIG, Config, merge_config
from .events import (
    BotEvent,
    CloseEvent,
    CommandTriggeredEvent,
    ErrorEvent,
    EventEmitter,
    EventKind,
    ReadyEvent,
    ReconnectedEvent,
    ReconnectingEvent,
    Subscription,
)

__version__ = "0.1.0"

__all__ = [
    "Bot",
    "BotEvent",
    "CloseEvent",
    "CommandContext",
    "CommandRouter",
    "CommandTriggeredEvent",
    "Config",
    "DEFAULT_CONFIG",
    "ErrorEvent",
    "EventEmitter",
    "EventKind",
    "ReadyEvent",
    "ReconnectedEvent",
    "ReconnectingEvent",
    "Subscription",
    "merge_config",
]
