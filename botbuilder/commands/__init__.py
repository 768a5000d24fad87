"""Command routing for botbuilder.

Provides the CommandRouter trigger table, the CommandContext passed
to handlers, and the message splitting helper.
"""

from .base import CommandContext, CommandHandler, CommandRouter, describe_author, split_message

__all__ = [
    "CommandContext",
    "CommandHandler",
    "CommandRouter",
    "describe_author",
    "split_message",
]
