"""Prefix-based command routing.

A CommandRouter owns a mapping of trigger -> handler and a prefix.
For each inbound message it compares the first whitespace-delimited
token with ``prefix + trigger`` for every registered trigger and
calls the handler that matches.

Key classes:
    CommandContext: Routing context passed to every handler.
    CommandRouter: Trigger table plus dispatch().

Key functions:
    split_message: Split a message body into command word and args.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

import structlog

from ..events import CommandTriggeredEvent

if TYPE_CHECKING:
    from ..bot import Bot
    from ..events import EventEmitter

logger = structlog.get_logger("botbuilder.commands")

# Handler signature: (args, message, context) -> None | Awaitable[None]
CommandHandler = Callable[[List[str], Any, "CommandContext"], Any]


@dataclass(frozen=True)
class CommandContext:
    """Routing context handed to a command handler.

    ``bot`` and ``client`` are filled in by the Bot that owns the
    router; ``prefix``, ``command`` and ``trigger`` describe the
    match being dispatched.
    """

    bot: Optional["Bot"] = None
    client: Any = None
    prefix: str = ""
    command: str = ""
    trigger: str = ""


def split_message(body: Optional[str]) -> Tuple[str, List[str]]:
    """Split a message body on whitespace.

    Returns:
        (command_word, args). A body with no tokens yields ("", []).
    """
    tokens = (body or "").split()
    if not tokens:
        return "", []
    return tokens[0], tokens[1:]


def describe_author(author: Any) -> str:
    """Render an author as ``name#discriminator`` for log lines."""
    if author is None:
        return "unknown"
    name = getattr(author, "name", None) or str(author)
    discriminator = getattr(author, "discriminator", None)
    if discriminator and discriminator != "0":
        return f"{name}#{discriminator}"
    return name


class CommandRouter:
    """Maps command triggers to handlers and dispatches messages.

    Triggers are stored without the prefix. Registering a trigger
    again replaces its handler. dispatch() walks a snapshot of the
    table, so registrations made while a dispatch is suspended only
    affect later messages.

    Args:
        prefix: String prepended to every trigger.
        emitter: Optional event sink; receives a command-triggered
            event before each handler call.
    """

    def __init__(self, prefix: str = "!", emitter: Optional["EventEmitter"] = None):
        self.prefix = prefix
        self.emitter = emitter
        self._commands: Dict[str, CommandHandler] = {}

    def register(self, trigger: str, handler: CommandHandler) -> None:
        """Store ``handler`` under ``trigger``, replacing any previous one."""
        if trigger in self._commands:
            logger.debug("command_handler_replaced", trigger=trigger)
        self._commands[trigger] = handler

    add_command = register

    def unregister(self, trigger: str) -> bool:
        """Remove ``trigger``. Returns whether it was registered."""
        return self._commands.pop(trigger, None) is not None

    def get(self, trigger: str) -> Optional[CommandHandler]:
        """Look up the handler for a trigger (without prefix)."""
        return self._commands.get(trigger)

    @property
    def triggers(self) -> frozenset:
        """All registered triggers."""
        return frozenset(self._commands.keys())

    async def dispatch(
        self, message: Any, context: Optional[CommandContext] = None
    ) -> bool:
        """Route one inbound message.

        Handler exceptions are not caught here.

        Args:
            message: Object with ``content`` and ``author`` attributes.
            context: Base routing context; the match details are
                filled in per call.

        Returns:
            True if a handler was called.
        """
        command, args = split_message(getattr(message, "content", ""))
        if not command:
            return False

        matched = False
        for trigger, handler in list(self._commands.items()):
            expected = self.prefix + trigger
            if command != expected:
                continue

            author = getattr(message, "author", None)
            logger.info(
                "command_triggered",
                command=expected,
                user=describe_author(author),
                user_id=getattr(author, "id", None),
                args=args,
            )
            if self.emitter is not None:
                await self.emitter.emit(
                    CommandTriggeredEvent(command=expected, author=author)
                )

            handler_context = replace(
                context or CommandContext(),
                prefix=self.prefix,
                command=expected,
                trigger=trigger,
            )
            result = handler(list(args), message, handler_context)
            if inspect.isawaitable(result):
                await result
            matched = True
        return matched
