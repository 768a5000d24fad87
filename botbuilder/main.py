"""Command-line entry point for botbuilder.

Runs an example bot with the ``;`` prefix and a single ``dank``
command that replies "memes". Logging is set up in two phases:
defaults first, then from the bot's config.

Key functions:
    main: Parses argv, builds the bot, and runs it; returns the exit code.
    run: Console-script wrapper that exits with main()'s status.
"""

import os
import sys

import structlog

from .bot import Bot
from .events import EventKind
from .exceptions import UsageError
from .logging_config import setup_logging

USAGE = "Usage: {prog} <token>"
DEFAULT_PROG = "botbuilder"


def program_name(argv) -> str:
    """Short program name for the usage line."""
    if not argv or not argv[0]:
        return DEFAULT_PROG
    prog = os.path.basename(argv[0])
    # python -m botbuilder runs with argv[0] pointing at __main__.py
    if prog == "__main__.py":
        return DEFAULT_PROG
    return prog


def parse_args(argv) -> str:
    """Return the token from argv.

    Raises:
        UsageError: no token argument was given.
    """
    if len(argv) < 2:
        raise UsageError(
            "missing token argument",
            usage=USAGE.format(prog=program_name(argv)),
        )
    return argv[1]


def build_bot(token: str):
    """Create the example bot with its listeners and commands."""
    bot = Bot(token, {"prefix": ";"})

    def on_ready(event):
        user = getattr(event.client, "user", None)
        print("Bot is running:")
        print(f"User: {user}")
        print(f"Prefix: {event.config['prefix']}")
        print("-" * 52)

    def on_command(event):
        name = getattr(event.author, "name", event.author)
        print(f"Command triggered: {event.command} by {name}")

    async def dank(args, message, context):
        await message.reply("memes")

    bot.on(EventKind.READY, on_ready)
    bot.on(EventKind.COMMAND_TRIGGERED, on_command)
    bot.add_command("dank", dank)
    return bot


def main(argv=None) -> int:
    """Run the example bot.

    Returns:
        Process exit status: 1 on a usage error, else 0.
    """
    argv = list(sys.argv if argv is None else argv)
    try:
        token = parse_args(argv)
    except UsageError as e:
        print(e.usage)
        return e.exit_code

    # Phase 1: defaults, cache_logger_on_first_use=False
    setup_logging()
    logger = structlog.get_logger("botbuilder")
    logger.info("botbuilder_starting")

    bot = build_bot(token)

    # Phase 2: reconfigure with the bot's config
    setup_logging(bot.config)

    bot.run()
    logger.info("botbuilder_stopped")
    return 0


def run():
    """Synchronous entry point for the ``botbuilder`` console script."""
    sys.exit(main())


if __name__ == "__main__":
    run()
