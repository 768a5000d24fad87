"""Discord bot wrapper for botbuilder.

Wraps a discord.py Client: merges the host's config with defaults,
re-emits the client's lifecycle callbacks as botbuilder events, and
routes every inbound message through a CommandRouter.

Client callback → emitted event:
    on_ready       → ready (config, client, bot)
    on_message     → command-triggered, via CommandRouter.dispatch
    on_disconnect  → reconnecting
    on_resumed     → reconnected
    on_error       → error
    start() exits  → close (code, reason)

Key classes:
    Bot: Owns the client, config, router and event emitter.
"""

import asyncio
import signal
import sys
from typing import Any, Mapping, Optional, Union

import aiohttp
import discord
import structlog

from .commands import CommandContext, CommandHandler, CommandRouter
from .config import Config
from .events import (
    CloseEvent,
    ErrorEvent,
    EventEmitter,
    EventKind,
    Listener,
    ReadyEvent,
    ReconnectedEvent,
    ReconnectingEvent,
    Subscription,
)
from .exceptions import ErrorCategory, TransportError

logger = structlog.get_logger("botbuilder.bot")

NORMAL_CLOSE_CODE = 1000


class Bot:
    """Convenience wrapper that builds and drives a discord.py client.

    Args:
        token: Bot authentication token.
        config: Host settings merged over the defaults, or a ready
            Config instance.
        client: Pre-built client; one is created from config when
            omitted.
        emitter: Event sink shared with the router.
        router: Pre-built CommandRouter; its prefix and emitter are
            replaced with this bot's.
        log: Bound structlog logger; defaults to one bound to the
            configured bot name.
    """

    def __init__(
        self,
        token: str,
        config: Union[Config, Mapping[str, Any], None] = None,
        *,
        client: Optional[discord.Client] = None,
        emitter: Optional[EventEmitter] = None,
        router: Optional[CommandRouter] = None,
        log: Any = None,
    ):
        self.token = token
        self._config = config if isinstance(config, Config) else Config(config)
        self._config.validate()
        self.log = log or logger.bind(bot=self._config.name)

        self.emitter = emitter or EventEmitter()
        if router is None:
            router = CommandRouter()
        router.prefix = self._config.prefix
        router.emitter = self.emitter
        self.router = router

        if client is None:
            intents = discord.Intents.default()
            intents.message_content = self._config.message_content_intent
            client = discord.Client(intents=intents)
        self.client = client
        self.running = False

        self.log.info("running_with_config", config=self._config.as_dict())

        # discord.py looks these up by name when dispatching gateway events
        self.client.on_ready = self._on_ready
        self.client.on_message = self._on_message
        self.client.on_disconnect = self._on_disconnect
        self.client.on_resumed = self._on_resumed
        self.client.on_error = self._on_error

    # --- public API ---

    @property
    def config(self) -> Config:
        return self._config

    def add_command(self, trigger: str, handler: CommandHandler) -> None:
        """Register ``handler`` for messages starting with prefix + trigger."""
        self.router.register(trigger, handler)

    def on(self, kind: Union[EventKind, str], listener: Listener) -> Subscription:
        """Subscribe to a bot event."""
        return self.emitter.on(kind, listener)

    def once(self, kind: Union[EventKind, str], listener: Listener) -> Subscription:
        """Subscribe to the next occurrence of a bot event."""
        return self.emitter.once(kind, listener)

    def update_config(self, values: Optional[Mapping[str, Any]] = None) -> None:
        """Merge ``values`` into the config and apply the new prefix.

        Raises:
            ConfigurationError: the merged config is invalid; neither
                the config nor the router changes.
        """
        self._config.update(values)
        self.router.prefix = self._config.prefix
        self.log.info("config_updated", keys=sorted((values or {}).keys()))

    def get_logger(self):
        """Return the bot's bound logger."""
        return self.log

    # --- client callbacks ---

    async def _on_ready(self):
        user = self.client.user
        self.log.info(
            "bot_ready",
            user=str(user) if user is not None else None,
            prefix=self._config.prefix,
        )
        await self.emitter.emit(
            ReadyEvent(config=self._config.as_dict(), client=self.client, bot=self)
        )

    async def _on_message(self, message):
        user = self.client.user
        if user is not None and getattr(message.author, "id", None) == user.id:
            return
        await self.router.dispatch(
            message, CommandContext(bot=self, client=self.client)
        )

    async def _on_disconnect(self):
        self.log.warning("websocket_reconnecting")
        await self.emitter.emit(ReconnectingEvent())

    async def _on_resumed(self):
        self.log.warning("websocket_reconnected")
        await self.emitter.emit(ReconnectedEvent())

    async def _on_error(self, event_method, *args, **kwargs):
        error = sys.exc_info()[1]
        self.log.error(
            "event_callback_error",
            event_method=event_method,
            error=str(error),
            exc_info=error,
        )
        await self.emitter.emit(ErrorEvent(error=error))

    # --- lifecycle ---

    async def _surface_transport_error(self, exc: BaseException, code=None):
        category = ErrorCategory.TRANSIENT
        if isinstance(exc, (discord.LoginFailure, discord.PrivilegedIntentsRequired)):
            category = ErrorCategory.PERMANENT
        error = TransportError(
            str(exc) or type(exc).__name__,
            code=code,
            category=category,
            cause=type(exc).__name__,
        )
        error.__cause__ = exc
        self.log.error(
            "websocket_error",
            error=str(exc),
            error_type=type(exc).__name__,
            category=category.value,
        )
        await self.emitter.emit(ErrorEvent(error=error))

    async def start(self):
        """Log in and process gateway events until the client closes.

        Transport failures are reported through the ``error`` event
        rather than raised. A ``close`` event is emitted on the way out.
        """
        self.running = True
        close_code: Optional[int] = NORMAL_CLOSE_CODE
        close_reason = "client closed"
        try:
            await self.client.start(self.token)
        except discord.ConnectionClosed as e:
            close_code, close_reason = e.code, e.reason or str(e)
            await self._surface_transport_error(e, code=e.code)
        except (discord.DiscordException, aiohttp.ClientError) as e:
            close_code, close_reason = None, str(e) or type(e).__name__
            await self._surface_transport_error(e)
        finally:
            self.running = False
            if not self.client.is_closed():
                await self.client.close()

        self.log.warning("websocket_closed", op=close_code, reason=close_reason)
        await self.emitter.emit(CloseEvent(code=close_code, reason=close_reason))

    async def stop(self):
        """Close the client connection. No-op when already closed."""
        if self.client.is_closed():
            return
        await self.client.close()
        self.log.info("bot_stopped")

    async def run_until_shutdown(self):
        """Run start() until the client exits or SIGINT/SIGTERM arrives."""
        loop = asyncio.get_running_loop()
        shutdown_event = asyncio.Event()

        def handle_shutdown(sig):
            self.log.info("shutdown_signal_received", signal=sig.name)
            shutdown_event.set()

        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, handle_shutdown, sig)
            except NotImplementedError:
                # Windows: add_signal_handler not supported.
                if sig == signal.SIGINT:
                    signal.signal(
                        signal.SIGINT,
                        lambda s, f: loop.call_soon_threadsafe(
                            handle_shutdown, signal.SIGINT
                        ),
                    )

        start_task = asyncio.create_task(self.start())
        shutdown_task = asyncio.create_task(shutdown_event.wait())
        done, _ = await asyncio.wait(
            {start_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED
        )
        if shutdown_task in done:
            await self.stop()
        else:
            shutdown_task.cancel()
        await start_task

    def run(self):
        """Synchronous entry point: run the bot on a fresh event loop."""
        try:
            asyncio.run(self.run_until_shutdown())
        except KeyboardInterrupt:
            pass
