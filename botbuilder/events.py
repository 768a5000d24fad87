"""Typed event bus for botbuilder.

Bot lifecycle and command events are delivered to host code through
an EventEmitter. Each event kind has its own pydantic payload model,
and every listener receives exactly one payload argument.

    bot.on(EventKind.READY, on_ready)          # or bot.on("ready", ...)
    sub = bot.on("command-triggered", audit)
    sub.remove()

Key classes:
    EventKind: Enumerated event names.
    BotEvent: Base payload model; subclasses bind a kind.
    EventEmitter: Listener registry and async emit().
    Subscription: Handle returned by on()/once() for later removal.
"""

import inspect
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, List, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field

logger = structlog.get_logger("botbuilder.events")


class EventKind(str, Enum):
    """Event names emitted by a Bot."""
    READY = "ready"
    COMMAND_TRIGGERED = "command-triggered"
    RECONNECTING = "reconnecting"
    RECONNECTED = "reconnected"
    CLOSE = "close"
    ERROR = "error"


class BotEvent(BaseModel):
    """Base payload. Subclasses set ``kind``."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    kind: ClassVar[EventKind]


class ReadyEvent(BotEvent):
    """The client finished its handshake and is receiving events."""

    kind: ClassVar[EventKind] = EventKind.READY

    config: Dict[str, Any] = Field(default_factory=dict)
    client: Any = None
    bot: Any = None


class CommandTriggeredEvent(BotEvent):
    """A message matched a registered command."""

    kind: ClassVar[EventKind] = EventKind.COMMAND_TRIGGERED

    command: str = Field(..., description="Prefix + trigger as typed")
    author: Any = None


class ReconnectingEvent(BotEvent):
    """The gateway connection dropped; the client is reconnecting."""

    kind: ClassVar[EventKind] = EventKind.RECONNECTING


class ReconnectedEvent(BotEvent):
    """The gateway session was resumed."""

    kind: ClassVar[EventKind] = EventKind.RECONNECTED


class CloseEvent(BotEvent):
    """The gateway connection closed for good."""

    kind: ClassVar[EventKind] = EventKind.CLOSE

    code: Optional[int] = None
    reason: str = ""


class ErrorEvent(BotEvent):
    """The client or an event callback raised."""

    kind: ClassVar[EventKind] = EventKind.ERROR

    error: Any = None


Listener = Callable[[BotEvent], Any]


class Subscription:
    """Handle for a registered listener."""

    def __init__(
        self, emitter: "EventEmitter", kind: EventKind, listener: Listener, once: bool
    ):
        self._emitter = emitter
        self.kind = kind
        self.listener = listener
        self.once = once
        self.active = True

    def remove(self) -> None:
        """Detach the listener. Safe to call more than once."""
        self._emitter.off(self)

    def __repr__(self) -> str:
        return (
            f"Subscription(kind={self.kind.value!r}, "
            f"listener={getattr(self.listener, '__name__', self.listener)!r}, "
            f"active={self.active})"
        )


class EventEmitter:
    """Maps event kinds to ordered listener lists.

    Listeners may be plain functions or coroutine functions. emit()
    calls them in registration order and awaits any awaitable result.
    A listener that raises is logged and the exception propagates to
    the emitter's caller; later listeners for that emit do not run.
    """

    def __init__(self):
        self._subscriptions: Dict[EventKind, List[Subscription]] = {}

    def on(self, kind: Union[EventKind, str], listener: Listener) -> Subscription:
        """Register ``listener`` for every ``kind`` event."""
        return self._add(kind, listener, once=False)

    def once(self, kind: Union[EventKind, str], listener: Listener) -> Subscription:
        """Register ``listener`` for the next ``kind`` event only."""
        return self._add(kind, listener, once=True)

    def _add(self, kind, listener: Listener, once: bool) -> Subscription:
        if not callable(listener):
            raise TypeError(f"listener must be callable, got {type(listener).__name__}")
        kind = EventKind(kind)
        sub = Subscription(self, kind, listener, once)
        self._subscriptions.setdefault(kind, []).append(sub)
        logger.debug("listener_added", kind=kind.value, once=once)
        return sub

    def off(self, subscription: Subscription) -> bool:
        """Remove a subscription.

        Returns:
            True if it was registered, False if already removed.
        """
        subs = self._subscriptions.get(subscription.kind, [])
        subscription.active = False
        if subscription in subs:
            subs.remove(subscription)
            return True
        return False

    def listeners(self, kind: Union[EventKind, str]) -> List[Listener]:
        """Listeners currently registered for ``kind``."""
        return [s.listener for s in self._subscriptions.get(EventKind(kind), [])]

    def remove_all_listeners(self, kind: Union[EventKind, str, None] = None) -> None:
        """Drop listeners for ``kind``, or for every kind when omitted."""
        kinds = [EventKind(kind)] if kind is not None else list(self._subscriptions)
        for k in kinds:
            for sub in self._subscriptions.pop(k, []):
                sub.active = False

    async def emit(self, event: BotEvent) -> int:
        """Deliver ``event`` to the listeners registered for its kind.

        Returns:
            Number of listeners called.
        """
        subs = list(self._subscriptions.get(event.kind, []))
        called = 0
        for sub in subs:
            if not sub.active:
                continue
            if sub.once:
                self.off(sub)
            try:
                result = sub.listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    "event_listener_error",
                    kind=event.kind.value,
                    listener=getattr(sub.listener, "__name__", repr(sub.listener)),
                    error=str(e),
                )
                raise
            called += 1
        return called
