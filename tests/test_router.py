"""Tests for prefix-based command routing."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from botbuilder.commands import CommandContext, CommandRouter, describe_author, split_message
from botbuilder.events import CommandTriggeredEvent, EventEmitter, EventKind


def _message(content, name="alice", discriminator="1234", user_id=42):
    author = SimpleNamespace(name=name, discriminator=discriminator, id=user_id)
    return SimpleNamespace(content=content, author=author)


# -------------------------------------------------------------------
# split_message
# -------------------------------------------------------------------

class TestSplitMessage:

    def test_first_token_is_command(self):
        assert split_message(";dank please now") == (";dank", ["please", "now"])

    def test_collapses_repeated_whitespace(self):
        assert split_message(";dank   a\tb\nc") == (";dank", ["a", "b", "c"])

    def test_empty_body_yields_sentinel(self):
        assert split_message("") == ("", [])

    def test_whitespace_only_body_yields_sentinel(self):
        assert split_message("   ") == ("", [])

    def test_none_body_yields_sentinel(self):
        assert split_message(None) == ("", [])


class TestDescribeAuthor:

    def test_name_and_discriminator(self):
        assert describe_author(SimpleNamespace(name="bob", discriminator="0001")) == "bob#0001"

    def test_migrated_username_has_no_discriminator(self):
        assert describe_author(SimpleNamespace(name="bob", discriminator="0")) == "bob"

    def test_missing_author(self):
        assert describe_author(None) == "unknown"


# -------------------------------------------------------------------
# CommandRouter
# -------------------------------------------------------------------

class TestCommandRouter:

    @pytest.mark.asyncio
    async def test_matching_message_invokes_handler_with_args(self):
        """';dank please' calls the dank handler with ['please']."""
        router = CommandRouter(prefix=";")
        handler = MagicMock()
        router.register("dank", handler)

        msg = _message(";dank please")
        assert await router.dispatch(msg) is True

        handler.assert_called_once()
        args, message, context = handler.call_args.args
        assert args == ["please"]
        assert message is msg
        assert isinstance(context, CommandContext)
        assert context.command == ";dank"
        assert context.trigger == "dank"
        assert context.prefix == ";"

    @pytest.mark.asyncio
    async def test_missing_prefix_does_not_match(self):
        router = CommandRouter(prefix=";")
        handler = MagicMock()
        router.register("dank", handler)

        assert await router.dispatch(_message("dank please")) is False
        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_trigger_must_be_whole_first_token(self):
        router = CommandRouter(prefix="!")
        handler = MagicMock()
        router.register("dank", handler)

        assert await router.dispatch(_message("!danker memes")) is False
        assert await router.dispatch(_message("hey !dank")) is False
        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_comparison_is_case_sensitive(self):
        router = CommandRouter(prefix="!")
        handler = MagicMock()
        router.register("dank", handler)

        assert await router.dispatch(_message("!DANK")) is False
        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_only_matching_handler_fires(self):
        router = CommandRouter(prefix="!")
        ping, pong = MagicMock(), MagicMock()
        router.register("ping", ping)
        router.register("pong", pong)

        await router.dispatch(_message("!pong"))
        pong.assert_called_once()
        ping.assert_not_called()

    @pytest.mark.asyncio
    async def test_reregistering_overwrites_handler(self):
        router = CommandRouter(prefix="!")
        first, second = MagicMock(), MagicMock()
        router.register("dank", first)
        router.register("dank", second)

        await router.dispatch(_message("!dank"))
        second.assert_called_once()
        first.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_body_never_matches(self):
        emitter = EventEmitter()
        listener = MagicMock()
        emitter.on(EventKind.COMMAND_TRIGGERED, listener)
        router = CommandRouter(prefix="!", emitter=emitter)
        handler = MagicMock()
        router.register("dank", handler)

        assert await router.dispatch(_message("")) is False
        handler.assert_not_called()
        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_prefix_matches_bare_trigger(self):
        router = CommandRouter(prefix="")
        handler = MagicMock()
        router.register("dank", handler)

        await router.dispatch(_message("dank a b"))
        assert handler.call_args.args[0] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_no_args_gives_empty_list(self):
        router = CommandRouter(prefix="!")
        handler = MagicMock()
        router.register("dank", handler)

        await router.dispatch(_message("!dank"))
        assert handler.call_args.args[0] == []

    @pytest.mark.asyncio
    async def test_async_handler_is_awaited(self):
        router = CommandRouter(prefix="!")
        handler = AsyncMock()
        router.register("dank", handler)

        await router.dispatch(_message("!dank x"))
        handler.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_emits_command_triggered_before_handler(self):
        emitter = EventEmitter()
        order = []
        events = []

        def listener(event):
            order.append("event")
            events.append(event)

        emitter.on("command-triggered", listener)
        router = CommandRouter(prefix=";", emitter=emitter)
        router.register("dank", lambda args, message, context: order.append("handler"))

        msg = _message(";dank please")
        await router.dispatch(msg)

        assert order == ["event", "handler"]
        assert isinstance(events[0], CommandTriggeredEvent)
        assert events[0].command == ";dank"
        assert events[0].author is msg.author

    @pytest.mark.asyncio
    async def test_unmatched_message_emits_nothing(self):
        emitter = EventEmitter()
        listener = MagicMock()
        emitter.on(EventKind.COMMAND_TRIGGERED, listener)
        router = CommandRouter(prefix="!", emitter=emitter)
        router.register("dank", MagicMock())

        await router.dispatch(_message("!other"))
        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_handler_errors_propagate(self):
        router = CommandRouter(prefix="!")
        router.register("boom", MagicMock(side_effect=RuntimeError("kaboom")))

        with pytest.raises(RuntimeError, match="kaboom"):
            await router.dispatch(_message("!boom"))

    @pytest.mark.asyncio
    async def test_base_context_fields_are_kept(self):
        router = CommandRouter(prefix="!")
        handler = MagicMock()
        router.register("dank", handler)
        bot, client = object(), object()

        await router.dispatch(_message("!dank"), CommandContext(bot=bot, client=client))
        context = handler.call_args.args[2]
        assert context.bot is bot
        assert context.client is client
        assert context.command == "!dank"

    @pytest.mark.asyncio
    async def test_prefix_change_applies_to_next_dispatch(self):
        router = CommandRouter(prefix="!")
        handler = MagicMock()
        router.register("dank", handler)

        router.prefix = "?"
        assert await router.dispatch(_message("!dank")) is False
        assert await router.dispatch(_message("?dank")) is True

    @pytest.mark.asyncio
    async def test_registration_during_dispatch_affects_later_messages_only(self):
        router = CommandRouter(prefix="!")
        late = MagicMock()

        def register_more(args, message, context):
            router.register("late", late)

        router.register("first", register_more)
        await router.dispatch(_message("!first"))
        late.assert_not_called()

        await router.dispatch(_message("!late"))
        late.assert_called_once()

    def test_unregister(self):
        router = CommandRouter()
        router.add_command("dank", MagicMock())
        assert router.triggers == frozenset({"dank"})
        assert router.unregister("dank") is True
        assert router.unregister("dank") is False
        assert router.get("dank") is None
