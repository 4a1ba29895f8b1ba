"""Dispatcher 测试"""

import logging

import pytest

from commands import MessageNormalizer
from conftest import ADMIN, BOT_ID, GROUP_ID, OWNER, USER, write_config
from dispatcher import (
    BOT_NOT_ADMIN_TEXT,
    NOT_ADMIN_TEXT,
    ONLY_GROUP_TEXT,
    ONLY_OWNER_TEXT,
    Dispatcher,
)
from handlers import HandlerChain, PreProcessHandler
from plugins import command


class Calls(list):
    def plugin(self, *names, **flags):
        @command(*names, **flags)
        async def handler(ctx, args):
            self.append((ctx.invocation.command, args.args, args.raw_args))
            await ctx.reply("ok")

        return handler


@pytest.fixture
def calls(registry) -> Calls:
    calls = Calls()
    registry.register(calls.plugin("echo"))
    registry.register(calls.plugin("secret", only_owner=True))
    registry.register(calls.plugin("grouponly", only_group=True))
    registry.register(calls.plugin("kick", only_group=True, only_admin=True))
    return calls


def texts(channel) -> list[str]:
    return [content.get("text") for _, content in channel.sent]


@pytest.mark.asyncio
async def test_invokes_matching_plugin(dispatcher, channel, calls):
    assert await dispatcher.dispatch(channel.build_message(".echo hello  world")) is True
    assert calls == [("echo", "hello world", "hello  world")]
    assert texts(channel) == ["ok"]


@pytest.mark.asyncio
async def test_no_prefix_never_invokes(dispatcher, channel, calls):
    assert await dispatcher.dispatch(channel.build_message("echo hello")) is False
    assert calls == []
    assert channel.sent == []


@pytest.mark.asyncio
async def test_unknown_command_is_silent(dispatcher, channel, calls):
    assert await dispatcher.dispatch(channel.build_message(".nope")) is False
    assert channel.sent == []


@pytest.mark.asyncio
async def test_owner_gate(dispatcher, channel, calls):
    await dispatcher.dispatch(channel.build_message(".secret", sender=USER))
    assert calls == []
    assert texts(channel) == [ONLY_OWNER_TEXT]

    await dispatcher.dispatch(channel.build_message(".secret", sender=OWNER))
    assert calls == [("secret", "", "")]


@pytest.mark.asyncio
async def test_owner_gate_runs_before_group_gate(dispatcher, channel, registry):
    calls = Calls()
    registry.register(calls.plugin("both", only_owner=True, only_group=True))
    await dispatcher.dispatch(channel.build_message(".both", sender=USER))
    assert texts(channel) == [ONLY_OWNER_TEXT]


@pytest.mark.asyncio
async def test_group_gate(dispatcher, channel, calls, group):
    await dispatcher.dispatch(channel.build_message(".grouponly"))
    assert texts(channel) == [ONLY_GROUP_TEXT]

    await dispatcher.dispatch(channel.build_message(".grouponly", sender=USER, chat=GROUP_ID))
    assert calls == [("grouponly", "", "")]


@pytest.mark.asyncio
async def test_admin_gate_sender_not_admin(dispatcher, channel, calls, group):
    await dispatcher.dispatch(channel.build_message(".kick", sender=USER, chat=GROUP_ID))
    assert calls == []
    assert texts(channel) == [NOT_ADMIN_TEXT]


@pytest.mark.asyncio
async def test_admin_gate_bot_not_admin(dispatcher, channel, calls):
    channel.add_group(
        GROUP_ID,
        participants=[
            {"id": "70000@lid", "phoneNumber": ADMIN, "admin": "superadmin"},
            {"id": "90000@lid", "phoneNumber": BOT_ID, "admin": None},
        ],
    )
    await dispatcher.dispatch(channel.build_message(".kick", sender=ADMIN, chat=GROUP_ID))
    assert calls == []
    assert texts(channel) == [BOT_NOT_ADMIN_TEXT]


@pytest.mark.asyncio
async def test_admin_gate_passes(dispatcher, channel, calls, group):
    await dispatcher.dispatch(channel.build_message(".kick @someone", sender=ADMIN, chat=GROUP_ID))
    assert calls == [("kick", "@someone", "@someone")]


@pytest.mark.asyncio
async def test_admin_gate_aborts_silently_without_metadata(dispatcher, channel, calls):
    # 本地客户端里没有这个群，元数据拉取失败
    assert await dispatcher.dispatch(channel.build_message(".kick", sender=ADMIN, chat=GROUP_ID)) is False
    assert calls == []
    assert channel.sent == []


@pytest.mark.asyncio
async def test_plugin_error_is_isolated(dispatcher, channel, registry, calls, caplog):
    @command("crash")
    async def crash(ctx, args):
        raise RuntimeError("plugin bug")

    registry.register(crash)

    with caplog.at_level(logging.ERROR, logger="dispatcher"):
        assert await dispatcher.dispatch(channel.build_message(".crash")) is True
    assert any(record.exc_info for record in caplog.records)

    await dispatcher.dispatch(channel.build_message(".echo still alive"))
    assert calls == [("echo", "still alive", "still alive")]


@pytest.mark.asyncio
async def test_chain_veto_stops_dispatch(dispatcher, channel, calls):
    class Veto(PreProcessHandler):
        async def process(self, ctx):
            return False

    dispatcher.chain.register(Veto())
    assert await dispatcher.dispatch(channel.build_message(".echo")) is False
    assert calls == []


@pytest.mark.asyncio
async def test_invocation_is_logged(dispatcher, channel, calls, caplog):
    with caplog.at_level(logging.INFO, logger="BaseBot.messages"):
        await dispatcher.dispatch(channel.build_message(".echo hi", push_name="Alice"))
        await dispatcher.dispatch(channel.build_message("just chatting"))

    messages = [r.getMessage() for r in caplog.records if r.name == "BaseBot.messages"]
    assert messages == [f"[{USER}] [Alice] .echo hi"]


@pytest.mark.asyncio
async def test_private_mode(tmp_path, channel, cache, registry, calls, group):
    config = write_config(tmp_path, mode="private")
    dispatcher = Dispatcher(MessageNormalizer(config.PREFIXES), HandlerChain(), registry, cache, channel, config)

    assert await dispatcher.dispatch(channel.build_message(".echo", sender=USER, chat=GROUP_ID)) is False
    assert await dispatcher.dispatch(channel.build_message(".echo", sender=USER)) is True
    # 主人不受模式限制
    assert await dispatcher.dispatch(channel.build_message(".echo", sender=OWNER, chat=GROUP_ID)) is True


@pytest.mark.asyncio
async def test_group_mode(tmp_path, channel, cache, registry, calls, group):
    config = write_config(tmp_path, mode="GROUP")
    dispatcher = Dispatcher(MessageNormalizer(config.PREFIXES), HandlerChain(), registry, cache, channel, config)

    assert await dispatcher.dispatch(channel.build_message(".echo", sender=USER)) is False
    assert await dispatcher.dispatch(channel.build_message(".echo", sender=USER, chat=GROUP_ID)) is True
