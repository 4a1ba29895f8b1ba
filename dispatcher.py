# dispatcher.py
"""消息分发：标准化 -> 预处理链 -> 模式策略 -> 查找插件 -> 权限检查 -> 执行插件"""

import logging
from typing import Any

from commands.context import MessageContext
from commands.invocation import CommandInvocation
from commands.normalizer import MessageNormalizer
from configuration import Config
from constants import BotMode
from errors import MetadataUnavailableError
from groups import GroupStateCache, bot_is_admin, is_admin
from handlers import HandlerChain
from plugins import CommandArgs, Plugin, PluginRegistry

logger = logging.getLogger(__name__)
message_logger = logging.getLogger("BaseBot.messages")

ONLY_OWNER_TEXT = "_This command is only for owner!_"
ONLY_GROUP_TEXT = "_This command is only for groups!_"
NOT_ADMIN_TEXT = "_You are not a group admin!_"
BOT_NOT_ADMIN_TEXT = "_Bot is not a group admin!_"


class Dispatcher:
    """把一条原始消息走完整个处理流程

    每条消息的流程是严格顺序的；不同消息之间没有顺序要求，可以并发调用
    dispatch。所有可预期的失败（无命令、模式拒绝、权限不足、插件异常）都在这里
    消化，不向调用方抛出。
    """

    def __init__(
        self,
        normalizer: MessageNormalizer,
        chain: HandlerChain,
        registry: PluginRegistry,
        cache: GroupStateCache,
        channel,
        config: Config,
    ):
        self.normalizer = normalizer
        self.chain = chain
        self.registry = registry
        self.cache = cache
        self.channel = channel
        self.config = config

    def build_context(self, invocation: CommandInvocation) -> MessageContext:
        return MessageContext(
            invocation=invocation,
            channel=self.channel,
            groups=self.cache,
            config=self.config,
            plugins=self.registry,
        )

    async def dispatch(self, raw: Any) -> bool:
        """处理一条消息

        Returns:
            是否执行了插件（插件本身失败也算执行过）
        """
        invocation = self.normalizer.normalize(raw)
        ctx = self.build_context(invocation)

        if not await self.chain.run_all(ctx):
            return False

        if invocation.text and invocation.prefix:
            message_logger.info(f"[{invocation.sender_alt or invocation.sender}] [{invocation.push_name}] {invocation.text}")

        mode = BotMode.from_config(self.config.BOT_MODE)
        if mode.blocks(invocation.is_group) and not ctx.is_owner:
            logger.debug(f"{mode.value} 模式下忽略来自 {invocation.chat} 的消息")
            return False

        if not invocation.command:
            return False

        plugin = self.registry.find(invocation.command)
        if plugin is None:
            return False

        if not await self.check_permissions(ctx, plugin):
            return False

        await self.invoke(ctx, plugin)
        return True

    async def check_permissions(self, ctx: MessageContext, plugin: Plugin) -> bool:
        """按 主人 -> 群聊 -> 管理员 的顺序检查，失败时回复一条拒绝消息"""
        if plugin.only_owner and not ctx.is_owner:
            await self._refuse(ctx, ONLY_OWNER_TEXT)
            return False

        if plugin.only_group and not ctx.is_group:
            await self._refuse(ctx, ONLY_GROUP_TEXT)
            return False

        if plugin.only_admin and ctx.is_group:
            try:
                state = await self.cache.ensure(ctx.chat)
            except MetadataUnavailableError as e:
                logger.warning(f"无法校验管理员权限，放弃执行 {plugin.name}: {e}")
                return False

            sender = ctx.invocation
            if not (is_admin(state, sender.sender) or is_admin(state, sender.sender_alt)):
                await self._refuse(ctx, NOT_ADMIN_TEXT)
                return False
            if not bot_is_admin(state, self.channel):
                await self._refuse(ctx, BOT_NOT_ADMIN_TEXT)
                return False

        return True

    async def _refuse(self, ctx: MessageContext, text: str) -> None:
        try:
            await ctx.reply(text)
        except Exception as e:
            logger.error(f"发送拒绝消息失败: {e}")

    async def invoke(self, ctx: MessageContext, plugin: Plugin) -> None:
        invocation = ctx.invocation
        args = CommandArgs(
            args=invocation.args,
            raw_args=invocation.raw_args,
            command=invocation.command,
            prefix=invocation.prefix,
            mentions=list(invocation.mentions),
        )
        try:
            await plugin.handle(ctx, args)
        except Exception as e:
            logger.error(f"插件 {plugin.name} 处理 {invocation.command} 失败: {e}", exc_info=True)
