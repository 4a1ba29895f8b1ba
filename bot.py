# bot.py
"""BaseBot - 连接 Channel 事件与消息分发、群缓存"""

import logging
from typing import Any

from channel import Channel, ChannelEvents, ConnectionUpdate
from commands.normalizer import MessageNormalizer
from configuration import Config
from constants import UPSERT_NOTIFY, ConnectionState, ParticipantAction
from dispatcher import Dispatcher
from errors import LoggedOutError
from groups import GroupStateCache, Participant
from handlers import HandlerChain, create_default_chain
from plugins import PluginRegistry, create_default_registry
from utils.jid import same_user

__version__ = "1.0.0"

logger = logging.getLogger("BaseBot")


class BaseBot(ChannelEvents):
    """事件入口：把客户端推送的事件路由给分发器和群缓存"""

    def __init__(
        self,
        channel: Channel,
        config: Config,
        cache: GroupStateCache | None = None,
        chain: HandlerChain | None = None,
        registry: PluginRegistry | None = None,
    ):
        self.channel = channel
        self.config = config
        self.LOG = logger

        self.cache = cache if cache is not None else GroupStateCache(ttl=config.GROUP_CACHE_TTL)
        self.cache.bind(channel.group_metadata)
        self.chain = chain if chain is not None else create_default_chain(config)
        self.registry = registry if registry is not None else create_default_registry()

        self.dispatcher = Dispatcher(
            normalizer=MessageNormalizer(config.PREFIXES),
            chain=self.chain,
            registry=self.registry,
            cache=self.cache,
            channel=channel,
            config=config,
        )
        self.LOG.info(
            f"已加载 {len(self.chain)} 个预处理器、{len(self.registry)} 个插件，"
            f"模式 {config.BOT_MODE.value}，前缀 {config.PREFIXES}"
        )

    async def start(self) -> None:
        """启动机器人"""
        self.LOG.info(f"{self.config.BOT_NAME} v{__version__} 启动中...")
        await self.channel.start(self)

    async def stop(self) -> None:
        """停止机器人"""
        await self.channel.stop()
        self.LOG.info(f"{self.config.BOT_NAME} 已停止")

    # ---- 连接 ----

    async def on_connection_update(self, update: ConnectionUpdate) -> None:
        if update.state is ConnectionState.OPEN:
            self.LOG.info(f"已连接 {self.channel.name} ({self.channel.bot_id})")
        elif update.state is ConnectionState.CLOSE:
            if update.logged_out:
                self.cache.invalidate_all()
                raise LoggedOutError("会话已登出，请重新登录")
            self.LOG.warning(f"连接断开，正在重连: {update.error}")
            await self.channel.reconnect()
        else:
            self.LOG.info("正在连接...")

    async def on_creds_update(self, creds: Any) -> None:
        await self.channel.save_credentials(creds)

    # ---- 消息 ----

    async def on_messages_upsert(self, messages: list[dict], kind: str) -> None:
        """只分发实时消息，历史同步消息直接忽略"""
        if kind != UPSERT_NOTIFY:
            return

        for message in messages:
            try:
                await self.dispatcher.dispatch(message)
            except Exception as e:
                self.LOG.error(f"处理消息时出错: {e}", exc_info=True)

    # ---- 群 ----

    async def on_groups_upsert(self, groups: list[dict]) -> None:
        written = self.cache.upsert(groups)
        self.LOG.debug(f"群元数据写入 {written} 条")

    async def on_groups_update(self, updates: list[dict]) -> None:
        await self.cache.apply_group_updates(updates)

    def _is_self(self, participant: Any) -> bool:
        p = Participant.from_raw(participant)
        bot_ids = [self.channel.bot_id, self.channel.bot_lid]
        return any(same_user(jid, bot) for jid in (p.id, p.phone_number) for bot in bot_ids if jid and bot)

    async def on_group_participants_update(self, group_id: str, participants: list[Any], action: str) -> None:
        if action == ParticipantAction.REMOVE.value and any(self._is_self(p) for p in participants):
            # 机器人自己被移出，缓存的成员列表已无意义
            self.LOG.info(f"机器人已被移出群 {group_id}")
            self.cache.invalidate(group_id)
            return

        await self.cache.apply_participant_update(group_id, participants, action)
