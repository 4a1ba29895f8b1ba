# channel/base.py
"""Channel 抽象基类

Channel 是与外部消息客户端之间的边界：传输、加密、会话与凭据持久化都由
客户端负责，这里只约定事件入口和需要调用的出站操作。
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from constants import ConnectionState


@dataclass
class ConnectionUpdate:
    """连接状态变化"""
    state: ConnectionState
    logged_out: bool = False  # close 时是否为已登出（不可恢复）
    error: Exception | None = None


class ChannelEvents(ABC):
    """Channel 推送事件的接收方（由 BaseBot 实现）"""

    @abstractmethod
    async def on_connection_update(self, update: ConnectionUpdate) -> None:
        ...

    @abstractmethod
    async def on_creds_update(self, creds: Any) -> None:
        ...

    @abstractmethod
    async def on_messages_upsert(self, messages: list[dict], kind: str) -> None:
        """新消息

        Args:
            messages: 原始消息列表
            kind: 投递类型，只有 notify 是实时消息
        """
        ...

    @abstractmethod
    async def on_groups_upsert(self, groups: list[dict]) -> None:
        ...

    @abstractmethod
    async def on_groups_update(self, updates: list[dict]) -> None:
        ...

    @abstractmethod
    async def on_group_participants_update(
        self, group_id: str, participants: list[Any], action: str
    ) -> None:
        ...


class Channel(ABC):
    """Channel 抽象基类 - 定义消息客户端的出站接口"""

    @property
    @abstractmethod
    def name(self) -> str:
        """Channel 名称"""
        ...

    @property
    @abstractmethod
    def bot_id(self) -> str:
        """机器人自身 ID（手机号形式）"""
        ...

    @property
    def bot_lid(self) -> str | None:
        """机器人自身的 lid 形式 ID，客户端不支持时为 None"""
        return None

    @abstractmethod
    async def start(self, events: ChannelEvents) -> None:
        """连接并开始推送事件"""
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...

    async def reconnect(self) -> None:
        """连接可恢复地断开后重新连接，默认什么都不做"""
        return None

    async def save_credentials(self, creds: Any) -> None:
        """凭据持久化由客户端负责，默认什么都不做"""
        return None

    # ---- 消息 ----

    @abstractmethod
    async def send_message(
        self,
        jid: str,
        content: dict,
        quoted: dict | None = None,
    ) -> dict | None:
        """发送消息

        Args:
            jid: 接收者 ID（用户或群）
            content: 消息体，例如 ``{"text": ...}``、``{"image": {"url": ...}, "caption": ...}``、
                ``{"edit": key, "text": ...}``、``{"forward": message}``
            quoted: 被引用的原始消息

        Returns:
            发出的原始消息，失败时由客户端抛出异常
        """
        ...

    @abstractmethod
    async def download_media(self, message: dict) -> bytes:
        """下载一条媒体消息的内容

        Args:
            message: 原始消息（含 key 和 message），媒体字段需保留 mediaKey 等下载信息
        """
        ...

    # ---- 群 ----

    @abstractmethod
    async def group_metadata(self, jid: str) -> dict:
        """拉取完整群元数据"""
        ...

    @abstractmethod
    async def group_participants_update(
        self, jid: str, participants: list[str], action: str
    ) -> list[dict]:
        ...

    @abstractmethod
    async def group_leave(self, jid: str) -> None:
        ...

    @abstractmethod
    async def group_update_subject(self, jid: str, subject: str) -> None:
        ...

    @abstractmethod
    async def group_update_description(self, jid: str, description: str) -> None:
        ...

    @abstractmethod
    async def group_member_add_mode(self, jid: str, mode: str) -> None:
        ...

    @abstractmethod
    async def group_toggle_ephemeral(self, jid: str, duration: int) -> None:
        ...

    @abstractmethod
    async def group_join_approval_mode(self, jid: str, mode: str) -> None:
        ...

    @abstractmethod
    async def group_setting_update(self, jid: str, setting: str) -> None:
        ...

    @abstractmethod
    async def group_invite_code(self, jid: str) -> str:
        ...

    @abstractmethod
    async def group_revoke_invite(self, jid: str) -> str:
        ...

    # ---- 黑名单 ----

    @abstractmethod
    async def fetch_blocklist(self) -> list[str]:
        ...

    @abstractmethod
    async def update_block_status(self, jid: str, action: str) -> None:
        ...
