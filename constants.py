from enum import Enum, unique


@unique
class BotMode(Enum):
    PUBLIC = "public"  # 私聊和群聊都响应
    PRIVATE = "private"  # 仅私聊
    GROUP = "group"  # 仅群聊

    @staticmethod
    def from_config(value) -> "BotMode":
        if isinstance(value, BotMode):
            return value
        text = str(value or "").strip().lower()
        for mode in BotMode:
            if mode.value == text:
                return mode
        return BotMode.PUBLIC

    def blocks(self, is_group: bool) -> bool:
        """当前模式是否拒绝该类型的会话"""
        if self is BotMode.PRIVATE:
            return is_group
        if self is BotMode.GROUP:
            return not is_group
        return False


@unique
class AdminRank(Enum):
    NONE = None
    ADMIN = "admin"
    SUPERADMIN = "superadmin"

    @staticmethod
    def parse(value) -> "AdminRank":
        if isinstance(value, AdminRank):
            return value
        for rank in AdminRank:
            if rank.value == value:
                return rank
        return AdminRank.NONE

    @property
    def is_admin(self) -> bool:
        return self is not AdminRank.NONE


@unique
class ParticipantAction(Enum):
    ADD = "add"
    REMOVE = "remove"
    PROMOTE = "promote"
    DEMOTE = "demote"


@unique
class ConnectionState(Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSE = "close"


# 只有 notify 类型的 upsert 才是实时消息，其余为历史同步
UPSERT_NOTIFY = "notify"

INVITE_LINK_BASE = "https://chat.whatsapp.com/"
