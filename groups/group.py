"""群管理操作

每个操作在目标状态已经满足时返回 None，真正发出变更时返回 True（或客户端
的返回值）。判断依据来自 GroupStateCache，变更结果由客户端事件回写缓存。
"""

import logging
from typing import TYPE_CHECKING

from constants import INVITE_LINK_BASE
from utils.jid import normalized_user, same_user

from .cache import GroupStateCache
from .models import GroupState

if TYPE_CHECKING:
    from channel import Channel

logger = logging.getLogger(__name__)


def is_participant(state: GroupState | None, jid: str | None) -> bool:
    return state is not None and state.find(jid) is not None


def is_admin(state: GroupState | None, jid: str | None) -> bool:
    if state is None:
        return False
    participant = state.find(jid)
    return participant is not None and participant.is_admin


def bot_is_admin(state: GroupState | None, channel: "Channel") -> bool:
    """机器人的手机号形式或 lid 形式任一是管理员即可"""
    bot_ids = [normalized_user(channel.bot_id), normalized_user(channel.bot_lid)]
    return any(is_admin(state, jid) for jid in bot_ids if jid)


class Group:
    """绑定到单个群的管理操作"""

    def __init__(self, group_id: str, channel: "Channel", cache: GroupStateCache):
        self.id = group_id
        self.channel = channel
        self.cache = cache

    async def metadata(self) -> GroupState:
        return await self.cache.ensure(self.id)

    async def promote(self, participant: str) -> bool | None:
        state = await self.metadata()
        if not is_participant(state, participant) or is_admin(state, participant):
            return None
        await self.channel.group_participants_update(self.id, [participant], "promote")
        return True

    async def demote(self, participant: str) -> bool | None:
        state = await self.metadata()
        if not is_participant(state, participant) or not is_admin(state, participant):
            return None
        await self.channel.group_participants_update(self.id, [participant], "demote")
        return True

    async def remove(self, participant: str) -> bool | None:
        state = await self.metadata()
        if not is_participant(state, participant):
            return None
        await self.channel.group_participants_update(self.id, [participant], "remove")
        return True

    async def add(self, participant: str) -> list[dict]:
        return await self.channel.group_participants_update(self.id, [participant], "add")

    async def leave(self) -> None:
        await self.channel.group_leave(self.id)
        self.cache.invalidate(self.id)

    async def set_name(self, name: str) -> None:
        await self.channel.group_update_subject(self.id, name)

    async def set_description(self, description: str) -> None:
        await self.channel.group_update_description(self.id, description)

    async def set_member_add_mode(self, mode: str) -> bool | None:
        """mode: admin_add / all_member_add"""
        settings = (await self.metadata()).settings
        if mode == "admin_add" and not settings.member_add_mode:
            return None
        if mode == "all_member_add" and settings.member_add_mode:
            return None
        await self.channel.group_member_add_mode(self.id, mode)
        return True

    async def set_ephemeral(self, duration: int) -> bool | None:
        settings = (await self.metadata()).settings
        if (settings.ephemeral_duration or 0) == duration:
            return None
        await self.channel.group_toggle_ephemeral(self.id, duration)
        return True

    async def set_join_approval(self, mode: str) -> bool | None:
        """mode: on / off"""
        settings = (await self.metadata()).settings
        if mode == "on" and settings.join_approval_mode:
            return None
        if mode == "off" and not settings.join_approval_mode:
            return None
        await self.channel.group_join_approval_mode(self.id, mode)
        return True

    async def set_announcement(self, mode: str) -> bool | None:
        """mode: announcement / not_announcement"""
        settings = (await self.metadata()).settings
        if mode == "announcement" and settings.announce:
            return None
        if mode == "not_announcement" and not settings.announce:
            return None
        await self.channel.group_setting_update(self.id, mode)
        return True

    async def set_restricted(self, mode: str) -> bool | None:
        """mode: locked / unlocked"""
        settings = (await self.metadata()).settings
        if mode == "locked" and settings.restrict:
            return None
        if mode == "unlocked" and not settings.restrict:
            return None
        await self.channel.group_setting_update(self.id, mode)
        return True

    async def kick_all(self) -> list[dict] | None:
        """移除除管理员、机器人和群主以外的所有成员"""
        state = await self.metadata()
        bot_ids = [normalized_user(self.channel.bot_id), normalized_user(self.channel.bot_lid)]
        targets = [
            p.id
            for p in state.participants
            if not p.is_admin
            and not any(same_user(p.id, bot) or same_user(p.phone_number, bot) for bot in bot_ids if bot)
            and not (state.owner and (same_user(p.id, state.owner) or same_user(p.phone_number, state.owner)))
        ]
        if not targets:
            return None
        logger.info(f"群 {self.id} 批量移除 {len(targets)} 人")
        return await self.channel.group_participants_update(self.id, targets, "remove")

    async def get_invite_code(self) -> str:
        code = await self.channel.group_invite_code(self.id)
        return f"{INVITE_LINK_BASE}{code}"

    async def revoke_invite(self) -> str:
        code = await self.channel.group_revoke_invite(self.id)
        return f"{INVITE_LINK_BASE}{code}"
