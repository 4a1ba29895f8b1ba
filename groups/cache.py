"""群元数据缓存

客户端只提供完整的元数据拉取接口，以及尽力而为的增量事件。这里在本地维护
一份镜像，避免每次管理员校验都走网络，同时吸收乱序、重复、部分的增量更新。
同一个群上的并发写入按"最后写入者胜出"处理。
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable

from constants import AdminRank, ParticipantAction
from errors import MetadataUnavailableError
from utils.jid import is_broadcast_jid, numeric_prefix

from .models import GroupState, Participant

logger = logging.getLogger(__name__)

DEFAULT_TTL = 60 * 60

MetadataFetcher = Callable[[str], Awaitable[dict]]


@dataclass
class ParticipantMatch:
    group_id: str
    subject: str
    participant: Participant
    total_participants: int


class GroupStateCache:
    """群 ID -> GroupState，带 TTL（从最后一次整体写入开始计时）"""

    def __init__(
        self,
        fetcher: MetadataFetcher | None = None,
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._fetcher = fetcher
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, GroupState] = {}
        self._written_at: dict[str, float] = {}
        self._inflight: dict[str, asyncio.Future] = {}
        self._hits = 0
        self._misses = 0

    def bind(self, fetcher: MetadataFetcher) -> None:
        """设置元数据拉取函数（通常是 channel.group_metadata）"""
        self._fetcher = fetcher

    # ---- 读取 ----

    def _expired(self, group_id: str) -> bool:
        if self.ttl <= 0:
            return False
        written_at = self._written_at.get(group_id)
        return written_at is None or self._clock() - written_at > self.ttl

    def get(self, group_id: str) -> GroupState | None:
        if group_id not in self._entries or self._expired(group_id):
            return None
        return self._entries[group_id]

    def has(self, group_id: str) -> bool:
        return self.get(group_id) is not None

    def keys(self) -> list[str]:
        self.purge_expired()
        return list(self._entries.keys())

    def __len__(self) -> int:
        return len(self.keys())

    async def ensure(self, group_id: str) -> GroupState:
        """取缓存，没有时向客户端拉取一次；同一个群的并发拉取会合并

        Raises:
            MetadataUnavailableError: 拉取失败
        """
        state = self.get(group_id)
        if state is not None:
            self._hits += 1
            return state

        self._misses += 1
        pending = self._inflight.get(group_id)
        if pending is None:
            pending = asyncio.ensure_future(self._fetch(group_id))
            self._inflight[group_id] = pending
            pending.add_done_callback(lambda done: self._forget_inflight(group_id, done))
        return await asyncio.shield(pending)

    def _forget_inflight(self, group_id: str, done: asyncio.Future) -> None:
        if self._inflight.get(group_id) is done:
            del self._inflight[group_id]

    async def _fetch(self, group_id: str) -> GroupState:
        if self._fetcher is None:
            raise MetadataUnavailableError(group_id)
        try:
            raw = await self._fetcher(group_id)
        except Exception as e:
            raise MetadataUnavailableError(group_id, e) from e
        if not raw:
            raise MetadataUnavailableError(group_id)

        if isinstance(raw, dict) and not raw.get("id"):
            raw = {**raw, "id": group_id}
        state = GroupState.from_metadata(raw)
        self.set(group_id, state)
        logger.debug(f"已缓存群 {group_id} 元数据 ({state.size} 人)")
        return state

    # ---- 写入 ----

    def set(self, group_id: str, state: GroupState) -> None:
        self._entries[group_id] = state
        self._written_at[group_id] = self._clock()

    def invalidate(self, group_id: str) -> bool:
        self._written_at.pop(group_id, None)
        return self._entries.pop(group_id, None) is not None

    def invalidate_all(self) -> None:
        count = len(self._entries)
        self._entries.clear()
        self._written_at.clear()
        logger.info(f"已清空群缓存，共 {count} 个")

    def purge_expired(self) -> int:
        expired = [group_id for group_id in self._entries if self._expired(group_id)]
        for group_id in expired:
            self.invalidate(group_id)
        return len(expired)

    async def apply_participant_update(
        self,
        group_id: str,
        participants: Iterable[Any],
        action: ParticipantAction | str,
    ) -> GroupState | None:
        """把一次成员变更事件应用到缓存，拉取失败时丢弃该事件"""
        try:
            action = ParticipantAction(action)
        except ValueError:
            logger.warning(f"忽略未知的成员变更类型: {action}")
            return None

        try:
            state = await self.ensure(group_id)
        except MetadataUnavailableError as e:
            logger.warning(f"{e}，丢弃成员变更 {action.value}")
            return None

        for raw in participants or []:
            incoming = Participant.from_raw(raw)
            if incoming.numbers == (None, None):
                continue

            index = state.index_of(incoming)
            if action is ParticipantAction.ADD:
                if index == -1:
                    state.participants.append(incoming)
            elif index == -1:
                continue
            elif action is ParticipantAction.REMOVE:
                del state.participants[index]
            elif action is ParticipantAction.PROMOTE:
                state.participants[index].admin = AdminRank.ADMIN
            elif action is ParticipantAction.DEMOTE:
                state.participants[index].admin = AdminRank.NONE

        state.recount()
        return state

    async def apply_group_update(self, group_id: str, patch: dict) -> GroupState | None:
        """浅合并群信息变更（标题、描述、各项设置，带成员列表时整体替换）"""
        if not group_id:
            return None
        if is_broadcast_jid(group_id):
            logger.warning(f"跳过广播的群更新: {group_id}")
            return None

        try:
            state = await self.ensure(group_id)
        except MetadataUnavailableError as e:
            logger.warning(f"{e}，丢弃群更新")
            return None

        state.apply_patch(patch)
        return state

    async def apply_group_updates(self, patches: Iterable[dict]) -> None:
        for patch in patches or []:
            if isinstance(patch, dict) and patch.get("id"):
                await self.apply_group_update(patch["id"], patch)

    def upsert(self, groups: Iterable[Any]) -> int:
        """批量写入；新记录没有成员列表时保留已有成员"""
        written = 0
        for raw in groups or []:
            group_id = raw.id if isinstance(raw, GroupState) else (raw or {}).get("id")
            if not group_id:
                continue
            if is_broadcast_jid(group_id):
                logger.warning(f"跳过广播的 upsert: {group_id}")
                continue

            existing = self.get(group_id)
            state = GroupState.from_metadata(raw)
            has_participants = isinstance(raw, GroupState) or raw.get("participants") is not None
            if not has_participants and existing is not None:
                state.participants = existing.participants
                state.recount()

            self.set(group_id, state)
            written += 1
        return written

    # ---- 查询 ----

    def find_participant(self, number_or_jid: str) -> ParticipantMatch | None:
        """在所有已缓存的群里找这个号码，返回第一个命中"""
        number = numeric_prefix(number_or_jid)
        if number is None:
            return None

        for group_id in self.keys():
            state = self._entries[group_id]
            participant = state.find(number)
            if participant is not None:
                return ParticipantMatch(
                    group_id=state.id,
                    subject=state.subject,
                    participant=participant,
                    total_participants=state.size or len(state.participants),
                )
        return None

    def snapshot(self) -> dict[str, dict]:
        return {group_id: self._entries[group_id].to_dict() for group_id in self.keys()}

    def stats(self) -> dict[str, int]:
        return {"keys": len(self.keys()), "hits": self._hits, "misses": self._misses}
