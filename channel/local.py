# channel/local.py
"""本地命令行 Channel - 用于调试

在内存里模拟客户端：群元数据、黑名单和发出的消息都保存在本地，群操作会像
真实服务端一样回推对应的事件。
"""

import asyncio
import copy
import logging
import secrets
from typing import Any

from constants import ConnectionState, UPSERT_NOTIFY

from .base import Channel, ChannelEvents, ConnectionUpdate

logger = logging.getLogger(__name__)


class LocalChannel(Channel):
    """本地命令行 Channel - 用于在没有真实客户端的环境下调试"""

    def __init__(
        self,
        bot_name: str = "BaseBot",
        user_name: str = "User",
        bot_id: str = "10000@s.whatsapp.net",
        user_id: str = "20000@s.whatsapp.net",
        bot_lid: str | None = None,
    ):
        self._bot_id = bot_id
        self._bot_lid = bot_lid
        self._bot_name = bot_name
        self._user_id = user_id
        self._user_name = user_name
        self._running = False
        self._events: ChannelEvents | None = None
        self._msg_counter = 0
        self.groups: dict[str, dict] = {}
        self.blocklist: list[str] = []
        self.sent: list[tuple[str, dict]] = []
        self.media: dict[str, bytes] = {}  # 消息 ID -> 媒体内容
        self.echo = True

    @property
    def name(self) -> str:
        return "local"

    @property
    def bot_id(self) -> str:
        return self._bot_id

    @property
    def bot_lid(self) -> str | None:
        return self._bot_lid

    # ---- 模拟数据 ----

    def add_group(self, group_id: str, subject: str = "", participants: list[dict] | None = None, **settings) -> dict:
        """添加一个模拟群"""
        metadata = {
            "id": group_id,
            "subject": subject or group_id,
            "owner": None,
            "participants": [dict(p) for p in participants or []],
            **settings,
        }
        self.groups[group_id] = metadata
        return metadata

    def _next_id(self) -> str:
        self._msg_counter += 1
        return f"LOCAL{self._msg_counter:06d}"

    def build_message(
        self,
        text: str,
        sender: str | None = None,
        chat: str | None = None,
        push_name: str | None = None,
    ) -> dict:
        """构造一条原始入站消息"""
        sender = sender or self._user_id
        chat = chat or sender
        key = {"remoteJid": chat, "fromMe": sender == self._bot_id, "id": self._next_id()}
        if chat != sender:
            key["participant"] = sender
        return {
            "key": key,
            "message": {"conversation": text},
            "pushName": push_name or self._user_name,
        }

    # ---- 生命周期 ----

    async def start(self, events: ChannelEvents) -> None:
        """启动命令行交互循环"""
        self._events = events
        self._running = True
        await events.on_connection_update(ConnectionUpdate(state=ConnectionState.OPEN))

        print(f"\n{'='*50}")
        print(f"  {self._bot_name} Local Channel 已启动")
        print(f"  输入消息与机器人对话，输入 'quit' 退出")
        print(f"{'='*50}\n")

        loop = asyncio.get_running_loop()
        while self._running:
            try:
                line = await loop.run_in_executor(None, self._read_line)
                if line is None:
                    continue

                line = line.strip()
                if not line:
                    continue

                if line.lower() in ("quit", "exit", "q"):
                    print("\n再见！")
                    self._running = False
                    break

                await events.on_messages_upsert([self.build_message(line)], UPSERT_NOTIFY)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"处理输入时出错: {e}", exc_info=True)

    def _read_line(self) -> str | None:
        """同步读取一行输入"""
        try:
            print(f"\033[33m[{self._user_name}]\033[0m ", end="", flush=True)
            return input()
        except EOFError:
            self._running = False
            return None
        except KeyboardInterrupt:
            return "quit"

    async def stop(self) -> None:
        self._running = False

    # ---- 消息 ----

    async def send_message(self, jid: str, content: dict, quoted: dict | None = None) -> dict | None:
        self.sent.append((jid, content))
        if self.echo:
            body = content.get("text") or content.get("caption") or ", ".join(content.keys())
            print(f"\n\033[36m[{self._bot_name}]\033[0m {body}\n")

        message: dict[str, Any] = {}
        if "text" in content and "edit" not in content:
            message["conversation"] = content["text"]
        return {
            "key": {"remoteJid": jid, "fromMe": True, "id": self._next_id()},
            "message": message,
        }

    async def download_media(self, message: dict) -> bytes:
        message_id = (message.get("key") or {}).get("id")
        if message_id not in self.media:
            raise KeyError(f"media-not-found: {message_id}")
        return self.media[message_id]

    # ---- 群 ----

    def _group(self, jid: str) -> dict:
        if jid not in self.groups:
            raise KeyError(f"item-not-found: {jid}")
        return self.groups[jid]

    async def _emit(self, method: str, *args) -> None:
        if self._events is not None:
            await getattr(self._events, method)(*args)

    async def group_metadata(self, jid: str) -> dict:
        return copy.deepcopy(self._group(jid))

    async def group_participants_update(self, jid: str, participants: list[str], action: str) -> list[dict]:
        group = self._group(jid)
        members = group["participants"]
        for participant in participants:
            existing = next((p for p in members if participant in (p.get("id"), p.get("phoneNumber"))), None)
            if action == "add" and existing is None:
                members.append({"id": participant, "admin": None})
            elif action == "remove" and existing is not None:
                members.remove(existing)
            elif action == "promote" and existing is not None:
                existing["admin"] = "admin"
            elif action == "demote" and existing is not None:
                existing["admin"] = None
        await self._emit("on_group_participants_update", jid, list(participants), action)
        return [{"status": "200", "jid": p} for p in participants]

    async def _update_group(self, jid: str, **fields) -> None:
        self._group(jid).update(fields)
        await self._emit("on_groups_update", [{"id": jid, **fields}])

    async def group_leave(self, jid: str) -> None:
        self.groups.pop(jid, None)

    async def group_update_subject(self, jid: str, subject: str) -> None:
        await self._update_group(jid, subject=subject)

    async def group_update_description(self, jid: str, description: str) -> None:
        await self._update_group(jid, desc=description)

    async def group_member_add_mode(self, jid: str, mode: str) -> None:
        await self._update_group(jid, memberAddMode=mode == "all_member_add")

    async def group_toggle_ephemeral(self, jid: str, duration: int) -> None:
        await self._update_group(jid, ephemeralDuration=duration)

    async def group_join_approval_mode(self, jid: str, mode: str) -> None:
        await self._update_group(jid, joinApprovalMode=mode == "on")

    async def group_setting_update(self, jid: str, setting: str) -> None:
        if setting in ("announcement", "not_announcement"):
            await self._update_group(jid, announce=setting == "announcement")
        elif setting in ("locked", "unlocked"):
            await self._update_group(jid, restrict=setting == "locked")

    async def group_invite_code(self, jid: str) -> str:
        group = self._group(jid)
        if not group.get("inviteCode"):
            group["inviteCode"] = secrets.token_urlsafe(16)
        return group["inviteCode"]

    async def group_revoke_invite(self, jid: str) -> str:
        self._group(jid)["inviteCode"] = secrets.token_urlsafe(16)
        return self.groups[jid]["inviteCode"]

    # ---- 黑名单 ----

    async def fetch_blocklist(self) -> list[str]:
        return list(self.blocklist)

    async def update_block_status(self, jid: str, action: str) -> None:
        if action == "block" and jid not in self.blocklist:
            self.blocklist.append(jid)
        elif action == "unblock" and jid in self.blocklist:
            self.blocklist.remove(jid)
