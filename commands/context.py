"""消息上下文：交给预处理器和插件使用的回复接口"""
from __future__ import annotations

import logging
import mimetypes
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import filetype

from .invocation import CommandInvocation

if TYPE_CHECKING:
    from channel import Channel
    from configuration import Config
    from groups import Group, GroupState, GroupStateCache
    from plugins.registry import PluginRegistry

logger = logging.getLogger(__name__)

_URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)
DEFAULT_MIMETYPE = "application/octet-stream"


def mimetype_to_media_type(mimetype: str) -> str:
    if mimetype.startswith("image/"):
        return "image"
    if mimetype.startswith("video/"):
        return "video"
    if mimetype.startswith("audio/"):
        return "audio"
    return "document"


def detect_from_url(url: str, mimetype: str | None = None) -> tuple[str, str]:
    """根据 mimetype 或 URL 扩展名判断媒体类型，返回 (media_type, mimetype)"""
    if mimetype:
        return mimetype_to_media_type(mimetype), mimetype
    guessed, _ = mimetypes.guess_type(url.split("?", 1)[0])
    if guessed:
        return mimetype_to_media_type(guessed), guessed
    return "document", DEFAULT_MIMETYPE


def detect_from_bytes(content: bytes, mimetype: str | None = None) -> tuple[str, str]:
    """按文件头识别二进制内容的类型，识别不了时按文件发送"""
    kind = filetype.guess(content)
    if kind is not None:
        return mimetype_to_media_type(kind.mime), mimetype or kind.mime
    if mimetype:
        return mimetype_to_media_type(mimetype), mimetype
    return "document", DEFAULT_MIMETYPE


def _key_dict(key: Any) -> dict:
    if hasattr(key, "model_dump"):
        return key.model_dump(by_alias=True, exclude_none=True)
    return dict(key)


@dataclass
class MessageContext:
    """一次消息处理的上下文"""

    invocation: CommandInvocation
    channel: "Channel"
    groups: "GroupStateCache"
    config: "Config | None" = None
    plugins: "PluginRegistry | None" = None

    @property
    def chat(self) -> str | None:
        return self.invocation.chat

    @property
    def is_group(self) -> bool:
        return self.invocation.is_group

    @property
    def is_owner(self) -> bool:
        if self.config is None:
            return False
        return self.config.is_owner(self.invocation.sender, self.invocation.sender_alt)

    def _quoted_payload(self) -> dict | None:
        message = self.invocation.message
        if message is None:
            return None
        return message.model_dump(by_alias=True, exclude_none=True)

    async def reply(self, text: str) -> dict | None:
        """引用当前消息回复文本"""
        return await self.channel.send_message(self.chat, {"text": text}, quoted=self._quoted_payload())

    async def send(
        self,
        content: str | bytes,
        mimetype: str | None = None,
        caption: str | None = None,
        filename: str | None = None,
        gif_playback: bool = False,
    ) -> dict | None:
        """发送文本、URL 媒体或二进制媒体

        纯文本直接发送；http(s) 链接按 mimetype / 扩展名判断媒体类型；二进制
        内容按文件头识别，识别不了且没有给出 mimetype 时按文件发送。
        """
        is_url = isinstance(content, str) and bool(_URL_PATTERN.match(content))
        if isinstance(content, str) and not is_url:
            return await self.channel.send_message(self.chat, {"text": content}, quoted=self._quoted_payload())

        if is_url:
            media_type, detected = detect_from_url(content, mimetype)
            media: Any = {"url": content}
        else:
            media_type, detected = detect_from_bytes(content, mimetype)
            media = content

        payload: dict[str, Any] = {media_type: media, "mimetype": detected}
        if caption:
            payload["caption"] = caption
        if filename and media_type == "document":
            payload["fileName"] = filename
        if gif_playback and media_type == "video":
            payload["gifPlayback"] = True

        return await self.channel.send_message(self.chat, payload, quoted=self._quoted_payload())

    async def edit(self, key: Any, text: str) -> dict | None:
        """编辑一条已发出的消息"""
        return await self.channel.send_message(self.chat, {"edit": _key_dict(key), "text": text})

    async def forward(self, jid: str, message: dict, score: int | None = None, force: bool | None = None) -> dict | None:
        content = {
            "forward": message,
            "contextInfo": {"forwardingScore": score, "isForwarded": force},
        }
        return await self.channel.send_message(jid, content, quoted=self._quoted_payload())

    async def block(self, jid: str) -> bool | None:
        """拉黑，已在黑名单中时返回 None"""
        blocked = await self.channel.fetch_blocklist()
        if jid in blocked:
            return None
        await self.channel.update_block_status(jid, "block")
        return True

    async def unblock(self, jid: str) -> bool | None:
        blocked = await self.channel.fetch_blocklist()
        if jid not in blocked:
            return None
        await self.channel.update_block_status(jid, "unblock")
        return True

    async def download_quoted(self) -> bytes | None:
        """下载被引用的媒体消息，没有引用媒体或下载失败时返回 None"""
        quoted = self.invocation.quoted
        if quoted is None or not quoted.media.any:
            return None
        try:
            return await self.channel.download_media(quoted.to_raw())
        except Exception as e:
            logger.warning(f"下载引用消息 {quoted.id} 的媒体失败: {e}")
            return None

    def group(self) -> "Group":
        from groups import Group

        return Group(self.chat, self.channel, self.groups)

    async def metadata(self) -> "GroupState":
        return await self.groups.ensure(self.chat)
