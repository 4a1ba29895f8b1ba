"""命令调用记录"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .content import MessageContent, MessageKey, WebMessage


@dataclass(frozen=True)
class MediaFlags:
    image: bool = False
    video: bool = False
    audio: bool = False
    sticker: bool = False

    @property
    def any(self) -> bool:
        return self.image or self.video or self.audio or self.sticker


@dataclass(frozen=True)
class QuotedMessage:
    """被引用（回复）的那条消息"""

    id: str
    chat: Optional[str]
    sender: Optional[str]
    type: Optional[str]
    text: str
    media: MediaFlags = field(default_factory=MediaFlags)
    view_once: bool = False
    content: Optional[MessageContent] = field(default=None, repr=False, compare=False)

    @property
    def key(self) -> MessageKey:
        return MessageKey(remote_jid=self.chat, id=self.id, participant=self.sender)

    def to_raw(self) -> dict:
        """还原成客户端可识别的原始消息，用于下载媒体"""
        message = self.content.model_dump(by_alias=True, exclude_none=True) if self.content else {}
        return {"key": self.key.model_dump(by_alias=True, exclude_none=True), "message": message}


@dataclass(frozen=True)
class CommandInvocation:
    """从一条原始消息解析出的结构化命令调用，构造后不可变"""

    chat: Optional[str]
    sender: Optional[str]
    sender_alt: Optional[str] = None
    is_group: bool = False
    from_me: bool = False
    id: Optional[str] = None
    push_name: str = ""
    type: Optional[str] = None
    text: str = ""
    prefix: str = ""
    command: str = ""
    args: str = ""
    raw_args: str = ""
    mentions: tuple[str, ...] = ()
    quoted: Optional[QuotedMessage] = None
    media: MediaFlags = field(default_factory=MediaFlags)
    message: Optional[WebMessage] = field(default=None, repr=False, compare=False)

    @property
    def key(self) -> MessageKey:
        if self.message is not None:
            return self.message.key
        return MessageKey(remote_jid=self.chat, id=self.id, participant=self.sender if self.is_group else None)

    @property
    def is_command(self) -> bool:
        return bool(self.prefix and self.command)

    # 兼容原始消息的媒体属性写法
    @property
    def image(self) -> bool:
        return self.media.image

    @property
    def video(self) -> bool:
        return self.media.video

    @property
    def audio(self) -> bool:
        return self.media.audio

    @property
    def sticker(self) -> bool:
        return self.media.sticker
