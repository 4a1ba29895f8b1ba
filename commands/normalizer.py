"""消息规范化：原始消息 -> CommandInvocation"""
from __future__ import annotations

import logging
import re
from typing import Any, Sequence

from pydantic import ValidationError

from utils.jid import is_group_jid

from .content import (
    MAX_UNWRAP_DEPTH,
    STICKER_KINDS,
    ContentKind,
    MessageContent,
    WebMessage,
)
from .invocation import CommandInvocation, MediaFlags, QuotedMessage

logger = logging.getLogger(__name__)


def extract_text(content: MessageContent | None, depth: int = 0) -> str:
    """按固定优先级提取展示文本，找不到时返回空串

    extended text > conversation > 图片/视频/文件说明 > 按钮文本 > 模板文本 >
    列表描述 > 解开一层 protocol edit / ephemeral 后重试
    """
    if content is None:
        return ""

    if content.extended_text_message and content.extended_text_message.text:
        return content.extended_text_message.text
    if content.conversation:
        return content.conversation
    for media in (content.image_message, content.video_message, content.document_message):
        if media and media.caption:
            return media.caption
    if content.buttons_message and content.buttons_message.content_text:
        return content.buttons_message.content_text
    template = content.template_message
    if template and template.hydrated_template and template.hydrated_template.hydrated_content_text:
        return template.hydrated_template.hydrated_content_text
    if content.list_message and content.list_message.description:
        return content.list_message.description

    if depth >= MAX_UNWRAP_DEPTH:
        return ""
    if content.protocol_message and content.protocol_message.edited_message:
        text = extract_text(content.protocol_message.edited_message, depth + 1)
        if text:
            return text
    if content.ephemeral_message and content.ephemeral_message.message:
        text = extract_text(content.ephemeral_message.message, depth + 1)
        if text:
            return text
    return ""


def media_flags(kind: ContentKind | None) -> MediaFlags:
    return MediaFlags(
        image=kind is ContentKind.IMAGE,
        video=kind is ContentKind.VIDEO,
        audio=kind is ContentKind.AUDIO,
        sticker=kind in STICKER_KINDS,
    )


class MessageNormalizer:
    """把客户端推送的原始消息转换为 CommandInvocation"""

    def __init__(self, prefixes: Sequence[str] = (".",)) -> None:
        self.prefixes = [p for p in prefixes if p]

    def parse(self, raw: Any) -> WebMessage:
        if isinstance(raw, WebMessage):
            return raw
        try:
            return WebMessage.model_validate(raw or {})
        except ValidationError as e:
            logger.warning(f"无法解析消息结构，按空消息处理: {e.error_count()} 个错误")
            return WebMessage()

    def normalize(self, raw: Any) -> CommandInvocation:
        message = self.parse(raw)
        key = message.key

        chat = key.remote_jid
        is_group = is_group_jid(chat)
        # 群聊中发送者是参与者，私聊中就是会话本身
        sender = key.participant if is_group else chat
        sender_alt = key.participant_alt if is_group else key.remote_jid_alt

        content = message.message.normalized() if message.message else None
        kind = content.kind if content else None
        text = extract_text(content)

        prefix, command, args, raw_args = self.tokenize(text)

        context = content.context_info if content else None
        mentions = tuple(context.mentioned_jid) if context else ()

        return CommandInvocation(
            chat=chat,
            sender=sender,
            sender_alt=sender_alt,
            is_group=is_group,
            from_me=key.from_me,
            id=key.id,
            push_name=message.push_name or "",
            type=kind.value if kind else None,
            text=text,
            prefix=prefix,
            command=command,
            args=args,
            raw_args=raw_args,
            mentions=mentions,
            quoted=self._quoted(context, chat),
            media=media_flags(kind),
            message=message,
        )

    def match_prefix(self, token: str) -> str:
        """返回第一个能作为 token 字面前缀的配置前缀，没有则返回空串"""
        for prefix in self.prefixes:
            if token.startswith(prefix.lower()):
                return prefix
        return ""

    def tokenize(self, text: str) -> tuple[str, str, str, str]:
        """拆出 (prefix, command, args, raw_args)

        支持前缀与命令分离的写法，例如 ``". ping"``。
        """
        tokens = text.split()
        if not tokens:
            return "", "", "", ""

        first = tokens[0].lower()
        prefix = self.match_prefix(first)
        if not prefix:
            return "", "", "", ""

        remainder = first[len(prefix):]
        if remainder:
            command, consumed = remainder, 1
        elif len(tokens) > 1:
            command, consumed = tokens[1].lower(), 2
        else:
            return prefix, "", "", ""

        args = " ".join(tokens[consumed:])

        # 在原文上做大小写无关匹配，lower() 可能改变字符串长度
        matches = list(re.finditer(re.escape(command), text, re.IGNORECASE))
        raw_args = text[matches[-1].end():].strip() if matches else args
        return prefix, command, args, raw_args

    def _quoted(self, context, chat: str | None) -> QuotedMessage | None:
        if context is None or not context.stanza_id or context.quoted_message is None:
            return None

        content = context.quoted_message.normalized()
        kind = content.kind
        flags = media_flags(kind)
        view_once = False
        if flags.any:
            body = content.variant(kind)
            view_once = bool(getattr(body, "view_once", False))

        return QuotedMessage(
            id=context.stanza_id,
            chat=context.remote_jid or chat,
            sender=context.participant,
            type=kind.value if kind else None,
            text=extract_text(content),
            media=flags,
            view_once=view_once,
            content=content,
        )
