"""原始消息结构定义

客户端推送的消息是 camelCase 的嵌套字典，这里用 pydantic 模型描述其中
与命令解析相关的部分，未知字段一律忽略。
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# 解包 ephemeral / viewOnce 等外壳的最大层数
MAX_UNWRAP_DEPTH = 5


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ContentKind(str, Enum):
    """消息内容的变体类型，取值即线上字段名"""

    CONVERSATION = "conversation"
    EXTENDED_TEXT = "extendedTextMessage"
    IMAGE = "imageMessage"
    VIDEO = "videoMessage"
    AUDIO = "audioMessage"
    STICKER = "stickerMessage"
    LOTTIE_STICKER = "lottieStickerMessage"
    DOCUMENT = "documentMessage"
    BUTTONS = "buttonsMessage"
    TEMPLATE = "templateMessage"
    LIST = "listMessage"
    PROTOCOL = "protocolMessage"
    EPHEMERAL = "ephemeralMessage"
    VIEW_ONCE = "viewOnceMessage"
    VIEW_ONCE_V2 = "viewOnceMessageV2"
    VIEW_ONCE_V2_EXTENSION = "viewOnceMessageV2Extension"
    DOCUMENT_WITH_CAPTION = "documentWithCaptionMessage"
    EDITED = "editedMessage"
    REACTION = "reactionMessage"
    CONTACT = "contactMessage"
    LOCATION = "locationMessage"
    POLL = "pollCreationMessage"


# 仅包裹另一条消息的外壳类型
WRAPPER_KINDS = (
    ContentKind.EPHEMERAL,
    ContentKind.VIEW_ONCE,
    ContentKind.VIEW_ONCE_V2,
    ContentKind.VIEW_ONCE_V2_EXTENSION,
    ContentKind.DOCUMENT_WITH_CAPTION,
    ContentKind.EDITED,
)

STICKER_KINDS = (ContentKind.STICKER, ContentKind.LOTTIE_STICKER)


class ContextInfo(WireModel):
    stanza_id: Optional[str] = None
    participant: Optional[str] = None
    remote_jid: Optional[str] = None
    quoted_message: Optional[MessageContent] = None
    mentioned_jid: list[str] = Field(default_factory=list)
    forwarding_score: Optional[int] = None
    is_forwarded: Optional[bool] = None


class ContentBody(WireModel):
    context_info: Optional[ContextInfo] = None


class ExtendedTextMessage(ContentBody):
    text: Optional[str] = None


class MediaMessage(ContentBody):
    # 保留 mediaKey / directPath 等下载所需字段
    model_config = ConfigDict(extra="allow")

    caption: Optional[str] = None
    mimetype: Optional[str] = None
    url: Optional[str] = None
    view_once: Optional[bool] = None


class DocumentMessage(MediaMessage):
    file_name: Optional[str] = None


class ButtonsMessage(ContentBody):
    content_text: Optional[str] = None


class HydratedTemplate(WireModel):
    hydrated_content_text: Optional[str] = None


class TemplateMessage(ContentBody):
    hydrated_template: Optional[HydratedTemplate] = None


class ListMessage(ContentBody):
    title: Optional[str] = None
    description: Optional[str] = None


class ProtocolMessage(WireModel):
    type: Optional[Any] = None
    edited_message: Optional[MessageContent] = None


class FutureProofMessage(WireModel):
    message: Optional[MessageContent] = None


class MessageContent(WireModel):
    """消息内容：一组互斥的变体字段，正常情况下只有一个非空"""

    conversation: Optional[str] = None
    extended_text_message: Optional[ExtendedTextMessage] = None
    image_message: Optional[MediaMessage] = None
    video_message: Optional[MediaMessage] = None
    audio_message: Optional[MediaMessage] = None
    sticker_message: Optional[MediaMessage] = None
    lottie_sticker_message: Optional[FutureProofMessage] = None
    document_message: Optional[DocumentMessage] = None
    buttons_message: Optional[ButtonsMessage] = None
    template_message: Optional[TemplateMessage] = None
    list_message: Optional[ListMessage] = None
    protocol_message: Optional[ProtocolMessage] = None
    ephemeral_message: Optional[FutureProofMessage] = None
    view_once_message: Optional[FutureProofMessage] = None
    view_once_message_v2: Optional[FutureProofMessage] = Field(default=None, alias="viewOnceMessageV2")
    view_once_message_v2_extension: Optional[FutureProofMessage] = Field(
        default=None, alias="viewOnceMessageV2Extension"
    )
    document_with_caption_message: Optional[FutureProofMessage] = None
    edited_message: Optional[FutureProofMessage] = None
    reaction_message: Optional[dict] = None
    contact_message: Optional[dict] = None
    location_message: Optional[dict] = None
    poll_creation_message: Optional[dict] = None

    def variant(self, kind: ContentKind) -> Any:
        return getattr(self, _FIELD_BY_KIND[kind])

    @property
    def kind(self) -> ContentKind | None:
        """第一个有值的变体（按字段声明顺序）"""
        for kind, field_name in _FIELD_BY_KIND.items():
            if getattr(self, field_name) is not None:
                return kind
        return None

    @property
    def context_info(self) -> ContextInfo | None:
        kind = self.kind
        if kind is None:
            return None
        body = self.variant(kind)
        return getattr(body, "context_info", None) if isinstance(body, BaseModel) else None

    def unwrap_once(self) -> MessageContent | None:
        """剥掉一层外壳，不是外壳类型时返回 None"""
        kind = self.kind
        if kind not in WRAPPER_KINDS:
            return None
        return self.variant(kind).message

    def normalized(self) -> MessageContent:
        """最多解开 MAX_UNWRAP_DEPTH 层外壳"""
        content = self
        for _ in range(MAX_UNWRAP_DEPTH):
            inner = content.unwrap_once()
            if inner is None:
                break
            content = inner
        return content


_FIELD_BY_KIND: dict[ContentKind, str] = {
    ContentKind(to_camel(name)): name for name in MessageContent.model_fields
}


class MessageKey(WireModel):
    remote_jid: Optional[str] = None
    remote_jid_alt: Optional[str] = None
    from_me: bool = False
    id: Optional[str] = None
    participant: Optional[str] = None
    participant_alt: Optional[str] = None


class WebMessage(WireModel):
    """一条完整的入站消息（信封 + 内容）"""

    key: MessageKey = Field(default_factory=MessageKey)
    message: Optional[MessageContent] = None
    push_name: Optional[str] = None
    message_timestamp: Optional[Any] = None


ContextInfo.model_rebuild()
ProtocolMessage.model_rebuild()
FutureProofMessage.model_rebuild()
MessageContent.model_rebuild()
WebMessage.model_rebuild()
