# commands package
"""
消息解析组件包

- content: 原始消息结构（pydantic 模型）
- invocation: 解析结果 CommandInvocation
- normalizer: 原始消息 -> CommandInvocation
- context: 交给预处理器和插件的消息上下文
"""
from .context import MessageContext
from .invocation import CommandInvocation, MediaFlags, QuotedMessage
from .normalizer import MessageNormalizer, extract_text

__all__ = [
    "MessageContext",
    "CommandInvocation",
    "MediaFlags",
    "QuotedMessage",
    "MessageNormalizer",
    "extract_text",
]
