# handlers/__init__.py
from .base import DEFAULT_PRIORITY, PreProcessHandler
from .chain import HandlerChain
from .filters import IgnoreSelfFilter, RateLimitFilter

__all__ = [
    "DEFAULT_PRIORITY",
    "PreProcessHandler",
    "HandlerChain",
    "IgnoreSelfFilter",
    "RateLimitFilter",
]


def create_default_chain(config=None) -> HandlerChain:
    """创建包含所有内置预处理器的处理链"""
    rate_limit = getattr(config, "RATE_LIMIT", None) or {}
    chain = HandlerChain()
    chain.register(IgnoreSelfFilter())
    chain.register(
        RateLimitFilter(
            max_messages=rate_limit.get("max_messages", 0),
            window=rate_limit.get("window", 60),
        )
    )
    return chain
