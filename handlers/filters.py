# handlers/filters.py
"""内置预处理器"""

import logging
import time
from collections import deque
from typing import TYPE_CHECKING, Callable

from .base import PreProcessHandler

if TYPE_CHECKING:
    from commands.context import MessageContext

logger = logging.getLogger(__name__)


class IgnoreSelfFilter(PreProcessHandler):
    """跳过机器人账号自己发出的消息"""

    priority = 10

    async def process(self, ctx: "MessageContext") -> bool | None:
        if ctx.invocation.from_me:
            return False
        return None


class RateLimitFilter(PreProcessHandler):
    """按发送者做滑动窗口限流，主人不受限制"""

    priority = 50

    def __init__(
        self,
        max_messages: int = 0,
        window: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_messages = max_messages
        self.window = window
        self._clock = clock
        self._timestamps: dict[str, deque] = {}

    async def process(self, ctx: "MessageContext") -> bool | None:
        if self.max_messages <= 0 or not ctx.invocation.is_command:
            return None
        if ctx.is_owner:
            return None

        sender = ctx.invocation.sender or ""
        now = self._clock()
        timestamps = self._timestamps.setdefault(sender, deque())
        while timestamps and now - timestamps[0] >= self.window:
            timestamps.popleft()

        if len(timestamps) >= self.max_messages:
            logger.info(f"{sender} 触发限流 ({self.max_messages} 条 / {self.window} 秒)")
            return False

        timestamps.append(now)
        return None
