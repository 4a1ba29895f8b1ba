# handlers/chain.py
"""预处理链"""

import logging
from typing import TYPE_CHECKING, Iterable

from errors import RegistrationError

from .base import PreProcessHandler

if TYPE_CHECKING:
    from commands.context import MessageContext

logger = logging.getLogger(__name__)


class HandlerChain:
    """按优先级排序的否决链，不修改消息，只决定是否继续"""

    def __init__(self, handlers: Iterable[PreProcessHandler] = ()):
        self._handlers: list[PreProcessHandler] = []
        for handler in handlers:
            self.register(handler)

    def register(self, handler: PreProcessHandler) -> None:
        """注册预处理器，不符合接口约定时抛出 RegistrationError"""
        if not isinstance(handler, PreProcessHandler):
            raise RegistrationError(handler, "必须是 PreProcessHandler 实例")
        priority = getattr(handler, "priority", None)
        if isinstance(priority, bool) or not isinstance(priority, (int, float)):
            raise RegistrationError(handler, f"priority 必须是数字，实际为 {priority!r}")

        self._handlers.append(handler)
        # sort 是稳定的，同优先级保持注册顺序
        self._handlers.sort(key=lambda h: h.priority)
        logger.debug(f"注册预处理器: {handler.name} (priority={priority})")

    @property
    def handlers(self) -> list[PreProcessHandler]:
        return list(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    async def run_all(self, ctx: "MessageContext") -> bool:
        """依次执行所有预处理器

        Returns:
            是否继续处理；只有某个预处理器返回字面值 False 时为 False
        """
        for handler in self._handlers:
            try:
                result = await handler.process(ctx)
            except Exception as e:
                logger.error(f"预处理器 {handler.name} 执行失败: {e}", exc_info=True)
                continue

            if result is False:
                logger.debug(f"预处理器 {handler.name} 终止了消息 {ctx.invocation.id}")
                return False

        return True
