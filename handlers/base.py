# handlers/base.py
"""预处理器抽象基类定义"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from commands.context import MessageContext

DEFAULT_PRIORITY = 100


class PreProcessHandler(ABC):
    """预处理器：在命令匹配之前运行，返回 False 表示终止后续所有处理"""

    priority: int = DEFAULT_PRIORITY  # 越小越先执行

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def process(self, ctx: "MessageContext") -> bool | None:
        """处理消息

        Returns:
            False 终止处理；其它任何返回值都继续
        """
        ...
