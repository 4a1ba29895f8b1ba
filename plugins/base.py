# plugins/base.py
"""命令插件定义"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from commands.context import MessageContext


class CommandArgs(BaseModel):
    """传给插件的解析后参数"""

    args: str = ""
    raw_args: str = ""
    command: str = ""
    prefix: str = ""
    mentions: list[str] = Field(default_factory=list)

    @property
    def argv(self) -> list[str]:
        return self.args.split() if self.args else []


class Plugin(ABC):
    """命令插件：响应一组命令名，可声明主人/群聊/管理员限制"""

    commands: tuple[str, ...] = ()
    only_owner: bool = False
    only_group: bool = False
    only_admin: bool = False
    description: str = ""

    @property
    def name(self) -> str:
        return self.commands[0] if self.commands else type(self).__name__

    @abstractmethod
    async def handle(self, ctx: "MessageContext", args: CommandArgs) -> Any:
        ...


PluginHandler = Callable[["MessageContext", CommandArgs], Awaitable[Any]]


class FunctionPlugin(Plugin):
    """由 @command 装饰的函数生成的插件"""

    def __init__(
        self,
        handler: PluginHandler,
        commands: tuple[str, ...],
        only_owner: bool = False,
        only_group: bool = False,
        only_admin: bool = False,
        description: str = "",
    ):
        self._handler = handler
        self.commands = commands
        self.only_owner = only_owner
        self.only_group = only_group
        self.only_admin = only_admin
        self.description = description or (handler.__doc__ or "").strip()

    async def handle(self, ctx: "MessageContext", args: CommandArgs) -> Any:
        return await self._handler(ctx, args)


def command(*names: str, only_owner: bool = False, only_group: bool = False, only_admin: bool = False, description: str = ""):
    """
    装饰器：把异步函数包装成插件

    @command("ping")
    async def ping(ctx: MessageContext, args: CommandArgs):
        ...

    装饰后得到的是 FunctionPlugin 实例，需要通过 PluginRegistry 注册才会生效。
    """
    def wrapper(func: PluginHandler) -> FunctionPlugin:
        return FunctionPlugin(
            func,
            commands=tuple(names),
            only_owner=only_owner,
            only_group=only_group,
            only_admin=only_admin,
            description=description,
        )

    return wrapper
