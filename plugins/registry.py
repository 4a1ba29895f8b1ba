# plugins/registry.py
"""插件注册表"""

import logging
from typing import Callable, Iterable

from errors import RegistrationError

from .base import Plugin

logger = logging.getLogger(__name__)

PluginLoader = Callable[[], Iterable[Plugin]]


def validate_plugin(plugin) -> Plugin:
    """检查插件是否满足接口约定，并把命令名统一为小写"""
    if not isinstance(plugin, Plugin):
        raise RegistrationError(plugin, "必须是 Plugin 实例")

    commands = plugin.commands
    if isinstance(commands, str) or not isinstance(commands, (list, tuple, set, frozenset)):
        raise RegistrationError(plugin, f"commands 必须是命令名集合，实际为 {commands!r}")
    if not commands:
        raise RegistrationError(plugin, "至少需要一个命令名")

    normalized = []
    for name in commands:
        if not isinstance(name, str) or not name.strip():
            raise RegistrationError(plugin, f"非法命令名 {name!r}")
        normalized.append(name.strip().lower())

    plugin.commands = tuple(normalized)
    return plugin


class PluginRegistry:
    """插件注册表 - 按加载顺序线性查找，先加载的插件遮蔽后加载的同名命令"""

    def __init__(self, loader: PluginLoader | None = None):
        self._loader = loader
        self._plugins: list[Plugin] = []

    def register(self, plugin: Plugin) -> None:
        """注册单个插件，不符合约定时抛出 RegistrationError"""
        plugin = validate_plugin(plugin)
        self._warn_shadowed(plugin, self._plugins)
        self._plugins = [*self._plugins, plugin]
        logger.debug(f"注册插件: {plugin.name} {list(plugin.commands)}")

    def load(self) -> int:
        """通过 loader 重建插件列表，整体替换旧列表

        不合规的插件记录错误后跳过，不影响其它插件。

        Returns:
            加载成功的插件数量
        """
        if self._loader is None:
            return len(self._plugins)

        plugins: list[Plugin] = []
        for plugin in self._loader():
            try:
                plugin = validate_plugin(plugin)
            except RegistrationError as e:
                logger.error(f"跳过插件: {e}")
                continue
            self._warn_shadowed(plugin, plugins)
            plugins.append(plugin)

        self._plugins = plugins
        logger.info(f"已加载 {len(plugins)} 个插件")
        return len(plugins)

    def reload(self) -> int:
        return self.load()

    @staticmethod
    def _warn_shadowed(plugin: Plugin, existing: list[Plugin]) -> None:
        for other in existing:
            shadowed = set(plugin.commands) & set(other.commands)
            if shadowed:
                logger.warning(
                    f"插件 {plugin.name} 的命令 {sorted(shadowed)} 已被 {other.name} 占用，将不会被触发"
                )

    def find(self, command: str) -> Plugin | None:
        """返回第一个响应该命令的插件"""
        if not command:
            return None
        command = command.lower()
        for plugin in self._plugins:
            if command in plugin.commands:
                return plugin
        return None

    @property
    def plugins(self) -> list[Plugin]:
        return list(self._plugins)

    def get_command_names(self) -> list[str]:
        return [name for plugin in self._plugins for name in plugin.commands]

    def __len__(self) -> int:
        return len(self._plugins)
