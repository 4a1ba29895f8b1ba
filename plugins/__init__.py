# plugins/__init__.py
from .base import CommandArgs, FunctionPlugin, Plugin, command
from .registry import PluginRegistry, validate_plugin

__all__ = [
    "CommandArgs",
    "FunctionPlugin",
    "Plugin",
    "command",
    "PluginRegistry",
    "validate_plugin",
    "builtin_plugins",
    "create_default_registry",
]


def builtin_plugins() -> list[Plugin]:
    """启动时枚举的内置插件，顺序即查找顺序"""
    from .admin import check_admin
    from .ping import ping
    from .reload import reload_plugins

    return [ping, check_admin, reload_plugins]


def create_default_registry(loader=builtin_plugins) -> PluginRegistry:
    """创建并加载包含所有内置插件的注册表"""
    registry = PluginRegistry(loader)
    registry.load()
    return registry
