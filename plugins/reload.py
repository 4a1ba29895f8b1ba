# plugins/reload.py
import logging

from .base import CommandArgs, command

logger = logging.getLogger(__name__)


@command("reload", only_owner=True)
async def reload_plugins(ctx, args: CommandArgs):
    """重建插件注册表"""
    if ctx.plugins is None:
        await ctx.reply("_Plugin registry is not available._")
        return
    count = ctx.plugins.reload()
    logger.info(f"{ctx.invocation.sender} 重新加载了插件")
    await ctx.reply(f"_Reloaded {count} plugins._")
