# plugins/admin.py
import logging

from errors import MetadataUnavailableError
from groups import bot_is_admin, is_admin

from .base import CommandArgs, command

logger = logging.getLogger(__name__)


@command("cekadmin", "checkadmin", only_group=True)
async def check_admin(ctx, args: CommandArgs):
    """查看机器人和发送者在本群的管理员状态"""
    try:
        state = await ctx.metadata()
    except MetadataUnavailableError as e:
        logger.warning(f"{e}")
        await ctx.reply("Failed to get group metadata")
        return
    sender_admin = is_admin(state, ctx.invocation.sender) or is_admin(state, ctx.invocation.sender_alt)

    def mark(flag: bool) -> str:
        return "✅" if flag else "❌"

    await ctx.reply(
        f"*{state.subject or ctx.chat}*\n"
        f"Bot admin: {mark(bot_is_admin(state, ctx.channel))}\n"
        f"You admin: {mark(sender_admin)}\n"
        f"Admins: {len(state.admins)}/{state.size}"
    )
