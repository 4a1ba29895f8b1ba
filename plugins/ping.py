# plugins/ping.py
import time

from .base import CommandArgs, command


@command("ping")
async def ping(ctx, args: CommandArgs):
    """测试响应速度"""
    start = time.perf_counter()
    sent = await ctx.reply("Pinging...")
    elapsed = (time.perf_counter() - start) * 1000
    text = f"Pong! {elapsed:.0f} ms"
    if sent and sent.get("key"):
        await ctx.edit(sent["key"], text)
    else:
        await ctx.reply(text)
