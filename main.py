#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
BaseBot - 命令分发与群状态同步机器人
"""

import asyncio
import logging
import signal
import sys
from argparse import ArgumentParser

from bot import BaseBot, __version__
from channel import Channel, LocalChannel
from configuration import Config
from errors import LoggedOutError

logger = logging.getLogger("BaseBot.main")


def setup_logging(level: int = logging.INFO):
    """配置日志（config.yaml 中有 logging 段时会被 dictConfig 覆盖）"""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # 降低第三方库日志级别
    for name in ["asyncio", "urllib3"]:
        logging.getLogger(name).setLevel(logging.WARNING)


def handle_uncaught(exc_type, exc, tb):
    """未捕获异常：记录后以状态码 1 退出"""
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc, tb)
        return
    logger.critical(f"未捕获的异常: {exc}", exc_info=(exc_type, exc, tb))
    sys.exit(1)


def create_channel(config: Config, local: bool) -> Channel | None:
    """创建消息客户端；真实传输层由外部客户端实现，这里只内置本地调试通道"""
    if local:
        return LocalChannel(bot_name=config.BOT_NAME, user_name="User")
    return None


async def run(config_path: str | None = None, local: bool = False) -> int:
    """运行机器人直到退出

    Returns:
        进程退出码，致命错误时为 1
    """
    try:
        config = Config(config_path)
    except Exception as e:
        logger.critical(f"加载配置失败: {e}", exc_info=True)
        return 1

    channel = create_channel(config, local)
    if channel is None:
        logger.error("未配置消息客户端，如需本地调试，请运行: python main.py --local")
        return 1

    bot = BaseBot(channel=channel, config=config)

    loop = asyncio.get_running_loop()
    main_task = asyncio.current_task()
    failed = False

    def handle_loop_exception(loop, context):
        nonlocal failed
        failed = True
        exc = context.get("exception")
        logger.critical(f"未处理的异步异常: {context.get('message')}", exc_info=exc)
        main_task.cancel()

    loop.set_exception_handler(handle_loop_exception)

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, main_task.cancel)
        except NotImplementedError:
            # Windows 不支持 add_signal_handler
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(main_task.cancel))

    logger.info(f"BaseBot v{__version__} 启动中...")
    try:
        await bot.start()
    except asyncio.CancelledError:
        if not failed:
            logger.info("收到退出信号，正在清理...")
    except LoggedOutError as e:
        logger.critical(f"{e}")
        failed = True
    except Exception as e:
        logger.critical(f"运行出错: {e}", exc_info=True)
        failed = True
    finally:
        await bot.stop()

    return 1 if failed else 0


def main():
    parser = ArgumentParser(description="BaseBot 命令分发机器人")
    parser.add_argument(
        "-d", "--debug", action="store_true", help="调试模式"
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="安静模式"
    )
    parser.add_argument(
        "--local", action="store_true", help="本地调试模式（命令行模拟客户端）"
    )
    parser.add_argument(
        "--config", default=None, help="配置文件路径，默认使用项目目录下的 config.yaml"
    )
    args = parser.parse_args()

    # 日志级别
    if args.debug:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        level = logging.INFO

    setup_logging(level)
    sys.excepthook = handle_uncaught

    sys.exit(asyncio.run(run(args.config, local=args.local)))


if __name__ == "__main__":
    main()
