#!/usr/bin/env python3
# local_main.py
"""本地调试入口 - 无需真实客户端"""

import asyncio
import logging
import sys
from pathlib import Path

# 添加项目根目录到 Python 路径
sys.path.insert(0, str(Path(__file__).parent))

from main import handle_uncaught, run, setup_logging


def main(config_path: str | None = None) -> int:
    setup_logging(logging.INFO)
    sys.excepthook = handle_uncaught
    return asyncio.run(run(config_path, local=True))


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n再见！")
