"""pytest 公共夹具"""

import sys
from pathlib import Path

import pytest

# 项目是平铺布局，把根目录加入 sys.path 以便直接导入各个包
root_path = Path(__file__).parent.parent
if str(root_path) not in sys.path:
    sys.path.insert(0, str(root_path))

from channel import LocalChannel  # noqa: E402
from commands import MessageNormalizer  # noqa: E402
from configuration import Config  # noqa: E402
from dispatcher import Dispatcher  # noqa: E402
from groups import GroupStateCache  # noqa: E402
from handlers import HandlerChain  # noqa: E402
from plugins import PluginRegistry  # noqa: E402

BOT_ID = "10000@s.whatsapp.net"
BOT_LID = "90000@lid"
OWNER = "6280000000000@s.whatsapp.net"
USER = "20000@s.whatsapp.net"
ADMIN = "30000@s.whatsapp.net"
GROUP_ID = "120363000000000001@g.us"

CONFIG_TEXT = """
bot:
  name: TestBot
  mode: {mode}
  prefix:
    - "."
    - "!"
  owner:
    - "+6280000000000"
group_cache:
  ttl: 60
rate_limit:
  max_messages: 0
  window: 60
"""


class FakeClock:
    """可手动推进的时钟"""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def write_config(tmp_path: Path, mode: str = "public") -> Config:
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_TEXT.format(mode=mode), encoding="utf-8")
    return Config(str(path))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return write_config(tmp_path)


@pytest.fixture
def channel() -> LocalChannel:
    local = LocalChannel(bot_name="TestBot", user_name="Tester", bot_id=BOT_ID, user_id=USER, bot_lid=BOT_LID)
    local.echo = False
    return local


@pytest.fixture
def cache(channel: LocalChannel, clock: FakeClock) -> GroupStateCache:
    return GroupStateCache(channel.group_metadata, ttl=60, clock=clock)


@pytest.fixture
def group(channel: LocalChannel) -> dict:
    """一个机器人和 ADMIN 都是管理员的群"""
    return channel.add_group(
        GROUP_ID,
        subject="Test Group",
        participants=[
            {"id": BOT_LID, "phoneNumber": BOT_ID, "admin": "admin"},
            {"id": "70000@lid", "phoneNumber": ADMIN, "admin": "superadmin"},
            {"id": "80000@lid", "phoneNumber": USER, "admin": None},
            {"id": "60000@lid", "phoneNumber": OWNER, "admin": None},
        ],
    )


@pytest.fixture
def registry() -> PluginRegistry:
    return PluginRegistry()


@pytest.fixture
def dispatcher(channel, cache, config, registry) -> Dispatcher:
    return Dispatcher(
        normalizer=MessageNormalizer(config.PREFIXES),
        chain=HandlerChain(),
        registry=registry,
        cache=cache,
        channel=channel,
        config=config,
    )
