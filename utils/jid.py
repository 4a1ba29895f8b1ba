"""JID 工具函数

WhatsApp 的用户标识有两种形式：手机号形式 (``628123@s.whatsapp.net``) 和
lid 形式 (``1203@lid``)。两者通过开头的数字串对齐。
"""

import re

GROUP_SUFFIX = "@g.us"
BROADCAST_SUFFIX = "@broadcast"
STATUS_BROADCAST = "status@broadcast"
USER_SERVER = "s.whatsapp.net"

_NUMERIC_PREFIX = re.compile(r"^\d+")


def numeric_prefix(jid: str | None) -> str | None:
    """取出 JID 开头的数字串，没有则返回 None"""
    if not jid or not isinstance(jid, str):
        return None
    match = _NUMERIC_PREFIX.match(jid)
    return match.group(0) if match else None


def same_user(a: str | None, b: str | None) -> bool:
    left = numeric_prefix(a)
    return left is not None and left == numeric_prefix(b)


def is_group_jid(jid: str | None) -> bool:
    return bool(jid) and jid.endswith(GROUP_SUFFIX)


def is_broadcast_jid(jid: str | None) -> bool:
    """广播列表或状态广播"""
    if not jid:
        return False
    return jid == STATUS_BROADCAST or jid.endswith(BROADCAST_SUFFIX)


def normalized_user(jid: str | None) -> str | None:
    """去掉设备号: ``628123:12@s.whatsapp.net`` -> ``628123@s.whatsapp.net``"""
    if not jid:
        return None
    if "@" not in jid:
        return jid
    user, server = jid.split("@", 1)
    user = user.split(":", 1)[0]
    if server == "c.us":
        server = USER_SERVER
    return f"{user}@{server}"

