"""群管理操作测试"""

import pytest

from conftest import ADMIN, BOT_ID, GROUP_ID, OWNER, USER
from groups import Group, bot_is_admin, is_admin, is_participant


@pytest.fixture
def helper(channel, cache, group) -> Group:
    return Group(GROUP_ID, channel, cache)


def member_admin(channel, number_jid):
    for p in channel.groups[GROUP_ID]["participants"]:
        if number_jid in (p.get("id"), p.get("phoneNumber")):
            return p.get("admin")
    raise AssertionError(f"{number_jid} not in group")


@pytest.mark.asyncio
async def test_predicates(helper, channel):
    state = await helper.metadata()
    assert is_participant(state, USER)
    assert not is_participant(state, "55555@s.whatsapp.net")
    assert is_admin(state, "70000@lid")
    assert is_admin(state, ADMIN)
    assert not is_admin(state, USER)
    assert not is_admin(None, USER)
    assert bot_is_admin(state, channel)


@pytest.mark.asyncio
async def test_promote_and_demote(helper, channel):
    assert await helper.promote(USER) is True
    assert member_admin(channel, USER) == "admin"

    assert await helper.promote("55555@s.whatsapp.net") is None
    # 缓存里 ADMIN 已经是管理员
    assert await helper.promote(ADMIN) is None

    assert await helper.demote(ADMIN) is True
    assert await helper.demote(OWNER) is None


@pytest.mark.asyncio
async def test_remove_absent_member_is_noop(helper, channel):
    assert await helper.remove("55555@s.whatsapp.net") is None
    assert channel.sent == []
    assert await helper.remove(USER) is True
    assert len(channel.groups[GROUP_ID]["participants"]) == 3


@pytest.mark.asyncio
async def test_settings_noop_when_already_in_state(channel, cache):
    channel.add_group(GROUP_ID, announce=True, restrict=False, joinApprovalMode=False, memberAddMode=False, ephemeralDuration=0)
    helper = Group(GROUP_ID, channel, cache)

    assert await helper.set_announcement("announcement") is None
    assert await helper.set_restricted("unlocked") is None
    assert await helper.set_join_approval("off") is None
    assert await helper.set_member_add_mode("admin_add") is None
    assert await helper.set_ephemeral(0) is None

    assert await helper.set_announcement("not_announcement") is True
    assert channel.groups[GROUP_ID]["announce"] is False
    assert await helper.set_restricted("locked") is True
    assert await helper.set_join_approval("on") is True
    assert await helper.set_member_add_mode("all_member_add") is True
    assert await helper.set_ephemeral(86400) is True
    assert channel.groups[GROUP_ID]["ephemeralDuration"] == 86400


@pytest.mark.asyncio
async def test_kick_all_spares_admins_bot_and_owner(channel, cache):
    channel.add_group(
        GROUP_ID,
        owner=OWNER,
        participants=[
            {"id": BOT_ID, "admin": None},
            {"id": OWNER, "admin": None},
            {"id": ADMIN, "admin": "admin"},
            {"id": USER, "admin": None},
            {"id": "55555@s.whatsapp.net", "admin": None},
        ],
    )
    helper = Group(GROUP_ID, channel, cache)

    await helper.kick_all()
    remaining = {p["id"] for p in channel.groups[GROUP_ID]["participants"]}
    assert remaining == {BOT_ID, OWNER, ADMIN}


@pytest.mark.asyncio
async def test_kick_all_nothing_to_do(channel, cache):
    channel.add_group(GROUP_ID, participants=[{"id": BOT_ID, "admin": "admin"}])
    assert await Group(GROUP_ID, channel, cache).kick_all() is None


@pytest.mark.asyncio
async def test_invite_links(helper):
    link = await helper.get_invite_code()
    assert link.startswith("https://chat.whatsapp.com/")
    assert await helper.get_invite_code() == link

    revoked = await helper.revoke_invite()
    assert revoked.startswith("https://chat.whatsapp.com/")
    assert revoked != link


@pytest.mark.asyncio
async def test_leave_invalidates_cache(helper, cache, channel):
    await helper.metadata()
    assert cache.has(GROUP_ID)
    await helper.leave()
    assert not cache.has(GROUP_ID)
    assert GROUP_ID not in channel.groups
