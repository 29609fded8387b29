from types import SimpleNamespace

from recruitcord.bot.permissions import can_manage_blacklist, can_manage_recruits, has_any_role, member_role_ids


def member(*role_ids):
    return SimpleNamespace(roles=[SimpleNamespace(id=role_id) for role_id in role_ids])


def test_member_role_ids():
    assert member_role_ids(member(1, 2)) == {"1", "2"}
    assert member_role_ids(SimpleNamespace()) == set()


def test_has_any_role():
    assert has_any_role(member(1, 2), ["2"])
    assert has_any_role(member(1), [1])
    assert not has_any_role(member(1, 2), ["3"])


def test_empty_allow_list_denies():
    assert not has_any_role(member(1), [])


def test_plain_user_without_roles_is_denied():
    assert not has_any_role(SimpleNamespace(roles=None), ["1"])


def test_config_backed_checks():
    config = SimpleNamespace(blacklist_allowed_roles=["10"], recruit_manager_roles=["20"])
    assert can_manage_blacklist(member(10), config)
    assert not can_manage_recruits(member(10), config)
    assert can_manage_recruits(member(20), config)
