"""Role-id based authorisation checks for the Discord layer."""

from __future__ import annotations

from typing import Iterable, Set

from recruitcord.configuration.app_configuration import AppConfig


def member_role_ids(member) -> Set[str]:
    """Return the ids of a member's roles as strings (empty for plain users)."""
    roles = getattr(member, "roles", None) or []
    return {str(role.id) for role in roles}


def has_any_role(member, allowed_role_ids: Iterable[str]) -> bool:
    """True when the member holds at least one of the allowed roles.

    An empty allow-list denies everyone.
    """
    allowed = {str(role_id) for role_id in allowed_role_ids}
    if not allowed:
        return False
    return bool(member_role_ids(member) & allowed)


def can_manage_blacklist(member, config: AppConfig) -> bool:
    return has_any_role(member, config.blacklist_allowed_roles)


def can_manage_recruits(member, config: AppConfig) -> bool:
    return has_any_role(member, config.recruit_manager_roles)
