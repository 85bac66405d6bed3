from dataclasses import dataclass, field

from config import settings


@dataclass(frozen=True)
class Actor:
    """The user behind an interaction, as far as permission checks care."""

    user_id: str
    username: str
    role_ids: frozenset[str] = field(default_factory=frozenset)


def is_owner(actor: Actor) -> bool:
    return bool(settings.owner_username) and actor.username == settings.owner_username


def is_developer(actor: Actor) -> bool:
    if settings.development_username and actor.username == settings.development_username:
        return True
    return bool(settings.development_user_id) and actor.user_id == settings.development_user_id


def is_admin(actor: Actor) -> bool:
    if is_owner(actor) or is_developer(actor):
        return True
    return any(role_id in actor.role_ids for role_id in settings.admin_role_ids)
