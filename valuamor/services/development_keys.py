import logging
from datetime import datetime

from valuamor.db.models import DevelopmentKey, State
from valuamor.errors import AlreadyUsedError, KeyNotFoundError
from valuamor.services.codes import generate_dev_key_token


logger = logging.getLogger(__name__)


def create_development_key(
    state: State,
    role: str,
    player_id: str,
    unlimited: bool,
    created_by: str,
    now: datetime,
) -> DevelopmentKey:
    token = generate_dev_key_token(now)
    existing = state.development_keys.get(token)
    if existing is not None:
        logger.warning("Development key collision", extra={"key": token})
        return existing
    key = DevelopmentKey(
        key=token,
        role=role,
        player_id=player_id,
        unlimited=unlimited,
        created_at=now,
        created_by=created_by,
    )
    state.development_keys[token] = key
    logger.info(
        "Development key created",
        extra={"key": token, "role": role, "unlimited": unlimited},
    )
    return key


def claim_development_key(state: State, key: str, user_id: str) -> DevelopmentKey:
    entry = state.development_keys.get(key.strip())
    if entry is None:
        raise KeyNotFoundError("❌ Development key tidak valid!")
    if entry.unlimited:
        return entry
    if entry.used:
        if entry.used_by == user_id:
            return entry
        raise AlreadyUsedError("❌ Development key ini sudah digunakan!")
    entry.used = True
    entry.used_by = user_id
    logger.info("Development key claimed", extra={"key": entry.key, "user_id": user_id})
    return entry


def delete_development_key(state: State, key: str) -> None:
    if key not in state.development_keys:
        raise KeyNotFoundError("❌ Development key tidak ditemukan!")
    del state.development_keys[key]


def list_development_keys(state: State, limit: int = 15) -> list[DevelopmentKey]:
    keys = sorted(
        state.development_keys.values(),
        key=lambda entry: entry.created_at.timestamp() if entry.created_at else 0,
        reverse=True,
    )
    return keys[:limit]
