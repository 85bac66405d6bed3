import logging
from dataclasses import dataclass
from datetime import datetime

from valuamor.db.models import State, UserKey
from valuamor.errors import KeyNotFoundError, NotFoundError
from valuamor.services.accrual import is_active, remaining_time_label
from valuamor.services.codes import generate_user_key_token
from config import settings


logger = logging.getLogger(__name__)

MANUAL_ACCESS_RANK = "Manual Access"


@dataclass(frozen=True)
class UserStats:
    user_id: str
    key: str | None
    rank: str | None
    duration: str | None
    redeemed_at: datetime | None
    premium: bool
    remaining: str | None


def grant_manual_access(
    state: State,
    user_id: str,
    duration: str,
    granted_by: str,
    now: datetime,
) -> UserKey:
    key = state.user_keys.get(user_id)
    if key is None:
        key = UserKey(
            user_id=user_id,
            key=generate_user_key_token(),
            rank=MANUAL_ACCESS_RANK,
            redeemed_at=now,
            script=settings.default_script,
        )
        state.user_keys[user_id] = key
    key.duration = duration
    key.access_granted = True
    key.granted_at = now
    key.granted_by = granted_by
    logger.info(
        "Manual access granted",
        extra={"user_id": user_id, "duration": duration, "granted_by": granted_by},
    )
    return key


def remove_user_key(state: State, user_id: str) -> None:
    if user_id not in state.user_keys:
        raise KeyNotFoundError("❌ User tersebut tidak memiliki akses!")
    del state.user_keys[user_id]
    logger.info("User key removed", extra={"user_id": user_id})


def list_user_keys(state: State, limit: int = 10) -> list[UserKey]:
    return list(state.user_keys.values())[:limit]


def user_stats(state: State, user_id: str, now: datetime) -> UserStats:
    key = state.user_keys.get(user_id)
    if key is None:
        raise KeyNotFoundError(
            "❌ Anda belum memiliki key! Silakan redeem key terlebih dahulu."
        )
    buyer = state.premium_buyers.get(user_id)
    return UserStats(
        user_id=user_id,
        key=key.key,
        rank=key.rank,
        duration=key.duration,
        redeemed_at=key.redeemed_at,
        premium=is_active(buyer, now),
        remaining=remaining_time_label(buyer, now),
    )


def reset_hwid(state: State, user_id: str) -> None:
    if user_id not in state.hwids:
        raise NotFoundError("❌ Tidak ada HWID yang tersimpan untuk akun Anda!")
    del state.hwids[user_id]
    logger.info("HWID reset", extra={"user_id": user_id})
