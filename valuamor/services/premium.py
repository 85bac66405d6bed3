import logging
from dataclasses import dataclass
from datetime import datetime

from valuamor.db.models import PremiumBuyer, State
from valuamor.errors import PremiumNotFoundError
from valuamor.services.accrual import Duration, accrue, is_active, remaining_time_label


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PremiumStatus:
    user_id: str
    active: bool
    remaining: str | None
    added_date: datetime | None
    granted_by: str | None


def is_premium_active(state: State, user_id: str, now: datetime) -> bool:
    return is_active(state.premium_buyers.get(user_id), now)


def grant(
    state: State, user_id: str, duration: Duration, granted_by: str, now: datetime
) -> PremiumBuyer:
    buyer = state.premium_buyers.get(user_id)
    if buyer is None:
        buyer = PremiumBuyer(user_id=user_id, added_date=now, granted_by=granted_by)
        state.premium_buyers[user_id] = buyer
    accrue(buyer, duration, granted_by, now)
    logger.info(
        "Premium granted",
        extra={
            "user_id": user_id,
            "duration": duration.label(),
            "granted_by": granted_by,
        },
    )
    return buyer


def revoke(state: State, user_id: str) -> None:
    if user_id not in state.premium_buyers:
        raise PremiumNotFoundError()
    del state.premium_buyers[user_id]
    logger.info("Premium revoked", extra={"user_id": user_id})


def sweep_expirations(state: State, now: datetime) -> list[PremiumBuyer]:
    """Flag buyers whose time ran out; returns only the newly flagged ones."""
    newly_expired = []
    for buyer in state.premium_buyers.values():
        if buyer.lifetime or buyer.expiry_date is None:
            continue
        if now < buyer.expiry_date or buyer.expired:
            continue
        buyer.expired = True
        buyer.expired_at = now
        newly_expired.append(buyer)
    if newly_expired:
        logger.info(
            "Premium expired",
            extra={
                "checked": len(state.premium_buyers),
                "expired": [buyer.user_id for buyer in newly_expired],
            },
        )
    return newly_expired


def premium_status(state: State, user_id: str, now: datetime) -> PremiumStatus:
    buyer = state.premium_buyers.get(user_id)
    return PremiumStatus(
        user_id=user_id,
        active=is_active(buyer, now),
        remaining=remaining_time_label(buyer, now),
        added_date=buyer.added_date if buyer else None,
        granted_by=buyer.granted_by if buyer else None,
    )


def list_premium(state: State, now: datetime, limit: int = 10) -> list[PremiumStatus]:
    return [
        premium_status(state, user_id, now)
        for user_id in list(state.premium_buyers)[:limit]
    ]
