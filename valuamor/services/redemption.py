import logging
from dataclasses import dataclass
from datetime import datetime

from valuamor.db.models import Panel, RedeemCode, RedeemRank, State, UserKey
from valuamor.errors import (
    AlreadyUsedError,
    CodeNotFoundError,
    InsufficientPermissionError,
    KeyNotFoundError,
    UnconfiguredError,
    WrongScopeError,
)
from valuamor.services.accrual import is_active
from valuamor.services.codes import generate_redeem_code, generate_user_key_token
from config import settings


logger = logging.getLogger(__name__)

ROLE_ACCESS_RANK = "Role Access"
ROLE_ACCESS_DURATION = "Permanent (Role)"
BUYER_CODE_DURATION = "1x per server"


@dataclass(frozen=True)
class ScriptAccess:
    key: UserKey
    premium: bool
    via_role: bool


@dataclass(frozen=True)
class RoleGrant:
    role_id: str
    already_assigned: bool


def _script_for(panel: Panel | None) -> str:
    if panel and panel.script:
        return panel.script
    return settings.default_script


def _store_code(state: State, code: RedeemCode) -> RedeemCode:
    existing = state.redeem_codes.get(code.code)
    if existing is not None:
        # Collisions keep the stored record untouched.
        logger.warning("Redeem code collision", extra={"code": code.code})
        return existing
    state.redeem_codes[code.code] = code
    return code


def create_redeem_code(
    state: State,
    rank: RedeemRank,
    duration: str,
    created_by: str,
    now: datetime,
) -> RedeemCode:
    return _store_code(
        state,
        RedeemCode(
            code=generate_redeem_code(),
            rank=rank,
            duration=duration,
            created_at=now,
            created_by=created_by,
        ),
    )


def create_buyer_code(state: State, created_by: str, now: datetime) -> RedeemCode:
    return _store_code(
        state,
        RedeemCode(
            code=generate_redeem_code(),
            rank=RedeemRank.BUYER,
            duration=BUYER_CODE_DURATION,
            created_at=now,
            created_by=created_by,
            single_use_per_server=True,
        ),
    )


def delete_redeem_code(state: State, code: str) -> None:
    if code not in state.redeem_codes:
        raise CodeNotFoundError("❌ Kode tidak ditemukan!")
    del state.redeem_codes[code]


def list_redeem_codes(state: State, limit: int = 10) -> list[RedeemCode]:
    codes = sorted(
        state.redeem_codes.values(),
        key=lambda entry: entry.created_at.timestamp() if entry.created_at else 0,
        reverse=True,
    )
    return codes[:limit]


def redeem(
    state: State,
    code: str,
    user_id: str,
    guild_id: str,
    panel: Panel | None,
    now: datetime,
) -> UserKey:
    entry = state.redeem_codes.get(code.strip())
    if entry is None:
        raise CodeNotFoundError()

    if entry.rank == RedeemRank.BUYER:
        if entry.used and entry.used_by != user_id:
            raise AlreadyUsedError("❌ Kode ini sudah digunakan oleh user lain!")
        if entry.used_in_guild and entry.used_in_guild != guild_id:
            raise WrongScopeError()

    key = UserKey(
        user_id=user_id,
        key=generate_user_key_token(),
        rank=entry.rank.value,
        duration=entry.duration,
        redeemed_at=now,
        guild_id=guild_id,
        script=_script_for(panel),
        panel_type=panel.panel_type if panel else None,
    )
    state.user_keys[user_id] = key

    if entry.rank == RedeemRank.BUYER and not entry.used:
        entry.used = True
        entry.used_by = user_id
        entry.used_in_guild = guild_id

    logger.info(
        "Code redeemed",
        extra={"code": entry.code, "user_id": user_id, "guild_id": guild_id},
    )
    return key


def authorize_script_access(
    state: State,
    user_id: str,
    guild_id: str,
    member_role_ids: frozenset[str],
    panel: Panel,
    now: datetime,
) -> ScriptAccess:
    has_role = bool(panel.required_role) and panel.required_role in member_role_ids
    premium = is_active(state.premium_buyers.get(user_id), now)
    if not premium and not has_role:
        raise InsufficientPermissionError(
            "🔒 Access Denied / Akses Ditolak\n"
            "You must have a **Specific Role** or **Premium** status to get the script! / "
            "Anda harus memiliki **Role Khusus** atau status **Premium** untuk mengambil script!"
        )

    key = state.user_keys.get(user_id)
    if key is None or not key.script:
        if not has_role:
            raise KeyNotFoundError(
                "❌ Anda tidak memiliki script! Silakan redeem key terlebih dahulu."
            )
        key = UserKey(
            user_id=user_id,
            key=generate_user_key_token(),
            rank=ROLE_ACCESS_RANK,
            duration=ROLE_ACCESS_DURATION,
            redeemed_at=now,
            guild_id=guild_id,
            script=_script_for(panel),
            panel_type=panel.panel_type,
        )
        state.user_keys[user_id] = key
        logger.info("Role access key issued", extra={"user_id": user_id})

    return ScriptAccess(key=key, premium=premium, via_role=has_role and not premium)


def authorize_role_grant(
    state: State,
    user_id: str,
    guild_id: str,
    member_role_ids: frozenset[str],
    panel: Panel,
    now: datetime,
) -> RoleGrant:
    if not panel.required_role:
        raise UnconfiguredError("❌ Role belum diset!")
    if not is_active(state.premium_buyers.get(user_id), now):
        raise InsufficientPermissionError(
            "🔒 Premium Required\nPremium Anda sudah **expired** atau belum aktif!"
        )
    if panel.required_role in member_role_ids:
        return RoleGrant(role_id=panel.required_role, already_assigned=True)

    key = state.user_keys.get(user_id)
    if key is None:
        raise KeyNotFoundError(
            "❌ Anda belum memiliki akses! Silakan redeem key terlebih dahulu."
        )
    if key.rank == RedeemRank.BUYER.value and key.guild_id != guild_id:
        raise WrongScopeError(
            "❌ Key Anda terdaftar di server lain! Key buyer hanya bisa digunakan di satu server."
        )
    return RoleGrant(role_id=panel.required_role, already_assigned=False)
