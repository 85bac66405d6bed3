import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from valuamor.db.models import (
    DevelopmentKey,
    Panel,
    PanelStatus,
    PartnerConfig,
    PartnerRequest,
    PremiumBuyer,
    RedeemCode,
    RedeemRank,
    RequestStatus,
    State,
    StateDocument,
    UserKey,
    utcnow,
)


logger = logging.getLogger(__name__)

TABLES = (
    "panels",
    "redeemCodes",
    "userKeys",
    "hwids",
    "premiumBuyers",
    "partnerRequests",
    "partnerConfig",
    "developmentKeys",
)


def to_millis(value: datetime | None) -> int | None:
    if value is None:
        return None
    return int(value.timestamp() * 1000)


def from_millis(value: Any) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)


def _rank(value: str | None) -> RedeemRank:
    try:
        return RedeemRank(value)
    except ValueError:
        return RedeemRank.OTHER


def _panel_status(value: str | None) -> PanelStatus | None:
    if value is None:
        return None
    try:
        return PanelStatus(value)
    except ValueError:
        return PanelStatus.ACTIVE


def _request_status(value: str | None) -> RequestStatus:
    try:
        return RequestStatus(value)
    except ValueError:
        return RequestStatus.PENDING


def missing_tables(payload: dict) -> list[str]:
    return [name for name in TABLES if not isinstance(payload.get(name), dict)]


def deserialize_state(payload: dict, version: int = 0) -> State:
    state = State(version=version)

    for panel_type, raw in (payload.get("panels") or {}).items():
        state.panels[panel_type] = Panel(
            panel_type=panel_type,
            channel_id=raw.get("channelId"),
            title=raw.get("title"),
            description=raw.get("description"),
            script=raw.get("script"),
            required_role=raw.get("requiredRole"),
            status=_panel_status(raw.get("status")),
            message_id=raw.get("messageId"),
        )

    for code, raw in (payload.get("redeemCodes") or {}).items():
        state.redeem_codes[code] = RedeemCode(
            code=code,
            rank=_rank(raw.get("rank")),
            duration=raw.get("duration"),
            used=bool(raw.get("used", False)),
            used_by=raw.get("usedBy"),
            used_in_guild=raw.get("usedInGuild"),
            created_at=from_millis(raw.get("createdAt")),
            created_by=raw.get("createdBy"),
            single_use_per_server=bool(raw.get("singleUsePerServer", False)),
        )

    for user_id, raw in (payload.get("userKeys") or {}).items():
        state.user_keys[user_id] = UserKey(
            user_id=user_id,
            key=raw.get("key"),
            rank=raw.get("rank"),
            duration=raw.get("duration"),
            redeemed_at=from_millis(raw.get("redeemedAt")),
            guild_id=raw.get("guildId"),
            script=raw.get("script"),
            panel_type=raw.get("panelType"),
            access_granted=bool(raw.get("accessGranted", False)),
            granted_at=from_millis(raw.get("grantedAt")),
            granted_by=raw.get("grantedBy"),
        )

    state.hwids = dict(payload.get("hwids") or {})

    for user_id, raw in (payload.get("premiumBuyers") or {}).items():
        state.premium_buyers[user_id] = PremiumBuyer(
            user_id=raw.get("userId", user_id),
            added_date=from_millis(raw.get("addedDate")) or utcnow(),
            lifetime=bool(raw.get("lifetime", False)),
            expiry_date=from_millis(raw.get("expiryDate")),
            expired=bool(raw.get("expired", False)),
            expired_at=from_millis(raw.get("expiredAt")),
            granted_by=raw.get("grantedBy"),
            last_update=from_millis(raw.get("lastUpdate")),
        )

    for guild_id, requests in (payload.get("partnerRequests") or {}).items():
        bucket = state.partner_requests.setdefault(guild_id, {})
        for request_id, raw in requests.items():
            if not raw.get("userId"):
                logger.warning(
                    "Skipping partner request without a requester",
                    extra={"guild_id": guild_id, "request_id": request_id},
                )
                continue
            bucket[request_id] = PartnerRequest(
                request_id=request_id,
                guild_id=raw.get("guildId", guild_id),
                user_id=raw["userId"],
                username=raw.get("username", ""),
                server_name=raw.get("serverName", ""),
                reason=raw.get("reason", ""),
                discord_link=raw.get("discordLink", ""),
                status=_request_status(raw.get("status", RequestStatus.PENDING.value)),
                created_at=from_millis(raw.get("createdAt")),
                reviewed_at=from_millis(raw.get("reviewedAt")),
                reviewed_by=raw.get("reviewedBy"),
                channel_id=raw.get("channelId"),
                role_id=raw.get("roleId"),
                channel_name=raw.get("channelName"),
                welcome_posted=bool(
                    raw.get("welcomePosted", raw.get("channelId") is not None)
                ),
            )

    for guild_id, raw in (payload.get("partnerConfig") or {}).items():
        state.partner_config[guild_id] = PartnerConfig(receiver_id=raw.get("receiverId"))

    for key, raw in (payload.get("developmentKeys") or {}).items():
        state.development_keys[key] = DevelopmentKey(
            key=key,
            role=raw.get("role", ""),
            player_id=raw.get("playerId", ""),
            unlimited=bool(raw.get("unlimited", False)),
            used=bool(raw.get("used", False)),
            used_by=raw.get("usedBy"),
            created_at=from_millis(raw.get("createdAt")),
            created_by=raw.get("createdBy"),
        )

    return state


def serialize_state(state: State) -> dict:
    return {
        "panels": {
            panel_type: {
                "channelId": panel.channel_id,
                "title": panel.title,
                "description": panel.description,
                "script": panel.script,
                "requiredRole": panel.required_role,
                "status": panel.status.value if panel.status else None,
                "messageId": panel.message_id,
            }
            for panel_type, panel in state.panels.items()
        },
        "redeemCodes": {
            code: {
                "rank": entry.rank.value,
                "duration": entry.duration,
                "used": entry.used,
                "usedBy": entry.used_by,
                "usedInGuild": entry.used_in_guild,
                "createdAt": to_millis(entry.created_at),
                "createdBy": entry.created_by,
                "singleUsePerServer": entry.single_use_per_server,
            }
            for code, entry in state.redeem_codes.items()
        },
        "userKeys": {
            user_id: {
                "key": entry.key,
                "rank": entry.rank,
                "duration": entry.duration,
                "redeemedAt": to_millis(entry.redeemed_at),
                "guildId": entry.guild_id,
                "script": entry.script,
                "panelType": entry.panel_type,
                "accessGranted": entry.access_granted,
                "grantedAt": to_millis(entry.granted_at),
                "grantedBy": entry.granted_by,
            }
            for user_id, entry in state.user_keys.items()
        },
        "hwids": dict(state.hwids),
        "premiumBuyers": {
            user_id: {
                "userId": buyer.user_id,
                "addedDate": to_millis(buyer.added_date),
                "lifetime": buyer.lifetime,
                "expiryDate": to_millis(buyer.expiry_date),
                "expired": buyer.expired,
                "expiredAt": to_millis(buyer.expired_at),
                "grantedBy": buyer.granted_by,
                "lastUpdate": to_millis(buyer.last_update),
            }
            for user_id, buyer in state.premium_buyers.items()
        },
        "partnerRequests": {
            guild_id: {
                request_id: {
                    "userId": request.user_id,
                    "username": request.username,
                    "serverName": request.server_name,
                    "reason": request.reason,
                    "discordLink": request.discord_link,
                    "status": request.status.value,
                    "createdAt": to_millis(request.created_at),
                    "guildId": request.guild_id,
                    "reviewedAt": to_millis(request.reviewed_at),
                    "reviewedBy": request.reviewed_by,
                    "channelId": request.channel_id,
                    "roleId": request.role_id,
                    "channelName": request.channel_name,
                    "welcomePosted": request.welcome_posted,
                }
                for request_id, request in requests.items()
            }
            for guild_id, requests in state.partner_requests.items()
        },
        "partnerConfig": {
            guild_id: {"receiverId": config.receiver_id}
            for guild_id, config in state.partner_config.items()
        },
        "developmentKeys": {
            key: {
                "role": entry.role,
                "playerId": entry.player_id,
                "unlimited": entry.unlimited,
                "used": entry.used,
                "usedBy": entry.used_by,
                "createdAt": to_millis(entry.created_at),
                "createdBy": entry.created_by,
            }
            for key, entry in state.development_keys.items()
        },
    }


async def get_document(session: AsyncSession, document_id: str) -> StateDocument | None:
    result = await session.execute(
        select(StateDocument).where(StateDocument.id == document_id)
    )
    return result.scalar_one_or_none()


async def create_document(
    session: AsyncSession, document_id: str, payload: dict
) -> StateDocument:
    document = StateDocument(id=document_id, version=0, payload=payload)
    session.add(document)
    return document


async def replace_document(
    session: AsyncSession, document_id: str, payload: dict, expected_version: int
) -> bool:
    result = await session.execute(
        update(StateDocument)
        .where(StateDocument.id == document_id)
        .where(StateDocument.version == expected_version)
        .values(payload=payload, version=expected_version + 1, updated_at=utcnow())
    )
    return result.rowcount == 1
