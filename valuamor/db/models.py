from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from valuamor.db.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StateDocument(Base):
    __tablename__ = "state_documents"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    version: Mapped[int] = mapped_column(Integer, default=0)
    payload: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), default=dict
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class RedeemRank(str, Enum):
    BUYER = "buyer"
    DEVELOPMENT = "development"
    STAFF = "staff"
    PROVIDER = "provider"
    MEYTIC = "meytic"
    HACK = "hack"
    OTHER = "other"


class RequestStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class PanelStatus(str, Enum):
    ACTIVE = "active"
    BANNED = "banned"
    MAINTENANCE = "maintenance"
    DOWN = "down"
    BLACKLIST = "blacklist"


@dataclass
class RedeemCode:
    code: str
    rank: RedeemRank
    duration: Optional[str] = None
    used: bool = False
    used_by: Optional[str] = None
    used_in_guild: Optional[str] = None
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None
    single_use_per_server: bool = False


@dataclass
class UserKey:
    user_id: str
    key: Optional[str] = None
    rank: Optional[str] = None
    duration: Optional[str] = None
    redeemed_at: Optional[datetime] = None
    guild_id: Optional[str] = None
    script: Optional[str] = None
    panel_type: Optional[str] = None
    access_granted: bool = False
    granted_at: Optional[datetime] = None
    granted_by: Optional[str] = None


@dataclass
class PremiumBuyer:
    user_id: str
    added_date: datetime
    lifetime: bool = False
    expiry_date: Optional[datetime] = None
    expired: bool = False
    expired_at: Optional[datetime] = None
    granted_by: Optional[str] = None
    last_update: Optional[datetime] = None


@dataclass
class DevelopmentKey:
    key: str
    role: str
    player_id: str
    unlimited: bool = False
    used: bool = False
    used_by: Optional[str] = None
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None


@dataclass
class PartnerRequest:
    request_id: str
    guild_id: str
    user_id: str
    username: str
    server_name: str
    reason: str
    discord_link: str
    status: RequestStatus = RequestStatus.PENDING
    created_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    channel_id: Optional[str] = None
    role_id: Optional[str] = None
    channel_name: Optional[str] = None
    welcome_posted: bool = False


@dataclass
class PartnerConfig:
    receiver_id: Optional[str] = None


@dataclass
class Panel:
    panel_type: str
    channel_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    script: Optional[str] = None
    required_role: Optional[str] = None
    status: Optional[PanelStatus] = None
    message_id: Optional[str] = None


@dataclass
class State:
    panels: dict[str, Panel] = field(default_factory=dict)
    redeem_codes: dict[str, RedeemCode] = field(default_factory=dict)
    user_keys: dict[str, UserKey] = field(default_factory=dict)
    hwids: dict[str, str] = field(default_factory=dict)
    premium_buyers: dict[str, PremiumBuyer] = field(default_factory=dict)
    partner_requests: dict[str, dict[str, PartnerRequest]] = field(
        default_factory=dict
    )
    partner_config: dict[str, PartnerConfig] = field(default_factory=dict)
    development_keys: dict[str, DevelopmentKey] = field(default_factory=dict)
    version: int = 0


class ReviewDecision(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"
