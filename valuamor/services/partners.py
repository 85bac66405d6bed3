import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from valuamor.access_control.service import Actor, is_developer, is_owner
from valuamor.db.models import (
    PartnerConfig,
    PartnerRequest,
    RequestStatus,
    ReviewDecision,
    State,
    utcnow,
)
from valuamor.errors import (
    AlreadyReviewedError,
    AlreadyUsedError,
    ExternalIOError,
    InsufficientPermissionError,
    RequestNotFoundError,
    UnconfiguredError,
)
from valuamor.platform.gateway import (
    ChannelType,
    ChatGateway,
    Permissions,
    PlatformError,
)
from valuamor.services.notices import Notice, deliver_notices
from valuamor.services.store import StateStore
from valuamor.ui.embeds import (
    partner_accepted_notice,
    partner_received_notice,
    partner_rejected_notice,
    partner_review_prompt,
    partner_welcome_message,
)


logger = logging.getLogger(__name__)

PARTNER_ROLE_NAME = "Partner"
PARTNER_CATEGORY_NAME = "☃️ Partner"
PARTNER_CHANNEL_PREFIX = "☄️-"
MISSING_PERMISSIONS_CODE = 50013

MISSING_PERMISSIONS_MESSAGE = (
    "❌ **Missing Permissions!**\n\n"
    "Bot tidak memiliki permission yang cukup. Pastikan:\n"
    "1. Bot memiliki permission **Manage Roles**\n"
    "2. Bot memiliki permission **Manage Channels**\n"
    "3. Role bot berada di atas role \"Partner\" di daftar role server"
)

_UNSAFE_CHARS_RE = re.compile(r"[^a-zA-Z0-9\s-]")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class PartnerForm:
    server_name: str
    reason: str
    discord_link: str


def channel_slug(server_name: str) -> str:
    cleaned = _UNSAFE_CHARS_RE.sub("", server_name).strip()[:50]
    return PARTNER_CHANNEL_PREFIX + _WHITESPACE_RE.sub("-", cleaned.lower())


def new_request_id(user_id: str, now: datetime) -> str:
    return f"PR-{int(now.timestamp() * 1000)}-{user_id[-4:]}"


def set_receiver(state: State, guild_id: str, user_id: str) -> PartnerConfig:
    config = state.partner_config.setdefault(guild_id, PartnerConfig())
    config.receiver_id = user_id
    logger.info(
        "Partner receiver set", extra={"guild_id": guild_id, "receiver_id": user_id}
    )
    return config


def get_receiver(state: State, guild_id: str) -> str | None:
    config = state.partner_config.get(guild_id)
    return config.receiver_id if config else None


def create_request(
    state: State,
    guild_id: str,
    user_id: str,
    username: str,
    form: PartnerForm,
    now: datetime,
) -> PartnerRequest:
    if not get_receiver(state, guild_id):
        raise UnconfiguredError(
            "❌ Partner system belum dikonfigurasi! Hubungi admin untuk set receiver."
        )
    request = PartnerRequest(
        request_id=new_request_id(user_id, now),
        guild_id=guild_id,
        user_id=user_id,
        username=username,
        server_name=form.server_name.strip(),
        reason=form.reason.strip(),
        discord_link=form.discord_link.strip(),
        created_at=now,
    )
    state.partner_requests.setdefault(guild_id, {})[request.request_id] = request
    return request


def list_requests(
    state: State, guild_id: str, user_id: str | None = None, limit: int = 15
) -> list[PartnerRequest]:
    requests = [
        request
        for request in state.partner_requests.get(guild_id, {}).values()
        if user_id is None or request.user_id == user_id
    ]
    requests.sort(
        key=lambda request: request.created_at.timestamp() if request.created_at else 0,
        reverse=True,
    )
    return requests[:limit]


def get_request(state: State, guild_id: str, request_id: str) -> PartnerRequest:
    request = state.partner_requests.get(guild_id, {}).get(request_id)
    if request is None:
        raise RequestNotFoundError()
    return request


def get_pending_request(state: State, guild_id: str, request_id: str) -> PartnerRequest:
    request = get_request(state, guild_id, request_id)
    if request.status != RequestStatus.PENDING:
        raise AlreadyReviewedError()
    return request


def mark_rejected(
    state: State, guild_id: str, request_id: str, reviewer_id: str, now: datetime
) -> PartnerRequest:
    request = get_pending_request(state, guild_id, request_id)
    request.status = RequestStatus.REJECTED
    request.reviewed_at = now
    request.reviewed_by = reviewer_id
    return request


def mark_accepted(
    state: State,
    guild_id: str,
    request_id: str,
    reviewer_id: str,
    channel_id: str,
    role_id: str,
    now: datetime,
) -> PartnerRequest:
    request = get_pending_request(state, guild_id, request_id)
    request.status = RequestStatus.ACCEPTED
    request.reviewed_at = now
    request.reviewed_by = reviewer_id
    request.channel_id = channel_id
    request.role_id = role_id
    return request


def record_channel(
    state: State, guild_id: str, request_id: str, channel_id: str
) -> PartnerRequest:
    request = get_pending_request(state, guild_id, request_id)
    request.channel_id = channel_id
    return request


def record_welcome(state: State, guild_id: str, request_id: str) -> PartnerRequest:
    request = get_pending_request(state, guild_id, request_id)
    request.welcome_posted = True
    return request


def can_review(state: State, guild_id: str, reviewer: Actor) -> bool:
    if is_owner(reviewer) or is_developer(reviewer):
        return True
    return get_receiver(state, guild_id) == reviewer.user_id


class PartnerWorkflow:
    """Partner requests from submission to the reviewer's decision.

    State changes go through the store; messages to the requester and the
    receiver are sent afterwards and never undo a change when they fail.
    """

    def __init__(
        self,
        store: StateStore,
        gateway: ChatGateway,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._clock = clock
        self._in_flight: set[tuple[str, str]] = set()

    async def _is_partner(self, guild_id: str, role_ids: frozenset[str]) -> bool:
        if not role_ids:
            return False
        try:
            roles = await self._gateway.list_roles(guild_id)
        except PlatformError as exc:
            raise ExternalIOError() from exc
        return any(
            role.id in role_ids and role.name.lower() == PARTNER_ROLE_NAME.lower()
            for role in roles
        )

    async def submit(
        self,
        guild_id: str,
        requester: Actor,
        form: PartnerForm,
        guild_name: str | None = None,
    ) -> PartnerRequest:
        if await self._is_partner(guild_id, requester.role_ids):
            raise AlreadyUsedError("❌ Anda sudah menjadi partner!")

        async with self._store.transaction() as state:
            request = create_request(
                state,
                guild_id,
                requester.user_id,
                requester.username,
                form,
                self._clock(),
            )
            receiver_id = get_receiver(state, guild_id)

        logger.info(
            "Partner request submitted",
            extra={"guild_id": guild_id, "request_id": request.request_id},
        )
        await deliver_notices(
            self._gateway,
            [
                Notice(receiver_id, partner_review_prompt(request, guild_name)),
                Notice(request.user_id, partner_received_notice(request)),
            ],
        )
        return request

    async def review(
        self,
        guild_id: str,
        request_id: str,
        decision: ReviewDecision,
        reviewer: Actor,
    ) -> PartnerRequest:
        key = (guild_id, request_id)
        if key in self._in_flight:
            raise AlreadyReviewedError("⏳ This request is already being processed!")
        self._in_flight.add(key)
        try:
            state = await self._store.load()
            get_pending_request(state, guild_id, request_id)
            if not can_review(state, guild_id, reviewer):
                raise InsufficientPermissionError(
                    "❌ Anda tidak memiliki izin untuk review request ini!"
                )
            if decision == ReviewDecision.REJECT:
                return await self._reject(guild_id, request_id, reviewer)
            return await self._accept(guild_id, request_id, reviewer)
        finally:
            self._in_flight.discard(key)

    async def _reject(
        self, guild_id: str, request_id: str, reviewer: Actor
    ) -> PartnerRequest:
        async with self._store.transaction() as state:
            request = mark_rejected(
                state, guild_id, request_id, reviewer.user_id, self._clock()
            )
        logger.info(
            "Partner request rejected",
            extra={"guild_id": guild_id, "request_id": request_id},
        )
        await deliver_notices(
            self._gateway, [Notice(request.user_id, partner_rejected_notice(request))]
        )
        return request

    async def _accept(
        self, guild_id: str, request_id: str, reviewer: Actor
    ) -> PartnerRequest:
        await self._check_bot_permissions(guild_id)

        async with self._store.transaction() as state:
            request = get_pending_request(state, guild_id, request_id)
            if not request.channel_name:
                request.channel_name = channel_slug(request.server_name)

        try:
            channel_id, role_id = await self._provision(request)
        except PlatformError as exc:
            logger.exception(
                "Partner provisioning failed",
                extra={"guild_id": guild_id, "request_id": request_id},
            )
            if exc.code == MISSING_PERMISSIONS_CODE:
                raise ExternalIOError(MISSING_PERMISSIONS_MESSAGE) from exc
            raise ExternalIOError(
                "❌ Terjadi kesalahan saat memproses request. Silakan coba lagi."
            ) from exc

        async with self._store.transaction() as state:
            request = mark_accepted(
                state,
                guild_id,
                request_id,
                reviewer.user_id,
                channel_id,
                role_id,
                self._clock(),
            )
        logger.info(
            "Partner request accepted",
            extra={"guild_id": guild_id, "request_id": request_id},
        )
        await deliver_notices(
            self._gateway, [Notice(request.user_id, partner_accepted_notice(request))]
        )
        return request

    async def _check_bot_permissions(self, guild_id: str) -> None:
        try:
            permissions = await self._gateway.get_bot_permissions(guild_id)
        except PlatformError as exc:
            raise ExternalIOError() from exc
        if permissions & Permissions.ADMINISTRATOR:
            return
        required = Permissions.MANAGE_ROLES | Permissions.MANAGE_CHANNELS
        if permissions & required != required:
            raise InsufficientPermissionError(MISSING_PERMISSIONS_MESSAGE)

    async def _provision(self, request: PartnerRequest) -> tuple[str, str]:
        guild_id = request.guild_id

        roles = await self._gateway.list_roles(guild_id)
        role = next(
            (r for r in roles if r.name.lower() == PARTNER_ROLE_NAME.lower()), None
        )
        if role is None:
            role = await self._gateway.create_role(
                guild_id, PARTNER_ROLE_NAME, reason="Partner role for partnership system"
            )

        member = await self._gateway.fetch_member(guild_id, request.user_id)
        if member is not None and role.id not in member.role_ids:
            await self._gateway.add_member_role(
                guild_id,
                request.user_id,
                role.id,
                reason=f"Partner request accepted: {request.server_name}",
            )

        channels = await self._gateway.list_channels(guild_id)
        category = next(
            (
                c
                for c in channels
                if c.type == ChannelType.GUILD_CATEGORY
                and c.name == PARTNER_CATEGORY_NAME
            ),
            None,
        )
        if category is None:
            category = await self._gateway.create_channel(
                guild_id,
                PARTNER_CATEGORY_NAME,
                ChannelType.GUILD_CATEGORY,
                reason="Partner category for partnership system",
            )

        channel = None
        if request.channel_id:
            channel = next((c for c in channels if c.id == request.channel_id), None)
        if channel is None:
            channel = await self._gateway.create_channel(
                guild_id,
                request.channel_name,
                ChannelType.GUILD_TEXT,
                parent_id=category.id,
                reason=f"Partner channel for {request.server_name}",
            )
            async with self._store.transaction() as state:
                request = record_channel(
                    state, guild_id, request.request_id, channel.id
                )

        if not request.welcome_posted:
            await self._gateway.send_channel_message(
                channel.id, partner_welcome_message(request)
            )
            async with self._store.transaction() as state:
                request = record_welcome(state, guild_id, request.request_id)
        return channel.id, role.id
