from __future__ import annotations

import itertools
from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from valuamor.db.base import Base
from valuamor.db import models  # noqa: F401
from valuamor.platform.gateway import (
    Channel,
    ChannelType,
    ChatGateway,
    Member,
    Permissions,
    PlatformError,
    Role,
)
from valuamor.services.store import StateStore


NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeGateway(ChatGateway):
    """In-memory chat platform recording every call.

    Put a method name into ``fail_on`` to make it raise ``PlatformError``.
    """

    def __init__(self) -> None:
        self.direct_messages: list[tuple[str, dict]] = []
        self.channel_messages: list[tuple[str, dict]] = []
        self.edited_messages: list[tuple[str, str, dict]] = []
        self.interaction_edits: list[tuple[str, dict]] = []
        self.role_assignments: list[tuple[str, str, str]] = []
        self.registered_commands: list[dict] = []
        self.roles: dict[str, list[Role]] = {}
        self.channels: dict[str, list[Channel]] = {}
        self.members: dict[tuple[str, str], Member] = {}
        self.permissions = Permissions.MANAGE_ROLES | Permissions.MANAGE_CHANNELS
        self.fail_on: set[str] = set()
        self.error_code: int | None = None
        self._ids = itertools.count(9000)

    def _next_id(self) -> str:
        return str(next(self._ids))

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail_on:
            raise PlatformError(f"{name} failed", status=403, code=self.error_code)

    def add_member(self, guild_id: str, user_id: str, *role_ids: str) -> None:
        self.members[(guild_id, user_id)] = Member(user_id, frozenset(role_ids))

    async def send_direct_message(self, user_id: str, message: dict) -> None:
        self._maybe_fail("send_direct_message")
        self.direct_messages.append((user_id, message))

    async def send_channel_message(self, channel_id: str, message: dict) -> str:
        self._maybe_fail("send_channel_message")
        self.channel_messages.append((channel_id, message))
        return self._next_id()

    async def edit_channel_message(
        self, channel_id: str, message_id: str, message: dict
    ) -> None:
        self._maybe_fail("edit_channel_message")
        self.edited_messages.append((channel_id, message_id, message))

    async def edit_interaction_response(
        self, interaction_token: str, message: dict
    ) -> None:
        self._maybe_fail("edit_interaction_response")
        self.interaction_edits.append((interaction_token, message))

    async def fetch_member(self, guild_id: str, user_id: str) -> Member | None:
        self._maybe_fail("fetch_member")
        return self.members.get((guild_id, user_id))

    async def list_roles(self, guild_id: str) -> list[Role]:
        self._maybe_fail("list_roles")
        return list(self.roles.get(guild_id, []))

    async def create_role(self, guild_id: str, name: str, reason: str) -> Role:
        self._maybe_fail("create_role")
        role = Role(self._next_id(), name)
        self.roles.setdefault(guild_id, []).append(role)
        return role

    async def add_member_role(
        self, guild_id: str, user_id: str, role_id: str, reason: str | None = None
    ) -> None:
        self._maybe_fail("add_member_role")
        self.role_assignments.append((guild_id, user_id, role_id))
        member = self.members.get((guild_id, user_id))
        if member is not None:
            self.members[(guild_id, user_id)] = Member(
                user_id, member.role_ids | {role_id}
            )

    async def list_channels(self, guild_id: str) -> list[Channel]:
        self._maybe_fail("list_channels")
        return list(self.channels.get(guild_id, []))

    async def create_channel(
        self,
        guild_id: str,
        name: str,
        channel_type: ChannelType,
        parent_id: str | None = None,
        reason: str | None = None,
    ) -> Channel:
        self._maybe_fail(
            "create_category"
            if channel_type == ChannelType.GUILD_CATEGORY
            else "create_text_channel"
        )
        channel = Channel(self._next_id(), name, int(channel_type), parent_id)
        self.channels.setdefault(guild_id, []).append(channel)
        return channel

    async def get_bot_permissions(self, guild_id: str) -> Permissions:
        self._maybe_fail("get_bot_permissions")
        return self.permissions

    async def register_commands(self, commands: list[dict]) -> None:
        self._maybe_fail("register_commands")
        self.registered_commands = list(commands)


@pytest.fixture
async def store():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    yield StateStore(async_sessionmaker(engine, expire_on_commit=False))
    await engine.dispose()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def now() -> datetime:
    return NOW
