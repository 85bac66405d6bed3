from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag


class Permissions(IntFlag):
    ADMINISTRATOR = 1 << 3
    MANAGE_CHANNELS = 1 << 4
    MANAGE_ROLES = 1 << 28


class ChannelType(IntEnum):
    GUILD_TEXT = 0
    GUILD_CATEGORY = 4


@dataclass(frozen=True)
class Role:
    id: str
    name: str


@dataclass(frozen=True)
class Channel:
    id: str
    name: str
    type: int
    parent_id: str | None = None


@dataclass(frozen=True)
class Member:
    user_id: str
    role_ids: frozenset[str] = field(default_factory=frozenset)


class PlatformError(Exception):
    """A call to the chat platform failed (HTTP error, timeout, refused)."""

    def __init__(
        self, message: str, status: int | None = None, code: int | None = None
    ) -> None:
        super().__init__(message)
        self.status = status
        self.code = code


class ChatGateway(ABC):
    """Everything the bot needs from the chat platform.

    ``message`` arguments are platform message payloads
    (``content``/``embeds``/``components``) as built by ``valuamor.ui``.
    """

    @abstractmethod
    async def send_direct_message(self, user_id: str, message: dict) -> None:
        raise NotImplementedError

    @abstractmethod
    async def send_channel_message(self, channel_id: str, message: dict) -> str:
        """Returns the id of the created message."""
        raise NotImplementedError

    @abstractmethod
    async def edit_channel_message(
        self, channel_id: str, message_id: str, message: dict
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    async def edit_interaction_response(
        self, interaction_token: str, message: dict
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    async def fetch_member(self, guild_id: str, user_id: str) -> Member | None:
        """Returns ``None`` when the user is not a member of the guild."""
        raise NotImplementedError

    @abstractmethod
    async def list_roles(self, guild_id: str) -> list[Role]:
        raise NotImplementedError

    @abstractmethod
    async def create_role(self, guild_id: str, name: str, reason: str) -> Role:
        raise NotImplementedError

    @abstractmethod
    async def add_member_role(
        self, guild_id: str, user_id: str, role_id: str, reason: str | None = None
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    async def list_channels(self, guild_id: str) -> list[Channel]:
        raise NotImplementedError

    @abstractmethod
    async def create_channel(
        self,
        guild_id: str,
        name: str,
        channel_type: ChannelType,
        parent_id: str | None = None,
        reason: str | None = None,
    ) -> Channel:
        raise NotImplementedError

    @abstractmethod
    async def get_bot_permissions(self, guild_id: str) -> Permissions:
        raise NotImplementedError

    @abstractmethod
    async def register_commands(self, commands: list[dict]) -> None:
        raise NotImplementedError
