import logging
from typing import Any
from urllib.parse import quote

import httpx

from valuamor.platform.gateway import (
    Channel,
    ChannelType,
    ChatGateway,
    Member,
    Permissions,
    PlatformError,
    Role,
)


logger = logging.getLogger(__name__)

ALL_PERMISSIONS = (
    Permissions.ADMINISTRATOR | Permissions.MANAGE_CHANNELS | Permissions.MANAGE_ROLES
)


class DiscordRestGateway(ChatGateway):
    def __init__(
        self,
        token: str,
        application_id: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = "https://discord.com/api/v10"
        self._transport = transport
        self._token = token
        self._application_id = application_id
        self._bot_user_id: str | None = None

    def _headers(self, reason: str | None = None) -> dict[str, str]:
        headers = {"Authorization": f"Bot {self._token}"}
        if reason:
            headers["X-Audit-Log-Reason"] = quote(reason)
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        payload: Any = None,
        reason: str | None = None,
    ) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url, timeout=30, transport=self._transport
            ) as client:
                response = await client.request(
                    method, path, headers=self._headers(reason), json=payload
                )
        except httpx.HTTPError as exc:
            raise PlatformError(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 400:
            code = None
            try:
                code = response.json().get("code")
            except ValueError:
                pass
            raise PlatformError(
                f"{method} {path} returned {response.status_code}",
                status=response.status_code,
                code=code,
            )
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def _get_bot_user_id(self) -> str:
        if self._bot_user_id is None:
            data = await self._request("GET", "/users/@me")
            self._bot_user_id = data["id"]
        return self._bot_user_id

    async def send_direct_message(self, user_id: str, message: dict) -> None:
        channel = await self._request(
            "POST", "/users/@me/channels", {"recipient_id": user_id}
        )
        await self._request("POST", f"/channels/{channel['id']}/messages", message)

    async def send_channel_message(self, channel_id: str, message: dict) -> str:
        data = await self._request("POST", f"/channels/{channel_id}/messages", message)
        return data["id"]

    async def edit_channel_message(
        self, channel_id: str, message_id: str, message: dict
    ) -> None:
        await self._request(
            "PATCH", f"/channels/{channel_id}/messages/{message_id}", message
        )

    async def edit_interaction_response(
        self, interaction_token: str, message: dict
    ) -> None:
        await self._request(
            "PATCH",
            f"/webhooks/{self._application_id}/{interaction_token}/messages/@original",
            message,
        )

    async def fetch_member(self, guild_id: str, user_id: str) -> Member | None:
        try:
            data = await self._request("GET", f"/guilds/{guild_id}/members/{user_id}")
        except PlatformError as exc:
            if exc.status == 404:
                return None
            raise
        return Member(user_id=user_id, role_ids=frozenset(data.get("roles", [])))

    async def list_roles(self, guild_id: str) -> list[Role]:
        data = await self._request("GET", f"/guilds/{guild_id}/roles")
        return [Role(id=item["id"], name=item["name"]) for item in data]

    async def create_role(self, guild_id: str, name: str, reason: str) -> Role:
        data = await self._request(
            "POST",
            f"/guilds/{guild_id}/roles",
            {"name": name, "color": 0x5865F2, "hoist": False, "mentionable": True},
            reason=reason,
        )
        return Role(id=data["id"], name=data["name"])

    async def add_member_role(
        self, guild_id: str, user_id: str, role_id: str, reason: str | None = None
    ) -> None:
        await self._request(
            "PUT",
            f"/guilds/{guild_id}/members/{user_id}/roles/{role_id}",
            reason=reason,
        )

    async def list_channels(self, guild_id: str) -> list[Channel]:
        data = await self._request("GET", f"/guilds/{guild_id}/channels")
        return [
            Channel(
                id=item["id"],
                name=item["name"],
                type=item["type"],
                parent_id=item.get("parent_id"),
            )
            for item in data
        ]

    async def create_channel(
        self,
        guild_id: str,
        name: str,
        channel_type: ChannelType,
        parent_id: str | None = None,
        reason: str | None = None,
    ) -> Channel:
        payload: dict[str, Any] = {"name": name, "type": int(channel_type)}
        if parent_id:
            payload["parent_id"] = parent_id
        data = await self._request(
            "POST", f"/guilds/{guild_id}/channels", payload, reason=reason
        )
        return Channel(
            id=data["id"],
            name=data["name"],
            type=data["type"],
            parent_id=data.get("parent_id"),
        )

    async def get_bot_permissions(self, guild_id: str) -> Permissions:
        bot_user_id = await self._get_bot_user_id()
        guild = await self._request("GET", f"/guilds/{guild_id}")
        if guild.get("owner_id") == bot_user_id:
            return ALL_PERMISSIONS

        member = await self._request("GET", f"/guilds/{guild_id}/members/{bot_user_id}")
        member_roles = set(member.get("roles", []))
        raw = 0
        for role in guild.get("roles", []):
            # The @everyone role shares the guild id.
            if role["id"] == guild_id or role["id"] in member_roles:
                raw |= int(role.get("permissions", 0))

        if raw & Permissions.ADMINISTRATOR:
            return ALL_PERMISSIONS
        return Permissions(raw & ALL_PERMISSIONS)

    async def register_commands(self, commands: list[dict]) -> None:
        await self._request(
            "PUT", f"/applications/{self._application_id}/commands", commands
        )
        logger.info("Registered application commands", extra={"count": len(commands)})
