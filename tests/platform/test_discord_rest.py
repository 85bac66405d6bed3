from __future__ import annotations

import json

import httpx
import pytest

from valuamor.platform.discord_rest import ALL_PERMISSIONS, DiscordRestGateway
from valuamor.platform.gateway import ChannelType, Permissions, PlatformError


def _gateway(routes: dict[tuple[str, str], httpx.Response], seen: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api/v10")
        if seen is not None:
            seen.append((request.method, path, request))
        response = routes.get((request.method, path))
        if response is None:
            return httpx.Response(404, json={"code": 10004, "message": "Unknown"})
        return response

    return DiscordRestGateway("token", "app", transport=httpx.MockTransport(handler))


async def test_direct_message_opens_dm_channel_first() -> None:
    seen = []
    gateway = _gateway(
        {
            ("POST", "/users/@me/channels"): httpx.Response(200, json={"id": "DM1"}),
            ("POST", "/channels/DM1/messages"): httpx.Response(200, json={"id": "M1"}),
        },
        seen,
    )

    await gateway.send_direct_message("U1", {"content": "hi"})

    assert [(method, path) for method, path, _ in seen] == [
        ("POST", "/users/@me/channels"),
        ("POST", "/channels/DM1/messages"),
    ]
    assert seen[0][2].headers["Authorization"] == "Bot token"
    assert json.loads(seen[0][2].content) == {"recipient_id": "U1"}


async def test_errors_carry_platform_code() -> None:
    gateway = _gateway(
        {
            ("POST", "/guilds/G/roles"): httpx.Response(
                403, json={"code": 50013, "message": "Missing Permissions"}
            )
        }
    )

    with pytest.raises(PlatformError) as excinfo:
        await gateway.create_role("G", "Partner", reason="test")

    assert excinfo.value.status == 403
    assert excinfo.value.code == 50013


async def test_fetch_member_returns_none_when_absent() -> None:
    assert await _gateway({}).fetch_member("G", "U") is None


async def test_create_channel_sends_reason_header() -> None:
    seen = []
    gateway = _gateway(
        {
            ("POST", "/guilds/G/channels"): httpx.Response(
                201, json={"id": "C1", "name": "x", "type": 0, "parent_id": "CAT"}
            )
        },
        seen,
    )

    channel = await gateway.create_channel(
        "G", "x", ChannelType.GUILD_TEXT, parent_id="CAT", reason="Partner channel"
    )

    assert channel.parent_id == "CAT"
    request = seen[0][2]
    assert request.headers["X-Audit-Log-Reason"] == "Partner%20channel"
    assert json.loads(request.content) == {"name": "x", "type": 0, "parent_id": "CAT"}


def _permission_routes(owner_id: str, everyone: int, role: int) -> dict:
    return {
        ("GET", "/users/@me"): httpx.Response(200, json={"id": "BOT"}),
        ("GET", "/guilds/G"): httpx.Response(
            200,
            json={
                "owner_id": owner_id,
                "roles": [
                    {"id": "G", "permissions": str(everyone)},
                    {"id": "R1", "permissions": str(role)},
                    {"id": "R2", "permissions": str(int(Permissions.ADMINISTRATOR))},
                ],
            },
        ),
        ("GET", "/guilds/G/members/BOT"): httpx.Response(200, json={"roles": ["R1"]}),
    }


async def test_bot_permissions_combine_everyone_and_member_roles() -> None:
    gateway = _gateway(
        _permission_routes(
            "SOMEONE", int(Permissions.MANAGE_CHANNELS), int(Permissions.MANAGE_ROLES)
        )
    )

    permissions = await gateway.get_bot_permissions("G")

    assert permissions == Permissions.MANAGE_CHANNELS | Permissions.MANAGE_ROLES


async def test_guild_owner_has_everything() -> None:
    gateway = _gateway(_permission_routes("BOT", 0, 0))
    assert await gateway.get_bot_permissions("G") == ALL_PERMISSIONS
