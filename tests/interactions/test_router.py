from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import pytest

from valuamor.access_control import service as access_service
from valuamor.db.models import PanelStatus, RedeemCode, RedeemRank, RequestStatus
from valuamor.interactions.commands import COMMAND_ACCESS, CommandName, command_payloads
from valuamor.interactions.router import InteractionRouter, ResponseType
from valuamor.services import panels, partners, premium
from valuamor.services.accrual import Duration
from valuamor.services.partners import PartnerWorkflow


GUILD = "G1"
OWNER = {"id": "1", "username": "owner"}
MEMBER = {"id": "2002", "username": "member"}


@pytest.fixture(autouse=True)
def _settings(monkeypatch):
    monkeypatch.setattr(
        access_service,
        "settings",
        SimpleNamespace(
            owner_username="owner",
            development_username="dev",
            development_user_id="",
            admin_role_ids=[],
        ),
    )


@pytest.fixture
def router(store, gateway, now) -> InteractionRouter:
    clock = lambda: now  # noqa: E731
    return InteractionRouter(
        store, gateway, PartnerWorkflow(store, gateway, clock=clock), clock=clock
    )


def _command(name: str, actor: dict, roles=(), **options) -> dict:
    return {
        "id": "i1",
        "type": 2,
        "token": "tok",
        "guild_id": GUILD,
        "channel_id": "C1",
        "member": {"user": actor, "roles": list(roles)},
        "data": {
            "name": name,
            "options": [{"name": key, "value": value} for key, value in options.items()],
        },
    }


def _component(custom_id: str, user: dict, roles=(), values=None, guild=GUILD) -> dict:
    payload = {
        "id": "i2",
        "type": 5 if values else 3,
        "token": "tok",
        "data": {"custom_id": custom_id},
    }
    if guild:
        payload["guild_id"] = guild
        payload["member"] = {"user": user, "roles": list(roles)}
    else:
        payload["user"] = user
    if values:
        payload["data"]["components"] = [
            {"type": 1, "components": [{"type": 4, "custom_id": key, "value": value}]}
            for key, value in values.items()
        ]
    return payload


def _content(result) -> str:
    return result.response["data"].get("content", "")


def test_every_command_is_registered_and_gated() -> None:
    names = {payload["name"] for payload in command_payloads()}
    assert names == {name.value for name in CommandName}
    assert set(COMMAND_ACCESS) == set(CommandName)


async def test_ping(router) -> None:
    result = await router.dispatch({"type": 1})
    assert result.response == {"type": ResponseType.PONG}


async def test_owner_command_refused_for_member(router) -> None:
    result = await router.dispatch(_command("redemkode", MEMBER))

    assert result.response["type"] == ResponseType.CHANNEL_MESSAGE
    assert "tidak memiliki izin" in _content(result)


async def test_buyer_code_then_redeem(router, store) -> None:
    created = await router.dispatch(_command("redemkode", OWNER))
    assert created.response["data"]["embeds"][0]["title"] == "✅ Kode Redeem Berhasil Dibuat!"

    state = await store.load()
    (code,) = state.redeem_codes

    redeemed = await router.dispatch(_command("redeem", MEMBER, code=code))
    assert redeemed.response["data"]["embeds"][0]["title"] == "✅ Key Berhasil Diredeem!"

    again = await router.dispatch(
        _command("redeem", {"id": "3003", "username": "other"}, code=code)
    )
    assert "sudah digunakan" in _content(again)


async def test_setbuyer_notifies_in_background(router, gateway, store) -> None:
    result = await router.dispatch(
        _command("setbuyer", OWNER, user="2002", duration="30 days")
    )

    assert result.background is not None
    await result.background()
    assert gateway.direct_messages[0][0] == "2002"
    state = await store.load()
    assert premium.is_premium_active(state, "2002", state.premium_buyers["2002"].added_date)


async def test_setbuyer_rejects_bad_duration(router) -> None:
    result = await router.dispatch(
        _command("setbuyer", OWNER, user="2002", duration="forever-ish")
    )
    assert "Format durasi" in _content(result)


async def test_getstatus(router, store, now) -> None:
    async with store.transaction() as state:
        premium.grant(state, MEMBER["id"], Duration.lifetime(), "owner", now)

    result = await router.dispatch(_command("getstatus", MEMBER))
    fields = result.response["data"]["embeds"][0]["fields"]
    assert {"name": "⏰ Masa Aktif", "value": "Lifetime", "inline": True} in fields


async def test_get_script_button(router, store, now) -> None:
    async with store.transaction() as state:
        panels.set_panel_field(state, "development", panels.PanelField.ROLE, "R")
        panels.set_panel_field(state, "development", panels.PanelField.SCRIPT, "print(1)")

    result = await router.dispatch(
        _component("panel:development:getscript", MEMBER, roles=["R"])
    )

    fields = result.response["data"]["embeds"][0]["fields"]
    assert fields[0]["value"] == "```lua\nprint(1)\n```"


async def test_inactive_panel_refuses_buttons(router, store) -> None:
    async with store.transaction() as state:
        panels.set_panel_status(state, "development", PanelStatus.MAINTENANCE)

    result = await router.dispatch(_component("panel:development:getscript", MEMBER))
    assert "tidak aktif" in _content(result)


async def test_get_role_assigns_role(router, store, gateway, now) -> None:
    async with store.transaction() as state:
        panels.set_panel_field(state, "development", panels.PanelField.ROLE, "R")
        premium.grant(state, MEMBER["id"], Duration.lifetime(), "owner", now)
        state.redeem_codes["Valuamor-AAA-111"] = RedeemCode(
            "Valuamor-AAA-111", RedeemRank.BUYER
        )

    await router.dispatch(
        _component(
            "panel:development:modalredeem",
            MEMBER,
            values={"redeemcode": "Valuamor-AAA-111"},
        )
    )
    result = await router.dispatch(_component("panel:development:getrole", MEMBER))

    assert gateway.role_assignments == [(GUILD, MEMBER["id"], "R")]
    assert "berhasil diberikan" in _content(result)


async def test_redeem_button_opens_modal(router) -> None:
    result = await router.dispatch(_component("panel:development:redeemkey", MEMBER))
    assert result.response["type"] == ResponseType.MODAL


async def test_unknown_component(router) -> None:
    result = await router.dispatch(_component("mystery:thing", MEMBER))
    assert result.response["data"]["content"].startswith("❌")


async def test_partner_submit_and_review(router, store, gateway, now) -> None:
    async with store.transaction() as state:
        partners.set_receiver(state, GUILD, "1")

    submitted = await router.dispatch(
        _component(
            "partner:modalrequest",
            MEMBER,
            values={
                "servername": "Cool Server",
                "reason": "friends",
                "discordlink": "https://discord.gg/cool",
            },
        )
    )
    assert submitted.response["type"] == ResponseType.DEFERRED_CHANNEL_MESSAGE
    await submitted.background()

    state = await store.load()
    (request,) = state.partner_requests[GUILD].values()
    token, message = gateway.interaction_edits[-1]
    assert token == "tok"
    assert message["embeds"][0]["title"] == "🤝 Partner Request Submitted!"

    review = await router.dispatch(
        _component(
            f"partnerreview:reject:{GUILD}:{request.request_id}", OWNER, guild=None
        )
    )
    assert review.response["type"] == ResponseType.DEFERRED_UPDATE_MESSAGE
    await review.background()

    state = await store.load()
    assert state.partner_requests[GUILD][request.request_id].status == RequestStatus.REJECTED
    assert gateway.interaction_edits[-1][1]["components"] == []

    again = await router.dispatch(
        _component(
            f"partnerreview:accept:{GUILD}:{request.request_id}", OWNER, guild=None
        )
    )
    await again.background()
    assert gateway.interaction_edits[-1][1] == {
        "content": "❌ This request has already been processed!"
    }


async def test_partner_submit_without_receiver_reports_error(router, gateway) -> None:
    submitted = await router.dispatch(
        _component(
            "partner:modalrequest",
            MEMBER,
            values={"servername": "S", "reason": "r", "discordlink": "l"},
        )
    )
    await submitted.background()

    assert "belum dikonfigurasi" in gateway.interaction_edits[-1][1]["content"]


async def test_panel_status_refreshes_published_message(router, store, gateway) -> None:
    result = await router.dispatch(
        _command(
            "panel", OWNER, type="development", channel="C5", title="Dev", publish=True
        )
    )
    assert gateway.channel_messages[0][0] == "C5"
    assert result.response["data"]["embeds"][0]["title"] == "🛠️ DEVELOPMENT Panel Setup"

    status = await router.dispatch(
        _command("len", {"id": "5", "username": "dev"}, type="development", status="down")
    )
    await status.background()

    state = await store.load()
    assert state.panels["development"].status == PanelStatus.DOWN
    assert len(gateway.edited_messages) == 1


async def test_claimkey_and_devkeys(router, store, now) -> None:
    created = await router.dispatch(
        _command(
            "buatkey",
            {"id": "5", "username": "dev"},
            role="Tester",
            player_id="P1",
        )
    )
    key = created.response["data"]["embeds"][0]["description"].split("`")[1]

    claimed = await router.dispatch(_command("claimkey", MEMBER, key=key))
    assert key in _content(claimed)

    listed = await router.dispatch(_command("devkeys", {"id": "5", "username": "dev"}))
    assert "used by <@2002>" in listed.response["data"]["embeds"][0]["description"]


async def test_myrequests_lists_own_requests(router, store, now) -> None:
    async with store.transaction() as state:
        partners.set_receiver(state, GUILD, "1")
        form = partners.PartnerForm("Mine", "r", "l")
        partners.create_request(state, GUILD, MEMBER["id"], "member", form, now)
        partners.create_request(
            state, GUILD, "3003", "other", form, now + timedelta(seconds=1)
        )

    result = await router.dispatch(_command("myrequests", MEMBER))

    description = result.response["data"]["embeds"][0]["description"]
    assert "<@2002>" in description
    assert "<@3003>" not in description
