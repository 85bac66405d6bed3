from __future__ import annotations

import pytest

from valuamor.db.models import PanelStatus, State
from valuamor.errors import ExternalIOError, PanelNotFoundError, UnconfiguredError
from valuamor.services import panels
from valuamor.services.panels import PanelField


def test_set_fields_and_status() -> None:
    state = State()
    panels.set_panel_field(state, "development", PanelField.TITLE, "Dev Panel")
    panels.set_panel_field(state, "development", PanelField.ROLE, "R1")
    panel = panels.set_panel_status(state, "development", PanelStatus.MAINTENANCE)

    assert panel.title == "Dev Panel"
    assert panel.required_role == "R1"
    assert panel.status == PanelStatus.MAINTENANCE
    assert panels.panel_ready(panel) is False


def test_unknown_panel_type() -> None:
    with pytest.raises(PanelNotFoundError):
        panels.set_panel_field(State(), "nope", PanelField.TITLE, "x")
    with pytest.raises(PanelNotFoundError):
        panels.get_panel(State(), "development")


async def test_publish_requires_title_and_channel(store, gateway) -> None:
    async with store.transaction() as state:
        panels.set_panel_field(state, "development", PanelField.TITLE, "Dev")

    with pytest.raises(UnconfiguredError):
        await panels.publish_panel(store, gateway, "development")
    assert gateway.channel_messages == []


async def test_publish_records_message_id(store, gateway) -> None:
    async with store.transaction() as state:
        panels.set_panel_field(state, "development", PanelField.TITLE, "Dev")
        panels.set_panel_field(state, "development", PanelField.CHANNEL, "C1")

    panel = await panels.publish_panel(store, gateway, "development")

    channel_id, message = gateway.channel_messages[0]
    assert channel_id == "C1"
    assert message["embeds"][0]["title"] == "Dev"
    state = await store.load()
    assert state.panels["development"].message_id == panel.message_id


async def test_publish_failure_is_reported(store, gateway) -> None:
    async with store.transaction() as state:
        panels.set_panel_field(state, "development", PanelField.TITLE, "Dev")
        panels.set_panel_field(state, "development", PanelField.CHANNEL, "C1")
    gateway.fail_on.add("send_channel_message")

    with pytest.raises(ExternalIOError):
        await panels.publish_panel(store, gateway, "development")


async def test_refresh_disables_buttons(store, gateway) -> None:
    async with store.transaction() as state:
        panels.set_panel_field(state, "development", PanelField.TITLE, "Dev")
        panels.set_panel_field(state, "development", PanelField.CHANNEL, "C1")
    await panels.publish_panel(store, gateway, "development")
    async with store.transaction() as state:
        panels.set_panel_status(state, "development", PanelStatus.DOWN)

    assert await panels.refresh_panel_message(store, gateway, "development") is True

    _, _, message = gateway.edited_messages[0]
    buttons = [b for row in message["components"] for b in row["components"]]
    assert all(button["disabled"] for button in buttons)


async def test_refresh_swallows_platform_errors(store, gateway) -> None:
    async with store.transaction() as state:
        panels.set_panel_field(state, "development", PanelField.TITLE, "Dev")
        panels.set_panel_field(state, "development", PanelField.CHANNEL, "C1")
    await panels.publish_panel(store, gateway, "development")
    gateway.fail_on.add("edit_channel_message")

    assert await panels.refresh_panel_message(store, gateway, "development") is False
