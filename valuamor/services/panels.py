import logging
from enum import Enum

from valuamor.db.models import Panel, PanelStatus, State
from valuamor.errors import ExternalIOError, PanelNotFoundError, UnconfiguredError
from valuamor.platform.gateway import ChatGateway, PlatformError
from valuamor.services.store import StateStore
from valuamor.ui.embeds import panel_message


logger = logging.getLogger(__name__)

PANEL_TYPES = ("development", "development2")


class PanelField(str, Enum):
    CHANNEL = "channel"
    TITLE = "title"
    DESCRIPTION = "description"
    SCRIPT = "script"
    ROLE = "role"


_FIELD_ATTRS = {
    PanelField.CHANNEL: "channel_id",
    PanelField.TITLE: "title",
    PanelField.DESCRIPTION: "description",
    PanelField.SCRIPT: "script",
    PanelField.ROLE: "required_role",
}


def _check_type(panel_type: str) -> None:
    if panel_type not in PANEL_TYPES:
        raise PanelNotFoundError(f"❌ Panel `{panel_type}` tidak dikenal!")


def find_panel(state: State, panel_type: str) -> Panel | None:
    return state.panels.get(panel_type)


def get_panel(state: State, panel_type: str) -> Panel:
    _check_type(panel_type)
    panel = state.panels.get(panel_type)
    if panel is None:
        raise PanelNotFoundError("❌ Panel belum dikonfigurasi!")
    return panel


def _ensure_panel(state: State, panel_type: str) -> Panel:
    _check_type(panel_type)
    return state.panels.setdefault(panel_type, Panel(panel_type=panel_type))


def set_panel_field(
    state: State, panel_type: str, field: PanelField, value: str
) -> Panel:
    panel = _ensure_panel(state, panel_type)
    setattr(panel, _FIELD_ATTRS[field], value.strip() or None)
    return panel


def set_panel_status(state: State, panel_type: str, status: PanelStatus) -> Panel:
    panel = _ensure_panel(state, panel_type)
    panel.status = status
    logger.info(
        "Panel status changed",
        extra={"panel_type": panel_type, "status": status.value},
    )
    return panel


def panel_ready(panel: Panel) -> bool:
    return bool(panel.title and panel.channel_id)


async def publish_panel(
    store: StateStore, gateway: ChatGateway, panel_type: str
) -> Panel:
    async with store.transaction() as state:
        panel = get_panel(state, panel_type)
        if not panel_ready(panel):
            raise UnconfiguredError("❌ Set judul dan channel panel terlebih dahulu!")
        channel_id = panel.channel_id
        payload = panel_message(panel)

    try:
        message_id = await gateway.send_channel_message(channel_id, payload)
    except PlatformError as exc:
        logger.exception(
            "Failed to publish panel",
            extra={"panel_type": panel_type, "channel_id": channel_id},
        )
        raise ExternalIOError("❌ Gagal mengirim panel ke channel!") from exc

    async with store.transaction() as state:
        panel = get_panel(state, panel_type)
        panel.message_id = message_id
    return panel


async def refresh_panel_message(
    store: StateStore, gateway: ChatGateway, panel_type: str
) -> bool:
    state = await store.load()
    panel = find_panel(state, panel_type)
    if panel is None or not panel.channel_id or not panel.message_id:
        return False
    try:
        await gateway.edit_channel_message(
            panel.channel_id, panel.message_id, panel_message(panel)
        )
    except PlatformError:
        logger.exception(
            "Failed to refresh panel message",
            extra={"panel_type": panel_type, "message_id": panel.message_id},
        )
        return False
    return True
