from valuamor.db.models import PanelStatus, ReviewDecision
from valuamor.interactions.custom_ids import (
    DISCORD_LINK_INPUT,
    REASON_INPUT,
    REDEEM_CODE_INPUT,
    SERVER_NAME_INPUT,
    PanelAction,
    PanelComponent,
    PartnerAction,
    PartnerComponent,
    ReviewComponent,
)


PRIMARY = 1
SECONDARY = 2
SUCCESS = 3
DANGER = 4

SHORT = 1
PARAGRAPH = 2


def _button(
    label: str, custom_id: str, style: int, emoji: str | None = None, disabled: bool = False
) -> dict:
    button = {
        "type": 2,
        "label": label,
        "style": style,
        "custom_id": custom_id,
        "disabled": disabled,
    }
    if emoji:
        button["emoji"] = {"name": emoji}
    return button


def _row(*components: dict) -> dict:
    return {"type": 1, "components": list(components)}


def _text_input(
    custom_id: str,
    label: str,
    placeholder: str,
    style: int = SHORT,
    max_length: int | None = None,
) -> dict:
    field = {
        "type": 4,
        "custom_id": custom_id,
        "label": label,
        "style": style,
        "placeholder": placeholder,
        "required": True,
    }
    if max_length:
        field["max_length"] = max_length
    return _row(field)


def panel_kb(panel_type: str, status: PanelStatus | None) -> list[dict]:
    status = status or PanelStatus.ACTIVE
    disabled = status != PanelStatus.ACTIVE
    first, second, third = SUCCESS, PRIMARY, SECONDARY
    if status in (PanelStatus.BANNED, PanelStatus.BLACKLIST):
        first = second = third = DANGER
    elif status in (PanelStatus.MAINTENANCE, PanelStatus.DOWN):
        first = second = third = SECONDARY

    def custom_id(action: PanelAction) -> str:
        return PanelComponent(panel_type, action).encode()

    return [
        _row(
            _button("Redeem Key", custom_id(PanelAction.REDEEM_KEY), first, "🔑", disabled),
            _button("Get Script", custom_id(PanelAction.GET_SCRIPT), second, "📜", disabled),
            _button("Get Role", custom_id(PanelAction.GET_ROLE), second, "👥", disabled),
        ),
        _row(
            _button("Reset HWID", custom_id(PanelAction.RESET_HWID), third, "⚙️", disabled),
            _button("Get Stats", custom_id(PanelAction.GET_STATS), third, "📊", disabled),
        ),
    ]


def partner_panel_kb() -> list[dict]:
    return [
        _row(
            _button(
                "Request Partner",
                PartnerComponent(PartnerAction.REQUEST).encode(),
                SUCCESS,
                "🤝",
            ),
            _button(
                "My Requests",
                PartnerComponent(PartnerAction.VIEW_REQUESTS).encode(),
                SECONDARY,
                "📋",
            ),
        )
    ]


def review_kb(guild_id: str, request_id: str) -> list[dict]:
    return [
        _row(
            _button(
                "Accept",
                ReviewComponent(ReviewDecision.ACCEPT, guild_id, request_id).encode(),
                SUCCESS,
                "✅",
            ),
            _button(
                "Reject",
                ReviewComponent(ReviewDecision.REJECT, guild_id, request_id).encode(),
                DANGER,
                "❌",
            ),
        )
    ]


def redeem_modal(panel_type: str) -> dict:
    return {
        "custom_id": PanelComponent(panel_type, PanelAction.SUBMIT_REDEEM).encode(),
        "title": "Redeem Key",
        "components": [
            _text_input(
                REDEEM_CODE_INPUT,
                "Kode Redeem",
                "Masukkan kode redeem (Valuamor-xxx-xxx)",
            )
        ],
    }


def partner_request_modal() -> dict:
    return {
        "custom_id": PartnerComponent(PartnerAction.SUBMIT_REQUEST).encode(),
        "title": "Partner Request Form",
        "components": [
            _text_input(
                SERVER_NAME_INPUT,
                "Nama Server Discord Anda / Your Server Name",
                "Contoh: My Awesome Server",
                max_length=100,
            ),
            _text_input(
                REASON_INPUT,
                "Alasan Ingin Partner / Reason for Partnership",
                "Jelaskan mengapa Anda ingin menjadi partner...",
                style=PARAGRAPH,
                max_length=500,
            ),
            _text_input(
                DISCORD_LINK_INPUT,
                "Link Discord Server Anda / Your Server Link",
                "https://discord.gg/xxxxx",
            ),
        ],
    }
