"""Typed component identifiers.

Buttons and modals carry a ``custom_id`` string of the form
``<scope>:<action>[:<args>]``. Everything the bot emits is built through
``encode`` and everything it receives goes through ``decode``, so handlers
only ever see one of the dataclasses below.
"""
from dataclasses import dataclass
from enum import Enum

from valuamor.db.models import ReviewDecision


SEPARATOR = ":"

REDEEM_CODE_INPUT = "redeemcode"
SERVER_NAME_INPUT = "servername"
REASON_INPUT = "reason"
DISCORD_LINK_INPUT = "discordlink"


class PanelAction(str, Enum):
    REDEEM_KEY = "redeemkey"
    SUBMIT_REDEEM = "modalredeem"
    GET_SCRIPT = "getscript"
    GET_ROLE = "getrole"
    RESET_HWID = "resethwid"
    GET_STATS = "getstats"


class PartnerAction(str, Enum):
    REQUEST = "request"
    SUBMIT_REQUEST = "modalrequest"
    VIEW_REQUESTS = "viewrequests"


@dataclass(frozen=True)
class PanelComponent:
    panel_type: str
    action: PanelAction

    def encode(self) -> str:
        return SEPARATOR.join(("panel", self.panel_type, self.action.value))


@dataclass(frozen=True)
class PartnerComponent:
    action: PartnerAction

    def encode(self) -> str:
        return SEPARATOR.join(("partner", self.action.value))


@dataclass(frozen=True)
class ReviewComponent:
    decision: ReviewDecision
    guild_id: str
    request_id: str

    def encode(self) -> str:
        return SEPARATOR.join(
            ("partnerreview", self.decision.value, self.guild_id, self.request_id)
        )


Component = PanelComponent | PartnerComponent | ReviewComponent


def decode(custom_id: str) -> Component:
    scope, _, rest = custom_id.partition(SEPARATOR)
    parts = rest.split(SEPARATOR) if rest else []
    try:
        if scope == "panel" and len(parts) == 2:
            return PanelComponent(panel_type=parts[0], action=PanelAction(parts[1]))
        if scope == "partner" and len(parts) == 1:
            return PartnerComponent(action=PartnerAction(parts[0]))
        if scope == "partnerreview" and len(parts) == 3:
            return ReviewComponent(
                decision=ReviewDecision(parts[0]),
                guild_id=parts[1],
                request_id=parts[2],
            )
    except ValueError as exc:
        raise ValueError(f"Unknown component id: {custom_id!r}") from exc
    raise ValueError(f"Unknown component id: {custom_id!r}")
