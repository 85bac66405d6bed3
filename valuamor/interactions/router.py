import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Awaitable, Callable

from valuamor.access_control.service import Actor, is_admin, is_developer, is_owner
from valuamor.db.models import PanelStatus, RedeemRank, utcnow
from valuamor.errors import (
    EntitlementError,
    ExternalIOError,
    InsufficientPermissionError,
    UnconfiguredError,
)
from valuamor.interactions.commands import COMMAND_ACCESS, Access, CommandName
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
    decode,
)
from valuamor.platform.gateway import ChatGateway, PlatformError
from valuamor.services import development_keys, panels, premium, redemption, user_keys
from valuamor.services.accrual import Duration, remaining_time_label
from valuamor.services.notices import Notice, deliver_notices
from valuamor.services.partners import PartnerForm, PartnerWorkflow, list_requests, set_receiver
from valuamor.services.store import StateStore
from valuamor.ui import embeds
from valuamor.ui.keyboards import partner_request_modal, redeem_modal


logger = logging.getLogger(__name__)

GENERIC_ERROR = "❌ Terjadi kesalahan! Silakan coba lagi."
GUILD_ONLY = "❌ Command ini hanya bisa digunakan di server!"
INVALID_DURATION = "❌ Format durasi tidak valid! Contoh: `30 days`, `1 bulan`, `lifetime`"


class InteractionType(IntEnum):
    PING = 1
    APPLICATION_COMMAND = 2
    MESSAGE_COMPONENT = 3
    MODAL_SUBMIT = 5


class ResponseType(IntEnum):
    PONG = 1
    CHANNEL_MESSAGE = 4
    DEFERRED_CHANNEL_MESSAGE = 5
    DEFERRED_UPDATE_MESSAGE = 6
    MODAL = 9


@dataclass
class Dispatch:
    response: dict
    background: Callable[[], Awaitable[None]] | None = None


@dataclass(frozen=True)
class InteractionContext:
    actor: Actor
    guild_id: str | None
    channel_id: str | None
    token: str
    options: dict[str, Any] = field(default_factory=dict)

    def require_guild(self) -> str:
        if not self.guild_id:
            raise UnconfiguredError(GUILD_ONLY)
        return self.guild_id


Handler = Callable[[InteractionContext], Awaitable[Dispatch]]


def _reply(message: dict) -> Dispatch:
    return Dispatch({"type": ResponseType.CHANNEL_MESSAGE, "data": message})


def _modal(modal: dict) -> Dispatch:
    return Dispatch({"type": ResponseType.MODAL, "data": modal})


def _actor(payload: dict) -> Actor:
    member = payload.get("member") or {}
    user = member.get("user") or payload.get("user") or {}
    return Actor(
        user_id=str(user.get("id", "")),
        username=user.get("username", ""),
        role_ids=frozenset(str(role_id) for role_id in member.get("roles", [])),
    )


def _context(payload: dict) -> InteractionContext:
    data = payload.get("data") or {}
    options = {option["name"]: option.get("value") for option in data.get("options", [])}
    return InteractionContext(
        actor=_actor(payload),
        guild_id=payload.get("guild_id"),
        channel_id=payload.get("channel_id"),
        token=payload.get("token", ""),
        options=options,
    )


def _modal_values(data: dict) -> dict[str, str]:
    values = {}
    for row in data.get("components", []):
        for component in row.get("components", []):
            values[component["custom_id"]] = component.get("value", "")
    return values


def _parse_duration(text: str) -> Duration:
    try:
        return Duration.parse(text)
    except ValueError as exc:
        raise UnconfiguredError(INVALID_DURATION) from exc


class InteractionRouter:
    """Turns a platform interaction payload into a response.

    Slow work (partner submission and review, notices) is returned as a
    background callable; the webhook runs it after answering.
    """

    def __init__(
        self,
        store: StateStore,
        gateway: ChatGateway,
        workflow: PartnerWorkflow,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._workflow = workflow
        self._clock = clock
        self._commands: dict[CommandName, Handler] = {
            CommandName.HELP: self._help,
            CommandName.REDEEM: self._redeem_command,
            CommandName.GET_STATUS: self._get_status,
            CommandName.CLAIM_KEY: self._claim_key,
            CommandName.MY_REQUESTS: self._my_requests,
            CommandName.PARTNER: self._partner_form,
            CommandName.BUYER_CODE: self._buyer_code,
            CommandName.CREATE_CODE: self._create_code,
            CommandName.DELETE_CODE: self._delete_code,
            CommandName.LIST_CODES: self._list_codes,
            CommandName.SET_BUYER: self._set_buyer,
            CommandName.REMOVE_BUYER: self._remove_buyer,
            CommandName.LIST_BUYERS: self._list_buyers,
            CommandName.ADD_ACCESS: self._add_access,
            CommandName.REMOVE_ACCESS: self._remove_access,
            CommandName.LIST_ACCESS: self._list_access,
            CommandName.CREATE_DEV_KEY: self._create_dev_key,
            CommandName.LIST_DEV_KEYS: self._list_dev_keys,
            CommandName.DELETE_DEV_KEY: self._delete_dev_key,
            CommandName.PANEL: self._panel,
            CommandName.PANEL_STATUS: self._panel_status,
            CommandName.PARTNER_PANEL: self._partner_panel,
            CommandName.PARTNER_RECEIVER: self._partner_receiver,
            CommandName.PARTNER_REQUESTS: self._partner_requests,
        }
        missing = set(CommandName) - set(self._commands)
        if missing:
            raise RuntimeError(f"Commands without a handler: {sorted(missing)}")

    async def dispatch(self, payload: dict) -> Dispatch:
        interaction_type = payload.get("type")
        if interaction_type == InteractionType.PING:
            return Dispatch({"type": ResponseType.PONG})
        try:
            if interaction_type == InteractionType.APPLICATION_COMMAND:
                return await self._dispatch_command(payload)
            if interaction_type in (
                InteractionType.MESSAGE_COMPONENT,
                InteractionType.MODAL_SUBMIT,
            ):
                return await self._dispatch_component(payload)
        except EntitlementError as exc:
            return _reply(embeds.error_message(exc.message))
        except ValueError:
            logger.warning(
                "Unknown interaction",
                extra={"custom_id": (payload.get("data") or {}).get("custom_id")},
            )
            return _reply(embeds.error_message(GENERIC_ERROR))
        except Exception:
            logger.exception(
                "Interaction handler failed", extra={"interaction_id": payload.get("id")}
            )
            return _reply(embeds.error_message(GENERIC_ERROR))
        logger.warning("Unsupported interaction type", extra={"type": interaction_type})
        return _reply(embeds.error_message(GENERIC_ERROR))

    async def _dispatch_command(self, payload: dict) -> Dispatch:
        name = CommandName(payload["data"]["name"])
        ctx = _context(payload)
        if not self._allowed(COMMAND_ACCESS[name], ctx.actor):
            raise InsufficientPermissionError(
                "❌ Anda tidak memiliki izin untuk menggunakan command ini!"
            )
        return await self._commands[name](ctx)

    @staticmethod
    def _allowed(access: Access, actor: Actor) -> bool:
        if access == Access.EVERYONE:
            return True
        if access == Access.OWNER:
            return is_owner(actor)
        if access == Access.DEVELOPER:
            return is_owner(actor) or is_developer(actor)
        return is_admin(actor)

    async def _dispatch_component(self, payload: dict) -> Dispatch:
        data = payload.get("data") or {}
        component = decode(data.get("custom_id", ""))
        ctx = _context(payload)
        if isinstance(component, PanelComponent):
            return await self._panel_component(ctx, component, data)
        if isinstance(component, PartnerComponent):
            return await self._partner_component(ctx, component, data)
        return self._review_component(ctx, component)

    # Panels

    async def _panel_component(
        self, ctx: InteractionContext, component: PanelComponent, data: dict
    ) -> Dispatch:
        guild_id = ctx.require_guild()
        if component.action == PanelAction.REDEEM_KEY:
            return _modal(redeem_modal(component.panel_type))
        if component.action == PanelAction.SUBMIT_REDEEM:
            code = _modal_values(data).get(REDEEM_CODE_INPUT, "")
            return await self._redeem(ctx, guild_id, code, component.panel_type)
        if component.action == PanelAction.GET_SCRIPT:
            return await self._get_script(ctx, guild_id, component.panel_type)
        if component.action == PanelAction.GET_ROLE:
            return await self._get_role(ctx, guild_id, component.panel_type)
        if component.action == PanelAction.RESET_HWID:
            async with self._store.transaction() as state:
                user_keys.reset_hwid(state, ctx.actor.user_id)
            return _reply(embeds.message(content="✅ HWID berhasil direset!", ephemeral=True))
        state = await self._store.load()
        stats = user_keys.user_stats(state, ctx.actor.user_id, self._clock())
        return _reply(embeds.stats_message(stats))

    @staticmethod
    def _check_active(panel) -> None:
        if panel.status not in (None, PanelStatus.ACTIVE):
            raise InsufficientPermissionError("❌ Panel sedang tidak aktif!")

    async def _redeem(
        self, ctx: InteractionContext, guild_id: str, code: str, panel_type: str | None
    ) -> Dispatch:
        now = self._clock()
        async with self._store.transaction() as state:
            panel = panels.find_panel(state, panel_type) if panel_type else None
            if panel is not None:
                self._check_active(panel)
            key = redemption.redeem(state, code, ctx.actor.user_id, guild_id, panel, now)
            is_premium = premium.is_premium_active(state, ctx.actor.user_id, now)
        return _reply(embeds.redeem_success_message(key, is_premium))

    async def _get_script(
        self, ctx: InteractionContext, guild_id: str, panel_type: str
    ) -> Dispatch:
        now = self._clock()
        async with self._store.transaction() as state:
            panel = panels.get_panel(state, panel_type)
            self._check_active(panel)
            access = redemption.authorize_script_access(
                state, ctx.actor.user_id, guild_id, ctx.actor.role_ids, panel, now
            )
            remaining = remaining_time_label(
                state.premium_buyers.get(ctx.actor.user_id), now
            )
        return _reply(embeds.script_message(access.key, access.premium, remaining))

    async def _get_role(
        self, ctx: InteractionContext, guild_id: str, panel_type: str
    ) -> Dispatch:
        state = await self._store.load()
        panel = panels.get_panel(state, panel_type)
        self._check_active(panel)
        grant = redemption.authorize_role_grant(
            state, ctx.actor.user_id, guild_id, ctx.actor.role_ids, panel, self._clock()
        )
        if not grant.already_assigned:
            try:
                await self._gateway.add_member_role(
                    guild_id, ctx.actor.user_id, grant.role_id, reason="Premium role"
                )
            except PlatformError as exc:
                logger.exception(
                    "Failed to assign panel role",
                    extra={"user_id": ctx.actor.user_id, "role_id": grant.role_id},
                )
                raise ExternalIOError(
                    "❌ Gagal memberikan role! Pastikan role bot berada di atas role tersebut."
                ) from exc
        return _reply(embeds.role_granted_message(grant.role_id, grant.already_assigned))

    # Partner workflow

    async def _partner_component(
        self, ctx: InteractionContext, component: PartnerComponent, data: dict
    ) -> Dispatch:
        if component.action == PartnerAction.REQUEST:
            ctx.require_guild()
            return _modal(partner_request_modal())
        if component.action == PartnerAction.VIEW_REQUESTS:
            return await self._my_requests(ctx)
        return self._submit_partner_request(ctx, _modal_values(data))

    def _submit_partner_request(
        self, ctx: InteractionContext, values: dict[str, str]
    ) -> Dispatch:
        guild_id = ctx.require_guild()
        form = PartnerForm(
            server_name=values.get(SERVER_NAME_INPUT, ""),
            reason=values.get(REASON_INPUT, ""),
            discord_link=values.get(DISCORD_LINK_INPUT, ""),
        )

        async def run() -> None:
            try:
                request = await self._workflow.submit(guild_id, ctx.actor, form)
                result = embeds.partner_submitted_message(request)
            except EntitlementError as exc:
                result = embeds.error_message(exc.message)
            await self._edit_response(ctx.token, result)

        return Dispatch(
            {
                "type": ResponseType.DEFERRED_CHANNEL_MESSAGE,
                "data": {"flags": embeds.EPHEMERAL},
            },
            background=run,
        )

    def _review_component(
        self, ctx: InteractionContext, component: ReviewComponent
    ) -> Dispatch:
        async def run() -> None:
            try:
                request = await self._workflow.review(
                    component.guild_id,
                    component.request_id,
                    component.decision,
                    ctx.actor,
                )
                result = embeds.review_result_message(request)
            except EntitlementError as exc:
                result = {"content": exc.message}
            await self._edit_response(ctx.token, result)

        return Dispatch({"type": ResponseType.DEFERRED_UPDATE_MESSAGE}, background=run)

    async def _edit_response(self, token: str, message: dict) -> None:
        try:
            await self._gateway.edit_interaction_response(token, message)
        except PlatformError:
            logger.exception("Failed to edit interaction response")

    # Commands

    async def _help(self, ctx: InteractionContext) -> Dispatch:
        return _reply(embeds.help_message())

    async def _redeem_command(self, ctx: InteractionContext) -> Dispatch:
        guild_id = ctx.require_guild()
        return await self._redeem(
            ctx, guild_id, ctx.options.get("code", ""), ctx.options.get("panel")
        )

    async def _get_status(self, ctx: InteractionContext) -> Dispatch:
        state = await self._store.load()
        status = premium.premium_status(state, ctx.actor.user_id, self._clock())
        return _reply(embeds.premium_status_message(status))

    async def _claim_key(self, ctx: InteractionContext) -> Dispatch:
        async with self._store.transaction() as state:
            key = development_keys.claim_development_key(
                state, ctx.options.get("key", ""), ctx.actor.user_id
            )
        return _reply(embeds.dev_key_claimed_message(key))

    async def _my_requests(self, ctx: InteractionContext) -> Dispatch:
        guild_id = ctx.require_guild()
        state = await self._store.load()
        requests = list_requests(state, guild_id, user_id=ctx.actor.user_id)
        return _reply(
            embeds.partner_requests_message(requests, "📋 Your Partner Requests")
        )

    async def _partner_form(self, ctx: InteractionContext) -> Dispatch:
        ctx.require_guild()
        return _modal(partner_request_modal())

    async def _buyer_code(self, ctx: InteractionContext) -> Dispatch:
        async with self._store.transaction() as state:
            code = redemption.create_buyer_code(state, ctx.actor.username, self._clock())
        return _reply(embeds.code_created_message(code))

    async def _create_code(self, ctx: InteractionContext) -> Dispatch:
        rank = RedeemRank(ctx.options["rank"])
        async with self._store.transaction() as state:
            code = redemption.create_redeem_code(
                state, rank, ctx.options["duration"], ctx.actor.username, self._clock()
            )
        return _reply(embeds.code_created_message(code))

    async def _delete_code(self, ctx: InteractionContext) -> Dispatch:
        code = ctx.options["code"].strip()
        async with self._store.transaction() as state:
            redemption.delete_redeem_code(state, code)
        return _reply(
            embeds.message(content=f"✅ Kode `{code}` berhasil dihapus!", ephemeral=True)
        )

    async def _list_codes(self, ctx: InteractionContext) -> Dispatch:
        state = await self._store.load()
        return _reply(embeds.code_list_message(redemption.list_redeem_codes(state)))

    async def _set_buyer(self, ctx: InteractionContext) -> Dispatch:
        user_id = str(ctx.options["user"])
        duration = _parse_duration(ctx.options["duration"])
        async with self._store.transaction() as state:
            buyer = premium.grant(
                state, user_id, duration, ctx.actor.username, self._clock()
            )
        notice = Notice(
            user_id,
            embeds.premium_granted_notice(buyer, duration, ctx.actor.username),
        )

        async def notify() -> None:
            await deliver_notices(self._gateway, [notice])

        return Dispatch(
            _reply(embeds.premium_granted_message(buyer, duration)).response,
            background=notify,
        )

    async def _remove_buyer(self, ctx: InteractionContext) -> Dispatch:
        user_id = str(ctx.options["user"])
        async with self._store.transaction() as state:
            premium.revoke(state, user_id)
        return _reply(
            embeds.message(content=f"✅ Premium <@{user_id}> dihapus!", ephemeral=True)
        )

    async def _list_buyers(self, ctx: InteractionContext) -> Dispatch:
        state = await self._store.load()
        rows = premium.list_premium(state, self._clock())
        return _reply(embeds.premium_list_message(rows))

    async def _add_access(self, ctx: InteractionContext) -> Dispatch:
        user_id = str(ctx.options["user"])
        async with self._store.transaction() as state:
            key = user_keys.grant_manual_access(
                state, user_id, ctx.options["duration"], ctx.actor.username, self._clock()
            )
        return _reply(
            embeds.message(
                content=f"✅ Akses diberikan ke <@{user_id}> ({key.duration})",
                ephemeral=True,
            )
        )

    async def _remove_access(self, ctx: InteractionContext) -> Dispatch:
        user_id = str(ctx.options["user"])
        async with self._store.transaction() as state:
            user_keys.remove_user_key(state, user_id)
        return _reply(
            embeds.message(content=f"✅ Akses <@{user_id}> dihapus!", ephemeral=True)
        )

    async def _list_access(self, ctx: InteractionContext) -> Dispatch:
        state = await self._store.load()
        return _reply(embeds.user_key_list_message(user_keys.list_user_keys(state)))

    async def _create_dev_key(self, ctx: InteractionContext) -> Dispatch:
        async with self._store.transaction() as state:
            key = development_keys.create_development_key(
                state,
                ctx.options["role"],
                ctx.options["player_id"],
                bool(ctx.options.get("unlimited", False)),
                ctx.actor.username,
                self._clock(),
            )
        return _reply(embeds.dev_key_created_message(key))

    async def _list_dev_keys(self, ctx: InteractionContext) -> Dispatch:
        state = await self._store.load()
        keys = development_keys.list_development_keys(state)
        return _reply(embeds.dev_key_list_message(keys))

    async def _delete_dev_key(self, ctx: InteractionContext) -> Dispatch:
        key = ctx.options["key"].strip()
        async with self._store.transaction() as state:
            development_keys.delete_development_key(state, key)
        return _reply(
            embeds.message(content=f"✅ Key `{key}` berhasil dihapus!", ephemeral=True)
        )

    async def _panel(self, ctx: InteractionContext) -> Dispatch:
        panel_type = ctx.options["type"]
        updates = {
            panels.PanelField.CHANNEL: ctx.options.get("channel"),
            panels.PanelField.TITLE: ctx.options.get("title"),
            panels.PanelField.DESCRIPTION: ctx.options.get("description"),
            panels.PanelField.SCRIPT: ctx.options.get("script"),
            panels.PanelField.ROLE: ctx.options.get("role"),
        }
        async with self._store.transaction() as state:
            for panel_field, value in updates.items():
                if value is not None:
                    panels.set_panel_field(state, panel_type, panel_field, str(value))
            panel = panels.get_panel(state, panel_type)
        if ctx.options.get("publish"):
            panel = await panels.publish_panel(self._store, self._gateway, panel_type)
        return _reply(embeds.panel_settings_message(panel))

    async def _panel_status(self, ctx: InteractionContext) -> Dispatch:
        panel_type = ctx.options["type"]
        status = PanelStatus(ctx.options["status"])
        async with self._store.transaction() as state:
            panels.set_panel_status(state, panel_type, status)

        async def refresh() -> None:
            await panels.refresh_panel_message(self._store, self._gateway, panel_type)

        return Dispatch(
            _reply(
                embeds.message(
                    content=f"✅ Status panel **{panel_type}** diubah ke **{status.value}**!",
                    ephemeral=True,
                )
            ).response,
            background=refresh,
        )

    async def _partner_panel(self, ctx: InteractionContext) -> Dispatch:
        ctx.require_guild()
        try:
            await self._gateway.send_channel_message(
                ctx.channel_id, embeds.partner_panel_message()
            )
        except PlatformError as exc:
            logger.exception(
                "Failed to post partner panel", extra={"channel_id": ctx.channel_id}
            )
            raise ExternalIOError("❌ Gagal mengirim partner panel!") from exc
        return _reply(embeds.message(content="✅ Partner panel dikirim!", ephemeral=True))

    async def _partner_receiver(self, ctx: InteractionContext) -> Dispatch:
        guild_id = ctx.require_guild()
        receiver_id = str(ctx.options["receiver"])
        async with self._store.transaction() as state:
            set_receiver(state, guild_id, receiver_id)
        return _reply(embeds.receiver_updated_message(receiver_id))

    async def _partner_requests(self, ctx: InteractionContext) -> Dispatch:
        guild_id = ctx.require_guild()
        state = await self._store.load()
        requests = list_requests(state, guild_id)
        return _reply(
            embeds.partner_requests_message(requests, "📋 All Partner Requests")
        )
