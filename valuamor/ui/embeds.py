from datetime import datetime

from valuamor.db.models import (
    DevelopmentKey,
    Panel,
    PanelStatus,
    PartnerRequest,
    PremiumBuyer,
    RedeemCode,
    RequestStatus,
    UserKey,
)
from valuamor.services.accrual import Duration
from valuamor.ui.keyboards import panel_kb, partner_panel_kb, review_kb


GREEN = 0x57F287
RED = 0xFF0000
GOLD = 0xFFD700
BLURPLE = 0x5865F2
GREY = 0x99AAB5

EPHEMERAL = 1 << 6

DEFAULT_PANEL_TITLE = "Valuamor Control Panel"
DEFAULT_PANEL_DESCRIPTION = (
    "This control panel is for the project: Valuamor\n\n"
    "🔑 **Redeem Key**: Tersedia untuk semua user\n"
    "⭐ **Get Script & Get Role**: Hanya untuk **PREMIUM USERS**\n\n"
    "*Gunakan `/getstatus` untuk cek status premium Anda*"
)

_PANEL_STATUS_DISPLAY: dict[PanelStatus, tuple[str, str, int]] = {
    PanelStatus.ACTIVE: ("🟢", "Active", GREEN),
    PanelStatus.BANNED: ("🔴", "Banned", RED),
    PanelStatus.MAINTENANCE: ("🛠️", "Maintenance", GOLD),
    PanelStatus.DOWN: ("⬇️", "Down", GREY),
    PanelStatus.BLACKLIST: ("⛔", "Blacklist", RED),
}

_REQUEST_STATUS_DISPLAY: dict[RequestStatus, str] = {
    RequestStatus.PENDING: "⏳ Pending",
    RequestStatus.ACCEPTED: "✅ Accepted",
    RequestStatus.REJECTED: "❌ Rejected",
}


def timestamp(value: datetime | None) -> str:
    if value is None:
        return "Unknown"
    return f"<t:{int(value.timestamp())}:f>"


def field(name: str, value: str, inline: bool = True) -> dict:
    return {"name": name, "value": value or "-", "inline": inline}


def embed(
    title: str,
    description: str | None = None,
    color: int = BLURPLE,
    fields: list[dict] | None = None,
    footer: str | None = None,
) -> dict:
    data: dict = {"title": title, "color": color}
    if description:
        data["description"] = description
    if fields:
        data["fields"] = fields
    if footer:
        data["footer"] = {"text": footer}
    return data


def message(
    content: str | None = None,
    embeds: list[dict] | None = None,
    components: list[dict] | None = None,
    ephemeral: bool = False,
) -> dict:
    data: dict = {}
    if content is not None:
        data["content"] = content
    if embeds is not None:
        data["embeds"] = embeds
    if components is not None:
        data["components"] = components
    if ephemeral:
        data["flags"] = EPHEMERAL
    return data


def error_message(text: str) -> dict:
    return message(content=text, ephemeral=True)


def help_message() -> dict:
    return message(
        embeds=[
            embed(
                "📋 Valuamor Bot - Help / Bantuan",
                "Available commands / Daftar command:",
                fields=[
                    field(
                        "🔓 Public",
                        "`/redeem` - Redeem kode premium\n"
                        "`/getstatus` - Cek status premium\n"
                        "`/claimkey` - Claim development key\n"
                        "`/myrequests` - Partner request Anda\n"
                        "`/help` - Show this list",
                        inline=False,
                    ),
                    field(
                        "🔒 Owner",
                        "`/redemkode` - Generate buyer code\n"
                        "`/createcode` `/deletecode` `/listcodes` - Redeem codes\n"
                        "`/setbuyer` `/removebuyer` `/listbuyers` - Premium\n"
                        "`/addaccess` `/removeaccess` `/listaccess` - User access",
                        inline=False,
                    ),
                    field(
                        "🔑 Admin/Dev",
                        "`/buatkey` `/devkeys` `/deletekey` - Development keys\n"
                        "`/panel` - Setup Panel\n"
                        "`/len` - Edit Panel Status\n"
                        "`/requestpt` `/partnerset` `/partnerrequests` - Partner",
                        inline=False,
                    ),
                ],
                footer="Valuamor Bot System",
            )
        ],
        ephemeral=True,
    )


def panel_embed(panel: Panel) -> dict:
    status = panel.status or PanelStatus.ACTIVE
    emoji, text, color = _PANEL_STATUS_DISPLAY[status]
    fields = [field("Status", f"{emoji} {text}")] if panel.status else None
    return embed(
        panel.title or DEFAULT_PANEL_TITLE,
        panel.description or DEFAULT_PANEL_DESCRIPTION,
        color=color,
        fields=fields,
        footer="Valuamor Bot System",
    )


def panel_message(panel: Panel) -> dict:
    return message(
        embeds=[panel_embed(panel)],
        components=panel_kb(panel.panel_type, panel.status),
    )


def panel_settings_message(panel: Panel) -> dict:
    status = panel.status or PanelStatus.ACTIVE
    emoji, text, _ = _PANEL_STATUS_DISPLAY[status]
    return message(
        embeds=[
            embed(
                f"🛠️ {panel.panel_type.upper()} Panel Setup",
                fields=[
                    field("Channel", f"<#{panel.channel_id}>" if panel.channel_id else "Belum diset"),
                    field("Judul", panel.title or "Belum diset"),
                    field("Role", f"<@&{panel.required_role}>" if panel.required_role else "Belum diset"),
                    field("Script", "✅ Diset" if panel.script else "Default"),
                    field("Status", f"{emoji} {text}"),
                    field("Message", panel.message_id or "Belum dipublish"),
                ],
            )
        ],
        ephemeral=True,
    )


def redeem_success_message(key: UserKey, premium: bool) -> dict:
    badge = "\n⭐ **PREMIUM USER**" if premium else ""
    return message(
        embeds=[
            embed(
                "✅ Key Berhasil Diredeem!",
                f"**Key:** `{key.key}`\n**Rank:** {key.rank}\n**Durasi:** {key.duration}{badge}",
                color=GOLD if premium else GREEN,
            )
        ],
        ephemeral=True,
    )


def script_message(key: UserKey, premium: bool, remaining: str | None) -> dict:
    if premium:
        badge = "\n⭐ **PREMIUM USER**"
    else:
        badge = "\n✅ **ROLE ACCESS VERIFIED / AKSES ROLE TERVERIFIKASI**"
        remaining = "Permanent (Role Based)"
    return message(
        embeds=[
            embed(
                "📜 Your Script / Script Anda",
                f"Your script is ready! / Script Anda telah disiapkan!{badge}",
                color=GOLD if premium else BLURPLE,
                fields=[
                    field("Script", f"```lua\n{key.script}\n```", inline=False),
                    field("Status", "⭐ Premium Active" if premium else "✅ Role Active"),
                    field("Active Time / Masa Aktif", remaining or "-"),
                ],
                footer="Script is ready to use / Script siap digunakan | Access verified",
            )
        ],
        ephemeral=True,
    )


def role_granted_message(role_id: str, already_assigned: bool) -> dict:
    if already_assigned:
        return message(content=f"✅ Anda sudah memiliki role <@&{role_id}>!", ephemeral=True)
    return message(content=f"✅ Role <@&{role_id}> berhasil diberikan!", ephemeral=True)


def stats_message(stats) -> dict:
    title = "📊 Valuamor Stats Premium" if stats.premium else "📊 Valuamor Stats"
    return message(
        embeds=[
            embed(
                title,
                "⭐ **PREMIUM USER**" if stats.premium else "Standard User",
                color=GOLD if stats.premium else BLURPLE,
                fields=[
                    field("Key", f"`{stats.key}`", inline=False),
                    field("Rank", stats.rank),
                    field("Duration", stats.duration),
                    field("Premium Status", "⭐ Premium" if stats.premium else "🔓 Standard"),
                    field("Premium Time", stats.remaining or "Non-Premium"),
                    field("Redeemed At", timestamp(stats.redeemed_at), inline=False),
                ],
            )
        ],
        ephemeral=True,
    )


def premium_status_message(status) -> dict:
    if not status.active:
        return message(
            embeds=[
                embed(
                    "📊 Status Premium Anda",
                    "❌ Anda **belum memiliki** akses premium!",
                    color=RED,
                    fields=[
                        field("Status", "🔒 Non-Premium"),
                        field("Akses Panel", "Tidak Aktif"),
                    ],
                    footer="Hubungi admin untuk mendapatkan akses premium",
                )
            ],
            ephemeral=True,
        )
    return message(
        embeds=[
            embed(
                "📊 Status Premium Anda",
                "✅ Anda memiliki akses **PREMIUM**!",
                color=GREEN,
                fields=[
                    field("⭐ Status", "PREMIUM USER"),
                    field("⏰ Masa Aktif", status.remaining),
                    field("📅 Ditambahkan", timestamp(status.added_date)),
                    field("👤 Diberikan Oleh", status.granted_by or "System"),
                    field("🔓 Akses Panel", "Aktif"),
                ],
                footer="Valuamor Premium System",
            )
        ],
        ephemeral=True,
    )


def premium_granted_message(buyer: PremiumBuyer, duration: Duration) -> dict:
    return message(
        embeds=[
            embed(
                "✅ Premium Berhasil Ditambahkan!",
                f"<@{buyer.user_id}> sekarang adalah **PREMIUM USER**.",
                color=GREEN,
                fields=[
                    field("⏰ Durasi", duration.label()),
                    field("📅 Berakhir", "Lifetime" if buyer.lifetime else timestamp(buyer.expiry_date)),
                ],
            )
        ],
        ephemeral=True,
    )


def premium_list_message(rows) -> dict:
    if not rows:
        return message(
            embeds=[embed("📋 List Premium Users", "Belum ada premium user.", color=RED)],
            ephemeral=True,
        )
    lines = [
        f"{'⭐' if row.active else '❌'} <@{row.user_id}> - {row.remaining}"
        for row in rows
    ]
    return message(
        embeds=[embed("📋 List Premium Users", "\n".join(lines), color=GOLD)],
        ephemeral=True,
    )


def code_created_message(code: RedeemCode) -> dict:
    return message(
        embeds=[
            embed(
                "✅ Kode Redeem Berhasil Dibuat!",
                f"**Kode:** `{code.code}`",
                color=GREEN,
                fields=[
                    field("Rank", code.rank.value),
                    field("Durasi", code.duration or "-"),
                ],
            )
        ],
        ephemeral=True,
    )


def code_list_message(codes: list[RedeemCode]) -> dict:
    if not codes:
        return message(content="📋 Belum ada kode redeem.", ephemeral=True)
    lines = [
        f"`{code.code}` - {code.rank.value} - {code.duration or '-'}"
        f"{' (used)' if code.used else ''}"
        for code in codes
    ]
    return message(
        embeds=[embed("📋 List Redeem Codes", "\n".join(lines))], ephemeral=True
    )


def user_key_list_message(keys: list[UserKey]) -> dict:
    if not keys:
        return message(content="📋 Belum ada user dengan akses.", ephemeral=True)
    lines = [f"<@{key.user_id}> - {key.rank} - {key.duration or '-'}" for key in keys]
    return message(
        embeds=[embed("📋 List User Access", "\n".join(lines))], ephemeral=True
    )


def dev_key_created_message(key: DevelopmentKey) -> dict:
    return message(
        embeds=[
            embed(
                "✅ Key Development Berhasil Dibuat!",
                f"**Key:** `{key.key}`",
                color=GREEN,
                fields=[
                    field("Role", key.role),
                    field("Player ID", key.player_id),
                    field("Unlimited", "Ya" if key.unlimited else "Tidak"),
                ],
            )
        ],
        ephemeral=True,
    )


def dev_key_list_message(keys: list[DevelopmentKey]) -> dict:
    if not keys:
        return message(content="📋 Belum ada development key.", ephemeral=True)
    lines = []
    for key in keys:
        if key.unlimited:
            state = "♾️ unlimited"
        elif key.used:
            state = f"used by <@{key.used_by}>"
        else:
            state = "available"
        lines.append(f"`{key.key}` - {key.role} - {state}")
    return message(
        embeds=[embed("📋 List Development Keys", "\n".join(lines))], ephemeral=True
    )


def dev_key_claimed_message(key: DevelopmentKey) -> dict:
    return message(
        content=f"✅ Development key `{key.key}` berhasil diklaim! Role: **{key.role}**",
        ephemeral=True,
    )


def premium_granted_notice(buyer: PremiumBuyer, duration: Duration, granted_by: str) -> dict:
    return message(
        embeds=[
            embed(
                "🎉 Selamat! Anda Mendapat Akses Premium!",
                f"Akun Anda telah di-upgrade ke **PREMIUM** oleh **{granted_by}**!",
                color=GOLD,
                fields=[
                    field("⭐ Status", "PREMIUM USER"),
                    field("⏰ Durasi", duration.label()),
                    field("👤 Diberikan Oleh", granted_by),
                ],
                footer="Gunakan /getstatus untuk cek masa aktif Anda",
            )
        ]
    )


def premium_expired_notice() -> dict:
    return message(
        embeds=[
            embed(
                "⏰ Premium Anda Telah Expired",
                "Akses premium Anda telah berakhir!",
                color=RED,
                fields=[
                    field("❌ Status", "Premium Expired"),
                    field("📞 Perpanjang", "Hubungi admin untuk perpanjang"),
                ],
            )
        ]
    )


def partner_panel_message() -> dict:
    return message(
        embeds=[
            embed(
                "🤝 Partner Request",
                "Ingin menjadi partner? Klik tombol di bawah untuk mengajukan request!\n\n"
                "Want to become a partner? Click the button below to submit a request!",
            )
        ],
        components=partner_panel_kb(),
    )


def partner_review_prompt(request: PartnerRequest, guild_name: str | None = None) -> dict:
    return message(
        embeds=[
            embed(
                "📬 New Partner Request!",
                f"**Request ID:** `{request.request_id}`",
                fields=[
                    field("👤 Requester", f"<@{request.user_id}> ({request.username})"),
                    field("🏷️ Server Name", request.server_name),
                    field("📝 Reason", request.reason, inline=False),
                    field("🔗 Discord Link", request.discord_link, inline=False),
                ],
                footer=f"From: {guild_name}" if guild_name else None,
            )
        ],
        components=review_kb(request.guild_id, request.request_id),
    )


def partner_submitted_message(request: PartnerRequest) -> dict:
    return message(
        embeds=[
            embed(
                "🤝 Partner Request Submitted!",
                "**Thank you for your request! | Terimakasih telah request!**\n\n"
                "Your partnership request has been submitted and is pending review.\n\n"
                "Permintaan partnership Anda telah diajukan dan sedang menunggu review.",
                color=GREEN,
                fields=[
                    field("📋 Request ID", f"`{request.request_id}`"),
                    field("📊 Status", _REQUEST_STATUS_DISPLAY[request.status]),
                ],
            )
        ],
        ephemeral=True,
    )


def partner_received_notice(request: PartnerRequest) -> dict:
    return message(
        embeds=[
            embed(
                "📬 Partner Request Received!",
                "**Thank you for your request! | Terimakasih telah request!**\n\n"
                "We have received your partnership request. "
                "Please wait for the admin to review it.",
                color=GREEN,
                fields=[
                    field("🏷️ Server Name", request.server_name),
                    field("📋 Request ID", f"`{request.request_id}`"),
                ],
            )
        ]
    )


def partner_welcome_message(request: PartnerRequest) -> dict:
    return message(
        embeds=[
            embed(
                "🎉 Welcome Partner!",
                f"**{request.server_name}** is now our partner!\n\n"
                f"**Discord:** {request.discord_link}",
                color=GREEN,
                fields=[field("👤 Representative", f"<@{request.user_id}>")],
            )
        ]
    )


def partner_accepted_notice(request: PartnerRequest) -> dict:
    return message(
        embeds=[
            embed(
                "🎉 Partner Request Accepted!",
                "**Congratulations! | Selamat!**\n\n"
                "Your partnership request has been **ACCEPTED**!\n\n"
                "Permintaan partnership Anda telah **DITERIMA**!",
                color=GREEN,
                fields=[
                    field("🏷️ Server", request.server_name),
                    field("🎭 Role", "Partner"),
                    field("📢 Channel", f"<#{request.channel_id}>"),
                ],
            )
        ]
    )


def partner_rejected_notice(request: PartnerRequest) -> dict:
    return message(
        embeds=[
            embed(
                "❌ Partner Request Rejected",
                "**Sorry! | Maaf!**\n\n"
                "Your partnership request has been rejected.\n\n"
                "Permintaan partnership Anda telah ditolak.",
                color=RED,
                fields=[field("🏷️ Server", request.server_name)],
            )
        ]
    )


def review_result_message(request: PartnerRequest) -> dict:
    if request.status == RequestStatus.ACCEPTED:
        result = embed(
            "✅ Partner Request Accepted!",
            f"Request **{request.request_id}** has been accepted.\n\n"
            f"✅ Partner role assigned\n"
            f"✅ Category \"☃️ Partner\" ready\n"
            f"✅ Channel \"{request.channel_name}\" ready",
            color=GREEN,
            fields=[
                field("👤 User", f"<@{request.user_id}>"),
                field("📢 Channel", f"<#{request.channel_id}>"),
            ],
        )
    else:
        result = embed(
            "❌ Partner Request Rejected",
            f"Request **{request.request_id}** has been rejected.\nUser has been notified.",
            color=RED,
        )
    return message(embeds=[result], components=[])


def receiver_updated_message(receiver_id: str) -> dict:
    return message(
        embeds=[
            embed(
                "✅ Receiver Updated!",
                f"Partner requests will now be sent to <@{receiver_id}>.",
                color=GREEN,
            )
        ],
        ephemeral=True,
    )


def partner_requests_message(requests: list[PartnerRequest], title: str) -> dict:
    if not requests:
        return message(content="📋 Belum ada partner request.", ephemeral=True)
    lines = [
        f"`{request.request_id}` - **{request.server_name}** - <@{request.user_id}> - "
        f"{_REQUEST_STATUS_DISPLAY[request.status]}"
        for request in requests
    ]
    return message(embeds=[embed(title, "\n".join(lines))], ephemeral=True)
