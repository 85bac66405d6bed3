from enum import Enum

from valuamor.db.models import PanelStatus, RedeemRank
from valuamor.services.panels import PANEL_TYPES


STRING = 3
BOOLEAN = 5
USER = 6
CHANNEL = 7
ROLE = 8


class CommandName(str, Enum):
    HELP = "help"
    REDEEM = "redeem"
    GET_STATUS = "getstatus"
    CLAIM_KEY = "claimkey"
    MY_REQUESTS = "myrequests"
    PARTNER = "partner"
    BUYER_CODE = "redemkode"
    CREATE_CODE = "createcode"
    DELETE_CODE = "deletecode"
    LIST_CODES = "listcodes"
    SET_BUYER = "setbuyer"
    REMOVE_BUYER = "removebuyer"
    LIST_BUYERS = "listbuyers"
    ADD_ACCESS = "addaccess"
    REMOVE_ACCESS = "removeaccess"
    LIST_ACCESS = "listaccess"
    CREATE_DEV_KEY = "buatkey"
    LIST_DEV_KEYS = "devkeys"
    DELETE_DEV_KEY = "deletekey"
    PANEL = "panel"
    PANEL_STATUS = "len"
    PARTNER_PANEL = "requestpt"
    PARTNER_RECEIVER = "partnerset"
    PARTNER_REQUESTS = "partnerrequests"


class Access(str, Enum):
    EVERYONE = "everyone"
    OWNER = "owner"
    DEVELOPER = "developer"
    ADMIN = "admin"


COMMAND_ACCESS: dict[CommandName, Access] = {
    CommandName.HELP: Access.EVERYONE,
    CommandName.REDEEM: Access.EVERYONE,
    CommandName.GET_STATUS: Access.EVERYONE,
    CommandName.CLAIM_KEY: Access.EVERYONE,
    CommandName.MY_REQUESTS: Access.EVERYONE,
    CommandName.PARTNER: Access.EVERYONE,
    CommandName.BUYER_CODE: Access.OWNER,
    CommandName.CREATE_CODE: Access.OWNER,
    CommandName.DELETE_CODE: Access.OWNER,
    CommandName.LIST_CODES: Access.OWNER,
    CommandName.SET_BUYER: Access.OWNER,
    CommandName.REMOVE_BUYER: Access.OWNER,
    CommandName.LIST_BUYERS: Access.OWNER,
    CommandName.ADD_ACCESS: Access.OWNER,
    CommandName.REMOVE_ACCESS: Access.OWNER,
    CommandName.LIST_ACCESS: Access.OWNER,
    CommandName.CREATE_DEV_KEY: Access.DEVELOPER,
    CommandName.LIST_DEV_KEYS: Access.DEVELOPER,
    CommandName.DELETE_DEV_KEY: Access.DEVELOPER,
    CommandName.PANEL_STATUS: Access.DEVELOPER,
    CommandName.PANEL: Access.ADMIN,
    CommandName.PARTNER_PANEL: Access.ADMIN,
    CommandName.PARTNER_RECEIVER: Access.ADMIN,
    CommandName.PARTNER_REQUESTS: Access.ADMIN,
}


def _option(
    name: str,
    description: str,
    option_type: int = STRING,
    required: bool = True,
    choices: list[str] | None = None,
) -> dict:
    option = {
        "name": name,
        "description": description,
        "type": option_type,
        "required": required,
    }
    if choices:
        option["choices"] = [{"name": choice, "value": choice} for choice in choices]
    return option


def _command(name: CommandName, description: str, options: list[dict] | None = None) -> dict:
    return {
        "name": name.value,
        "description": description,
        "type": 1,
        "options": options or [],
    }


_PANEL_CHOICES = list(PANEL_TYPES)
_RANK_CHOICES = [rank.value for rank in RedeemRank]
_STATUS_CHOICES = [status.value for status in PanelStatus]


def command_payloads() -> list[dict]:
    return [
        _command(CommandName.HELP, "Tampilkan daftar command / Show command list"),
        _command(
            CommandName.REDEEM,
            "Redeem kode premium / Redeem a code",
            [
                _option("code", "Kode redeem (Valuamor-xxx-xxx)"),
                _option("panel", "Panel", required=False, choices=_PANEL_CHOICES),
            ],
        ),
        _command(CommandName.GET_STATUS, "Cek status premium Anda"),
        _command(
            CommandName.CLAIM_KEY,
            "Claim development key",
            [_option("key", "Development key (DEV-xxx)")],
        ),
        _command(CommandName.MY_REQUESTS, "Lihat partner request Anda"),
        _command(CommandName.PARTNER, "Ajukan partner request / Request partnership"),
        _command(CommandName.BUYER_CODE, "Generate kode redeem buyer"),
        _command(
            CommandName.CREATE_CODE,
            "Buat kode redeem",
            [
                _option("rank", "Rank", choices=_RANK_CHOICES),
                _option("duration", "Durasi (contoh: 30 days, Lifetime)"),
            ],
        ),
        _command(
            CommandName.DELETE_CODE, "Hapus kode redeem", [_option("code", "Kode redeem")]
        ),
        _command(CommandName.LIST_CODES, "List kode redeem"),
        _command(
            CommandName.SET_BUYER,
            "Tambah premium buyer",
            [
                _option("user", "User", USER),
                _option("duration", "Durasi (contoh: 30 days, 1 bulan, lifetime)"),
            ],
        ),
        _command(
            CommandName.REMOVE_BUYER, "Hapus premium buyer", [_option("user", "User", USER)]
        ),
        _command(CommandName.LIST_BUYERS, "List premium buyer"),
        _command(
            CommandName.ADD_ACCESS,
            "Tambah akses user",
            [_option("user", "User", USER), _option("duration", "Durasi")],
        ),
        _command(
            CommandName.REMOVE_ACCESS, "Hapus akses user", [_option("user", "User", USER)]
        ),
        _command(CommandName.LIST_ACCESS, "List akses user"),
        _command(
            CommandName.CREATE_DEV_KEY,
            "Buat key development",
            [
                _option("role", "Role"),
                _option("player_id", "Player ID"),
                _option("unlimited", "Bisa dipakai berkali-kali", BOOLEAN, required=False),
            ],
        ),
        _command(CommandName.LIST_DEV_KEYS, "List development keys"),
        _command(
            CommandName.DELETE_DEV_KEY,
            "Hapus development key",
            [_option("key", "Development key")],
        ),
        _command(
            CommandName.PANEL,
            "Setup panel",
            [
                _option("type", "Panel", choices=_PANEL_CHOICES),
                _option("channel", "Channel panel", CHANNEL, required=False),
                _option("title", "Judul panel", required=False),
                _option("description", "Deskripsi panel", required=False),
                _option("script", "Script Roblox executor", required=False),
                _option("role", "Role yang dibutuhkan", ROLE, required=False),
                _option("publish", "Kirim panel ke channel", BOOLEAN, required=False),
            ],
        ),
        _command(
            CommandName.PANEL_STATUS,
            "Edit status panel",
            [
                _option("type", "Panel", choices=_PANEL_CHOICES),
                _option("status", "Status", choices=_STATUS_CHOICES),
            ],
        ),
        _command(CommandName.PARTNER_PANEL, "Kirim partner request panel"),
        _command(
            CommandName.PARTNER_RECEIVER,
            "Set penerima partner request",
            [_option("receiver", "User penerima", USER)],
        ),
        _command(CommandName.PARTNER_REQUESTS, "List semua partner request"),
    ]
