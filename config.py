import json
import os
from dataclasses import dataclass
from pathlib import Path


SECRETS_FILE = Path(os.getenv("VALUAMOR_SECRETS_FILE", "secrets.json"))
CONFIG_FILE = Path(os.getenv("VALUAMOR_CONFIG_FILE", "config.json"))


def _read_json(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise RuntimeError(f"{path} is not valid JSON") from exc


_secrets = _read_json(SECRETS_FILE)
_file_config = _read_json(CONFIG_FILE)


def _get_env(name: str, default: str | None = None) -> str:
    value = os.getenv(name, default)
    if value is None:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


def _get_secret(name: str) -> str:
    return os.getenv(name) or str(_secrets.get(name, ""))


def _get_configured(env_name: str, file_key: str, default: str = "") -> str:
    return os.getenv(env_name) or str(_file_config.get(file_key) or default)


def _get_int(name: str, default: str) -> int:
    raw = _get_env(name, default)
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer") from exc


@dataclass(frozen=True)
class Settings:
    # Discord
    bot_token: str = _get_secret("DISCORD_BOT_TOKEN")
    application_id: str = _get_secret("DISCORD_APPLICATION_ID")
    public_key: str = _get_secret("DISCORD_PUBLIC_KEY")

    # DB
    database_url: str = _get_env("DATABASE_URL", "sqlite+aiosqlite:///./valuamor.db")

    # Access control
    owner_username: str = _get_configured("OWNER_USERNAME", "allowedUsername", "tc_comunity")
    development_username: str = _get_configured("DEVELOPMENT_USERNAME", "developmentUsername")
    development_user_id: str = _get_configured("DEVELOPMENT_USER_ID", "developmentUserId")
    admin_role_ids: list[str] = None  # populated in __post_init__

    # Scheduler
    sweep_interval_minutes: int = _get_int("SWEEP_INTERVAL_MINUTES", "60")
    scheduler_timezone: str = _get_env("SCHEDULER_TZ", "UTC")

    # HTTP
    http_host: str = _get_env("HTTP_HOST", "127.0.0.1")
    http_port: int = _get_int("HTTP_PORT", "8000")

    # Panels
    default_script: str = _get_env(
        "DEFAULT_SCRIPT",
        'loadstring(game:HttpGet("https://example.com/script.lua"))()',
    )

    def __post_init__(self):
        raw = os.getenv("ADMIN_ROLE_IDS")
        if raw is not None:
            role_ids = [item.strip() for item in raw.split(",") if item.strip()]
        else:
            configured = _file_config.get("adminRoles") or []
            if not isinstance(configured, list):
                raise RuntimeError("adminRoles in config.json must be a list of role ids")
            role_ids = [str(item) for item in configured]
        for role_id in role_ids:
            if not role_id.isdigit():
                raise RuntimeError(
                    "ADMIN_ROLE_IDS must be a comma-separated list of numeric role ids"
                )
        object.__setattr__(self, "admin_role_ids", role_ids)


settings = Settings()
