import asyncio
import logging

from dotenv import load_dotenv

load_dotenv()

import uvicorn

from valuamor.db.session import AsyncSessionLocal
from valuamor.interactions.commands import command_payloads
from valuamor.interactions.router import InteractionRouter
from valuamor.platform.discord_rest import DiscordRestGateway
from valuamor.platform.gateway import PlatformError
from valuamor.scheduler.setup import setup_scheduler
from valuamor.services.partners import PartnerWorkflow
from valuamor.services.store import StateStore
from valuamor.webhooks.app import create_app
from config import settings


logger = logging.getLogger(__name__)


async def on_startup(store: StateStore, gateway: DiscordRestGateway) -> None:
    await store.load()
    try:
        await gateway.register_commands(command_payloads())
    except PlatformError:
        logger.exception("Failed to register slash commands")


async def main() -> None:
    logging.basicConfig(level=logging.INFO)

    if not settings.bot_token or not settings.public_key:
        raise RuntimeError("DISCORD_BOT_TOKEN and DISCORD_PUBLIC_KEY must be set")

    store = StateStore(AsyncSessionLocal)
    gateway = DiscordRestGateway(settings.bot_token, settings.application_id)
    await on_startup(store, gateway)

    scheduler = setup_scheduler(store, gateway)
    scheduler.start()

    router = InteractionRouter(store, gateway, PartnerWorkflow(store, gateway))
    app = create_app(router, settings.public_key)
    server_config = uvicorn.Config(
        app, host=settings.http_host, port=settings.http_port, log_level="info"
    )
    server = uvicorn.Server(server_config)
    await server.serve()


if __name__ == "__main__":
    asyncio.run(main())
