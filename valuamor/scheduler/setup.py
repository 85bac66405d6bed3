from apscheduler.schedulers.asyncio import AsyncIOScheduler

from valuamor.platform.gateway import ChatGateway
from valuamor.scheduler import jobs
from valuamor.services.store import StateStore
from config import settings


def setup_scheduler(store: StateStore, gateway: ChatGateway) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone=settings.scheduler_timezone)
    scheduler.add_job(
        jobs.expire_premiums,
        "interval",
        args=[store, gateway],
        minutes=settings.sweep_interval_minutes,
        id="expire_premiums",
        replace_existing=True,
    )
    return scheduler
