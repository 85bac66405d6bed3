from datetime import datetime, timezone

from valuamor.platform.gateway import ChatGateway
from valuamor.services.notices import Notice, deliver_notices
from valuamor.services.premium import sweep_expirations
from valuamor.services.store import StateStore
from valuamor.ui.embeds import premium_expired_notice


async def expire_premiums(
    store: StateStore, gateway: ChatGateway, now: datetime | None = None
) -> int:
    now = now or datetime.now(timezone.utc)
    async with store.transaction() as state:
        expired = sweep_expirations(state, now)
    notices = [Notice(buyer.user_id, premium_expired_notice()) for buyer in expired]
    await deliver_notices(gateway, notices)
    return len(expired)
