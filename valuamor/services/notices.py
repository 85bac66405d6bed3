import logging
from dataclasses import dataclass

from valuamor.platform.gateway import ChatGateway, PlatformError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    """A direct message sent after a state change has been persisted.

    Delivery is advisory: a failed send never undoes the change.
    """

    user_id: str
    message: dict


async def deliver_notices(gateway: ChatGateway, notices: list[Notice]) -> int:
    delivered = 0
    for notice in notices:
        try:
            await gateway.send_direct_message(notice.user_id, notice.message)
            delivered += 1
        except PlatformError:
            logger.exception(
                "Could not DM user",
                extra={"user_id": notice.user_id},
            )
    return delivered
