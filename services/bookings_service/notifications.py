"""Forward booking domain events to the communications service."""

from libs.common.config import get_settings
from libs.common.logging import get_logger
from libs.common.service_client import internal_post
from services.bookings_service.events import DomainEvent, EventDispatcher

logger = get_logger(__name__)

BOOKING_EVENTS_PATH = "/internal/notifications/booking-events"


async def forward_to_communications(event: DomainEvent) -> None:
    settings = get_settings()
    if not settings.COMMUNICATIONS_SERVICE_URL:
        return

    response = await internal_post(
        service_url=settings.COMMUNICATIONS_SERVICE_URL,
        path=BOOKING_EVENTS_PATH,
        calling_service="bookings",
        json=event.to_dict(),
    )
    if response.status_code >= 400:
        logger.warning(
            "Communications service rejected %s for booking %s: %s",
            event.type.value,
            event.booking_id,
            response.status_code,
        )


def register_notification_forwarder(dispatcher: EventDispatcher) -> bool:
    """Subscribe the forwarder when a communications service is configured."""
    if not get_settings().COMMUNICATIONS_SERVICE_URL:
        logger.info("COMMUNICATIONS_SERVICE_URL not set; booking events stay local")
        return False
    dispatcher.subscribe_all(forward_to_communications, background=True)
    return True
