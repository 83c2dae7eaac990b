import logging

from kharcha.config import settings
from kharcha.db.models import AppState, Notification
from kharcha.delivery.email import DeliveryResult, EmailDelivery
from kharcha.delivery.telegram import TelegramDelivery
from kharcha.services.notification_service import add_notification

logger = logging.getLogger(__name__)

__all__ = ["DeliveryResult", "EmailDelivery", "TelegramDelivery", "configured_channels", "deliver_alerts"]

SUBJECTS = {
    "exceeded": "Budget exceeded",
    "warning": "Budget alert",
}


def configured_channels() -> list[tuple[object, str]]:
    """(channel, destination) pairs for every delivery channel with complete settings."""
    channels: list[tuple[object, str]] = []
    email = EmailDelivery.from_settings()
    if email and settings.alert_email:
        channels.append((email, settings.alert_email))
    telegram = TelegramDelivery.from_settings()
    if telegram and settings.telegram_chat_id is not None:
        channels.append((telegram, str(settings.telegram_chat_id)))
    return channels


async def deliver_alerts(
    state: AppState,
    alerts: list[Notification],
    channels: list[tuple[object, str]],
) -> list[DeliveryResult]:
    """Send each raised budget alert once per channel. Failures become error notifications."""
    results: list[DeliveryResult] = []
    for alert in alerts:
        if alert.alert_key is None:
            continue
        subject = SUBJECTS.get(alert.alert_key.kind, "Budget alert")
        for channel, destination in channels:
            result = await channel.deliver(destination, subject, alert.message, alert.amounts)
            results.append(result)
            if not result.success:
                logger.error(
                    "Alert delivery via %s failed",
                    channel.name,
                    extra={"account_id": alert.alert_key.account_id, "category": alert.alert_key.category},
                )
                add_notification(
                    state,
                    "error",
                    f"Failed to send {alert.alert_key.category} budget alert via {channel.name}",
                )
    return results
