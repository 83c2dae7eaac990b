import logging

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.utils.token import TokenValidationError

from kharcha.config import settings
from kharcha.currency import format_amount
from kharcha.delivery.email import DeliveryResult

logger = logging.getLogger(__name__)


def _render(subject: str, body: str, amounts: dict[str, float]) -> str:
    lines = [f"🔔 {subject}", "", body]
    if "spent" in amounts and "limit" in amounts:
        lines.append("")
        lines.append(f"Spent: {format_amount(amounts['spent'])} / {format_amount(amounts['limit'])}")
        if "remaining" in amounts:
            lines.append(f"Remaining: {format_amount(amounts['remaining'])}")
    return "\n".join(lines)


class TelegramDelivery:
    name = "telegram"

    def __init__(self, token: str) -> None:
        self.token = token

    @classmethod
    def from_settings(cls) -> "TelegramDelivery | None":
        if not settings.telegram_bot_token:
            return None
        return cls(settings.telegram_bot_token)

    async def deliver(self, destination: str, subject: str, body: str, amounts: dict[str, float]) -> DeliveryResult:
        try:
            bot = Bot(token=self.token)
        except TokenValidationError as exc:
            logger.warning("Telegram bot token rejected: %s", exc)
            return DeliveryResult(False, str(exc))
        try:
            await bot.send_message(chat_id=int(destination), text=_render(subject, body, amounts))
        except (TelegramAPIError, ValueError) as exc:
            logger.warning("Telegram delivery to %s failed: %s", destination, exc)
            return DeliveryResult(False, str(exc))
        finally:
            await bot.session.close()
        logger.info("Telegram alert sent to %s", destination)
        return DeliveryResult(True)
