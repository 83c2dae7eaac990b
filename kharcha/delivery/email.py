import logging
from typing import NamedTuple

import httpx

from kharcha.config import settings
from kharcha.currency import format_amount_grouped

logger = logging.getLogger(__name__)

OVER_BUDGET_COLOR = "#dc2626"
WARNING_HEADER_COLOR = "#f59e0b"
WARNING_AMOUNT_COLOR = "#3b82f6"


class DeliveryResult(NamedTuple):
    success: bool
    error: str | None = None


def build_template_params(destination: str, subject: str, body: str, amounts: dict[str, float]) -> dict:
    spent = amounts.get("spent")
    limit = amounts.get("limit")
    remaining = amounts.get("remaining")
    over = remaining is not None and remaining <= 0
    return {
        "to_name": destination.split("@")[0],
        "to_email": destination,
        "subject": subject,
        "message": body,
        "current_spent": format_amount_grouped(spent) if spent is not None else None,
        "budget_limit": format_amount_grouped(limit) if limit is not None else None,
        "remaining": format_amount_grouped(remaining) if remaining is not None else None,
        "header_color": OVER_BUDGET_COLOR if over else WARNING_HEADER_COLOR,
        "amount_color": OVER_BUDGET_COLOR if over else WARNING_AMOUNT_COLOR,
    }


class EmailDelivery:
    name = "email"

    def __init__(
        self,
        service_id: str,
        template_id: str,
        public_key: str,
        url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.service_id = service_id
        self.template_id = template_id
        self.public_key = public_key
        self.url = url or settings.emailjs_url
        self.timeout = timeout or settings.email_timeout

    @classmethod
    def from_settings(cls) -> "EmailDelivery | None":
        if not (settings.emailjs_service_id and settings.emailjs_template_id and settings.emailjs_public_key):
            return None
        return cls(settings.emailjs_service_id, settings.emailjs_template_id, settings.emailjs_public_key)

    async def deliver(self, destination: str, subject: str, body: str, amounts: dict[str, float]) -> DeliveryResult:
        payload = {
            "service_id": self.service_id,
            "template_id": self.template_id,
            "user_id": self.public_key,
            "template_params": build_template_params(destination, subject, body, amounts),
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(self.url, json=payload)
                resp.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Email delivery to %s failed: %s", destination, exc)
            return DeliveryResult(False, str(exc))
        logger.info("Email alert sent to %s", destination)
        return DeliveryResult(True)
