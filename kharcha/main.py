import asyncio
import logging
import time
from datetime import datetime

from kharcha.config import settings
from kharcha.db.database import close_db, init_db
from kharcha.delivery import configured_channels, deliver_alerts
from kharcha.logging import setup_logging
from kharcha.services.notification_service import unread_count
from kharcha.state import load_state, refresh, save_state

logger = logging.getLogger(__name__)


async def run_cycle(now: datetime | None = None) -> dict:
    """Load state, catch up recurring expenses, check budgets, deliver alerts and save."""
    started = time.monotonic()
    state = await load_state()
    generated, alerts = refresh(state, now)
    if alerts:
        channels = configured_channels()
        if channels:
            await deliver_alerts(state, alerts, channels)
        else:
            logger.debug("No delivery channel configured, %d alert(s) kept in-app", len(alerts))
    await save_state(state)
    summary = {
        "generated": len(generated),
        "alerts": len(alerts),
        "unread": unread_count(state),
    }
    logger.info(
        "Refresh complete: %s",
        summary,
        extra={"account_id": state.active_account_id, "latency_ms": round((time.monotonic() - started) * 1000, 1)},
    )
    return summary


async def main():
    await init_db()
    try:
        await run_cycle()
    finally:
        await close_db()


def run() -> None:
    setup_logging(level=logging.DEBUG if settings.debug else logging.INFO)
    asyncio.run(main())


if __name__ == "__main__":
    run()
