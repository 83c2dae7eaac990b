import uuid
from datetime import datetime

from kharcha.db.models import NOTIFICATION_KINDS, AlertKey, AppState, Notification, NotificationKind


def add_notification(
    state: AppState,
    kind: NotificationKind,
    message: str,
    now: datetime | None = None,
    alert_key: AlertKey | None = None,
    amounts: dict[str, float] | None = None,
) -> Notification:
    if kind not in NOTIFICATION_KINDS:
        raise ValueError(f"Unknown notification kind '{kind}'")
    notification = Notification(
        id=uuid.uuid4().hex,
        kind=kind,
        message=message,
        date=now or datetime.now(),
        alert_key=alert_key,
        amounts=dict(amounts or {}),
    )
    state.notifications.insert(0, notification)
    return notification


def mark_as_read(state: AppState, notification_id: str) -> bool:
    for n in state.notifications:
        if n.id == notification_id:
            n.read = True
            return True
    return False


def clear_notifications(state: AppState) -> int:
    """Drop every notification. Raised budget alerts stay raised for their period."""
    count = len(state.notifications)
    state.notifications.clear()
    return count


def unread_count(state: AppState) -> int:
    return sum(1 for n in state.notifications if not n.read)
