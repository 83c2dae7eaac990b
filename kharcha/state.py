import logging
from datetime import datetime
from typing import NamedTuple

from kharcha.db.database import get_db, load, save
from kharcha.db.models import Account, AlertKey, AppState, Budget, Expense, Notification
from kharcha.services.account_service import default_accounts
from kharcha.services.budget_service import evaluate_budgets
from kharcha.services.recurrence_service import process_recurring

logger = logging.getLogger(__name__)

ACCOUNTS_KEY = "kharcha_accounts"
EXPENSES_KEY = "kharcha_expenses"
BUDGETS_KEY = "kharcha_budgets"
NOTIFICATIONS_KEY = "kharcha_notifications"
ALERTS_KEY = "kharcha_alerts"
ACTIVE_ACCOUNT_KEY = "kharcha_active_account"


class RefreshResult(NamedTuple):
    generated: list[Expense]
    alerts: list[Notification]


def _load_records(raw, factory, key: str) -> list:
    if not isinstance(raw, list):
        return []
    records = []
    for item in raw:
        try:
            records.append(factory(item))
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed record in %s: %r", key, item)
    return records


def _load_alert_key(item) -> AlertKey:
    return AlertKey(*(str(part) for part in item))


async def load_state() -> AppState:
    state = AppState(
        expenses=_load_records(await load(EXPENSES_KEY), Expense.from_dict, EXPENSES_KEY),
        budgets=_load_records(await load(BUDGETS_KEY), Budget.from_dict, BUDGETS_KEY),
        accounts=_load_records(await load(ACCOUNTS_KEY), Account.from_dict, ACCOUNTS_KEY),
        notifications=_load_records(await load(NOTIFICATIONS_KEY), Notification.from_dict, NOTIFICATIONS_KEY),
        raised_alerts=set(_load_records(await load(ALERTS_KEY), _load_alert_key, ALERTS_KEY)),
    )
    if not state.accounts:
        logger.info("No accounts stored, creating defaults")
        state.accounts = default_accounts()

    active = await load(ACTIVE_ACCOUNT_KEY)
    known = {a.id for a in state.accounts}
    state.active_account_id = active if isinstance(active, str) and active in known else state.accounts[0].id
    return state


async def save_state(state: AppState) -> None:
    await save(ACCOUNTS_KEY, [a.to_dict() for a in state.accounts], commit=False)
    await save(EXPENSES_KEY, [e.to_dict() for e in state.expenses], commit=False)
    await save(BUDGETS_KEY, [b.to_dict() for b in state.budgets], commit=False)
    await save(NOTIFICATIONS_KEY, [n.to_dict() for n in state.notifications], commit=False)
    await save(ALERTS_KEY, sorted(list(k) for k in state.raised_alerts), commit=False)
    await save(ACTIVE_ACCOUNT_KEY, state.active_account_id, commit=False)
    db = await get_db()
    await db.commit()


def refresh(state: AppState, now: datetime | None = None) -> RefreshResult:
    """Run the recurrence scheduler, then re-check budgets against the fresh totals."""
    now = now or datetime.now()
    generated = process_recurring(state, now)
    alerts = evaluate_budgets(state, now)
    return RefreshResult(generated, alerts)
