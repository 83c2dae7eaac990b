import logging
import uuid
from datetime import datetime

from kharcha.categories import is_valid_category
from kharcha.config import settings
from kharcha.currency import format_amount
from kharcha.db.models import BUDGET_PERIODS, AlertKey, AppState, Budget, BudgetPeriod, Notification
from kharcha.periods import in_month, in_year, period_id
from kharcha.services.notification_service import add_notification
from kharcha.services.summary_service import current_period_filter, sum_by_category

logger = logging.getLogger(__name__)


class InvalidBudgetError(ValueError):
    pass


class DuplicateBudgetError(ValueError):
    def __init__(self, category: str, period: str) -> None:
        self.category = category
        self.period = period
        super().__init__(f"A {period} budget for {category} already exists")


def _validate(state: AppState, budget: Budget) -> None:
    if not is_valid_category(budget.category):
        raise InvalidBudgetError("Please select a category")
    if not isinstance(budget.amount, (int, float)) or budget.amount <= 0:
        raise InvalidBudgetError("Please enter a valid amount")
    if budget.period not in BUDGET_PERIODS:
        raise InvalidBudgetError(f"Unknown budget period '{budget.period}'")
    if budget.alert_threshold is not None and not 0 < budget.alert_threshold <= 100:
        raise InvalidBudgetError("Alert threshold must be between 0 and 100")
    for b in state.budgets:
        if (
            b.id != budget.id
            and b.account_id == budget.account_id
            and b.category == budget.category
            and b.period == budget.period
        ):
            raise DuplicateBudgetError(budget.category, budget.period)


def add_budget(
    state: AppState,
    category: str,
    amount: float,
    period: BudgetPeriod = "monthly",
    account_id: str | None = None,
    alert_threshold: float | None = None,
) -> Budget:
    budget = Budget(
        id=uuid.uuid4().hex,
        category=category,
        amount=amount,
        period=period,
        account_id=account_id or state.active_account_id,
        alert_threshold=alert_threshold,
    )
    _validate(state, budget)
    state.budgets.append(budget)
    logger.info("Budget created", extra={"account_id": budget.account_id, "category": category})
    return budget


def update_budget(state: AppState, updated: Budget) -> Budget:
    _validate(state, updated)
    for i, b in enumerate(state.budgets):
        if b.id == updated.id:
            state.budgets[i] = updated
            return updated
    raise InvalidBudgetError(f"No budget with id '{updated.id}'")


def delete_budget(state: AppState, budget_id: str) -> bool:
    before = len(state.budgets)
    state.budgets = [b for b in state.budgets if b.id != budget_id]
    return len(state.budgets) < before


def budget_vs_actual(state: AppState, now: datetime, account_id: str | None = None) -> list[dict]:
    expenses = state.account_expenses(account_id)
    monthly = sum_by_category(e for e in expenses if in_month(e.date, now))
    yearly = sum_by_category(e for e in expenses if in_year(e.date, now))

    result = []
    for b in sorted(state.account_budgets(account_id), key=lambda b: (b.period, b.category)):
        spent = (monthly if b.period == "monthly" else yearly).get(b.category, 0.0)
        result.append(
            {
                "id": b.id,
                "category": b.category,
                "period": b.period,
                "budget": b.amount,
                "spent": spent,
                "remaining": b.amount - spent,
                "pct": (spent / b.amount * 100) if b.amount > 0 else 0,
            }
        )
    return result


def _exceeded_message(category: str, spent: float, limit: float) -> str:
    return (
        f"You've exceeded your {category} budget for this month! "
        f"({format_amount(spent)}/{format_amount(limit)})"
    )


def _warning_message(category: str, pct: float) -> str:
    return f"You're approaching your {category} budget for this month ({pct:.0f}%)"


def evaluate_budgets(
    state: AppState,
    now: datetime,
    default_threshold: float | None = None,
) -> list[Notification]:
    """Raise at most one alert per (account, category, threshold kind, month).

    Only monthly budgets of the active account are checked, against that
    account's expenses dated in the month of now.
    """
    if default_threshold is None:
        default_threshold = settings.alert_threshold
    account_id = state.active_account_id
    spent_by_category = sum_by_category(current_period_filter(state.account_expenses(account_id), now))
    period = period_id(now)
    state.raised_alerts = {k for k in state.raised_alerts if k.period_id == period}

    raised: list[Notification] = []
    for budget in state.account_budgets(account_id):
        if budget.period != "monthly":
            continue
        if budget.amount <= 0:
            logger.warning(
                "Budget has non-positive limit, skipping",
                extra={"account_id": account_id, "category": budget.category},
            )
            continue

        spent = spent_by_category.get(budget.category, 0.0)
        pct = spent / budget.amount * 100
        threshold = budget.alert_threshold if budget.alert_threshold is not None else default_threshold

        if pct >= 100:
            key = AlertKey(account_id, budget.category, "exceeded", period)
            kind, message = "error", _exceeded_message(budget.category, spent, budget.amount)
        elif pct >= threshold:
            key = AlertKey(account_id, budget.category, "warning", period)
            kind, message = "warning", _warning_message(budget.category, pct)
        else:
            continue

        if key in state.raised_alerts:
            continue
        state.raised_alerts.add(key)
        notification = add_notification(
            state,
            kind,
            message,
            now=now,
            alert_key=key,
            amounts={"spent": spent, "limit": budget.amount, "remaining": budget.amount - spent},
        )
        raised.append(notification)
        logger.info(
            "Budget %s alert raised at %.0f%%",
            key.kind,
            pct,
            extra={"account_id": account_id, "category": budget.category},
        )
    return raised
