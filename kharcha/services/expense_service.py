import dataclasses
import logging
import uuid
from datetime import datetime

from kharcha.categories import is_valid_category
from kharcha.db.models import FREQUENCIES, AppState, Expense, Frequency

logger = logging.getLogger(__name__)


class InvalidExpenseError(ValueError):
    pass


class ExpenseNotFoundError(LookupError):
    def __init__(self, expense_id: str) -> None:
        self.expense_id = expense_id
        super().__init__(f"No expense with id '{expense_id}'")


def validate_expense(expense: Expense) -> Expense:
    """Check an expense and return it normalized; raises InvalidExpenseError."""
    if not isinstance(expense.amount, (int, float)) or expense.amount <= 0:
        raise InvalidExpenseError("Please enter a valid amount")
    if not is_valid_category(expense.category):
        raise InvalidExpenseError(f"Unknown category '{expense.category}'")
    if not expense.account_id:
        raise InvalidExpenseError("Expense must belong to an account")
    if expense.is_recurring:
        if expense.frequency not in FREQUENCIES:
            raise InvalidExpenseError("Recurring expenses need a frequency: " + ", ".join(sorted(FREQUENCIES)))
        return expense
    if expense.frequency is not None or expense.last_processed is not None:
        return dataclasses.replace(expense, frequency=None, last_processed=None)
    return expense


def add_expense(
    state: AppState,
    amount: float,
    category: str,
    date: datetime,
    description: str = "",
    account_id: str | None = None,
    is_recurring: bool = False,
    frequency: Frequency | None = None,
    receipt_text: str | None = None,
) -> Expense:
    expense = validate_expense(
        Expense(
            id=uuid.uuid4().hex,
            amount=amount,
            category=category,
            date=date,
            description=description.strip(),
            account_id=account_id or state.active_account_id,
            is_recurring=is_recurring,
            frequency=frequency,
            receipt_text=receipt_text,
        )
    )
    state.expenses.append(expense)
    logger.info("Expense added", extra={"expense_id": expense.id, "account_id": expense.account_id})
    return expense


def update_expense(state: AppState, updated: Expense) -> Expense:
    updated = validate_expense(updated)
    for i, e in enumerate(state.expenses):
        if e.id == updated.id:
            state.expenses[i] = updated
            return updated
    raise ExpenseNotFoundError(updated.id)


def delete_expense(state: AppState, expense_id: str) -> bool:
    before = len(state.expenses)
    state.expenses = [e for e in state.expenses if e.id != expense_id]
    return len(state.expenses) < before


def get_expense(state: AppState, expense_id: str) -> Expense | None:
    return next((e for e in state.expenses if e.id == expense_id), None)


def get_expenses(
    state: AppState,
    account_id: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[Expense]:
    rows = state.account_expenses(account_id)
    if start:
        rows = [e for e in rows if e.date >= start]
    if end:
        rows = [e for e in rows if e.date <= end]
    return sorted(rows, key=lambda e: e.date, reverse=True)
