import dataclasses
import logging
import uuid
from datetime import datetime, timedelta
from typing import NamedTuple

from kharcha.db.models import FREQUENCIES, AppState, Expense
from kharcha.periods import add_months
from kharcha.services.notification_service import add_notification

logger = logging.getLogger(__name__)

PROCESSED_MESSAGE = "Recurring transactions have been processed"


class Projection(NamedTuple):
    instances: list[Expense]
    template: Expense


def advance(moment: datetime, frequency: str, anchor_day: int | None = None) -> datetime:
    if frequency == "daily":
        return moment + timedelta(days=1)
    if frequency == "weekly":
        return moment + timedelta(days=7)
    if frequency == "monthly":
        return add_months(moment, 1, anchor_day)
    if frequency == "yearly":
        return add_months(moment, 12, anchor_day)
    raise ValueError(f"Unknown frequency '{frequency}'")


def _cursor(template: Expense) -> datetime:
    return template.last_processed or template.date


def next_occurrence(template: Expense) -> datetime | None:
    if not template.is_recurring or template.frequency not in FREQUENCIES:
        return None
    return advance(_cursor(template), template.frequency, template.date.day)


def _instance(template: Expense, when: datetime) -> Expense:
    return dataclasses.replace(
        template,
        id=uuid.uuid4().hex,
        date=when,
        is_recurring=False,
        frequency=None,
        last_processed=None,
    )


def project_template(template: Expense, now: datetime) -> Projection:
    """Materialize every occurrence owed by template up to and including now.

    Returns the new one-shot expenses and the template with its cursor moved to
    the last of them. The input template is left untouched.
    """
    if not template.is_recurring or template.frequency not in FREQUENCIES:
        return Projection([], template)

    instances: list[Expense] = []
    cursor = template.last_processed
    candidate = advance(_cursor(template), template.frequency, template.date.day)
    while candidate <= now:
        instances.append(_instance(template, candidate))
        cursor = candidate
        candidate = advance(candidate, template.frequency, template.date.day)

    if not instances:
        return Projection([], template)
    return Projection(instances, dataclasses.replace(template, last_processed=cursor))


def process_recurring(state: AppState, now: datetime) -> list[Expense]:
    generated: list[Expense] = []
    updated: list[Expense] = []
    for expense in state.expenses:
        if not expense.is_recurring:
            updated.append(expense)
            continue
        if expense.frequency not in FREQUENCIES:
            logger.warning(
                "Recurring template has unusable frequency %r, skipping",
                expense.frequency,
                extra={"expense_id": expense.id},
            )
            updated.append(expense)
            continue
        instances, template = project_template(expense, now)
        updated.append(template)
        generated.extend(instances)
        if instances:
            logger.debug(
                "Generated %d occurrence(s), cursor now %s",
                len(instances),
                template.last_processed,
                extra={"expense_id": expense.id},
            )

    if not generated:
        return []

    state.expenses = updated + generated
    add_notification(state, "info", PROCESSED_MESSAGE, now=now)
    logger.info("Processed recurring transactions: %d new", len(generated))
    return generated


def list_recurring(state: AppState, account_id: str | None = None) -> list[dict]:
    rows = []
    for e in state.account_expenses(account_id):
        if not e.is_recurring:
            continue
        rows.append({"expense": e, "next_occurrence": next_occurrence(e)})
    rows.sort(key=lambda r: (r["next_occurrence"] is None, r["next_occurrence"] or datetime.max))
    return rows
