from datetime import datetime

from kharcha.db.database import load, save
from kharcha.db.models import AlertKey, AppState, Budget, Expense
from kharcha.services.account_service import add_account, default_accounts
from kharcha.services.budget_service import add_budget
from kharcha.services.expense_service import add_expense
from kharcha.state import ACCOUNTS_KEY, ACTIVE_ACCOUNT_KEY, EXPENSES_KEY, load_state, refresh, save_state


async def test_first_run_seeds_default_accounts():
    state = await load_state()
    assert [a.id for a in state.accounts] == ["personal", "business"]
    assert state.active_account_id == "personal"
    assert state.expenses == []
    assert state.budgets == []
    assert state.notifications == []
    assert state.raised_alerts == set()


async def test_save_and_reload_roundtrip():
    state = await load_state()
    acc = add_account(state, "Savings", type="savings", color="#FFBB28")
    state.active_account_id = acc.id
    add_expense(state, 499.0, "Subscriptions", datetime(2024, 1, 1), "Netflix", is_recurring=True, frequency="monthly")
    add_budget(state, "Subscriptions", 1000.0, alert_threshold=75)
    state.raised_alerts.add(AlertKey(acc.id, "Subscriptions", "warning", "2024-01"))
    refresh(state, datetime(2024, 3, 5))
    await save_state(state)

    loaded = await load_state()
    assert loaded.active_account_id == acc.id
    assert [a.name for a in loaded.accounts] == ["Personal", "Business", "Savings"]
    assert sorted(e.date for e in loaded.expenses) == [
        datetime(2024, 1, 1),
        datetime(2024, 2, 1),
        datetime(2024, 3, 1),
    ]
    template = next(e for e in loaded.expenses if e.is_recurring)
    assert template.last_processed == datetime(2024, 3, 1)
    assert isinstance(loaded.budgets[0], Budget)
    assert loaded.budgets[0].alert_threshold == 75
    assert loaded.notifications[0].message == state.notifications[0].message
    assert loaded.raised_alerts == state.raised_alerts


async def test_malformed_records_skipped():
    await save(
        EXPENSES_KEY,
        [
            {"id": "ok", "amount": 5, "category": "Other", "date": "2024-01-01T00:00:00", "account_id": "personal"},
            {"id": "bad-date", "amount": 5, "category": "Other", "date": "yesterday", "account_id": "personal"},
            {"amount": 5},
            "garbage",
        ],
    )
    state = await load_state()
    assert [e.id for e in state.expenses] == ["ok"]
    assert isinstance(state.expenses[0], Expense)
    assert state.expenses[0].description == ""


async def test_non_list_collection_treated_as_empty():
    await save(ACCOUNTS_KEY, {"personal": "oops"})
    state = await load_state()
    assert [a.id for a in state.accounts] == ["personal", "business"]


async def test_unknown_active_account_falls_back():
    await save(ACTIVE_ACCOUNT_KEY, "deleted-account")
    state = await load_state()
    assert state.active_account_id == "personal"


async def test_save_state_persists_every_collection():
    state = await load_state()
    await save_state(state)
    assert await load(ACCOUNTS_KEY) == [a.to_dict() for a in state.accounts]
    assert await load(EXPENSES_KEY) == []


def test_refresh_runs_scheduler_then_budgets():
    state = AppState(accounts=default_accounts(), active_account_id="personal")
    add_expense(state, 300.0, "Groceries", datetime(2024, 5, 1), is_recurring=True, frequency="weekly")
    add_budget(state, "Groceries", 1000.0)

    generated, alerts = refresh(state, datetime(2024, 5, 22))
    assert len(generated) == 3
    # the template itself is dated this month too: 4 x 300 = 1200
    assert [a.kind for a in alerts] == ["error"]

    assert refresh(state, datetime(2024, 5, 22)) == ([], [])
