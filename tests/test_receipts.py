from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest

from kharcha.claude.client import ClaudeUnavailable
from kharcha.db.models import AppState
from kharcha.receipts import (
    RECEIPT_SCHEMA,
    ReceiptDraft,
    accept_draft,
    draft_to_expense,
    extract_receipt,
    parse_draft,
    suggest_category,
)
from kharcha.services.account_service import default_accounts
from kharcha.services.expense_service import InvalidExpenseError

NOW = datetime(2024, 7, 1, 9, 0)


def _state() -> AppState:
    return AppState(accounts=default_accounts(), active_account_id="business")


def test_draft_coerces_loose_fields():
    draft = parse_draft(
        {"amount": "₹1,234.50", "category": "groceries", "date": "12/06/2024", "description": "  DMart  "}
    )
    assert draft.amount == 1234.5
    assert draft.category == "Groceries"
    assert draft.date == datetime(2024, 6, 12)
    assert draft.description == "DMart"


@pytest.mark.parametrize("raw", [None, "", "abc", "-20", 0])
def test_draft_unusable_amount_becomes_none(raw):
    assert ReceiptDraft(amount=raw).amount is None


def test_draft_unknown_category_and_date_dropped():
    draft = parse_draft({"category": "Pets", "date": "sometime"})
    assert draft.category is None
    assert draft.date is None


def test_draft_iso_date():
    assert parse_draft({"date": "2024-06-12"}).date == datetime(2024, 6, 12)


def test_draft_to_expense_fills_defaults():
    expense = draft_to_expense(_state(), ReceiptDraft(amount=99.0), NOW)
    assert expense.category == "Other"
    assert expense.date == NOW
    assert expense.description == ""
    assert expense.account_id == "business"
    assert expense.is_recurring is False


def test_draft_without_amount_rejected():
    with pytest.raises(InvalidExpenseError):
        draft_to_expense(_state(), ReceiptDraft(description="Cafe"), NOW)


def test_accept_draft_adds_expense():
    state = _state()
    expense = accept_draft(state, ReceiptDraft(amount=450, category="Food & Dining"), NOW, receipt_text="TOTAL 450")
    assert state.expenses == [expense]
    assert expense.receipt_text == "TOTAL 450"


def test_schema_lists_categories():
    assert "Groceries" in RECEIPT_SCHEMA["properties"]["category"]["enum"]


@patch("kharcha.receipts.ask_claude_structured", new_callable=AsyncMock)
async def test_extract_receipt(mock_structured):
    mock_structured.return_value = {
        "amount": 320.0,
        "category": "Groceries",
        "date": "2024-06-30",
        "description": "Big Bazaar",
    }
    draft = await extract_receipt("/tmp/receipt.jpg")
    assert draft.amount == 320.0
    assert draft.category == "Groceries"
    assert draft.date == datetime(2024, 6, 30)
    assert draft.description == "Big Bazaar"
    assert mock_structured.call_args[1]["image_path"] == "/tmp/receipt.jpg"


@patch("kharcha.receipts.ask_claude_structured", new_callable=AsyncMock)
async def test_extract_receipt_failure_returns_empty_draft(mock_structured):
    mock_structured.side_effect = RuntimeError("no tool_use block")
    assert await extract_receipt("/tmp/receipt.jpg") == ReceiptDraft()


@patch("kharcha.receipts.ask_claude", new_callable=AsyncMock, return_value="Transportation.")
async def test_suggest_category(mock_ask):
    assert await suggest_category("Uber to airport") == "Transportation"


@patch("kharcha.receipts.ask_claude", new_callable=AsyncMock, return_value="Space travel")
async def test_suggest_category_unknown_answer(mock_ask):
    assert await suggest_category("Rocket") == "Other"


@patch("kharcha.receipts.ask_claude", new_callable=AsyncMock, side_effect=ClaudeUnavailable("no key"))
async def test_suggest_category_unavailable(mock_ask):
    assert await suggest_category("Coffee") == "Other"


async def test_suggest_category_blank():
    assert await suggest_category("   ") == "Other"
