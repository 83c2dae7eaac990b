import logging
import re
import uuid
from datetime import date, datetime

import anthropic
from pydantic import BaseModel, ValidationError, field_validator

from kharcha.categories import CATEGORIES, FALLBACK_CATEGORY, get_categories_str, match_category
from kharcha.claude.client import ClaudeUnavailable, ask_claude, ask_claude_structured
from kharcha.db.models import AppState, Expense
from kharcha.services.expense_service import add_expense, validate_expense

logger = logging.getLogger(__name__)

RECEIPT_SCHEMA = {
    "type": "object",
    "properties": {
        "amount": {"type": ["number", "null"]},
        "category": {"type": ["string", "null"], "enum": [*CATEGORIES, None]},
        "date": {"type": ["string", "null"]},
        "description": {"type": ["string", "null"]},
    },
    "required": ["amount", "category", "date", "description"],
}

RECEIPT_PROMPT = (
    "Extract the total amount paid, the purchase date (YYYY-MM-DD), a short description "
    "(usually the store name) and the best matching category from this receipt. "
    "Categories: {categories}. Use null for anything you cannot read."
)

CATEGORY_PROMPT = (
    "Pick the single best category for this expense: \"{description}\".\n"
    "Answer with exactly one of: {categories}."
)

_AMOUNT_CLEAN_RE = re.compile(r"[^\d.\-]")
_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d.%m.%Y", "%d/%m/%y", "%b %d, %Y", "%d %b %Y")


class ReceiptDraft(BaseModel):
    """Best-effort expense fields read from a receipt. Every field may be missing."""

    amount: float | None = None
    category: str | None = None
    date: datetime | None = None
    description: str | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount(cls, v):
        if v is None or v == "":
            return None
        if isinstance(v, str):
            cleaned = _AMOUNT_CLEAN_RE.sub("", v.replace(",", ""))
            if not cleaned:
                return None
            v = cleaned
        try:
            amount = float(v)
        except (TypeError, ValueError):
            return None
        return amount if amount > 0 else None

    @field_validator("category", mode="before")
    @classmethod
    def parse_category(cls, v):
        return match_category(v) if isinstance(v, str) else None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v):
        if v is None or v == "":
            return None
        if isinstance(v, datetime):
            return v
        if isinstance(v, date):
            return datetime(v.year, v.month, v.day)
        if isinstance(v, str):
            text = v.strip()
            try:
                return datetime.fromisoformat(text)
            except ValueError:
                pass
            for fmt in _DATE_FORMATS:
                try:
                    return datetime.strptime(text, fmt)
                except ValueError:
                    continue
        return None

    @field_validator("description", mode="before")
    @classmethod
    def parse_description(cls, v):
        if v is None:
            return None
        return str(v).strip() or None


def parse_draft(payload: dict) -> ReceiptDraft:
    try:
        return ReceiptDraft.model_validate(payload)
    except ValidationError:
        logger.warning("Unusable receipt payload: %r", payload)
        return ReceiptDraft()


def draft_to_expense(state: AppState, draft: ReceiptDraft, now: datetime | None = None) -> Expense:
    """Fill the gaps in a draft and run it through the same checks as manual entry.

    Raises InvalidExpenseError when the draft has no usable amount.
    """
    expense = Expense(
        id=uuid.uuid4().hex,
        amount=draft.amount or 0.0,
        category=draft.category or FALLBACK_CATEGORY,
        date=draft.date or now or datetime.now(),
        description=draft.description or "",
        account_id=state.active_account_id,
    )
    return validate_expense(expense)


def accept_draft(
    state: AppState,
    draft: ReceiptDraft,
    now: datetime | None = None,
    receipt_text: str | None = None,
) -> Expense:
    expense = draft_to_expense(state, draft, now)
    return add_expense(
        state,
        amount=expense.amount,
        category=expense.category,
        date=expense.date,
        description=expense.description,
        account_id=expense.account_id,
        receipt_text=receipt_text,
    )


async def extract_receipt(image_path: str) -> ReceiptDraft:
    prompt = RECEIPT_PROMPT.format(categories=get_categories_str())
    try:
        payload = await ask_claude_structured(prompt, RECEIPT_SCHEMA, image_path=image_path)
    except (RuntimeError, anthropic.APIError, OSError):
        logger.warning("Receipt extraction failed for %s", image_path, exc_info=True)
        return ReceiptDraft()
    return parse_draft(payload)


async def suggest_category(description: str) -> str:
    if not description.strip():
        return FALLBACK_CATEGORY
    prompt = CATEGORY_PROMPT.format(description=description.strip(), categories=get_categories_str())
    try:
        answer = await ask_claude(prompt)
    except (ClaudeUnavailable, anthropic.APIError):
        logger.warning("Category suggestion failed", exc_info=True)
        return FALLBACK_CATEGORY
    return match_category(answer.strip().strip(".\"'")) or FALLBACK_CATEGORY
