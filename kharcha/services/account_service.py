import logging
import re
import uuid

from kharcha.db.models import ACCOUNT_TYPES, Account, AccountType, AppState

logger = logging.getLogger(__name__)

_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


class InvalidAccountError(ValueError):
    pass


class LastAccountError(ValueError):
    def __init__(self) -> None:
        super().__init__("You must have at least one account")


def default_accounts() -> list[Account]:
    return [
        Account(id="personal", name="Personal", type="personal", color="#0088FE"),
        Account(id="business", name="Business", type="business", color="#00C49F"),
    ]


def _validate(state: AppState, account: Account) -> None:
    if not account.name.strip():
        raise InvalidAccountError("Account name is required")
    if account.type not in ACCOUNT_TYPES:
        raise InvalidAccountError(f"Unknown account type '{account.type}'")
    if not _COLOR_RE.match(account.color):
        raise InvalidAccountError(f"Invalid color '{account.color}'")
    wanted = account.name.strip().lower()
    for a in state.accounts:
        if a.id != account.id and a.name.lower() == wanted:
            raise InvalidAccountError("An account with this name already exists")


def get_account(state: AppState, account_id: str) -> Account | None:
    return next((a for a in state.accounts if a.id == account_id), None)


def add_account(state: AppState, name: str, type: AccountType = "personal", color: str = "#0088FE") -> Account:
    account = Account(id=uuid.uuid4().hex, name=name.strip(), type=type, color=color)
    _validate(state, account)
    state.accounts.append(account)
    if not state.active_account_id:
        state.active_account_id = account.id
    logger.info("Account added", extra={"account_id": account.id})
    return account


def update_account(state: AppState, updated: Account) -> Account:
    _validate(state, updated)
    for i, a in enumerate(state.accounts):
        if a.id == updated.id:
            state.accounts[i] = updated
            return updated
    raise InvalidAccountError(f"No account with id '{updated.id}'")


def delete_account(state: AppState, account_id: str) -> bool:
    """Remove an account with its expenses and budgets. Raises LastAccountError for the sole account."""
    if get_account(state, account_id) is None:
        return False
    if len(state.accounts) <= 1:
        raise LastAccountError()

    state.accounts = [a for a in state.accounts if a.id != account_id]
    state.expenses = [e for e in state.expenses if e.account_id != account_id]
    state.budgets = [b for b in state.budgets if b.account_id != account_id]
    state.raised_alerts = {k for k in state.raised_alerts if k.account_id != account_id}
    if state.active_account_id == account_id:
        state.active_account_id = state.accounts[0].id
    logger.info("Account deleted", extra={"account_id": account_id})
    return True


def switch_account(state: AppState, account_id: str) -> Account:
    account = get_account(state, account_id)
    if account is None:
        raise InvalidAccountError(f"No account with id '{account_id}'")
    state.active_account_id = account.id
    return account
