from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, NamedTuple

Frequency = Literal["daily", "weekly", "monthly", "yearly"]
BudgetPeriod = Literal["monthly", "yearly"]
AccountType = Literal["personal", "business", "savings", "other"]
NotificationKind = Literal["info", "warning", "success", "error"]
ThresholdKind = Literal["warning", "exceeded"]

FREQUENCIES: frozenset[str] = frozenset({"daily", "weekly", "monthly", "yearly"})
BUDGET_PERIODS: frozenset[str] = frozenset({"monthly", "yearly"})
ACCOUNT_TYPES: frozenset[str] = frozenset({"personal", "business", "savings", "other"})
NOTIFICATION_KINDS: frozenset[str] = frozenset({"info", "warning", "success", "error"})


def _parse_dt(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


@dataclass(slots=True)
class Expense:
    id: str
    amount: float
    category: str
    date: datetime
    description: str
    account_id: str
    is_recurring: bool = False
    frequency: Frequency | None = None
    last_processed: datetime | None = None
    receipt_text: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount": self.amount,
            "category": self.category,
            "date": self.date.isoformat(),
            "description": self.description,
            "account_id": self.account_id,
            "is_recurring": self.is_recurring,
            "frequency": self.frequency,
            "last_processed": self.last_processed.isoformat() if self.last_processed else None,
            "receipt_text": self.receipt_text,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Expense":
        return cls(
            id=str(data["id"]),
            amount=float(data["amount"]),
            category=data["category"],
            date=datetime.fromisoformat(data["date"]),
            description=data.get("description") or "",
            account_id=data["account_id"],
            is_recurring=bool(data.get("is_recurring", False)),
            frequency=data.get("frequency"),
            last_processed=_parse_dt(data.get("last_processed")),
            receipt_text=data.get("receipt_text"),
        )


@dataclass(slots=True)
class Budget:
    id: str
    category: str
    amount: float
    period: BudgetPeriod
    account_id: str
    alert_threshold: float | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category,
            "amount": self.amount,
            "period": self.period,
            "account_id": self.account_id,
            "alert_threshold": self.alert_threshold,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Budget":
        threshold = data.get("alert_threshold")
        return cls(
            id=str(data["id"]),
            category=data["category"],
            amount=float(data["amount"]),
            period=data.get("period", "monthly"),
            account_id=data["account_id"],
            alert_threshold=float(threshold) if threshold is not None else None,
        )


@dataclass(slots=True)
class Account:
    id: str
    name: str
    type: AccountType = "personal"
    color: str = "#0088FE"

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "type": self.type, "color": self.color}

    @classmethod
    def from_dict(cls, data: dict) -> "Account":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            type=data.get("type", "personal"),
            color=data.get("color", "#0088FE"),
        )


class AlertKey(NamedTuple):
    account_id: str
    category: str
    kind: ThresholdKind
    period_id: str


@dataclass(slots=True)
class Notification:
    id: str
    kind: NotificationKind
    message: str
    date: datetime
    read: bool = False
    alert_key: AlertKey | None = None
    amounts: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind,
            "message": self.message,
            "date": self.date.isoformat(),
            "read": self.read,
            "alert_key": list(self.alert_key) if self.alert_key else None,
            "amounts": self.amounts,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Notification":
        key = data.get("alert_key")
        return cls(
            id=str(data["id"]),
            kind=data.get("kind", "info"),
            message=data["message"],
            date=datetime.fromisoformat(data["date"]),
            read=bool(data.get("read", False)),
            alert_key=AlertKey(*key) if key else None,
            amounts=dict(data.get("amounts") or {}),
        )


@dataclass(slots=True)
class AppState:
    expenses: list[Expense] = field(default_factory=list)
    budgets: list[Budget] = field(default_factory=list)
    accounts: list[Account] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)
    raised_alerts: set[AlertKey] = field(default_factory=set)
    active_account_id: str = ""

    def account_expenses(self, account_id: str | None = None) -> list[Expense]:
        target = account_id or self.active_account_id
        return [e for e in self.expenses if e.account_id == target]

    def account_budgets(self, account_id: str | None = None) -> list[Budget]:
        target = account_id or self.active_account_id
        return [b for b in self.budgets if b.account_id == target]
