from kharcha.config import settings


def format_amount(amount: float, symbol: str | None = None) -> str:
    sym = settings.currency_symbol if symbol is None else symbol
    return f"{sym}{amount:.2f}"


def format_amount_grouped(amount: float, symbol: str | None = None) -> str:
    """Format with Indian digit grouping (12,34,567.89) as used in alert emails."""
    sym = settings.currency_symbol if symbol is None else symbol
    sign = "-" if amount < 0 else ""
    whole, frac = f"{abs(amount):.2f}".split(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups) + "," + tail
    return f"{sign}{sym}{whole}.{frac}"
