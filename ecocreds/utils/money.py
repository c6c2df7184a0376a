# ecocreds/utils/money.py

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

Money = Decimal

MINOR_PER_MAJOR = 100


def D(x) -> Money:
    return x if isinstance(x, Decimal) else Decimal(str(x or "0"))


def round_money(x: Money) -> Money:
    return D(x).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def to_minor(x) -> int:
    """Major-unit amount ("49.99", 49.99, 49) to integer minor units."""
    try:
        value = round_money(x)
    except InvalidOperation:
        raise ValueError(f"invalid amount: {x!r}")
    if not value.is_finite():
        raise ValueError(f"invalid amount: {x!r}")
    if value < 0:
        raise ValueError("amount must be >= 0")
    return int(value * MINOR_PER_MAJOR)


def from_minor(n: int) -> Money:
    return round_money(Decimal(int(n)) / MINOR_PER_MAJOR)


def to_string_money(n: int) -> str:
    return str(from_minor(n))
