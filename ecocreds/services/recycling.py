# ecocreds/services/recycling.py
"""
EcoCredits earned for handing in an item for recycling: a base amount per
material category scaled by the item's condition, rounded half up.
"""
from decimal import Decimal, ROUND_HALF_UP

BASE_CREDITS = {
    "Plastic": 10,
    "Electronics": 40,
    "Paper": 5,
    "Glass": 8,
    "Metal": 15,
    "Clothing": 12,
}

CONDITION_MULTIPLIER = {
    "excellent": Decimal("1.5"),
    "good": Decimal("1.2"),
    "fair": Decimal("1.0"),
    "poor": Decimal("0.7"),
}

# kg of CO2 credited per EcoCredit earned
CO2_PER_CREDIT = 0.02


def _category(name) -> str:
    for known in BASE_CREDITS:
        if known.lower() == str(name or "").strip().lower():
            return known
    raise ValueError(f"category must be one of {', '.join(BASE_CREDITS)}")


def recycle_credits(category: str, condition: str) -> int:
    base = BASE_CREDITS[_category(category)]
    mult = CONDITION_MULTIPLIER.get(str(condition or "").strip().lower())
    if mult is None:
        raise ValueError(f"condition must be one of {', '.join(CONDITION_MULTIPLIER)}")
    return int((base * mult).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def recycle_co2(credits: int) -> float:
    return round(credits * CO2_PER_CREDIT, 3)
