# ecocreds/services/loyalty.py
"""
EcoCredits loyalty tiers.

A tier is a pure function of the point balance: nothing about the tier is
stored, it is recomputed from ``point_balance`` whenever it is read.
``apply_delta`` is the only way a balance changes.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime

from .errors import InsufficientPoints


@dataclass(frozen=True)
class Tier:
    name: str
    label: str
    threshold: int


# ascending by threshold
TIERS: tuple[Tier, ...] = (
    Tier("Starter", "Eco Starter", 0),
    Tier("Explorer", "Eco Explorer", 100),
    Tier("Shopper", "Green Shopper", 500),
    Tier("Champion", "Eco Champion", 2000),
    Tier("Protector", "Planet Protector", 5000),
)

# the top tier points at a name that has no threshold of its own
OPEN_ENDED_NEXT = ("Master", "Eco Master")


@dataclass(frozen=True)
class TierStatus:
    current_tier: str
    next_tier: str
    progress_to_next: float
    current_label: str
    next_label: str

    def as_api(self) -> dict:
        return {
            "current_tier": self.current_tier,
            "current_label": self.current_label,
            "next_tier": self.next_tier,
            "next_label": self.next_label,
            "progress_to_next": self.progress_to_next,
        }


@dataclass(frozen=True)
class FlatCredit:
    """One-time, fixed-value discount gated on a minimum order value."""
    id: object
    value: int
    min_order_value: int = 0
    issued_at: datetime | None = None
    used: bool = False
    code: str | None = None

    def __post_init__(self):
        if self.value <= 0:
            raise ValueError("flat credit value must be > 0")
        if self.min_order_value < 0:
            raise ValueError("min_order_value must be >= 0")


@dataclass(frozen=True)
class LoyaltyAccount:
    point_balance: int = 0
    credits: tuple[FlatCredit, ...] = field(default_factory=tuple)

    def __post_init__(self):
        _check_balance(self.point_balance)

    @property
    def status(self) -> TierStatus:
        return classify(self.point_balance)

    def unused_credits(self) -> tuple[FlatCredit, ...]:
        return tuple(c for c in self.credits if not c.used)

    def find_credit(self, credit_id) -> FlatCredit | None:
        for c in self.credits:
            if c.id == credit_id:
                return c
        return None


def _check_balance(point_balance) -> None:
    if isinstance(point_balance, bool) or not isinstance(point_balance, int):
        raise ValueError("point balance must be an integer")
    if point_balance < 0:
        raise ValueError("point balance must be >= 0")


def _clamp_percent(x: float) -> float:
    return max(0.0, min(100.0, x))


def classify(point_balance: int) -> TierStatus:
    """Map a point balance to its tier, the following tier and the progress
    (0-100) through the current tier's band.

    The top tier has no upper threshold; its band is treated as being as wide
    as its own threshold, so progress reaches 100 at twice the threshold.
    """
    _check_balance(point_balance)

    idx = 0
    for i, tier in enumerate(TIERS):
        if point_balance >= tier.threshold:
            idx = i
    current = TIERS[idx]

    if idx == len(TIERS) - 1:
        next_name, next_label = OPEN_ENDED_NEXT
        progress = (point_balance - current.threshold) / current.threshold * 100
    else:
        nxt = TIERS[idx + 1]
        next_name, next_label = nxt.name, nxt.label
        progress = (point_balance - current.threshold) / (nxt.threshold - current.threshold) * 100

    return TierStatus(
        current_tier=current.name,
        next_tier=next_name,
        progress_to_next=_clamp_percent(progress),
        current_label=current.label,
        next_label=next_label,
    )


def apply_delta(account: LoyaltyAccount, delta: int) -> LoyaltyAccount:
    """Return ``account`` with ``delta`` points earned (>0) or spent (<0).

    Spending more than the balance is a caller bug and raises
    ``InsufficientPoints`` instead of clamping at zero.
    """
    if isinstance(delta, bool) or not isinstance(delta, int):
        raise ValueError("delta must be an integer")
    new_balance = account.point_balance + delta
    if new_balance < 0:
        raise InsufficientPoints(
            f"Account has {account.point_balance} points, cannot spend {-delta}.",
            balance=account.point_balance,
            requested=-delta,
        )
    return replace(account, point_balance=new_balance)


# thresholds mirror the storefront profile page
BADGE_RULES = (
    ("EcoShopper", "purchases_count", 10),
    ("Offset Champion", "co2_saved_total", 50),
    ("Tree Planter", "trees_planted", 1),
    ("Recycler", "recycled_items", 10),
    ("Green Starter", "eco_credits", 100),
)


def badges_for(*, purchases_count=0, co2_saved_total=0.0, trees_planted=0, recycled_items=0,
               eco_credits=0) -> list[str]:
    stats = {
        "recycled_items": recycled_items,
        "purchases_count": purchases_count,
        "co2_saved_total": co2_saved_total,
        "trees_planted": trees_planted,
        "eco_credits": eco_credits,
    }
    return [name for name, stat, minimum in BADGE_RULES if (stats[stat] or 0) >= minimum]
