# ecocreds/services/ledger.py
"""
Checkout ledger: turns a cart snapshot and an account snapshot into a quote,
and a quote into the account changes that must be committed together.

Amounts are integers in the store's minor unit. One EcoCredit point redeems
one minor unit.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, Mapping

from .errors import InvalidCart, InvalidRedemption, StaleInstrument
from .loyalty import FlatCredit, LoyaltyAccount, apply_delta


@dataclass(frozen=True)
class LedgerConfig:
    free_delivery_threshold: int = 50000
    flat_delivery_fee: int = 4900
    offset_fee_amount: int = 500
    points_per_hundred: int = 5
    offset_bonus_points: int = 5
    earn_step: int = 10000          # subtotal per points_per_hundred block
    stack_flat_credits: bool = False

    @classmethod
    def from_mapping(cls, cfg: Mapping) -> "LedgerConfig":
        d = cls()
        return cls(
            free_delivery_threshold=int(cfg.get("FREE_DELIVERY_THRESHOLD", d.free_delivery_threshold)),
            flat_delivery_fee=int(cfg.get("FLAT_DELIVERY_FEE", d.flat_delivery_fee)),
            offset_fee_amount=int(cfg.get("OFFSET_FEE_AMOUNT", d.offset_fee_amount)),
            points_per_hundred=int(cfg.get("POINTS_PER_HUNDRED", d.points_per_hundred)),
            offset_bonus_points=int(cfg.get("OFFSET_BONUS_POINTS", d.offset_bonus_points)),
            earn_step=int(cfg.get("EARN_STEP", d.earn_step)),
            stack_flat_credits=bool(cfg.get("STACK_FLAT_CREDITS", d.stack_flat_credits)),
        )


@dataclass(frozen=True)
class CartLine:
    unit_price: int
    quantity: int
    co2_per_unit: float = 0.0
    name: str | None = None
    sku: object = None

    def __post_init__(self):
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity < 1:
            raise InvalidCart("quantity must be a positive integer", name=self.name)
        if isinstance(self.unit_price, bool) or not isinstance(self.unit_price, int) or self.unit_price < 0:
            raise InvalidCart("unit price must be a non-negative integer amount", name=self.name)
        if self.co2_per_unit is None or self.co2_per_unit < 0:
            raise InvalidCart("co2 per unit must be >= 0", name=self.name)

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity

    @property
    def co2_total(self) -> float:
        return self.co2_per_unit * self.quantity


@dataclass(frozen=True)
class CheckoutOptions:
    # None: consider every unused credit on the account
    credit_ids: tuple | None = None
    points: int = 0
    clamp_points: bool = True
    offset_selected: bool = False


@dataclass(frozen=True)
class CheckoutQuote:
    subtotal: int
    delivery_fee: int
    offset_fee: int
    pre_discount_total: int
    applied_flat_credits: tuple[FlatCredit, ...]
    flat_credit_total: int
    applied_points: int
    points_earned: int
    total: int
    co2_total: float = 0.0
    offset_selected: bool = False

    @property
    def total_discount(self) -> int:
        return self.flat_credit_total + self.applied_points

    @property
    def applied_credit_ids(self) -> tuple:
        return tuple(c.id for c in self.applied_flat_credits)

    def as_api(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "delivery_fee": self.delivery_fee,
            "offset_fee": self.offset_fee,
            "offset_selected": self.offset_selected,
            "pre_discount_total": self.pre_discount_total,
            "applied_flat_credits": [
                {"id": c.id, "code": c.code, "value": c.value, "min_order_value": c.min_order_value}
                for c in self.applied_flat_credits
            ],
            "flat_credit_total": self.flat_credit_total,
            "applied_points": self.applied_points,
            "total_discount": self.total_discount,
            "points_earned": self.points_earned,
            "co2_total": round(self.co2_total, 3),
            "total": self.total,
        }


@dataclass(frozen=True)
class CommitResult:
    account: LoyaltyAccount
    used_instrument_ids: tuple = field(default_factory=tuple)


# ---- steps -----------------------------------------------------------------

def delivery_fee_for(subtotal: int, config: LedgerConfig) -> int:
    return 0 if subtotal > config.free_delivery_threshold else config.flat_delivery_fee


def points_earned_for(subtotal: int, offset_selected: bool, config: LedgerConfig) -> int:
    earned = (subtotal // config.earn_step) * config.points_per_hundred
    if offset_selected:
        earned += config.offset_bonus_points
    return earned


def redeemable_points(account: LoyaltyAccount, remaining: int) -> int:
    return max(0, min(account.point_balance, remaining))


def _issue_order(credit: FlatCredit):
    # earliest issued first; undated credits after dated ones
    return (credit.issued_at is None, credit.issued_at or datetime.min)


def _selected_credits(account: LoyaltyAccount, credit_ids) -> list[FlatCredit]:
    if credit_ids is None:
        return list(account.unused_credits())

    picked = []
    seen = set()
    for cid in credit_ids:
        if cid in seen:
            continue
        seen.add(cid)
        credit = account.find_credit(cid)
        if credit is None:
            raise StaleInstrument(f"credit {cid} is not held by this account", credit_id=cid)
        if credit.used:
            raise StaleInstrument(f"credit {cid} has already been used", credit_id=cid)
        picked.append(credit)
    return picked


def choose_flat_credits(candidates: Iterable[FlatCredit], subtotal: int, pre_discount_total: int,
                        stack: bool = False) -> tuple[tuple[FlatCredit, ...], int]:
    """
    Pick which flat credits apply to an order.
    Returns (applied_credits, discount_amount).

    Only credits whose minimum order value is met by ``subtotal`` are eligible.
    Single mode applies the most valuable eligible credit (earliest issued on a
    tie). Stacking mode takes eligible credits in the same order while their
    combined value stays within ``pre_discount_total``.
    """
    eligible = [c for c in candidates if not c.used and c.min_order_value <= subtotal]
    eligible.sort(key=_issue_order)
    eligible.sort(key=lambda c: -c.value)
    if not eligible:
        return (), 0

    if not stack:
        best = eligible[0]
        return (best,), min(best.value, pre_discount_total)

    applied = []
    amount = 0
    for c in eligible:
        if amount + c.value > pre_discount_total:
            continue
        applied.append(c)
        amount += c.value
    return tuple(applied), amount


# ---- operations ------------------------------------------------------------

def compute_quote(cart: Iterable[CartLine], account: LoyaltyAccount,
                  options: CheckoutOptions | None = None,
                  config: LedgerConfig | None = None) -> CheckoutQuote:
    options = options or CheckoutOptions()
    config = config or LedgerConfig()

    lines = list(cart or ())
    if not lines:
        raise InvalidCart("cart is empty")
    for line in lines:
        if not isinstance(line, CartLine):
            raise InvalidCart("cart contains a malformed line")

    # 1-4
    subtotal = sum(line.line_total for line in lines)
    delivery_fee = delivery_fee_for(subtotal, config)
    offset_fee = config.offset_fee_amount if options.offset_selected else 0
    pre_discount_total = subtotal + delivery_fee + offset_fee

    # 5-6
    candidates = _selected_credits(account, options.credit_ids)
    applied_credits, flat_total = choose_flat_credits(
        candidates, subtotal, pre_discount_total, stack=config.stack_flat_credits,
    )
    remaining_after_flat = pre_discount_total - flat_total

    # 7
    requested = options.points or 0
    if isinstance(requested, bool) or not isinstance(requested, int) or requested < 0:
        raise InvalidRedemption("points to apply must be a non-negative integer", requested=requested)
    cap = redeemable_points(account, remaining_after_flat)
    if requested > cap:
        if not options.clamp_points:
            raise InvalidRedemption(
                f"Cannot apply {requested} points; at most {cap} can be redeemed on this order.",
                requested=requested, max_points=cap,
            )
        requested = cap

    # 8-9
    total = max(0, remaining_after_flat - requested)
    points_earned = points_earned_for(subtotal, options.offset_selected, config)

    return CheckoutQuote(
        subtotal=subtotal,
        delivery_fee=delivery_fee,
        offset_fee=offset_fee,
        pre_discount_total=pre_discount_total,
        applied_flat_credits=applied_credits,
        flat_credit_total=flat_total,
        applied_points=requested,
        points_earned=points_earned,
        total=total,
        co2_total=sum(line.co2_total for line in lines),
        offset_selected=options.offset_selected,
    )


def commit_checkout(quote: CheckoutQuote, account: LoyaltyAccount,
                    consumed_instrument_ids: Iterable | None = None) -> CommitResult:
    """
    Work out the account state after a paid checkout: consumed credits marked
    used and ``points_earned - applied_points`` applied to the balance.

    Nothing is returned unless every part succeeds, so the caller can persist
    the result as one unit.
    """
    ids = quote.applied_credit_ids if consumed_instrument_ids is None else tuple(consumed_instrument_ids)

    used = set()
    for cid in ids:
        credit = account.find_credit(cid)
        if credit is None:
            raise StaleInstrument(f"credit {cid} is not held by this account", credit_id=cid)
        if credit.used or cid in used:
            raise StaleInstrument(f"credit {cid} has already been used", credit_id=cid)
        used.add(cid)

    credits = tuple(replace(c, used=True) if c.id in used else c for c in account.credits)
    updated = apply_delta(replace(account, credits=credits), quote.points_earned - quote.applied_points)
    return CommitResult(account=updated, used_instrument_ids=ids)
