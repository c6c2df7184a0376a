# ecocreds/services/reward_service.py
import logging
import secrets
from dataclasses import dataclass

from flask import current_app

from ..extensions import db
from ..model import FlatCreditRow
from .account_service import adjust_points
from .activity_service import record_activity, record_new_badges
from .checkout_service import load_account
from .errors import EcoCredsError, InvalidRedemption, RewardUnavailable
from .loyalty import apply_delta

logger = logging.getLogger(__name__)

REWARD_KINDS = ("coupon", "environmental")


@dataclass(frozen=True)
class Reward:
    id: str
    name: str
    kind: str
    cost: int
    description: str = ""
    credit_value: int = 0
    min_order_value: int = 0
    available: bool = True

    @classmethod
    def from_dict(cls, d: dict) -> "Reward":
        kind = (d.get("kind") or "").lower().strip()
        if kind not in REWARD_KINDS:
            raise ValueError(f"reward {d.get('id')!r}: kind must be one of {', '.join(REWARD_KINDS)}")
        r = cls(
            id=str(d["id"]),
            name=d["name"],
            kind=kind,
            cost=int(d["cost"]),
            description=d.get("description") or "",
            credit_value=int(d.get("credit_value") or 0),
            min_order_value=int(d.get("min_order_value") or 0),
            available=bool(d.get("available", True)),
        )
        if r.cost <= 0:
            raise ValueError(f"reward {r.id!r}: cost must be > 0")
        if r.kind == "coupon" and r.credit_value <= 0:
            raise ValueError(f"reward {r.id!r}: coupon rewards need a credit_value")
        return r

    def as_api(self, balance: int | None = None) -> dict:
        d = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "kind": self.kind,
            "cost": self.cost,
            "available": self.available,
        }
        if self.kind == "coupon":
            d["credit_value"] = self.credit_value
            d["min_order_value"] = self.min_order_value
        if balance is not None:
            d["affordable"] = self.available and balance >= self.cost
            d["points_needed"] = max(0, self.cost - balance)
        return d


def reward_catalog() -> list[Reward]:
    return [Reward.from_dict(d) for d in current_app.config.get("REWARD_CATALOG", [])]


def find_reward(reward_id: str) -> Reward:
    for r in reward_catalog():
        if r.id == reward_id:
            if not r.available:
                raise RewardUnavailable(f"reward '{reward_id}' is not available yet", reward_id=reward_id)
            return r
    raise RewardUnavailable(f"unknown reward '{reward_id}'", reward_id=reward_id)


def _gen_credit_code():
    return "ECO-" + secrets.token_hex(5).upper()


def issue_credit(user, value: int, min_order_value: int = 0, code: str | None = None,
                 source: str = "manual", commit: bool = True) -> FlatCreditRow:
    if value <= 0:
        raise ValueError("credit value must be > 0")
    if min_order_value < 0:
        raise ValueError("min_order_value must be >= 0")
    code = (code or "").strip().upper() or _gen_credit_code()
    if FlatCreditRow.query.filter_by(code=code).first():
        raise ValueError(f"credit code {code} already exists")

    row = FlatCreditRow(
        user_id=user.id,
        code=code,
        value=int(value),
        min_order_value=int(min_order_value),
        source=source,
    )
    db.session.add(row)
    if commit:
        db.session.commit()
        logger.info("issued credit %s (%s) to user %s, source=%s", row.code, row.value, user.id, source)
    return row


def redeem_reward(user, reward_id: str):
    """
    Spend EcoCredits on a catalog reward. Returns (reward, credit_row_or_None).
    Coupon rewards issue a flat credit; environmental rewards only record the
    contribution.
    """
    reward = find_reward(reward_id)
    account = load_account(user)
    if account.point_balance < reward.cost:
        raise InvalidRedemption(
            f"Need {reward.cost - account.point_balance} more EcoCredits for {reward.name}.",
            reward_id=reward.id, cost=reward.cost, balance=account.point_balance,
        )
    apply_delta(account, -reward.cost)

    credit = None
    badges_before = user.badges()
    try:
        stats = {"trees_planted": 1} if reward.id == "plant-a-tree" else {}
        adjust_points(user, -reward.cost, **stats)
        if reward.kind == "coupon":
            credit = issue_credit(
                user, reward.credit_value, reward.min_order_value, source=reward.id, commit=False,
            )
        record_activity(
            user,
            type="reward",
            action="Redeemed",
            item=reward.name,
            eco_credits=-reward.cost,
        )
        record_new_badges(user, badges_before)
        db.session.commit()
    except EcoCredsError:
        db.session.rollback()
        raise
    except Exception:
        db.session.rollback()
        logger.exception("reward redemption failed for user %s reward %s", user.id, reward.id)
        raise

    logger.info("user %s redeemed %s for %s points", user.id, reward.id, reward.cost)
    return reward, credit
