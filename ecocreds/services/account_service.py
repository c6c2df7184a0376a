# ecocreds/services/account_service.py
"""
Writes to a user's point balance and stat counters.

The balance is never written back as an absolute value read earlier: the
delta is applied in a single conditional UPDATE, so two requests working from
the same snapshot cannot both spend the same points.
"""
import logging

from sqlalchemy import select, update

from ..extensions import db
from ..model import User
from .errors import InsufficientPoints

logger = logging.getLogger(__name__)

STAT_COLUMNS = ("purchases_count", "co2_saved_total", "co2_saved_this_month", "trees_planted", "recycled_items")


def adjust_points(user, delta: int, **increments):
    """Add ``delta`` to the user's balance and each ``increments`` value to its
    stat column, in the current transaction. The caller commits or rolls back.

    Raises ``InsufficientPoints`` when the stored balance (not the caller's
    snapshot) cannot cover a spend.
    """
    if isinstance(delta, bool) or not isinstance(delta, int):
        raise ValueError("delta must be an integer")
    values = {"eco_credits": User.eco_credits + delta}
    for name, inc in increments.items():
        if name not in STAT_COLUMNS:
            raise ValueError(f"unknown stat column {name!r}")
        values[name] = getattr(User, name) + inc

    stmt = (
        update(User)
        .where(User.id == user.id, User.eco_credits + delta >= 0)
        .values(values)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if result.rowcount != 1:
        balance = db.session.execute(select(User.eco_credits).where(User.id == user.id)).scalar()
        logger.warning("points update refused for user %s: balance=%s delta=%s", user.id, balance, delta)
        raise InsufficientPoints(
            f"Account has {balance} points, cannot spend {-delta}.",
            balance=balance,
            requested=-delta,
        )
    db.session.expire(user, ["eco_credits", *increments])
