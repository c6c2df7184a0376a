# ecocreds/services/recycle_service.py
import logging

from ..extensions import db
from .account_service import adjust_points
from .activity_service import record_activity, record_new_badges
from .checkout_service import load_account
from .errors import EcoCredsError
from .loyalty import apply_delta
from .recycling import recycle_co2, recycle_credits

logger = logging.getLogger(__name__)


def recycle_item(user, name: str, category: str, condition: str = "good"):
    """
    Credit EcoCredits and CO2 for a recycled item and log a recycle activity.
    Returns the Activity row.
    """
    name = (name or "").strip()
    if not name:
        raise ValueError("name is required")
    credits = recycle_credits(category, condition)
    co2 = recycle_co2(credits)
    apply_delta(load_account(user), credits)

    badges_before = user.badges()
    try:
        adjust_points(user, credits, recycled_items=1, co2_saved_total=co2, co2_saved_this_month=co2)
        activity = record_activity(
            user,
            type="recycle",
            action="Recycled",
            item=name,
            eco_credits=credits,
            co2_saved=co2,
        )
        record_new_badges(user, badges_before)
        db.session.commit()
    except EcoCredsError:
        db.session.rollback()
        raise
    except Exception:
        db.session.rollback()
        logger.exception("recycle failed for user %s item %r", user.id, name)
        raise

    logger.info("user %s recycled %r (%s, %s) for %s points", user.id, name, category, condition, credits)
    return activity
