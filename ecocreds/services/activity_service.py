# ecocreds/services/activity_service.py
from ..extensions import db
from ..model import Activity, ACTIVITY_TYPES

DEFAULT_LIMIT = 10
MAX_LIMIT = 100

def record_activity(user, *, type: str, action: str, item: str, eco_credits: int, co2_saved: float = 0.0) -> Activity:
    """Append an activity row to the current session; the caller commits."""
    if type not in ACTIVITY_TYPES:
        raise ValueError(f"activity type must be one of {', '.join(ACTIVITY_TYPES)}")
    a = Activity(
        user_id=user.id,
        type=type,
        action=action,
        item=item,
        eco_credits=int(eco_credits),
        co2_saved=float(co2_saved or 0.0),
    )
    db.session.add(a)
    return a

def recent_activities(user, limit=DEFAULT_LIMIT):
    try:
        limit = int(limit)
    except (TypeError, ValueError):
        limit = DEFAULT_LIMIT
    limit = max(1, min(limit, MAX_LIMIT))
    return (
        Activity.query
        .filter(Activity.user_id == user.id)
        .order_by(Activity.timestamp.desc(), Activity.id.desc())
        .limit(limit)
        .all()
    )

def record_new_badges(user, before) -> list[str]:
    """Record a badge activity for each badge ``user`` holds now but not in ``before``."""
    earned = [b for b in user.badges() if b not in set(before)]
    for name in earned:
        record_activity(user, type="badge", action="Earned badge", item=name, eco_credits=0)
    return earned
