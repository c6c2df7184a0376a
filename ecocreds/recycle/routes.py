# ecocreds/recycle/routes.py
from flask import request, g

from . import bp
from ..services.recycle_service import recycle_item
from ..services.recycling import BASE_CREDITS, CONDITION_MULTIPLIER, recycle_credits
from ..utils.api import ok
from ..utils.decorators import login_required

@bp.get("/rates")
def rates():
    """EcoCredits per category and condition."""
    return ok("ok", {
        "rates": {
            category: {cond: recycle_credits(category, cond) for cond in CONDITION_MULTIPLIER}
            for category in BASE_CREDITS
        },
    })

@bp.post("")
@login_required
def recycle():
    """Body: {name, category, condition?}; condition defaults to "good"."""
    data = request.get_json(silent=True) or {}
    activity = recycle_item(
        g.user,
        data.get("name"),
        data.get("category"),
        data.get("condition") or "good",
    )
    return ok(f"Recycled {activity.item}", {
        "activity": activity.as_api(),
        "user": g.user.as_dict(),
    }, status=201)
