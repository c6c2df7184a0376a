from flask import request, g

from . import bp
from ..services.activity_service import recent_activities
from ..utils.api import ok
from ..utils.decorators import login_required

@bp.get("")
@login_required
def list_activities():
    rows = recent_activities(g.user, request.args.get("limit"))
    return ok("ok", {"activities": [a.as_api() for a in rows]})
