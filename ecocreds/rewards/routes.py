# ecocreds/rewards/routes.py
from flask import request, g

from . import bp
from ..extensions import db
from ..model import FlatCreditRow, User
from ..services.loyalty import TIERS, classify
from ..services.reward_service import issue_credit, redeem_reward, reward_catalog
from ..utils.api import ok, err
from ..utils.decorators import login_required, role_required
from ..utils.money import to_minor

@bp.get("")
@login_required
def list_rewards():
    balance = g.user.eco_credits or 0
    return ok("ok", {
        "balance": balance,
        "level": classify(balance).as_api(),
        "rewards": [r.as_api(balance) for r in reward_catalog()],
    })

@bp.get("/tier")
def tier():
    """Public tier lookup: ?points=N"""
    raw = request.args.get("points")
    try:
        points = int(raw)
    except (TypeError, ValueError):
        return err("points must be a non-negative integer", 422)
    if points < 0:
        return err("points must be a non-negative integer", 422)
    return ok("ok", {
        "level": classify(points).as_api(),
        "tiers": [{"name": t.name, "label": t.label, "threshold": t.threshold} for t in TIERS],
    })

@bp.get("/credits")
@login_required
def list_credits():
    q = FlatCreditRow.query.filter(FlatCreditRow.user_id == g.user.id)
    if (request.args.get("unused") or "").lower() == "true":
        q = q.filter(FlatCreditRow.used_at.is_(None))
    rows = q.order_by(FlatCreditRow.issued_at.asc(), FlatCreditRow.id.asc()).all()
    return ok("ok", {"credits": [r.as_api() for r in rows]})

@bp.post("/<reward_id>/redeem")
@login_required
def redeem(reward_id):
    reward, credit = redeem_reward(g.user, reward_id)
    return ok(f"Redeemed {reward.name}", {
        "reward": reward.as_api(),
        "credit": credit.as_api() if credit else None,
        "user": g.user.as_dict(),
    }, status=201)

@bp.post("/credits")
@role_required("admin", message="Only admins can issue credits")
def create_credit():
    """Body: {email, value, min_order_value?, code?}; amounts in major units."""
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    target = User.query.filter_by(email=email).first() if email else None
    if not target:
        return err("user not found", 404)
    if data.get("value") is None:
        return err("value is required", 422)

    row = issue_credit(
        target,
        value=to_minor(data.get("value")),
        min_order_value=to_minor(data.get("min_order_value") or 0),
        code=data.get("code"),
    )
    db.session.refresh(row)
    return ok("Credit issued", {"credit": row.as_api()}, status=201)
