# ecocreds/checkout/routes.py
from flask import request, g

from . import bp
from ..services.checkout_service import place_order, quote_for_user
from ..services.ledger import CheckoutOptions
from ..utils.api import ok
from ..utils.decorators import login_required

def _as_bool(v, default=False):
    if v is None:
        return default
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "on")
    return bool(v)

def _is_int(v):
    return isinstance(v, int) and not isinstance(v, bool)

def _parse_options(data: dict) -> CheckoutOptions:
    """
    Body keys:
      - credit_ids: [int, ...]   restrict to these flat credits (omit for all unused)
      - points: int              EcoCredits to redeem
      - clamp_points: bool       clamp an over-large request instead of rejecting (default true)
      - offset: bool             add the carbon-offset fee
    """
    raw_ids = data.get("credit_ids")
    credit_ids = None
    if raw_ids is not None:
        if not isinstance(raw_ids, list):
            raise ValueError("credit_ids must be a list")
        if not all(_is_int(x) for x in raw_ids):
            raise ValueError("credit_ids must be integers")
        credit_ids = tuple(raw_ids)

    points = data.get("points")
    if points is None:
        points = 0
    elif not _is_int(points):
        raise ValueError("points must be an integer")

    return CheckoutOptions(
        credit_ids=credit_ids,
        points=points,
        clamp_points=_as_bool(data.get("clamp_points"), default=True),
        offset_selected=_as_bool(data.get("offset")),
    )

@bp.post("/quote")
@login_required
def quote():
    options = _parse_options(request.get_json(silent=True) or {})
    q = quote_for_user(g.user, options)
    return ok("ok", {"quote": q.as_api()})

@bp.post("")
@login_required
def checkout():
    """Commit a paid checkout. Retries must resend the same Idempotency-Key."""
    data = request.get_json(silent=True) or {}
    options = _parse_options(data)
    key = (request.headers.get("Idempotency-Key") or data.get("idempotency_key") or "").strip() or None

    order, created = place_order(
        g.user, options, idempotency_key=key, payment_reference=data.get("payment_reference"),
    )
    resp = ok(
        "order created" if created else "order already placed",
        {"order": order.as_api(), "user": g.user.as_dict()},
        status=201 if created else 200,
    )
    resp.headers["X-Order-Id"] = str(order.id)
    return resp
