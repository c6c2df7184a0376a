# ecocreds/cart/routes.py
from __future__ import annotations
import math

from flask import request, g

from . import bp
from ..extensions import db
from ..model import CartItem
from ..services.checkout_service import active_cart
from ..utils.api import ok, err
from ..utils.decorators import login_required
from ..utils.money import to_minor

MAX_QTY = 999

# ---- helpers ---------------------------------------------------------------

def _parse_qty(value, default=1) -> int:
    if value is None:
        return default
    try:
        qty = int(value)
    except (TypeError, ValueError):
        raise ValueError("quantity must be an integer")
    if qty < 1 or qty > MAX_QTY:
        raise ValueError(f"quantity must be between 1 and {MAX_QTY}")
    return qty

def _parse_co2(value) -> float:
    try:
        co2 = float(value or 0)
    except (TypeError, ValueError):
        raise ValueError("co2 must be numeric")
    if not math.isfinite(co2) or co2 < 0:
        raise ValueError("co2 must be a finite number >= 0")
    return co2

def _get_item(cart, item_id):
    return next((it for it in cart.items if it.id == item_id), None)

# ---- routes ----------------------------------------------------------------

@bp.get("")
@login_required
def get_cart():
    cart = active_cart(g.user)
    db.session.commit()
    return ok("ok", {"cart": cart.as_api()})

@bp.post("/items")
@login_required
def add_item():
    """
    Body: {name, price, quantity?, co2?, sku?}
    price is in major units ("49.99"); a line with the same sku is merged.
    """
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    if not name:
        return err("name is required", 422)
    if data.get("price") is None:
        return err("price is required", 422)
    unit_price = to_minor(data.get("price"))
    qty = _parse_qty(data.get("quantity"))
    co2 = _parse_co2(data.get("co2"))
    sku = (str(data.get("sku")).strip() or None) if data.get("sku") is not None else None

    cart = active_cart(g.user)
    existing = next((it for it in cart.items if sku and it.sku == sku), None)
    if existing:
        existing.quantity = _parse_qty(existing.quantity + qty)
        existing.unit_price = unit_price
        existing.co2_per_unit = co2
    else:
        cart.items.append(CartItem(
            sku=sku, product_name=name, unit_price=unit_price, quantity=qty, co2_per_unit=co2,
        ))
    db.session.commit()
    return ok("item added", {"cart": cart.as_api()}, status=201)

@bp.patch("/items/<int:item_id>")
@login_required
def update_item(item_id):
    data = request.get_json(silent=True) or {}
    cart = active_cart(g.user)
    it = _get_item(cart, item_id)
    if not it:
        return err("item not found", 404)
    it.quantity = _parse_qty(data.get("quantity"), default=it.quantity)
    db.session.commit()
    return ok("item updated", {"cart": cart.as_api()})

@bp.delete("/items/<int:item_id>")
@login_required
def remove_item(item_id):
    cart = active_cart(g.user)
    it = _get_item(cart, item_id)
    if not it:
        return err("item not found", 404)
    cart.items.remove(it)
    db.session.commit()
    return ok("item removed", {"cart": cart.as_api()})

@bp.delete("")
@login_required
def clear_cart():
    cart = active_cart(g.user)
    cart.items.clear()
    db.session.commit()
    return ok("cart cleared", {"cart": cart.as_api()})
