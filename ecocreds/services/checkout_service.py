# ecocreds/services/checkout_service.py
"""
Database side of checkout: snapshot the shopper's account and cart, run the
pure ledger, and persist a paid checkout as a single transaction.
"""
import logging
import uuid

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..model import Cart, FlatCreditRow, Order, OrderItem
from ..utils.clock import utcnow
from .account_service import adjust_points
from .activity_service import record_activity, record_new_badges
from .errors import EcoCredsError, InvalidCart, StaleInstrument
from .ledger import CheckoutOptions, LedgerConfig, commit_checkout, compute_quote
from .loyalty import LoyaltyAccount

logger = logging.getLogger(__name__)


def _gen_order_code():
    return "ECO-" + utcnow().strftime("%Y%m%d-%H%M%S%f") + "-" + uuid.uuid4().hex[:6]


def ledger_config() -> LedgerConfig:
    return LedgerConfig.from_mapping(current_app.config)


def active_cart(user, create=True):
    cart = Cart.query.filter_by(user_id=user.id, status="active").first()
    if cart is None and create:
        cart = Cart(user_id=user.id, status="active")
        db.session.add(cart)
        db.session.flush()
    return cart


def load_account(user) -> LoyaltyAccount:
    """Snapshot of the user's balance and unused flat credits."""
    credits = (
        FlatCreditRow.query
        .filter(FlatCreditRow.user_id == user.id, FlatCreditRow.used_at.is_(None))
        .order_by(FlatCreditRow.issued_at.asc(), FlatCreditRow.id.asc())
        .all()
    )
    return LoyaltyAccount(
        point_balance=int(user.eco_credits or 0),
        credits=tuple(c.to_domain() for c in credits),
    )


def quote_for_user(user, options: CheckoutOptions | None = None):
    cart = active_cart(user, create=False)
    if cart is None or not cart.items:
        raise InvalidCart("cart is empty")
    return compute_quote(cart.lines(), load_account(user), options, ledger_config())


# ---- commit steps ----------------------------------------------------------

def _consume_credits(user, credit_ids, order):
    if not credit_ids:
        return []
    rows = (
        FlatCreditRow.query
        .filter(FlatCreditRow.user_id == user.id, FlatCreditRow.id.in_(credit_ids))
        .with_for_update()
        .all()
    )
    by_id = {r.id: r for r in rows}
    now = utcnow()
    for cid in credit_ids:
        row = by_id.get(cid)
        if row is None or row.used:
            raise StaleInstrument(f"credit {cid} has already been used", credit_id=cid)
        row.used_at = now
        row.used_order_id = order.id
    return rows


def _credit_points(user, quote):
    adjust_points(
        user,
        quote.points_earned - quote.applied_points,
        purchases_count=1,
        co2_saved_total=quote.co2_total,
        co2_saved_this_month=quote.co2_total,
    )


def _clear_cart(cart):
    cart.items.clear()
    cart.status = "checked_out"


def _find_replay(user, idempotency_key):
    if not idempotency_key:
        return None
    return Order.query.filter_by(user_id=user.id, idempotency_key=idempotency_key).first()


def place_order(user, options: CheckoutOptions | None = None, idempotency_key: str | None = None,
                payment_reference: str | None = None):
    """
    Commit a paid checkout. Returns (order, created).

    Consuming the flat credits, moving the point balance and clearing the cart
    happen in one transaction; a failure in any of them rolls back all three.
    A repeated ``idempotency_key`` returns the existing order untouched.
    """
    options = options or CheckoutOptions()

    existing = _find_replay(user, idempotency_key)
    if existing is not None:
        logger.warning("checkout replay for user %s key=%s -> order %s", user.id, idempotency_key, existing.code)
        return existing, False

    cart = active_cart(user, create=False)
    if cart is None or not cart.items:
        raise InvalidCart("cart is empty")

    account = load_account(user)
    quote = compute_quote(cart.lines(), account, options, ledger_config())
    result = commit_checkout(quote, account)

    badges_before = user.badges()
    try:
        order = Order(
            code=_gen_order_code(),
            status="paid",
            user_id=user.id,
            idempotency_key=idempotency_key,
            payment_reference=payment_reference,
            subtotal=quote.subtotal,
            delivery_fee=quote.delivery_fee,
            offset_fee=quote.offset_fee,
            flat_credit_total=quote.flat_credit_total,
            applied_points=quote.applied_points,
            total=quote.total,
            points_earned=quote.points_earned,
            co2_total=quote.co2_total,
            used_credit_ids=list(result.used_instrument_ids),
            cart_uuid=cart.uuid,
        )
        db.session.add(order)
        db.session.flush()

        for it in cart.items:
            db.session.add(OrderItem(
                order_id=order.id,
                sku=it.sku,
                name=it.product_name,
                unit_price=it.unit_price,
                quantity=it.quantity,
                co2_per_unit=it.co2_per_unit or 0.0,
                line_total=it.line_total(),
            ))

        _consume_credits(user, list(result.used_instrument_ids), order)
        _credit_points(user, quote)
        _clear_cart(cart)

        record_activity(
            user,
            type="purchase",
            action="Purchased",
            item=f"Order {order.code}",
            eco_credits=quote.points_earned - quote.applied_points,
            co2_saved=quote.co2_total,
        )
        if quote.offset_selected:
            record_activity(
                user,
                type="offset",
                action="Offset delivery emissions",
                item=f"Order {order.code}",
                eco_credits=current_app.config.get("OFFSET_BONUS_POINTS", 0),
            )
        record_new_badges(user, badges_before)

        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        # a concurrent request with the same key won the race
        existing = _find_replay(user, idempotency_key)
        if existing is not None:
            logger.warning("checkout replay (race) for user %s key=%s", user.id, idempotency_key)
            return existing, False
        raise
    except EcoCredsError:
        db.session.rollback()
        logger.warning("checkout refused for user %s", user.id)
        raise
    except Exception:
        db.session.rollback()
        logger.exception("checkout commit failed for user %s", user.id)
        raise

    logger.info(
        "checkout committed: order=%s user=%s total=%s points_earned=%s points_applied=%s credits=%s",
        order.code, user.id, order.total, quote.points_earned, quote.applied_points,
        list(result.used_instrument_ids),
    )
    return order, True
