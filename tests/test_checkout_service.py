import pytest
from sqlalchemy import update

from ecocreds.extensions import db
from ecocreds.model import Activity, Cart, FlatCreditRow, Order, User
from ecocreds.services import checkout_service
from ecocreds.services.checkout_service import load_account, place_order, quote_for_user
from ecocreds.services.account_service import adjust_points
from ecocreds.services.errors import InsufficientPoints, InvalidCart, StaleInstrument
from ecocreds.services.ledger import CheckoutOptions
from ecocreds.services.reward_service import issue_credit


@pytest.fixture
def shopper(make_user, fill_cart):
    """1245 points, a ₹50-off-₹500 credit and a ₹600 cart (2 x ₹300, 1.5 kg CO2 each)."""
    user = make_user(eco_credits=1245)
    issue_credit(user, 5000, 50000, code="WELCOME50")
    fill_cart(user, [(30000, 2, 1.5)])
    return user


def _credit(code):
    return FlatCreditRow.query.filter_by(code=code).one()


def test_load_account_snapshot(shopper):
    acct = load_account(shopper)
    assert acct.point_balance == 1245
    assert [c.code for c in acct.credits] == ["WELCOME50"]


def test_quote_for_user(shopper):
    q = quote_for_user(shopper, CheckoutOptions(points=1000))
    assert q.subtotal == 60000
    assert q.delivery_fee == 0
    assert q.flat_credit_total == 5000
    assert q.applied_points == 1000
    assert q.total == 54000
    assert q.points_earned == 30


def test_quote_for_empty_cart(make_user):
    with pytest.raises(InvalidCart):
        quote_for_user(make_user())


def test_place_order_commits_everything(shopper):
    order, created = place_order(shopper, CheckoutOptions(points=1000), idempotency_key="k-1")
    assert created is True
    assert order.total == 54000
    assert order.used_credit_ids == [_credit("WELCOME50").id]
    assert len(order.items) == 1

    user = db.session.get(User, shopper.id)
    assert user.eco_credits == 1245 + 30 - 1000
    assert user.purchases_count == 1
    assert user.co2_saved_total == pytest.approx(3.0)

    credit = _credit("WELCOME50")
    assert credit.used_at is not None
    assert credit.used_order_id == order.id

    assert Cart.query.filter_by(user_id=user.id, status="active").first() is None

    acts = Activity.query.filter_by(user_id=user.id).all()
    assert [(a.type, a.eco_credits) for a in acts] == [("purchase", 30 - 1000)]


def test_place_order_with_offset_records_offset_activity(shopper):
    order, _ = place_order(shopper, CheckoutOptions(offset_selected=True))
    assert order.offset_fee == 500
    assert order.points_earned == 35
    types = sorted(a.type for a in Activity.query.filter_by(user_id=shopper.id))
    assert types == ["offset", "purchase"]


def test_same_idempotency_key_does_not_double_apply(shopper):
    first, created = place_order(shopper, CheckoutOptions(points=1000), idempotency_key="k-1")
    again, created_again = place_order(shopper, CheckoutOptions(points=1000), idempotency_key="k-1")
    assert created is True
    assert created_again is False
    assert again.id == first.id
    assert Order.query.count() == 1
    assert db.session.get(User, shopper.id).eco_credits == 275


def test_retry_without_key_after_success_sees_empty_cart(shopper):
    place_order(shopper)
    with pytest.raises(InvalidCart):
        place_order(shopper)


def test_failure_after_consuming_credit_rolls_everything_back(shopper, monkeypatch):
    consumed = []
    real_consume = checkout_service._consume_credits

    def spy_consume(*args, **kwargs):
        rows = real_consume(*args, **kwargs)
        consumed.extend(r.id for r in rows)
        return rows

    def boom(*args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(checkout_service, "_consume_credits", spy_consume)
    monkeypatch.setattr(checkout_service, "_credit_points", boom)

    with pytest.raises(RuntimeError):
        place_order(shopper, CheckoutOptions(points=1000), idempotency_key="k-1")

    assert consumed  # the credit was marked used before the failure
    assert _credit("WELCOME50").used_at is None
    user = db.session.get(User, shopper.id)
    assert user.eco_credits == 1245
    assert user.purchases_count == 0
    cart = Cart.query.filter_by(user_id=user.id, status="active").one()
    assert len(cart.items) == 1
    assert Order.query.count() == 0
    assert Activity.query.count() == 0


def test_failure_clearing_cart_keeps_points_and_credit(shopper, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("cart store unavailable")

    monkeypatch.setattr(checkout_service, "_clear_cart", boom)
    with pytest.raises(RuntimeError):
        place_order(shopper, CheckoutOptions(points=1000))

    assert db.session.get(User, shopper.id).eco_credits == 1245
    assert _credit("WELCOME50").used_at is None

    # a clean retry then goes through
    monkeypatch.undo()
    order, created = place_order(shopper, CheckoutOptions(points=1000))
    assert created and order.flat_credit_total == 5000


def test_selecting_consumed_credit_is_stale(shopper, fill_cart):
    credit_id = _credit("WELCOME50").id
    place_order(shopper)
    fill_cart(shopper, [(60000, 1, 0.0)])
    with pytest.raises(StaleInstrument):
        quote_for_user(shopper, CheckoutOptions(credit_ids=(credit_id,)))


def test_second_order_does_not_reuse_credit(shopper, fill_cart):
    first, _ = place_order(shopper)
    assert first.flat_credit_total == 5000
    fill_cart(shopper, [(60000, 1, 0.0)])
    second, _ = place_order(shopper)
    assert second.flat_credit_total == 0
    assert second.used_credit_ids == []


def test_spend_against_stale_balance_is_refused(shopper, monkeypatch):
    snapshot = load_account(shopper)
    # another request spends most of the balance after the snapshot was taken
    db.session.execute(update(User).where(User.id == shopper.id).values(eco_credits=100))
    db.session.commit()
    monkeypatch.setattr(checkout_service, "load_account", lambda user: snapshot)

    with pytest.raises(InsufficientPoints) as exc:
        place_order(shopper, CheckoutOptions(points=1000))
    assert exc.value.details["balance"] == 100

    assert db.session.get(User, shopper.id).eco_credits == 100
    assert _credit("WELCOME50").used_at is None
    assert Order.query.count() == 0
    assert Cart.query.filter_by(user_id=shopper.id, status="active").one().items


def test_adjust_points_is_relative_to_stored_balance(make_user):
    user = make_user(eco_credits=40)
    db.session.execute(
        update(User).where(User.id == user.id).values(eco_credits=70)
        .execution_options(synchronize_session=False)
    )
    adjust_points(user, -50, purchases_count=1)
    db.session.commit()
    user = db.session.get(User, user.id)
    assert (user.eco_credits, user.purchases_count) == (20, 1)

    with pytest.raises(ValueError):
        adjust_points(user, 5, password_hash="x")
