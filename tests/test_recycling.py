import pytest

from ecocreds.extensions import db
from ecocreds.model import Activity, User
from ecocreds.services.recycle_service import recycle_item
from ecocreds.services.recycling import recycle_co2, recycle_credits


@pytest.mark.parametrize("category,condition,expected", [
    ("Plastic", "excellent", 15),
    ("Plastic", "good", 12),
    ("Electronics", "poor", 28),
    ("Paper", "excellent", 8),
    ("Paper", "poor", 4),
    ("Glass", "good", 10),
    ("Metal", "excellent", 23),
    ("Metal", "poor", 11),
    ("Clothing", "good", 14),
    ("plastic", " Good ", 12),
])
def test_recycle_credits(category, condition, expected):
    assert recycle_credits(category, condition) == expected


@pytest.mark.parametrize("category,condition", [
    ("Wood", "good"),
    (None, "good"),
    ("Glass", "broken"),
    ("Glass", None),
])
def test_recycle_credits_rejects_unknown_inputs(category, condition):
    with pytest.raises(ValueError):
        recycle_credits(category, condition)


def test_recycle_co2():
    assert recycle_co2(15) == pytest.approx(0.3)
    assert recycle_co2(0) == 0


def test_recycle_item_credits_points_and_stats(make_user):
    user = make_user(eco_credits=95)
    activity = recycle_item(user, "Old bottles", "Plastic", "good")

    assert (activity.type, activity.action, activity.item) == ("recycle", "Recycled", "Old bottles")
    assert activity.eco_credits == 12
    assert activity.co2_saved == pytest.approx(0.24)

    user = db.session.get(User, user.id)
    assert user.eco_credits == 107
    assert user.recycled_items == 1
    assert user.co2_saved_total == pytest.approx(0.24)
    assert user.co2_saved_this_month == pytest.approx(0.24)

    badges = Activity.query.filter_by(user_id=user.id, type="badge").all()
    assert [b.item for b in badges] == ["Green Starter"]


def test_tenth_recycled_item_earns_recycler_badge(make_user):
    user = make_user()
    for i in range(10):
        recycle_item(user, f"Jar {i}", "Plastic", "fair")

    user = db.session.get(User, user.id)
    assert user.eco_credits == 100
    assert user.recycled_items == 10
    assert "Recycler" in user.badges()
    badge_items = sorted(a.item for a in Activity.query.filter_by(user_id=user.id, type="badge"))
    assert badge_items == ["Green Starter", "Recycler"]


def test_recycle_item_requires_name(make_user):
    user = make_user(eco_credits=5)
    with pytest.raises(ValueError):
        recycle_item(user, "  ", "Glass", "good")
    assert db.session.get(User, user.id).eco_credits == 5
    assert Activity.query.count() == 0
