# --- ecocreds/model/user.py ---

from ..utils.clock import utcnow
from ..extensions import db
from ..services.loyalty import badges_for, classify

class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(180), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False, default="")
    role = db.Column(db.String(50), nullable=False, default="user", index=True) # roles: user, admin

    # EcoCredits balance; tier fields are derived from it, never stored
    eco_credits = db.Column(db.Integer, nullable=False, default=0)
    co2_saved_total = db.Column(db.Float, nullable=False, default=0.0)
    co2_saved_this_month = db.Column(db.Float, nullable=False, default=0.0)
    purchases_count = db.Column(db.Integer, nullable=False, default=0)
    trees_planted = db.Column(db.Integer, nullable=False, default=0)
    recycled_items = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=utcnow)

    credits = db.relationship(
        "FlatCreditRow",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="FlatCreditRow.id.asc()",
    )

    def badges(self):
        return badges_for(
            purchases_count=self.purchases_count,
            co2_saved_total=self.co2_saved_total,
            trees_planted=self.trees_planted,
            recycled_items=self.recycled_items,
            eco_credits=self.eco_credits,
        )

    def as_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "eco_credits": self.eco_credits,
            "co2_saved_total": round(self.co2_saved_total or 0.0, 3),
            "co2_saved_this_month": round(self.co2_saved_this_month or 0.0, 3),
            "purchases_count": self.purchases_count,
            "trees_planted": self.trees_planted,
            "recycled_items": self.recycled_items,
            "level": classify(self.eco_credits or 0).as_api(),
            "badges": self.badges(),
        }
