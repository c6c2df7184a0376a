# --- ecocreds/model/credit.py ---

from ..utils.clock import utcnow
from ..extensions import db
from ..services.loyalty import FlatCredit

class FlatCreditRow(db.Model):
    __tablename__ = "flat_credit"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), index=True, nullable=False)
    code = db.Column(db.String(64), unique=True, nullable=False, index=True)

    # minor units
    value = db.Column(db.Integer, nullable=False)
    min_order_value = db.Column(db.Integer, nullable=False, default=0)

    source = db.Column(db.String(64), nullable=False, default="manual")  # reward id or "manual"
    issued_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    used_at = db.Column(db.DateTime, nullable=True)
    used_order_id = db.Column(db.Integer, nullable=True)

    user = db.relationship("User", back_populates="credits")

    @property
    def used(self) -> bool:
        return self.used_at is not None

    def to_domain(self) -> FlatCredit:
        return FlatCredit(
            id=self.id,
            value=self.value,
            min_order_value=self.min_order_value or 0,
            issued_at=self.issued_at,
            used=self.used,
            code=self.code,
        )

    def as_api(self):
        return {
            "id": self.id,
            "code": self.code,
            "value": self.value,
            "min_order_value": self.min_order_value,
            "source": self.source,
            "issued_at": self.issued_at.isoformat() if self.issued_at else None,
            "used_at": self.used_at.isoformat() if self.used_at else None,
            "used": self.used,
        }
