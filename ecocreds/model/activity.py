# --- ecocreds/model/activity.py ---

import time
from ..extensions import db
from sqlalchemy.sql import func

ACTIVITY_TYPES = ("purchase", "recycle", "offset", "reward", "badge")

class Activity(db.Model):
    __tablename__ = "activity"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), index=True, nullable=False)
    action = db.Column(db.String(255), nullable=False)
    item = db.Column(db.String(255), nullable=False)
    co2_saved = db.Column(db.Float, nullable=False, default=0.0)
    eco_credits = db.Column(db.Integer, nullable=False)
    # epoch millis, as the storefront client sorts on it
    timestamp = db.Column(db.BigInteger, nullable=False, index=True, default=lambda: int(time.time() * 1000))
    type = db.Column(db.String(16), nullable=False, index=True)

    created_at = db.Column(db.DateTime, server_default=func.now())

    def as_api(self):
        return {
            "id": self.id,
            "action": self.action,
            "item": self.item,
            "co2_saved": self.co2_saved,
            "eco_credits": self.eco_credits,
            "timestamp": self.timestamp,
            "type": self.type,
        }
