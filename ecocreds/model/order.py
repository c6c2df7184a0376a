from ..extensions import db
from ..utils.clock import utcnow

class Order(db.Model):
    __tablename__ = "orders"
    __table_args__ = (
        db.UniqueConstraint("user_id", "idempotency_key", name="uq_orders_user_idempotency_key"),
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), unique=True, index=True)  # e.g., "ECO-20251022-083000123456"
    status = db.Column(db.String(20), default="paid", index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)

    # client-supplied; a retried checkout with the same key returns this order
    idempotency_key = db.Column(db.String(128), nullable=True)
    payment_reference = db.Column(db.String(128), nullable=True)

    # Money snapshot (minor units)
    subtotal = db.Column(db.Integer, nullable=False)
    delivery_fee = db.Column(db.Integer, nullable=False, default=0)
    offset_fee = db.Column(db.Integer, nullable=False, default=0)
    flat_credit_total = db.Column(db.Integer, nullable=False, default=0)
    applied_points = db.Column(db.Integer, nullable=False, default=0)
    total = db.Column(db.Integer, nullable=False)

    points_earned = db.Column(db.Integer, nullable=False, default=0)
    co2_total = db.Column(db.Float, nullable=False, default=0.0)
    used_credit_ids = db.Column(db.JSON, nullable=False, default=list)

    cart_uuid = db.Column(db.String(36), index=True)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    items = db.relationship(
        "OrderItem",
        backref="order",
        cascade="all, delete-orphan",
        lazy="joined"
    )

    def as_api(self):
        return {
            "id": self.id,
            "code": self.code,
            "status": self.status,
            "idempotency_key": self.idempotency_key,
            "payment_reference": self.payment_reference,
            "money": {
                "subtotal": self.subtotal,
                "delivery_fee": self.delivery_fee,
                "offset_fee": self.offset_fee,
                "flat_credit_total": self.flat_credit_total,
                "applied_points": self.applied_points,
                "total": self.total,
            },
            "points_earned": self.points_earned,
            "co2_total": round(self.co2_total or 0.0, 3),
            "used_credit_ids": list(self.used_credit_ids or []),
            "items": [i.as_api() for i in self.items],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "cart_uuid": self.cart_uuid,
        }

class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)

    sku = db.Column(db.String(64))
    name = db.Column(db.String(255))
    unit_price = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    co2_per_unit = db.Column(db.Float, nullable=False, default=0.0)
    line_total = db.Column(db.Integer, nullable=False)

    def as_api(self):
        return {
            "sku": self.sku,
            "name": self.name,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "co2_per_unit": self.co2_per_unit,
            "line_total": self.line_total,
        }
