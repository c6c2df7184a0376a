# ecocreds/model/cart.py
from __future__ import annotations
import uuid as _uuid
from sqlalchemy.sql import func
from ..extensions import db
from ..services.ledger import CartLine

class Cart(db.Model):
    __tablename__ = "cart"

    id = db.Column(db.Integer, primary_key=True)
    uuid = db.Column(db.String(36), unique=True, index=True, default=lambda: str(_uuid.uuid4()))
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    status = db.Column(db.String(16), default="active", index=True)
    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    items = db.relationship(
        "CartItem",
        backref="cart",
        cascade="all, delete-orphan",
        lazy="joined",
        order_by="CartItem.id.asc()"
    )

    def lines(self) -> list[CartLine]:
        return [i.to_line() for i in self.items]

    def subtotal(self) -> int:
        return sum(i.line_total() for i in self.items)

    def co2_total(self) -> float:
        return sum((i.co2_per_unit or 0.0) * i.quantity for i in self.items)

    def as_api(self):
        return {
            "id": self.id,
            "uuid": self.uuid,
            "status": self.status,
            "items": [i.as_api() for i in self.items],
            "totals": {
                "item_count": sum(i.quantity for i in self.items),
                "subtotal": self.subtotal(),
                "co2_total": round(self.co2_total(), 3),
            },
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class CartItem(db.Model):
    __tablename__ = "cart_item"

    id = db.Column(db.Integer, primary_key=True)
    cart_id = db.Column(db.Integer, db.ForeignKey("cart.id"), nullable=False, index=True)

    sku = db.Column(db.String(64), nullable=True, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    unit_price = db.Column(db.Integer, nullable=False, default=0)  # minor units
    quantity = db.Column(db.Integer, nullable=False, default=1)
    co2_per_unit = db.Column(db.Float, nullable=False, default=0.0)  # kg

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    def line_total(self) -> int:
        return (self.unit_price or 0) * (self.quantity or 0)

    def to_line(self) -> CartLine:
        return CartLine(
            unit_price=self.unit_price,
            quantity=self.quantity,
            co2_per_unit=self.co2_per_unit or 0.0,
            name=self.product_name,
            sku=self.sku,
        )

    def as_api(self):
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.product_name,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "co2_per_unit": self.co2_per_unit,
            "line_total": self.line_total(),
        }
