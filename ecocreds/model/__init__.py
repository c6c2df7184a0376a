# ------ ecocreds/model/__init__.py ------

from .user import User
from .credit import FlatCreditRow
from .cart import Cart, CartItem
from .order import Order, OrderItem
from .activity import Activity, ACTIVITY_TYPES

__all__ = [
    "User",
    "FlatCreditRow",
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    "Activity",
    "ACTIVITY_TYPES",
]
