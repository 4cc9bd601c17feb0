from .user import User, UserRole
from .product import Product
from .comment import Comment
from .cart import Cart
from .cart_item import CartItem
from .order import Order, OrderStatus
from .order_item import OrderItem

__all__ = [
    "User",
    "UserRole",
    "Product",
    "Comment",
    "Cart",
    "CartItem",
    "Order",
    "OrderStatus",
    "OrderItem",
]
