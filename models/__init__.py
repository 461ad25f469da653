from models.users import User, Permission
from models.items import Item
from models.cart_items import CartItem
from models.orders import Order
from models.order_items import OrderItem
from models.checkout_attempts import CheckoutAttempt

__all__ = ["User", "Permission", "Item", "CartItem", "Order", "OrderItem", "CheckoutAttempt"]
