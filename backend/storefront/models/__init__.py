from .auth import Role, User
from .catalog import Category, Product, ProductVariant
from .carts import Cart, CartItem
from .orders import Order, OrderItem, Payment, Shipping
from .feedback import Review, Complaint

__all__ = [
    'Role', 'User',
    'Category', 'Product', 'ProductVariant',
    'Cart', 'CartItem',
    'Order', 'OrderItem', 'Payment', 'Shipping',
    'Review', 'Complaint',
]
