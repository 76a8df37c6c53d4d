from storefront.models.user import User
from storefront.models.catalog import MAX_PRICE, Brand, Category, Product
from storefront.models.cart import CartItem
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.models.review import Review

# Upper bound of a 32-bit signed INTEGER column
MAX_INTEGER = 2 ** 31 - 1

__all__ = ['User', 'Brand', 'Category', 'Product', 'CartItem', 'Order', 'OrderItem', 'OrderStatus', 'Review',
           'MAX_PRICE', 'MAX_INTEGER']
