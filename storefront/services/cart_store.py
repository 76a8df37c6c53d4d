"""
Cart store: per-user product lines awaiting checkout
"""
import logging
from typing import List

from storefront import db
from storefront.errors import Forbidden, NotFound, ValidationError
from storefront.models import MAX_INTEGER, CartItem, Product

logger = logging.getLogger(__name__)


def validate_quantity(quantity) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(quantity, bool) or not isinstance(quantity, int) or not 1 <= quantity <= MAX_INTEGER:
        raise ValidationError(f'quantity must be an integer between 1 and {MAX_INTEGER}')
    return quantity


class CartStore:

    def get_items(self, user_id: int) -> List[CartItem]:
        return CartItem.query.filter_by(user_id=user_id).order_by(CartItem.id).all()

    def add_item(self, user_id: int, product_id: int, quantity: int) -> CartItem:
        """Add a new cart line. Repeated adds of one product create separate lines."""
        validate_quantity(quantity)
        product = db.session.get(Product, product_id)
        if product is None:
            raise NotFound(f'Product {product_id} not found')

        cart_item = CartItem(user_id=user_id, product_id=product_id, quantity=quantity)
        db.session.add(cart_item)
        db.session.commit()

        logger.info(f'User {user_id} added product {product_id} to cart', extra={
            'event_type': 'cart_add',
            'user_id': user_id,
            'product_id': product_id,
            'quantity': quantity,
            'price': float(product.price)
        })
        return cart_item

    def update_quantity(self, item_id: int, quantity: int, actor) -> CartItem:
        validate_quantity(quantity)
        cart_item = self._get_owned_item(item_id, actor)

        old_quantity = cart_item.quantity
        cart_item.quantity = quantity
        db.session.commit()

        logger.info(f'Updated cart item quantity from {old_quantity} to {quantity}', extra={
            'event_type': 'cart_update',
            'user_id': actor.id,
            'cart_item_id': item_id
        })
        return cart_item

    def remove_item(self, item_id: int, actor):
        cart_item = self._get_owned_item(item_id, actor)
        db.session.delete(cart_item)
        db.session.commit()

        logger.info(f'Cart item {item_id} removed', extra={
            'event_type': 'cart_remove',
            'user_id': actor.id,
            'cart_item_id': item_id
        })

    def _get_owned_item(self, item_id: int, actor) -> CartItem:
        cart_item = db.session.get(CartItem, item_id)
        if cart_item is None:
            raise NotFound(f'Cart item {item_id} not found')
        if cart_item.user_id != actor.id and not actor.is_admin:
            logger.warning(f'User {actor.id} attempted to modify cart item {item_id}', extra={
                'event_type': 'cart_ownership_violation',
                'user_id': actor.id,
                'owner_id': cart_item.user_id
            })
            raise Forbidden('Cart item belongs to another user')
        return cart_item
