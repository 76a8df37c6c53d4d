"""
Order engine: converts a user's cart into an order with snapshot pricing and
manages the order status lifecycle.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from storefront import db
from storefront.errors import Conflict, EmptyCartError, Forbidden, NotFound, ValidationError
from storefront.models import CartItem, Order, OrderItem, OrderStatus

logger = logging.getLogger(__name__)

POLICY_UNCONSTRAINED = 'unconstrained'
POLICY_FORWARD_ONLY = 'forward_only'
STATUS_POLICIES = (POLICY_UNCONSTRAINED, POLICY_FORWARD_ONLY)

FULFILMENT_SEQUENCE = [
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]


def parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ', '.join(status.value for status in OrderStatus)
        raise ValidationError(f"Invalid order status '{value}' (expected one of: {allowed})")


def check_transition(current: OrderStatus, target: OrderStatus, policy: str):
    """Raise Conflict if the policy forbids moving from current to target"""
    if policy == POLICY_UNCONSTRAINED:
        return
    if current.is_terminal:
        raise Conflict(f"Order is {current.value}; its status can no longer change")
    if target == OrderStatus.CANCELLED:
        return
    if FULFILMENT_SEQUENCE.index(target) <= FULFILMENT_SEQUENCE.index(current):
        raise Conflict(f'Cannot move order from {current.value} to {target.value}')


class OrderEngine:

    def __init__(self, status_policy: str = POLICY_UNCONSTRAINED):
        if status_policy not in STATUS_POLICIES:
            raise ValueError(f'Unknown order status policy: {status_policy}')
        self.status_policy = status_policy

    def create_order(self, user_id: int, shipping_address: str, contact_phone: str) -> Order:
        """
        Checkout the user's cart as a single transaction.

        The consumed cart rows are locked for the duration so a concurrent
        checkout for the same user waits and then finds the cart empty.
        Any failure rolls back the order, its items and the cart deletion.
        """
        logger.info(f'Checkout initiated by user {user_id}', extra={
            'event_type': 'checkout_start',
            'user_id': user_id
        })

        try:
            cart_items = (CartItem.query
                          .filter_by(user_id=user_id)
                          .order_by(CartItem.id)
                          .with_for_update()
                          .all())

            if not cart_items:
                logger.warning('Checkout attempted with empty cart', extra={
                    'event_type': 'checkout_error',
                    'user_id': user_id,
                    'error': 'empty_cart'
                })
                raise EmptyCartError()

            # Prices are read once here and reused for the order items
            lines = []
            total = Decimal('0')
            for cart_item in cart_items:
                price = cart_item.product.price
                total += price * cart_item.quantity
                lines.append((cart_item.product_id, cart_item.quantity, price))

            logger.info(f'Creating order for user {user_id}', extra={
                'event_type': 'order_create',
                'user_id': user_id,
                'item_count': len(lines),
                'total_amount': float(total)
            })

            now = datetime.utcnow()
            order = Order(
                user_id=user_id,
                status=OrderStatus.PENDING.value,
                total_amount=total,
                shipping_address=shipping_address,
                contact_phone=contact_phone,
                created_at=now,
                updated_at=now,
            )
            db.session.add(order)

            for product_id, quantity, price in lines:
                db.session.add(OrderItem(
                    order=order,
                    product_id=product_id,
                    quantity=quantity,
                    price_at_time=price,
                ))

            for cart_item in cart_items:
                db.session.delete(cart_item)

            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info('Order placed successfully', extra={
            'event_type': 'order_success',
            'user_id': user_id,
            'order_id': order.id,
            'total_amount': float(total)
        })
        return order

    def list_orders(self, user_id: int) -> List[Order]:
        return (Order.query
                .filter_by(user_id=user_id)
                .order_by(Order.created_at.desc(), Order.id.desc())
                .all())

    def list_all_orders(self, status: Optional[str] = None) -> List[Order]:
        query = Order.query
        if status:
            query = query.filter_by(status=parse_status(status).value)
        return query.order_by(Order.created_at.desc(), Order.id.desc()).all()

    def get_order(self, order_id: int, actor) -> Order:
        order = db.session.get(Order, order_id)
        if order is None:
            raise NotFound(f'Order {order_id} not found')
        if order.user_id != actor.id and not actor.is_admin:
            raise Forbidden('Order belongs to another user')
        return order

    def update_status(self, order_id: int, status: str) -> Order:
        target = parse_status(status)
        order = db.session.get(Order, order_id)
        if order is None:
            raise NotFound(f'Order {order_id} not found')

        current = OrderStatus(order.status)
        check_transition(current, target, self.status_policy)

        order.status = target.value
        order.updated_at = datetime.utcnow()
        db.session.commit()

        logger.info(f'Order {order_id} status changed from {current.value} to {target.value}', extra={
            'event_type': 'order_status_changed',
            'order_id': order_id,
            'old_status': current.value,
            'new_status': target.value
        })
        return order
