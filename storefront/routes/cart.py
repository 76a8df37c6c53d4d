from decimal import Decimal

from flask import Blueprint, jsonify, current_app
from flask_login import login_required, current_user

from storefront.schemas import CartItemCreate, CartItemUpdate, load_json
from storefront.services.cart_store import CartStore

bp = Blueprint('cart', __name__, url_prefix='/api/cart')


@bp.route('', methods=['GET'])
@login_required
def view_cart():
    cart_items = CartStore().get_items(current_user.id)
    total = sum((item.line_total for item in cart_items), Decimal('0'))

    current_app.logger.info(f'Cart contains {len(cart_items)} items, total: {total}', extra={
        'event_type': 'cart_viewed',
        'user_id': current_user.id,
        'item_count': len(cart_items),
        'total_amount': float(total)
    })

    return jsonify([item.to_dict() for item in cart_items])


@bp.route('', methods=['POST'])
@login_required
def add_to_cart():
    body = load_json(CartItemCreate)
    cart_item = CartStore().add_item(current_user.id, body.product_id, body.quantity)
    return jsonify(cart_item.to_dict()), 201


@bp.route('/<int:item_id>', methods=['PATCH'])
@login_required
def update_cart_item(item_id):
    body = load_json(CartItemUpdate)
    cart_item = CartStore().update_quantity(item_id, body.quantity, current_user)
    return jsonify(cart_item.to_dict())


@bp.route('/<int:item_id>', methods=['DELETE'])
@login_required
def remove_from_cart(item_id):
    CartStore().remove_item(item_id, current_user)
    return '', 204
