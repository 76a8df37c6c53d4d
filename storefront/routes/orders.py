from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user

from storefront.schemas import OrderCreate, OrderStatusUpdate, load_json
from storefront.services.auth_gate import admin_required
from storefront.services.order_engine import OrderEngine

bp = Blueprint('orders', __name__, url_prefix='/api/orders')
admin_bp = Blueprint('admin_orders', __name__, url_prefix='/api/admin/orders')


def get_order_engine():
    return OrderEngine(status_policy=current_app.config['ORDER_STATUS_POLICY'])


@bp.route('', methods=['GET'])
@login_required
def list_orders():
    orders = get_order_engine().list_orders(current_user.id)
    return jsonify([order.to_dict() for order in orders])


@bp.route('', methods=['POST'])
@login_required
def checkout():
    body = load_json(OrderCreate)
    order = get_order_engine().create_order(current_user.id, body.shipping_address, body.contact_phone)
    return jsonify(order.to_dict()), 201


@bp.route('/<int:order_id>', methods=['GET'])
@login_required
def get_order(order_id):
    order = get_order_engine().get_order(order_id, current_user)
    return jsonify(order.to_dict())


@admin_bp.route('', methods=['GET'])
@admin_required
def list_all_orders():
    orders = get_order_engine().list_all_orders(request.args.get('status'))

    current_app.logger.info(f'Admin order list requested: {len(orders)} orders', extra={
        'event_type': 'admin_orders_viewed',
        'user_id': current_user.id,
        'order_count': len(orders)
    })

    return jsonify([order.to_dict() for order in orders])


@admin_bp.route('/<int:order_id>', methods=['PATCH'])
@admin_required
def update_order_status(order_id):
    body = load_json(OrderStatusUpdate)
    order = get_order_engine().update_status(order_id, body.status)
    return jsonify(order.to_dict())
