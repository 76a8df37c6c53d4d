from flask import Blueprint, jsonify, current_app
from flask_login import login_required, current_user

from storefront.schemas import Credentials, LoginRequest, PasswordUpdate, load_json
from storefront.services.auth_gate import get_auth_gate

bp = Blueprint('auth', __name__, url_prefix='/api')


@bp.route('/register', methods=['POST'])
def register():
    body = load_json(Credentials)
    current_app.logger.info(f'Register attempt: {body.username}', extra={
        'event_type': 'register_attempt'
    })

    user, token = get_auth_gate().register(body.username, body.password)
    return jsonify({'user': user.to_dict(), 'token': token}), 201


@bp.route('/login', methods=['POST'])
def login():
    body = load_json(LoginRequest)
    user, token = get_auth_gate().login(body.username, body.password)
    return jsonify({'user': user.to_dict(), 'token': token}), 200


@bp.route('/user')
@login_required
def get_user():
    return jsonify(current_user.to_dict())


@bp.route('/user/password', methods=['PATCH'])
@login_required
def update_password():
    body = load_json(PasswordUpdate)
    get_auth_gate().update_password(current_user, body.current_password, body.new_password)
    return '', 204
