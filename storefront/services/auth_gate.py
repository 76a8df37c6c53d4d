"""
Authentication gate: registration, login and bearer token identity

Tokens are itsdangerous timed signatures over {id, username, isAdmin}, keyed
by the application SECRET_KEY. Flask-Login resolves the current user from the
Authorization header on every request through a request loader.
"""
import logging
from functools import wraps
from typing import Any, Dict, Optional, Tuple

from flask import current_app, g
from flask_login import current_user, login_required
from itsdangerous import BadData, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy.exc import IntegrityError

from storefront import db
from storefront.errors import Forbidden, Unauthenticated, UsernameTaken, ValidationError
from storefront.models import User

logger = logging.getLogger(__name__)

TOKEN_SALT = 'storefront-auth-token'


class AuthGate:
    """Issues and validates signed identity tokens"""

    def __init__(self, secret_key: str, max_age: int = 24 * 60 * 60):
        self.serializer = URLSafeTimedSerializer(secret_key, salt=TOKEN_SALT)
        self.max_age = max_age

    def register(self, username: str, password: str) -> Tuple[User, str]:
        if not username or not password:
            raise ValidationError('username and password are required')

        if self._find_user(username) is not None:
            self._reject_taken(username)

        user = User(username=username, is_admin=False)
        user.set_password(password)
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError:
            # A concurrent registration claimed the name after our lookup
            db.session.rollback()
            self._reject_taken(username)

        logger.info(f'Register success: {username}', extra={
            'event_type': 'user_registered',
            'user_id': user.id
        })
        return user, self.issue_token(user)

    def login(self, username: str, password: str) -> Tuple[User, str]:
        user = self._find_user(username)
        if user is None or not user.check_password(password):
            logger.warning(f'Login failed for user: {username} - User found: {user is not None}', extra={
                'event_type': 'login_failed',
                'username': username
            })
            raise Unauthenticated('Invalid username or password')

        logger.info(f'Login successful for user: {username}', extra={
            'event_type': 'login_success',
            'user_id': user.id,
            'is_admin': user.is_admin
        })
        return user, self.issue_token(user)

    def _find_user(self, username: str) -> Optional[User]:
        return User.query.filter_by(username=username).first()

    def _reject_taken(self, username: str):
        logger.warning(f'Register failed: username exists - {username}', extra={
            'event_type': 'register_rejected',
            'username': username
        })
        raise UsernameTaken()

    def issue_token(self, user: User) -> str:
        return self.serializer.dumps({
            'id': user.id,
            'username': user.username,
            'isAdmin': user.is_admin,
        })

    def verify_token(self, token: str) -> Dict[str, Any]:
        try:
            payload = self.serializer.loads(token, max_age=self.max_age)
        except SignatureExpired:
            raise Forbidden('Token expired')
        except BadData:
            raise Forbidden('Invalid token')

        if not isinstance(payload, dict) or not isinstance(payload.get('id'), int):
            raise Forbidden('Invalid token')
        return payload

    def update_password(self, user: User, current_password: str, new_password: str):
        if not user.check_password(current_password):
            raise Unauthenticated('Current password is incorrect')

        user.set_password(new_password)
        db.session.commit()

        logger.info(f'Password updated for user {user.id}', extra={
            'event_type': 'password_updated',
            'user_id': user.id
        })


def get_auth_gate() -> AuthGate:
    return AuthGate(current_app.config['SECRET_KEY'], current_app.config['TOKEN_MAX_AGE'])


def load_user_from_request(request):
    """
    Resolve the bearer token into a User. A missing header means anonymous;
    a bad header or token is remembered so the rejection answers 403.
    """
    header = request.headers.get('Authorization')
    if not header:
        return None

    scheme, _, token = header.partition(' ')
    token = token.strip()
    if scheme.lower() != 'bearer' or not token:
        g.auth_error = 'Malformed Authorization header'
        return None

    try:
        payload = get_auth_gate().verify_token(token)
    except Forbidden as e:
        g.auth_error = e.message
        return None

    user = db.session.get(User, payload['id'])
    if user is None:
        g.auth_error = 'Token refers to an unknown user'
        return None
    g.user_id = user.id
    return user


def handle_unauthorized():
    auth_error = g.pop('auth_error', None)
    if auth_error:
        raise Forbidden(auth_error)
    raise Unauthenticated('Authentication required')


def init_auth(login_manager):
    """Wire token identity into Flask-Login"""
    login_manager.request_loader(load_user_from_request)
    login_manager.unauthorized_handler(handle_unauthorized)


def admin_required(f):
    """Require an authenticated administrator"""
    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if not current_user.is_admin:
            logger.warning(f'Non-admin user {current_user.id} denied access', extra={
                'event_type': 'admin_access_denied',
                'user_id': current_user.id
            })
            raise Forbidden('Administrator privileges required')
        return f(*args, **kwargs)
    return decorated_function
