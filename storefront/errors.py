"""
Storefront error taxonomy and Flask error handlers

Domain errors carry their HTTP status; handlers turn them into a uniform JSON
body. Anything unexpected is logged with full request context and answered
with a generic 500 so internals never reach the client.
"""
import json
import logging
import traceback
from datetime import datetime
from typing import Any, Dict, List, Optional

import newrelic.agent
import pydantic
from flask import jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)

REDACTED = '***'
SENSITIVE_HEADERS = {'authorization', 'cookie'}
SENSITIVE_FIELDS = {'password', 'currentPassword', 'newPassword', 'current_password', 'new_password'}


class StoreError(Exception):
    """Base class for expected domain errors"""
    status_code = 500
    error_type = 'store_error'

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body = {
            'status': 'error',
            'error_type': self.error_type,
            'message': self.message,
            'timestamp': datetime.utcnow().isoformat(),
        }
        if self.details:
            body['details'] = self.details
        return body


class ValidationError(StoreError):
    status_code = 400
    error_type = 'validation_error'


class EmptyCartError(ValidationError):
    error_type = 'empty_cart'

    def __init__(self, message: str = 'Cart is empty'):
        super().__init__(message)


class Unauthenticated(StoreError):
    status_code = 401
    error_type = 'unauthenticated'


class Forbidden(StoreError):
    status_code = 403
    error_type = 'forbidden'


class NotFound(StoreError):
    status_code = 404
    error_type = 'not_found'


class Conflict(StoreError):
    status_code = 409
    error_type = 'conflict'


class UsernameTaken(Conflict):
    # Registration clients expect 400 for a taken username
    status_code = 400
    error_type = 'username_taken'

    def __init__(self, message: str = 'Username already exists'):
        super().__init__(message)


def schema_error_details(error: pydantic.ValidationError) -> List[Dict[str, Any]]:
    """Flatten pydantic errors into JSON-safe field/message pairs"""
    return [
        {
            'field': '.'.join(str(part) for part in err['loc']),
            'message': err['msg'],
        }
        for err in error.errors()
    ]


def _request_context() -> Dict[str, Any]:
    headers = {
        name: (REDACTED if name.lower() in SENSITIVE_HEADERS else value)
        for name, value in request.headers.items()
    }
    body = request.get_json(silent=True)
    if isinstance(body, dict):
        body = {key: (REDACTED if key in SENSITIVE_FIELDS else value) for key, value in body.items()}
    elif body is None and request.data:
        body = request.get_data(as_text=True)[:1000]

    return {
        'method': request.method,
        'path': request.path,
        'endpoint': request.endpoint,
        'headers': headers,
        'body': body,
    }


def _report_to_newrelic(error_type: str):
    try:
        newrelic.agent.add_custom_attribute('error_type', error_type)
        newrelic.agent.notice_error()
    except Exception as nr_error:
        logger.error(f'Failed to report error to New Relic: {nr_error}')


def _internal_error_response():
    return jsonify({
        'status': 'error',
        'error_type': 'internal_error',
        'message': 'Internal server error',
        'timestamp': datetime.utcnow().isoformat(),
    }), 500


def register_error_handlers(app):
    """
    Register error handlers on the Flask application

    Args:
        app: Flask application instance
    """

    @app.errorhandler(StoreError)
    def handle_store_error(error):
        logger.warning(f'{error.error_type}: {error.message}', extra={
            'event_type': 'request_rejected',
            'status_code': error.status_code,
            'path': request.path,
        })
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(pydantic.ValidationError)
    def handle_schema_error(error):
        rejected = ValidationError('Invalid request body', details=schema_error_details(error))
        return handle_store_error(rejected)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        if error.code is not None and error.code >= 500:
            return handle_unexpected_error(error)
        return jsonify({
            'status': 'error',
            'error_type': 'http_error',
            'message': error.description,
            'timestamp': datetime.utcnow().isoformat(),
        }), error.code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error):
        from storefront import db

        db.session.rollback()
        logger.error(
            f"Database error: {error} | Context: {json.dumps(_request_context(), default=str)}\n"
            f"{''.join(traceback.format_exception(type(error), error, error.__traceback__))}",
            extra={'event_type': 'database_error'}
        )
        _report_to_newrelic('database_error')
        return _internal_error_response()

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        from storefront import db

        # A failed flush leaves the session unusable until rolled back
        db.session.rollback()
        original_error = getattr(error, 'original_exception', None) or error
        stack_trace = ''.join(traceback.format_exception(
            type(original_error), original_error, original_error.__traceback__
        ))
        logger.error(
            f"Unhandled {type(original_error).__name__}: {original_error} | "
            f"Context: {json.dumps(_request_context(), default=str)}\n{stack_trace}",
            extra={'event_type': 'internal_error'}
        )
        _report_to_newrelic('internal_error')
        return _internal_error_response()
