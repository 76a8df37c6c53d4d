"""
Request-aware logging for the storefront
"""
import logging
import sys

from flask import g, has_request_context, request

LOG_FORMAT = (
    '%(asctime)s - %(name)s - %(levelname)s - '
    '[%(method)s %(path)s] - [user: %(user_id)s] - [IP: %(remote_addr)s] - '
    '%(message)s'
)


class StorefrontFormatter(logging.Formatter):
    """Adds the method, path, client address and acting user of the current request"""

    def format(self, record):
        record.method = record.path = record.remote_addr = record.user_id = '-'
        if has_request_context():
            record.method = request.method
            record.path = request.path
            record.remote_addr = request.remote_addr
            # Set by the token loader; reading the User here could hit a broken session
            record.user_id = g.get('user_id', '-')
        return super().format(record)


def setup_logging(app):
    """
    Attach a stdout handler to the app logger. The app logger is the
    "storefront" package logger, so getLogger(__name__) in any module
    below it shares the handler.
    """
    level = logging.getLevelName(str(app.config.get('LOG_LEVEL', 'INFO')).upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(StorefrontFormatter(LOG_FORMAT))

    # create_app runs once per test case; replace rather than stack handlers
    for existing in list(app.logger.handlers):
        if isinstance(existing.formatter, StorefrontFormatter):
            app.logger.removeHandler(existing)
    app.logger.addHandler(handler)
    app.logger.setLevel(level)
    app.logger.propagate = False

    app.logger.info('Application logging configured', extra={
        'event_type': 'app_startup',
        'log_level': logging.getLevelName(level),
        'testing': bool(app.config.get('TESTING')),
    })
    return app.logger
