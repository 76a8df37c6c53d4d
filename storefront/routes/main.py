from flask import Blueprint, current_app

bp = Blueprint('main', __name__, url_prefix='/api')


@bp.route('/health')
def health():
    current_app.logger.debug('Health check endpoint called')
    return 'ok', 200, {'Content-Type': 'text/plain; charset=utf-8'}
