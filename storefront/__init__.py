from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager, current_user
from flask_migrate import Migrate

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()


def create_app(config_overrides=None):
    app = Flask(__name__)

    # Configuration
    from storefront.config import Settings
    app.config.from_mapping(Settings.from_env().to_flask_config())
    if config_overrides:
        app.config.update(config_overrides)

    # Setup logging
    from storefront.logging_config import setup_logging
    setup_logging(app)

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)

    from storefront.services.auth_gate import init_auth
    init_auth(login_manager)

    from storefront.services.reference_cache import ReferenceCache
    app.extensions['reference_cache'] = ReferenceCache(ttl=app.config['REFERENCE_CACHE_TTL'])

    from storefront.errors import register_error_handlers
    register_error_handlers(app)

    # New Relic Custom Attributes for User Tracking
    @app.before_request
    def add_newrelic_user_attributes():
        """Add user information as custom attributes to New Relic for error tracking"""
        import newrelic.agent

        if current_user.is_authenticated:
            newrelic.agent.add_custom_attribute('enduser.id', str(current_user.id))
            newrelic.agent.add_custom_attribute('userId', str(current_user.id))
            newrelic.agent.add_custom_attribute('user', current_user.username)

    # Register blueprints
    from storefront.routes import main, auth, catalog, cart, orders, reviews
    app.register_blueprint(main.bp)
    app.register_blueprint(auth.bp)
    app.register_blueprint(catalog.bp)
    app.register_blueprint(cart.bp)
    app.register_blueprint(orders.bp)
    app.register_blueprint(orders.admin_bp)
    app.register_blueprint(reviews.bp)

    if app.config['SEED_ON_STARTUP']:
        from storefront.services.seed import seed_all
        with app.app_context():
            db.create_all()
            seed_all(app.config.get('ADMIN_USERNAME'), app.config.get('ADMIN_PASSWORD'))

    return app
