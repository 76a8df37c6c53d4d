"""
Shared fixtures for storefront tests

No application context is kept pushed between requests: Flask reuses a pushed
context for test client requests, which would leak Flask-Login's per-request
user cache from one request into the next.
"""
import itertools
import unittest
from decimal import Decimal

from storefront import create_app, db
from storefront.models import Brand, CartItem, Category, Product, User
from storefront.services.auth_gate import AuthGate

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    'SQLALCHEMY_ENGINE_OPTIONS': {},
    'SECRET_KEY': 'test-secret-key',
    'SEED_ON_STARTUP': False,
    'LOG_LEVEL': 'WARNING',
}

DEFAULT_PASSWORD = 'password123'

_sequence = itertools.count(1)


class StorefrontTestCase(unittest.TestCase):
    config_overrides = {}

    def setUp(self):
        config = dict(TEST_CONFIG)
        config.update(self.config_overrides)
        self.app = create_app(config)
        with self.app.app_context():
            db.create_all()
        self.client = self.app.test_client()

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()

    # Data helpers return ids so nothing outlives its application context

    def create_user(self, username='alice', password=DEFAULT_PASSWORD, is_admin=False):
        with self.app.app_context():
            user = User(username=username, is_admin=is_admin)
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id

    def create_admin(self, username='admin'):
        return self.create_user(username=username, is_admin=True)

    def token_for(self, user_id):
        with self.app.app_context():
            user = db.session.get(User, user_id)
            gate = AuthGate(self.app.config['SECRET_KEY'], self.app.config['TOKEN_MAX_AGE'])
            return gate.issue_token(user)

    def auth_headers(self, user_id):
        return {'Authorization': f'Bearer {self.token_for(user_id)}'}

    def create_brand(self, name='Sony'):
        with self.app.app_context():
            brand = Brand(name=name)
            db.session.add(brand)
            db.session.commit()
            return brand.id

    def create_category(self, name='Headphones', parent_id=None):
        with self.app.app_context():
            category = Category(name=name, parent_id=parent_id)
            db.session.add(category)
            db.session.commit()
            return category.id

    def create_product(self, price=1000, brand_id=None, category_id=None, **fields):
        if brand_id is None:
            brand_id = self.create_brand(name=f'Brand {next(_sequence)}')
        if category_id is None:
            category_id = self.create_category()
        with self.app.app_context():
            product = Product(
                sku=fields.pop('sku', None) or f'TEST-{next(_sequence)}',
                name=fields.pop('name', 'Test product'),
                description=fields.pop('description', 'A product used in tests'),
                price=Decimal(str(price)),
                image_url=fields.pop('image_url', ''),
                category_id=category_id,
                brand_id=brand_id,
                stock=fields.pop('stock', 10),
                **fields
            )
            db.session.add(product)
            db.session.commit()
            return product.id

    def add_cart_item(self, user_id, product_id, quantity=1):
        with self.app.app_context():
            item = CartItem(user_id=user_id, product_id=product_id, quantity=quantity)
            db.session.add(item)
            db.session.commit()
            return item.id
