#!/usr/bin/env python3
"""
Reference data seeding and application startup tests
"""
import unittest
from unittest.mock import patch

from storefront import create_app, db
from storefront.models import Brand, Category, User
from storefront.services.seed import DEFAULT_BRANDS, DEFAULT_CATEGORIES, ensure_admin, seed_all
from storefront.testing import DEFAULT_PASSWORD, TEST_CONFIG, StorefrontTestCase

EXPECTED_CATEGORIES = sum(1 + len(entry['subcategories']) for entry in DEFAULT_CATEGORIES)


class TestSeed(StorefrontTestCase):

    def test_seed_all_is_idempotent(self):
        with self.app.app_context():
            seed_all()
            seed_all()

            self.assertEqual(Brand.query.count(), len(DEFAULT_BRANDS))
            self.assertEqual(Brand.query.count(), 10)
            self.assertEqual(Category.query.count(), EXPECTED_CATEGORIES)
            self.assertEqual(Category.query.filter_by(parent_id=None).count(), 5)

    def test_subcategories_point_at_their_parent(self):
        with self.app.app_context():
            seed_all()
            headphones = Category.query.filter_by(name='Headphones', parent_id=None).one()
            self.assertIn('Wireless headphones', [child.name for child in headphones.children])

    def test_ensure_admin_creates_account(self):
        with self.app.app_context():
            seed_all('root', 'rootpass1')
            admin = User.query.filter_by(username='root').one()
            self.assertTrue(admin.is_admin)
            self.assertTrue(admin.check_password('rootpass1'))

    def test_ensure_admin_promotes_existing_user(self):
        self.create_user('carol')
        with self.app.app_context():
            ensure_admin('carol', 'ignored-password')
            user = User.query.filter_by(username='carol').one()
            self.assertTrue(user.is_admin)
            self.assertTrue(user.check_password(DEFAULT_PASSWORD))
            self.assertEqual(User.query.count(), 1)


class TestSeedOnStartup(unittest.TestCase):

    def test_create_app_seeds_when_enabled(self):
        config = dict(TEST_CONFIG, SEED_ON_STARTUP=True, ADMIN_USERNAME='admin', ADMIN_PASSWORD='adminpass')
        app = create_app(config)
        try:
            client = app.test_client()
            brands = client.get('/api/brands').get_json()
            self.assertEqual(sorted(brand['name'] for brand in brands), sorted(DEFAULT_BRANDS))

            response = client.post('/api/login', json={'username': 'admin', 'password': 'adminpass'})
            self.assertEqual(response.status_code, 200)
            self.assertTrue(response.get_json()['user']['isAdmin'])
        finally:
            with app.app_context():
                db.session.remove()
                db.drop_all()


class TestNewRelicAttributes(StorefrontTestCase):

    def test_authenticated_requests_tag_the_transaction(self):
        user_id = self.create_user('testuser')

        with patch('newrelic.agent.add_custom_attribute') as add_custom_attribute:
            response = self.client.get('/api/user', headers=self.auth_headers(user_id))

        self.assertEqual(response.status_code, 200)
        attributes = {call.args[0]: call.args[1] for call in add_custom_attribute.call_args_list}
        self.assertEqual(attributes['enduser.id'], str(user_id))
        self.assertEqual(attributes['userId'], str(user_id))
        self.assertEqual(attributes['user'], 'testuser')

    def test_anonymous_requests_are_not_tagged(self):
        with patch('newrelic.agent.add_custom_attribute') as add_custom_attribute:
            self.client.get('/api/health')

        add_custom_attribute.assert_not_called()


if __name__ == '__main__':
    unittest.main()
