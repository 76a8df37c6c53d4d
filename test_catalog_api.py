#!/usr/bin/env python3
"""
Catalog API tests: brands, categories, product administration and filtering
"""
import re
import unittest
from unittest.mock import patch

from storefront import db
from storefront.errors import ValidationError
from storefront.models import Brand, CartItem, Product
from storefront.services.catalog_store import CatalogStore
from storefront.services.order_engine import OrderEngine
from storefront.services.reference_cache import ReferenceCache
from storefront.services.review_store import ReviewStore
from storefront.testing import StorefrontTestCase


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestBrandsAndCategories(StorefrontTestCase):

    def test_list_and_get_brands(self):
        sony = self.create_brand('Sony')
        self.create_brand('Bose')

        response = self.client.get('/api/brands')
        self.assertEqual(response.status_code, 200)
        self.assertEqual([brand['name'] for brand in response.get_json()], ['Bose', 'Sony'])

        response = self.client.get(f'/api/brands/{sony}')
        self.assertEqual(response.get_json(), {'id': sony, 'name': 'Sony', 'description': None})

        self.assertEqual(self.client.get('/api/brands/999').status_code, 404)

    def test_categories_with_parent(self):
        parent = self.create_category('Headphones')
        child = self.create_category('Wireless headphones', parent_id=parent)

        response = self.client.get('/api/categories')
        categories = {category['id']: category for category in response.get_json()}
        self.assertIsNone(categories[parent]['parentId'])
        self.assertEqual(categories[child]['parentId'], parent)

        self.assertEqual(self.client.get(f'/api/categories/{child}').get_json()['name'], 'Wireless headphones')
        self.assertEqual(self.client.get('/api/categories/999').status_code, 404)

    def test_admin_creates_brand_and_category(self):
        headers = self.auth_headers(self.create_admin())

        response = self.client.post('/api/brands', headers=headers, json={'name': 'Shure', 'description': 'Mics'})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(self.client.post('/api/brands', headers=headers, json={'name': 'Shure'}).status_code, 409)

        parent = self.client.post('/api/categories', headers=headers, json={'name': 'Microphones'}).get_json()
        child = self.client.post('/api/categories', headers=headers, json={
            'name': 'USB microphones', 'parentId': parent['id']
        })
        self.assertEqual(child.status_code, 201)
        self.assertEqual(child.get_json()['parentId'], parent['id'])

        nested = self.client.post('/api/categories', headers=headers, json={
            'name': 'Too deep', 'parentId': child.get_json()['id']
        })
        self.assertEqual(nested.status_code, 400)
        missing_parent = self.client.post('/api/categories', headers=headers, json={'name': 'X', 'parentId': 999})
        self.assertEqual(missing_parent.status_code, 400)

    def test_brand_creation_requires_admin(self):
        headers = self.auth_headers(self.create_user('alice'))
        self.assertEqual(self.client.post('/api/brands', headers=headers, json={'name': 'Shure'}).status_code, 403)
        self.assertEqual(self.client.post('/api/brands', json={'name': 'Shure'}).status_code, 401)


class TestReferenceDataCaching(StorefrontTestCase):

    def setUp(self):
        super().setUp()
        self.clock = FakeClock()
        self.app.extensions['reference_cache'] = ReferenceCache(ttl=300, clock=self.clock)
        self.create_brand('Sony')

    def brand_names(self):
        return [brand['name'] for brand in self.client.get('/api/brands').get_json()]

    def test_brands_served_from_cache_until_expiry(self):
        self.assertEqual(self.brand_names(), ['Sony'])

        # Written behind the store's back, so only expiry reveals it
        self.create_brand('Bose')
        self.clock.now = 299
        self.assertEqual(self.brand_names(), ['Sony'])

        self.clock.now = 300
        self.assertEqual(self.brand_names(), ['Bose', 'Sony'])

    def test_creating_brand_through_api_refreshes_cache(self):
        self.assertEqual(self.brand_names(), ['Sony'])
        headers = self.auth_headers(self.create_admin())
        self.client.post('/api/brands', headers=headers, json={'name': 'Bose'})
        self.assertEqual(self.brand_names(), ['Bose', 'Sony'])


class TestProductAdministration(StorefrontTestCase):

    def setUp(self):
        super().setUp()
        self.admin_headers = self.auth_headers(self.create_admin())
        self.brand_id = self.create_brand('Sony')
        self.category_id = self.create_category('Headphones')

    def product_payload(self, **overrides):
        payload = {
            'name': 'WH-1000XM5',
            'description': 'Noise cancelling headphones',
            'price': 1000,
            'imageUrl': 'https://example.com/xm5.png',
            'categoryId': self.category_id,
            'brandId': self.brand_id,
            'stock': 5,
        }
        payload.update(overrides)
        return payload

    def test_create_product_generates_sku(self):
        response = self.client.post('/api/products', headers=self.admin_headers, json=self.product_payload())

        self.assertEqual(response.status_code, 201)
        product = response.get_json()
        self.assertRegex(product['sku'], re.compile(r'^SKU\d{16}$'))
        self.assertEqual(product['price'], 1000.0)
        self.assertIsNone(product['averageRating'])
        self.assertEqual(product['reviewCount'], 0)

    def test_create_product_with_explicit_sku(self):
        response = self.client.post('/api/products', headers=self.admin_headers,
                                    json=self.product_payload(sku='XM5-BLACK'))
        self.assertEqual(response.get_json()['sku'], 'XM5-BLACK')

        duplicate = self.client.post('/api/products', headers=self.admin_headers,
                                     json=self.product_payload(sku='XM5-BLACK'))
        self.assertEqual(duplicate.status_code, 409)

    def test_create_product_validation(self):
        for payload in (
            self.product_payload(price=-1),
            self.product_payload(stock=-3),
            self.product_payload(categoryId=999),
            self.product_payload(brandId=999),
            {'name': 'missing fields'},
        ):
            response = self.client.post('/api/products', headers=self.admin_headers, json=payload)
            self.assertEqual(response.status_code, 400, payload)

    def test_price_must_be_finite_and_fit_the_column(self):
        raw_body = (
            f'{{"name": "XM5", "price": Infinity, "stock": 1, '
            f'"categoryId": {self.category_id}, "brandId": {self.brand_id}}}'
        )
        response = self.client.post('/api/products', headers=self.admin_headers,
                                    data=raw_body, content_type='application/json')
        self.assertEqual(response.status_code, 400)

        oversized = self.client.post('/api/products', headers=self.admin_headers,
                                     json=self.product_payload(price=10 ** 12))
        self.assertEqual(oversized.status_code, 400)

        product_id = self.create_product(brand_id=self.brand_id, category_id=self.category_id)
        response = self.client.patch(f'/api/products/{product_id}', headers=self.admin_headers,
                                     data='{"price": NaN}', content_type='application/json')
        self.assertEqual(response.status_code, 400)

        with self.app.app_context():
            self.assertEqual(Product.query.count(), 1)
        listing = self.client.get('/api/products')
        self.assertNotIn('Infinity', listing.get_data(as_text=True))
        self.assertNotIn('NaN', listing.get_data(as_text=True))

    def test_store_rejects_non_finite_and_oversized_prices(self):
        payload = {'name': 'XM5', 'category_id': self.category_id, 'brand_id': self.brand_id}
        with self.app.app_context():
            store = CatalogStore()
            for price in (float('inf'), float('nan'), 10 ** 9):
                with self.assertRaises(ValidationError):
                    store.create_product(dict(payload, price=price))
            self.assertEqual(Product.query.count(), 0)

    def test_product_mutations_require_admin(self):
        product_id = self.create_product(brand_id=self.brand_id, category_id=self.category_id)
        customer = self.auth_headers(self.create_user('alice'))

        self.assertEqual(self.client.post('/api/products', headers=customer,
                                          json=self.product_payload()).status_code, 403)
        self.assertEqual(self.client.patch(f'/api/products/{product_id}', headers=customer,
                                           json={'price': 1}).status_code, 403)
        self.assertEqual(self.client.delete(f'/api/products/{product_id}', headers=customer).status_code, 403)
        self.assertEqual(self.client.delete(f'/api/products/{product_id}').status_code, 401)

    def test_partial_update_changes_only_supplied_fields(self):
        created = self.client.post('/api/products', headers=self.admin_headers,
                                   json=self.product_payload()).get_json()

        response = self.client.patch(f"/api/products/{created['id']}", headers=self.admin_headers,
                                     json={'price': 1500, 'stock': 2})
        self.assertEqual(response.status_code, 200)

        read_back = self.client.get(f"/api/products/{created['id']}").get_json()
        expected = dict(created, price=1500.0, stock=2)
        self.assertEqual(read_back, expected)

        # Applying the same update again changes nothing further
        self.client.patch(f"/api/products/{created['id']}", headers=self.admin_headers,
                          json={'price': 1500, 'stock': 2})
        self.assertEqual(self.client.get(f"/api/products/{created['id']}").get_json(), expected)

    def test_update_rejects_nulls_and_unknown_products(self):
        product_id = self.create_product(brand_id=self.brand_id, category_id=self.category_id)

        response = self.client.patch(f'/api/products/{product_id}', headers=self.admin_headers, json={'name': None})
        self.assertEqual(response.status_code, 400)
        response = self.client.patch('/api/products/999', headers=self.admin_headers, json={'price': 10})
        self.assertEqual(response.status_code, 404)

    def test_update_to_existing_sku_conflicts(self):
        self.create_product(brand_id=self.brand_id, category_id=self.category_id, sku='TAKEN')
        product_id = self.create_product(brand_id=self.brand_id, category_id=self.category_id)

        response = self.client.patch(f'/api/products/{product_id}', headers=self.admin_headers, json={'sku': 'TAKEN'})
        self.assertEqual(response.status_code, 409)

    def test_delete_product_removes_cart_lines(self):
        product_id = self.create_product(brand_id=self.brand_id, category_id=self.category_id)
        customer_id = self.create_user('alice')
        self.add_cart_item(customer_id, product_id, 2)

        response = self.client.delete(f'/api/products/{product_id}', headers=self.admin_headers)

        self.assertEqual(response.status_code, 204)
        self.assertEqual(self.client.get(f'/api/products/{product_id}').status_code, 404)
        with self.app.app_context():
            self.assertEqual(CartItem.query.filter_by(product_id=product_id).count(), 0)

    def test_delete_unknown_product(self):
        self.assertEqual(self.client.delete('/api/products/999', headers=self.admin_headers).status_code, 404)

    def test_product_with_order_history_cannot_be_deleted(self):
        product_id = self.create_product(brand_id=self.brand_id, category_id=self.category_id)
        customer_id = self.create_user('alice')
        self.add_cart_item(customer_id, product_id, 1)
        with self.app.app_context():
            OrderEngine().create_order(customer_id, '1 Main Street', '+10000000000')

        response = self.client.delete(f'/api/products/{product_id}', headers=self.admin_headers)
        self.assertEqual(response.status_code, 409)
        with self.app.app_context():
            self.assertIsNotNone(db.session.get(Product, product_id))


class TestProductListing(StorefrontTestCase):

    def setUp(self):
        super().setUp()
        self.sony = self.create_brand('Sony')
        self.bose = self.create_brand('Bose')
        self.headphones = self.create_category('Headphones')
        self.speakers = self.create_category('Speakers')
        self.cheap = self.create_product(50, self.sony, self.headphones, name='Earbuds')
        self.mid = self.create_product(300, self.sony, self.speakers, name='Portable speaker')
        self.premium = self.create_product(450, self.bose, self.speakers, name='Home speaker')
        self.flagship = self.create_product(900, self.bose, self.headphones, name='Studio headphones')

    def listed_ids(self, query=''):
        response = self.client.get(f'/api/products{query}')
        self.assertEqual(response.status_code, 200)
        return [product['id'] for product in response.get_json()]

    def test_unfiltered_listing(self):
        self.assertEqual(self.listed_ids(), [self.cheap, self.mid, self.premium, self.flagship])

    def test_filter_by_category(self):
        self.assertEqual(self.listed_ids(f'?categoryId={self.speakers}'), [self.mid, self.premium])

    def test_combined_filters(self):
        query = f'?minPrice=100&maxPrice=500&brandId={self.bose}'
        self.assertEqual(self.listed_ids(query), [self.premium])

    def test_search(self):
        self.assertEqual(self.listed_ids('?q=speaker'), [self.mid, self.premium])
        self.assertEqual(self.listed_ids('?q=BOSE'), [self.premium, self.flagship])

    def test_ratings_are_computed_only_for_listed_products(self):
        rating_summaries = ReviewStore.rating_summaries
        with patch.object(ReviewStore, 'rating_summaries', autospec=True,
                          side_effect=rating_summaries) as summaries:
            response = self.client.get(f'/api/products?categoryId={self.speakers}')

        self.assertEqual(response.status_code, 200)
        self.assertTrue(all('averageRating' in product for product in response.get_json()))
        summaries.assert_called_once()
        self.assertEqual(summaries.call_args.args[1], [self.mid, self.premium])

    def test_min_rating_filter_rates_the_whole_catalog(self):
        rating_summaries = ReviewStore.rating_summaries
        with patch.object(ReviewStore, 'rating_summaries', autospec=True,
                          side_effect=rating_summaries) as summaries:
            self.assertEqual(self.listed_ids('?minRating=1'), [])

        summaries.assert_called_once()
        self.assertEqual(len(summaries.call_args.args), 1)

    def test_invalid_filter_values(self):
        self.assertEqual(self.client.get('/api/products?minPrice=abc').status_code, 400)
        self.assertEqual(self.client.get('/api/products?minPrice=500&maxPrice=100').status_code, 400)

    def test_unknown_product(self):
        self.assertEqual(self.client.get('/api/products/999').status_code, 404)


if __name__ == '__main__':
    unittest.main()
