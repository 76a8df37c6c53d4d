#!/usr/bin/env python3
"""
Database initialization script
Creates tables, reference data and sample products for the storefront
"""

import sys
import os

# Add parent directory to path to import storefront
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from storefront import create_app, db
from storefront.models import Brand, Category, Product
from storefront.services.catalog_store import CatalogStore
from storefront.services.seed import seed_all

SAMPLE_PRODUCTS = [
    {
        'name': 'WH-1000XM5',
        'description': 'Wireless noise cancelling headphones',
        'price': 179990,
        'stock': 12,
        'brand': 'Sony',
        'category': 'Wireless headphones',
        'image_url': 'https://via.placeholder.com/300x300?text=WH-1000XM5'
    },
    {
        'name': 'ATH-M50x',
        'description': 'Closed-back studio monitor headphones',
        'price': 74990,
        'stock': 20,
        'brand': 'Audio-Technica',
        'category': 'Studio headphones',
        'image_url': 'https://via.placeholder.com/300x300?text=ATH-M50x'
    },
    {
        'name': 'Flip 6',
        'description': 'Waterproof portable bluetooth speaker',
        'price': 54990,
        'stock': 35,
        'brand': 'JBL',
        'category': 'Portable speakers',
        'image_url': 'https://via.placeholder.com/300x300?text=Flip+6'
    },
    {
        'name': 'SM58',
        'description': 'Cardioid dynamic vocal microphone',
        'price': 49990,
        'stock': 25,
        'brand': 'Shure',
        'category': 'Dynamic microphones',
        'image_url': 'https://via.placeholder.com/300x300?text=SM58'
    },
    {
        'name': 'DDJ-FLX4',
        'description': '2-channel DJ controller',
        'price': 129990,
        'stock': 8,
        'brand': 'Pioneer',
        'category': 'DJ controllers',
        'image_url': 'https://via.placeholder.com/300x300?text=DDJ-FLX4'
    },
]


def init_db():
    app = create_app()

    with app.app_context():
        # Create all tables
        print("Creating database tables...")
        db.create_all()

        print("Seeding brands and categories...")
        seed_all(app.config.get('ADMIN_USERNAME'), app.config.get('ADMIN_PASSWORD'))

        # Check if products already exist
        if Product.query.first():
            print("Products already present, skipping sample products.")
            return

        print("Creating sample products...")
        store = CatalogStore()
        for sample in SAMPLE_PRODUCTS:
            brand = Brand.query.filter_by(name=sample['brand']).one()
            category = Category.query.filter_by(name=sample['category']).one()
            store.create_product({
                'name': sample['name'],
                'description': sample['description'],
                'price': sample['price'],
                'stock': sample['stock'],
                'image_url': sample['image_url'],
                'brand_id': brand.id,
                'category_id': category.id,
            })

        print(f"Created {len(SAMPLE_PRODUCTS)} sample products.")


if __name__ == '__main__':
    init_db()
