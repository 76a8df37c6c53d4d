"""
Catalog store: brands, categories and products
"""
import logging
import random
import time
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from storefront import db
from storefront.errors import Conflict, NotFound, ValidationError
from storefront.models import MAX_INTEGER, MAX_PRICE, Brand, CartItem, Category, OrderItem, Product

logger = logging.getLogger(__name__)

BRANDS_CACHE_KEY = 'brands'
CATEGORIES_CACHE_KEY = 'categories'
PRODUCT_FIELDS = ('sku', 'name', 'description', 'price', 'image_url', 'category_id', 'brand_id', 'stock')


def generate_sku() -> str:
    """SKU<epoch millis><3 random digits>; collisions are possible but negligible"""
    return f'SKU{int(time.time() * 1000)}{random.randint(0, 999):03d}'


class CatalogStore:
    """Lookup and mutation of catalog reference data and products"""

    def __init__(self, cache=None):
        self.cache = cache

    # Brands

    def list_brands(self) -> List[Dict[str, Any]]:
        def load():
            return [brand.to_dict() for brand in Brand.query.order_by(Brand.name).all()]

        return self.cache.get(BRANDS_CACHE_KEY, load) if self.cache else load()

    def get_brand(self, brand_id: int) -> Brand:
        brand = db.session.get(Brand, brand_id)
        if brand is None:
            raise NotFound(f'Brand {brand_id} not found')
        return brand

    def create_brand(self, data: Dict[str, Any]) -> Brand:
        if Brand.query.filter_by(name=data['name']).first():
            raise Conflict(f"Brand '{data['name']}' already exists")

        brand = Brand(name=data['name'], description=data.get('description'))
        db.session.add(brand)
        self._commit(f"Brand '{data['name']}' already exists")
        self._invalidate(BRANDS_CACHE_KEY)

        logger.info(f'Brand created: {brand.name}', extra={
            'event_type': 'brand_created',
            'brand_id': brand.id
        })
        return brand

    # Categories

    def list_categories(self) -> List[Dict[str, Any]]:
        def load():
            return [category.to_dict() for category in Category.query.order_by(Category.id).all()]

        return self.cache.get(CATEGORIES_CACHE_KEY, load) if self.cache else load()

    def get_category(self, category_id: int) -> Category:
        category = db.session.get(Category, category_id)
        if category is None:
            raise NotFound(f'Category {category_id} not found')
        return category

    def create_category(self, data: Dict[str, Any]) -> Category:
        parent_id = data.get('parent_id')
        if parent_id is not None:
            parent = db.session.get(Category, parent_id)
            if parent is None:
                raise ValidationError(f'Parent category {parent_id} does not exist')
            if parent.parent_id is not None:
                raise ValidationError('Categories support a single level of nesting')

        category = Category(name=data['name'], parent_id=parent_id, description=data.get('description'))
        db.session.add(category)
        db.session.commit()
        self._invalidate(CATEGORIES_CACHE_KEY)

        logger.info(f'Category created: {category.name}', extra={
            'event_type': 'category_created',
            'category_id': category.id
        })
        return category

    # Products

    def list_products(self) -> List[Product]:
        return Product.query.order_by(Product.id).all()

    def get_product(self, product_id: int) -> Product:
        product = db.session.get(Product, product_id)
        if product is None:
            raise NotFound(f'Product {product_id} not found')
        return product

    def create_product(self, data: Dict[str, Any]) -> Product:
        fields = {key: value for key, value in data.items() if key in PRODUCT_FIELDS}
        if not fields.get('sku'):
            fields['sku'] = generate_sku()
        self._validate_product_fields(fields)

        if Product.query.filter_by(sku=fields['sku']).first():
            raise Conflict(f"SKU '{fields['sku']}' already exists")

        product = Product(**fields)
        db.session.add(product)
        self._commit(f"SKU '{fields['sku']}' already exists")

        logger.info(f'Product created: {product.name}', extra={
            'event_type': 'product_created',
            'product_id': product.id,
            'sku': product.sku,
            'price': float(product.price)
        })
        return product

    def update_product(self, product_id: int, partial: Dict[str, Any]) -> Product:
        product = self.get_product(product_id)
        fields = {key: value for key, value in partial.items() if key in PRODUCT_FIELDS}
        self._validate_product_fields(fields)

        if 'sku' in fields and fields['sku'] != product.sku:
            if Product.query.filter_by(sku=fields['sku']).first():
                raise Conflict(f"SKU '{fields['sku']}' already exists")

        for key, value in fields.items():
            setattr(product, key, value)
        self._commit(f"SKU '{fields.get('sku')}' already exists")

        logger.info(f'Product updated: {product_id}', extra={
            'event_type': 'product_updated',
            'product_id': product_id,
            'fields': sorted(fields)
        })
        return product

    def delete_product(self, product_id: int):
        product = self.get_product(product_id)

        if OrderItem.query.filter_by(product_id=product_id).first():
            raise Conflict(f'Product {product_id} appears in order history and cannot be deleted')

        removed_lines = CartItem.query.filter_by(product_id=product_id).delete()
        for review in product.reviews:
            db.session.delete(review)
        db.session.delete(product)
        db.session.commit()

        logger.info(f'Product deleted: {product_id}', extra={
            'event_type': 'product_deleted',
            'product_id': product_id,
            'removed_cart_lines': removed_lines
        })

    def _validate_product_fields(self, fields: Dict[str, Any]):
        if 'price' in fields:
            price = Decimal(str(fields['price']))
            if not price.is_finite() or price < 0:
                raise ValidationError('price must be a non-negative number')
            if price > MAX_PRICE:
                raise ValidationError(f'price must not exceed {MAX_PRICE}')
            fields['price'] = price
        if 'stock' in fields and not 0 <= fields['stock'] <= MAX_INTEGER:
            raise ValidationError(f'stock must be between 0 and {MAX_INTEGER}')
        if 'category_id' in fields and db.session.get(Category, fields['category_id']) is None:
            raise ValidationError(f"Category {fields['category_id']} does not exist")
        if 'brand_id' in fields and db.session.get(Brand, fields['brand_id']) is None:
            raise ValidationError(f"Brand {fields['brand_id']} does not exist")

    def _commit(self, conflict_message: str):
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise Conflict(conflict_message)

    def _invalidate(self, key: str):
        if self.cache:
            self.cache.invalidate(key)
