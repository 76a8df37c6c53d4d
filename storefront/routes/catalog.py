from flask import Blueprint, jsonify, request, current_app

from storefront.schemas import BrandCreate, CategoryCreate, ProductCreate, ProductUpdate, load_json
from storefront.services.auth_gate import admin_required
from storefront.services.catalog_filter import ProductFilter, RatingSummary, filter_products
from storefront.services.catalog_store import CatalogStore
from storefront.services.review_store import ReviewStore

bp = Blueprint('catalog', __name__, url_prefix='/api')


def get_catalog_store():
    return CatalogStore(cache=current_app.extensions.get('reference_cache'))


# Brands

@bp.route('/brands')
def list_brands():
    return jsonify(get_catalog_store().list_brands())


@bp.route('/brands/<int:brand_id>')
def get_brand(brand_id):
    return jsonify(get_catalog_store().get_brand(brand_id).to_dict())


@bp.route('/brands', methods=['POST'])
@admin_required
def create_brand():
    body = load_json(BrandCreate)
    brand = get_catalog_store().create_brand(body.model_dump())
    return jsonify(brand.to_dict()), 201


# Categories

@bp.route('/categories')
def list_categories():
    return jsonify(get_catalog_store().list_categories())


@bp.route('/categories/<int:category_id>')
def get_category(category_id):
    return jsonify(get_catalog_store().get_category(category_id).to_dict())


@bp.route('/categories', methods=['POST'])
@admin_required
def create_category():
    body = load_json(CategoryCreate)
    category = get_catalog_store().create_category(body.model_dump())
    return jsonify(category.to_dict()), 201


# Products

@bp.route('/products')
def list_products():
    criteria = ProductFilter.from_args(request.args)

    current_app.logger.info('Products list requested', extra={
        'event_type': 'page_view',
        'page': 'products_list',
        'category': criteria.category_id or 'all'
    })

    review_store = ReviewStore()
    products = get_catalog_store().list_products()
    # minRating needs every product's rating; otherwise rate only what is returned
    ratings = review_store.rating_summaries() if criteria.needs_ratings else None
    products = filter_products(products, criteria, ratings)
    if ratings is None:
        ratings = review_store.rating_summaries([product.id for product in products])

    current_app.logger.info(f'Displaying {len(products)} products', extra={
        'event_type': 'data_loaded',
        'product_count': len(products)
    })

    return jsonify([product.to_dict(ratings.get(product.id, RatingSummary())) for product in products])


@bp.route('/products/<int:product_id>')
def product_detail(product_id):
    product = get_catalog_store().get_product(product_id)
    rating = ReviewStore().rating_summary(product_id)

    current_app.logger.info(f'Product found: {product.name}', extra={
        'event_type': 'product_viewed',
        'product_id': product.id,
        'price': float(product.price),
        'stock': product.stock
    })

    return jsonify(product.to_dict(rating))


@bp.route('/products', methods=['POST'])
@admin_required
def create_product():
    body = load_json(ProductCreate)
    product = get_catalog_store().create_product(body.model_dump())
    return jsonify(product.to_dict(RatingSummary())), 201


@bp.route('/products/<int:product_id>', methods=['PATCH'])
@admin_required
def update_product(product_id):
    body = load_json(ProductUpdate)
    store = get_catalog_store()
    product = store.update_product(product_id, body.model_dump(exclude_unset=True))
    return jsonify(product.to_dict(ReviewStore().rating_summary(product_id)))


@bp.route('/products/<int:product_id>', methods=['DELETE'])
@admin_required
def delete_product(product_id):
    get_catalog_store().delete_product(product_id)
    return '', 204
