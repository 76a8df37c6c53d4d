from flask import Blueprint, jsonify, current_app
from flask_login import login_required, current_user

from storefront.schemas import ReviewCreate, load_json
from storefront.services.review_store import ReviewStore

bp = Blueprint('reviews', __name__, url_prefix='/api/products/<int:product_id>/reviews')


def get_review_store():
    return ReviewStore(requires_purchase=current_app.config['REVIEW_REQUIRES_PURCHASE'])


@bp.route('', methods=['GET'])
def list_reviews(product_id):
    reviews = get_review_store().list_for_product(product_id)
    return jsonify([review.to_dict() for review in reviews])


@bp.route('', methods=['POST'])
@login_required
def create_review(product_id):
    body = load_json(ReviewCreate)
    review = get_review_store().create(current_user.id, product_id, body.rating, body.comment)
    return jsonify(review.to_dict()), 201
