"""
Review store with optional purchase gating and derived average ratings
"""
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func

from storefront import db
from storefront.errors import Forbidden, NotFound, ValidationError
from storefront.models import Order, OrderItem, Product, Review
from storefront.services.catalog_filter import RatingSummary

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class ReviewStore:

    def __init__(self, requires_purchase: bool = True):
        self.requires_purchase = requires_purchase

    def list_for_product(self, product_id: int) -> List[Review]:
        self._require_product(product_id)
        return (Review.query
                .filter_by(product_id=product_id)
                .order_by(Review.created_at.desc(), Review.id.desc())
                .all())

    def has_purchased(self, user_id: int, product_id: int) -> bool:
        """True if any of the user's orders, in any status, contains the product"""
        match = (db.session.query(OrderItem.id)
                 .join(Order, OrderItem.order_id == Order.id)
                 .filter(Order.user_id == user_id, OrderItem.product_id == product_id)
                 .first())
        return match is not None

    def create(self, user_id: int, product_id: int, rating: int, comment: str = '') -> Review:
        if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError(f'rating must be an integer between {MIN_RATING} and {MAX_RATING}')
        self._require_product(product_id)

        if self.requires_purchase and not self.has_purchased(user_id, product_id):
            logger.warning(f'User {user_id} tried to review product {product_id} without purchasing it', extra={
                'event_type': 'review_rejected',
                'user_id': user_id,
                'product_id': product_id
            })
            raise Forbidden('review requires prior purchase')

        review = Review(user_id=user_id, product_id=product_id, rating=rating, comment=comment or '')
        db.session.add(review)
        db.session.commit()

        logger.info(f'Review created for product {product_id}', extra={
            'event_type': 'review_created',
            'user_id': user_id,
            'product_id': product_id,
            'rating': rating
        })
        return review

    def rating_summaries(self, product_ids: Optional[Iterable[int]] = None) -> Dict[int, RatingSummary]:
        """Rating totals and counts per product, computed in one grouped query"""
        query = db.session.query(
            Review.product_id,
            func.sum(Review.rating),
            func.count(Review.id),
        ).group_by(Review.product_id)
        if product_ids is not None:
            query = query.filter(Review.product_id.in_(list(product_ids)))

        return {
            product_id: RatingSummary(total=int(total), count=count)
            for product_id, total, count in query.all()
        }

    def rating_summary(self, product_id: int) -> RatingSummary:
        return self.rating_summaries([product_id]).get(product_id, RatingSummary())

    def _require_product(self, product_id: int):
        if db.session.get(Product, product_id) is None:
            raise NotFound(f'Product {product_id} not found')
