"""
Product filtering over category, brand, price range, average rating and
free-text search. Every criterion that is set must hold (logical AND).
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Mapping, Optional

from storefront.errors import ValidationError


@dataclass
class RatingSummary:
    """Derived review statistics for one product"""
    total: int = 0
    count: int = 0

    @property
    def average(self) -> Optional[float]:
        if self.count == 0:
            return None
        return self.total / self.count

    @property
    def display_average(self) -> Optional[float]:
        average = self.average
        return round(average, 1) if average is not None else None


def _parse_int(args: Mapping[str, str], name: str) -> Optional[int]:
    raw = args.get(name)
    if raw in (None, ''):
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f'{name} must be an integer')


def _parse_decimal(args: Mapping[str, str], name: str) -> Optional[Decimal]:
    raw = args.get(name)
    if raw in (None, ''):
        return None
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise ValidationError(f'{name} must be a number')
    if not value.is_finite():
        raise ValidationError(f'{name} must be a number')
    return value


@dataclass
class ProductFilter:
    category_id: Optional[int] = None
    brand_id: Optional[int] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    min_rating: Optional[Decimal] = None
    search: Optional[str] = None

    @classmethod
    def from_args(cls, args: Mapping[str, str]) -> 'ProductFilter':
        """Build criteria from query string arguments"""
        criteria = cls(
            category_id=_parse_int(args, 'categoryId'),
            brand_id=_parse_int(args, 'brandId'),
            min_price=_parse_decimal(args, 'minPrice'),
            max_price=_parse_decimal(args, 'maxPrice'),
            min_rating=_parse_decimal(args, 'minRating'),
            search=(args.get('q') or '').strip() or None,
        )
        if criteria.min_price is not None and criteria.max_price is not None \
                and criteria.min_price > criteria.max_price:
            raise ValidationError('minPrice must not exceed maxPrice')
        return criteria

    @property
    def needs_ratings(self) -> bool:
        return self.min_rating is not None

    def matches(self, product, rating: Optional[RatingSummary] = None) -> bool:
        if self.category_id is not None and product.category_id != self.category_id:
            return False
        if self.brand_id is not None and product.brand_id != self.brand_id:
            return False

        price = Decimal(str(product.price))
        if self.min_price is not None and price < self.min_price:
            return False
        if self.max_price is not None and price > self.max_price:
            return False

        if self.min_rating is not None:
            # Unrated products are excluded, not treated as rating 0
            if rating is None or rating.average is None:
                return False
            if Decimal(str(rating.average)) < self.min_rating:
                return False

        if self.search is not None:
            needle = self.search.lower()
            brand = getattr(product, 'brand', None)
            haystacks = [product.name, product.description or '', brand.name if brand else '']
            if not any(needle in text.lower() for text in haystacks):
                return False

        return True


def filter_products(products: Iterable, criteria: ProductFilter,
                    ratings: Optional[Dict[int, RatingSummary]] = None) -> List:
    """Return the products satisfying every set criterion, in input order"""
    ratings = ratings or {}
    return [product for product in products if criteria.matches(product, ratings.get(product.id))]
