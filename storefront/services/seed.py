"""
Reference data seeding: default brands, categories and an optional admin
"""
import logging
from typing import Optional

from storefront import db
from storefront.models import Brand, Category, User

logger = logging.getLogger(__name__)

DEFAULT_BRANDS = [
    'Sony',
    'Audio-Technica',
    'Sennheiser',
    'JBL',
    'Bose',
    'Yamaha',
    'Pioneer',
    'Shure',
    'AKG',
    'Marshall',
]

DEFAULT_CATEGORIES = [
    {'name': 'Headphones', 'subcategories': [
        'Wireless headphones',
        'Wired headphones',
        'Sports headphones',
        'Studio headphones',
    ]},
    {'name': 'Speakers', 'subcategories': [
        'Portable speakers',
        'Home speakers',
        'PA speakers',
        'Smart speakers',
    ]},
    {'name': 'Amplifiers', 'subcategories': [
        'Preamplifiers',
        'Power amplifiers',
        'Integrated amplifiers',
    ]},
    {'name': 'Microphones', 'subcategories': [
        'Condenser microphones',
        'Dynamic microphones',
        'USB microphones',
        'Wireless microphones',
    ]},
    {'name': 'DJ Equipment', 'subcategories': [
        'DJ controllers',
        'DJ mixers',
        'Turntables',
    ]},
]


def seed_brands() -> int:
    existing = {name for (name,) in db.session.query(Brand.name).all()}
    created = 0
    for name in DEFAULT_BRANDS:
        if name not in existing:
            db.session.add(Brand(name=name))
            created += 1
    db.session.commit()
    return created


def seed_categories() -> int:
    if Category.query.first():
        return 0

    created = 0
    for entry in DEFAULT_CATEGORIES:
        parent = Category(name=entry['name'])
        db.session.add(parent)
        db.session.flush()
        created += 1
        for child_name in entry['subcategories']:
            db.session.add(Category(name=child_name, parent_id=parent.id))
            created += 1
    db.session.commit()
    return created


def ensure_admin(username: str, password: str) -> User:
    """Create the admin account, or promote an existing user of that name"""
    user = User.query.filter_by(username=username).first()
    if user is None:
        user = User(username=username, is_admin=True)
        user.set_password(password)
        db.session.add(user)
        logger.info(f'Admin user created: {username}', extra={'event_type': 'admin_created'})
    elif not user.is_admin:
        user.is_admin = True
        logger.info(f'User promoted to admin: {username}', extra={'event_type': 'admin_promoted'})
    db.session.commit()
    return user


def seed_all(admin_username: Optional[str] = None, admin_password: Optional[str] = None):
    brands = seed_brands()
    categories = seed_categories()
    if admin_username and admin_password:
        ensure_admin(admin_username, admin_password)

    logger.info(f'Seeded {brands} brands and {categories} categories', extra={
        'event_type': 'reference_data_seeded',
        'brands_created': brands,
        'categories_created': categories
    })
