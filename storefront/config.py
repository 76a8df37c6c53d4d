"""
Application settings loaded from environment variables
"""
import os
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('1', 'true', 'yes', 'on')


@dataclass
class Settings:
    """Storefront settings"""
    secret_key: str = 'dev-secret-key-change-in-production'
    database_url: str = 'sqlite:///storefront.db'
    token_max_age: int = 24 * 60 * 60
    reference_cache_ttl: float = 300.0
    review_requires_purchase: bool = True
    order_status_policy: str = 'unconstrained'
    seed_on_startup: bool = False
    admin_username: Optional[str] = None
    admin_password: Optional[str] = None
    db_pool_size: int = 5
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> 'Settings':
        """Read settings from the environment"""
        return cls(
            secret_key=os.getenv('SECRET_KEY', cls.secret_key),
            database_url=os.getenv('DATABASE_URL', cls.database_url),
            token_max_age=int(os.getenv('TOKEN_MAX_AGE', str(cls.token_max_age))),
            reference_cache_ttl=float(os.getenv('REFERENCE_CACHE_TTL', str(cls.reference_cache_ttl))),
            review_requires_purchase=_env_bool('REVIEW_REQUIRES_PURCHASE', 'true'),
            order_status_policy=os.getenv('ORDER_STATUS_POLICY', cls.order_status_policy),
            seed_on_startup=_env_bool('SEED_ON_STARTUP', 'false'),
            admin_username=os.getenv('ADMIN_USERNAME'),
            admin_password=os.getenv('ADMIN_PASSWORD'),
            db_pool_size=int(os.getenv('DB_POOL_SIZE', str(cls.db_pool_size))),
            log_level=os.getenv('LOG_LEVEL', cls.log_level).upper(),
        )

    def to_flask_config(self) -> Dict[str, Any]:
        """Translate into Flask config keys"""
        config = {key.upper(): value for key, value in asdict(self).items()}
        config['SQLALCHEMY_DATABASE_URI'] = config.pop('DATABASE_URL')
        config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
        if not self.database_url.startswith('sqlite'):
            config['SQLALCHEMY_ENGINE_OPTIONS'] = {
                'pool_size': self.db_pool_size,
                'pool_pre_ping': True,
            }
        return config
