"""
Configuration settings for the application.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Redis / durable cart settings
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    CART_STORAGE_KEY: str = os.getenv("CART_STORAGE_KEY", "cart-storage")
    CART_TTL_SECONDS: int = int(os.getenv("CART_TTL_SECONDS", str(30 * 24 * 3600)))
    CART_WRITE_ATTEMPTS: int = int(os.getenv("CART_WRITE_ATTEMPTS", "10"))
    CHECKOUT_KEY_PREFIX: str = os.getenv("CHECKOUT_KEY_PREFIX", "checkout:")
    ORDER_KEY_PREFIX: str = os.getenv("ORDER_KEY_PREFIX", "order:")
    ORDER_TTL_SECONDS: int = int(os.getenv("ORDER_TTL_SECONDS", str(7 * 24 * 3600)))

    # Remote catalog (Supabase / PostgREST)
    SUPABASE_URL: str | None = os.getenv("SUPABASE_URL")
    SUPABASE_ANON_KEY: str | None = os.getenv("SUPABASE_ANON_KEY")
    SUPABASE_TIMEOUT_SECONDS: float = float(
        os.getenv("SUPABASE_TIMEOUT_SECONDS", "5.0")
    )

    # Catalog browsing
    CATALOG_PAGE_SIZE: int = int(os.getenv("CATALOG_PAGE_SIZE", "12"))
    CATALOG_MAX_PAGE_SIZE: int = int(os.getenv("CATALOG_MAX_PAGE_SIZE", "100"))

    # Checkout pricing
    FREE_SHIPPING_THRESHOLD: float = float(os.getenv("FREE_SHIPPING_THRESHOLD", "100"))
    FLAT_SHIPPING_FEE: float = float(os.getenv("FLAT_SHIPPING_FEE", "10"))

    @property
    def is_production(self) -> bool:
        """
        Check if running in production environment.
        """
        return self.ENVIRONMENT.lower() == "production"

    @property
    def supabase_configured(self) -> bool:
        """Return True when the remote catalog can be queried."""
        return bool(self.SUPABASE_URL and self.SUPABASE_ANON_KEY)

    def __init__(self):
        self.debug = os.getenv("DEBUG", "false").lower() == "true"
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        logging.basicConfig(level=self.log_level)
        self.logger = logging.getLogger(__name__)

        self.logger.debug(
            f"Config initialized with environment={self.ENVIRONMENT}, "
            f"debug={self.debug}, log_level={self.log_level}"
        )


# Create a global settings instance for import
settings = Settings()
