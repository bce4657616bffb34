"""
Application configuration using Pydantic Settings.
Business limits and loyalty program switches are centralized here so that
checkout, the order service and the agent tools enforce the same values.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── App ──────────────────────────────────────────────
    app_name: str = "Rice Storefront"
    debug: bool = True
    currency: str = "PKR"

    # ── Order limits ─────────────────────────────────────
    max_quantity_kg: float = 1000.0
    max_items_per_order: int = 20
    min_customer_name_length: int = 3
    min_address_length: int = 10
    phone_country_code: str = "92"

    # ── Loyalty program ──────────────────────────────────
    loyalty_enabled: bool = True
    loyalty_min_order_amount: float = 5000.0
    loyalty_discount_percent: float = 3.0
    loyalty_code_prefix: str = "LOYALTY"
    loyalty_rule_name: str = "Loyalty Discount Program"
    hotel_restaurant_keywords: list[str] = [
        "hotel",
        "restaurant",
        "Hotel & Restaurant Deals",
    ]

    # ── Admin analytics ──────────────────────────────────
    growth_window_days: int = 30
    top_products_limit: int = 10

    # ── Audit ────────────────────────────────────────────
    audit_max_entries: int = 10000

    # ── Server ───────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8000

    # ── Logging ──────────────────────────────────────────
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "RICE_",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings (singleton)."""
    return Settings()
