"""
Settings — environment-driven configuration.

    STOREFRONT_DATABASE_URL=sqlite+aiosqlite:///shop.db
    STOREFRONT_LOG_FORMAT=json
"""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from storefront.pricing import PricingPolicy


class Settings(BaseSettings):
    """
    Settings for the storefront core and shell.
    """

    database_url: str = Field(default="sqlite+aiosqlite:///:memory:")

    free_shipping_threshold: Decimal = Field(default=Decimal("50.00"), ge=0)
    shipping_fee: Decimal = Field(default=Decimal("5.99"), ge=0)
    tax_rate: Decimal = Field(default=Decimal("0.08"), ge=0)

    success_redirect_seconds: float = Field(default=3.0, ge=0)
    review_limit: int = Field(default=10, ge=1)

    log_level: str = Field(default="INFO")
    log_format: Literal["console", "json"] = Field(default="console")

    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    def pricing_policy(self) -> PricingPolicy:
        return PricingPolicy(
            free_shipping_threshold=self.free_shipping_threshold,
            shipping_fee=self.shipping_fee,
            tax_rate=self.tax_rate,
        )


__all__ = ("Settings",)
