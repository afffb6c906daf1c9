"""POS Service Configuration"""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "Pharmacy POS"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 8000
    currency: str = "KSH"

    # Record store: "supabase" for the hosted backend, "memory" for local dev
    record_store_backend: str = "memory"
    seed_demo_data: bool = True
    request_timeout: float = 30.0

    # Supabase Configuration
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    supabase_jwt_secret: Optional[str] = None
    jwt_audience: str = "authenticated"

    # Collections
    items_collection: str = "drugs"
    sales_collection: str = "sales"
    sale_lines_collection: str = "sale_items"
    roles_collection: str = "user_roles"

    # Checkout sessions
    session_max_age_hours: int = 12

    # Inventory alerts
    low_stock_alert_limit: int = 5
    near_expiry_days: int = 30

    class Config:
        env_file = "config/.env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def supabase_configured(self) -> bool:
        """Check if Supabase credentials are configured"""
        return all([self.supabase_url, self.supabase_key])

    @property
    def rest_url(self) -> str:
        return f"{(self.supabase_url or '').rstrip('/')}/rest/v1"

    @property
    def auth_url(self) -> str:
        return f"{(self.supabase_url or '').rstrip('/')}/auth/v1"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
