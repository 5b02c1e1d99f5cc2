"""
Juice Bar POS — Configuration
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    SERVICE_NAME: str = "juicebar-pos"
    SERVICE_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # ── Database ──────────────────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./juicebar_pos.db"
    DB_BUSY_TIMEOUT_SECONDS: float = 5.0
    DB_ECHO: bool = False

    # ── Business Policies ─────────────────────────────────────
    ALLOW_OVERSELL: bool = True
    NO_RECIPE_MEANS_UNLIMITED: bool = True
    STRICT_INGREDIENT_REFERENCES: bool = False
    ALLOW_REPRICE_WITHOUT_RECIPE: bool = False
    PRICE_ROUNDING_UNIT: int = 5
    DEFAULT_MARKUP: float = 0.3
    SEED_ON_STARTUP: bool = True

    # ── Optimistic Locking Retry (pricing) ────────────────────
    PRICING_OPTIMISTIC_LOCK: bool = True
    OPT_LOCK_MAX_RETRIES: int = 5
    OPT_LOCK_BASE_DELAY_MS: int = 50      # base exponential backoff delay in ms
    OPT_LOCK_MAX_DELAY_MS: int = 1000     # max backoff cap in ms
    OPT_LOCK_JITTER_MS: int = 50          # random jitter range in ms

    # ── Notifications ─────────────────────────────────────────
    NOTIFICATION_CHANNEL: str = "whatsapp_link"   # whatsapp_link | http
    NOTIFICATION_GATEWAY_URL: str = "http://notification-gateway:8005"
    HTTP_TIMEOUT_SECONDS: float = 5.0
    DEFAULT_COUNTRY_CODE: str = "91"
    CURRENCY_SYMBOL: str = "₹"

    # ── Shop ──────────────────────────────────────────────────
    SHOP_TIMEZONE: str = "Asia/Kolkata"

    # ── Observability ─────────────────────────────────────────
    METRICS_ENABLED: bool = True
    HEALTH_CHECK_TIMEOUT: float = 5.0


@lru_cache()
def get_settings() -> Settings:
    return Settings()
