"""
Application configuration.

Settings are read once per process from environment variables / the .env file
and handed to services by parameter (``Depends(get_settings)``), so nothing
below the endpoint layer reads ``os.environ`` on its own.
"""
import logging
from functools import lru_cache

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    DATABASE_URL: str
    JWT_SECRET_KEY: str
    CORS_ORIGINS: list[str] = ["*"]

    # Public URL the vendors call back into (Bland webhook, Twilio voice URL)
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # Stripe Billing
    STRIPE_API_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_PRICE_STARTER: str = ""
    STRIPE_PRICE_PROFESSIONAL: str = ""
    STRIPE_PRICE_BUSINESS: str = ""

    # Twilio
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""

    # Bland.ai
    BLAND_API_KEY: str = ""
    BLAND_BASE_URL: str = "https://api.bland.ai/v1"
    BLAND_VOICE: str = "maya"
    BLAND_AREA_CODE: str = "415"
    BLAND_BILLING_URL: str = "https://app.bland.ai/dashboard/billing"

    # SendGrid Email
    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = "noreply@aivoicemail.app"
    SENDGRID_FROM_NAME: str = "AI Voicemail"
    SALES_NOTIFICATION_EMAIL: str = ""

    class Config:
        env_file = ".env"

    @property
    def bland_webhook_url(self) -> str:
        return f"{self.PUBLIC_BASE_URL.rstrip('/')}/api/v1/webhooks/bland"

    def stripe_price_for(self, plan: str | None) -> str:
        """Return the Stripe price ID for a plan tier.

        Enterprise is sold through the contact-sales form, so it (and any
        unknown tier) maps to ''.
        """
        prices = {
            "starter": self.STRIPE_PRICE_STARTER,
            "professional": self.STRIPE_PRICE_PROFESSIONAL,
            "business": self.STRIPE_PRICE_BUSINESS,
        }
        return prices.get(plan or "", "")


@lru_cache
def get_settings() -> Settings:
    """Build the process-wide Settings exactly once."""
    settings = Settings()
    logger.info("Settings loaded (env=%s)", settings.APP_ENV)
    return settings
