import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.pricing import PricingPolicy

#---------------CONFIGURATION---------------
# Ensure .env is read from repo root (if present)
load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Billing
    TAX_RATE: float = 0.18  # 18% GST
    DEPTH_RATE_PER_FOOT: float = 30.0  # Drilling surcharge in rupees per foot
    FALLBACK_ITEM_PRICE: float = 0.0  # Used when a pump/accessory has no inventory price
    INSTALLATION_SERVICE_TYPE: str = "Borewell Installation"

    # QR verification
    QR_ENDPOINT_TEMPLATE: str = "https://api.qrserver.com/v1/create-qr-code/?size=200x200&data={payload}"
    EMBED_QR_IMAGE: bool = False  # Fetch the QR image and draw it on the invoice
    QR_FETCH_TIMEOUT: float = 10.0

    # Invoice documents
    INVOICE_CURRENCY_SYMBOL: str = "Rs. "  # Built-in PDF fonts carry no rupee glyph
    INVOICE_OUTPUT_DIR: str = "invoices"
    PUBLIC_BASE_URL: str = ""  # Public URL of the API, used for invoice links in messages

    # Dispatch
    DISPATCH_TIMEOUT_SECONDS: float = 30.0

    # Twilio (SMS + WhatsApp)
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    # Accept either TWILIO_SMS_FROM or TWILIO_FROM_NUMBER for convenience
    TWILIO_FROM_NUMBER: Optional[str] = os.getenv("TWILIO_SMS_FROM") or os.getenv("TWILIO_FROM_NUMBER")
    TWILIO_WHATSAPP_FROM: Optional[str] = None

    # SMTP (email)
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM: Optional[str] = None
    SMTP_USE_TLS: bool = True

    # Admin settings action
    ADMIN_API_KEY: Optional[str] = None

    # Server
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000
    SEED_DEMO_DATA: bool = True

    # Other
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    def pricing_policy(self) -> PricingPolicy:
        return PricingPolicy(
            tax_rate=self.TAX_RATE,
            depth_rate_per_foot=self.DEPTH_RATE_PER_FOOT,
            fallback_price=self.FALLBACK_ITEM_PRICE,
            installation_service_type=self.INSTALLATION_SERVICE_TYPE,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
