from decimal import Decimal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "Hotel Booking API"
    LOG_LEVEL: str = "INFO"

    # Auth (set SECRET_KEY in the environment outside local runs)
    SECRET_KEY: str = "change-me-local-secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Pricing and policy. Single currency by design.
    CURRENCY: str = "INR"
    TAX_RATE: Decimal = Decimal("0.12")
    SERVICE_FEE: Decimal = Decimal("25")
    REFUND_CUTOFF_HOURS: int = 24

    # Payment gateway: "sandbox" (deterministic, no network) or "razorpay"
    PAYMENT_GATEWAY: str = "sandbox"
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_API_URL: str = "https://api.razorpay.com/v1"
    GATEWAY_TIMEOUT: int = 25

    @field_validator("PAYMENT_GATEWAY", mode="after")
    @classmethod
    def normalize_gateway(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("sandbox", "razorpay"):
            raise ValueError(f"Unknown payment gateway: {v}")
        return v

    @field_validator("CURRENCY", mode="after")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.strip().upper()


settings = Settings()
