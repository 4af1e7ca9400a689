# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./coffee_commerce.db"
    LOG_LEVEL: str = "INFO"

    FRONTEND_URL: str = "http://localhost:5173"
    # Public backend URL used in payment provider callbacks
    BACKEND_URL: str = "http://127.0.0.1:8000"

    # All prices and stored order amounts are in this currency
    BASE_CURRENCY: str = "NGN"

    STRIPE_API_URL: str = "https://api.stripe.com"
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_WEBHOOK_TOLERANCE_SECONDS: int = 300

    PAYSTACK_API_URL: str = "https://api.paystack.co"
    PAYSTACK_SECRET_KEY: str = ""

    # Applied to every outbound provider call
    HTTP_TIMEOUT_SECONDS: float = 15.0

    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "I-Coffee <orders@i-coffee.ng>"
    COMPANY_NAME: str = "I-Coffee Nigeria"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra = "ignore"

settings = Settings()
