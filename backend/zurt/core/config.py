# backend/zurt/core/config.py
from typing import List, Optional
from pathlib import Path
from pydantic_settings import BaseSettings
from pydantic import AnyHttpUrl, field_validator, ConfigDict

# Locate the .env file relative to the project root
BASE_DIR = Path(__file__).resolve().parent.parent.parent.parent  # Goes to project root
ENV_FILE = BASE_DIR / ".env"


class Settings(BaseSettings):
    model_config = ConfigDict(env_file=str(ENV_FILE), extra="ignore")

    # Application
    PROJECT_NAME: str = "Zurt"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Security
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # CORS
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    # Capability flags, read once at startup
    SUBSCRIPTIONS_ENABLED: bool = True
    CADENCE_PRICING_ENABLED: bool = True

    # Mercado Pago
    MERCADOPAGO_ACCESS_TOKEN: Optional[str] = None
    MERCADOPAGO_PUBLIC_KEY: Optional[str] = None
    MERCADOPAGO_TEST_MODE: Optional[bool] = None  # None: infer from credential prefix
    MERCADOPAGO_BASE_URL: str = "https://api.mercadopago.com"
    MERCADOPAGO_WEBHOOK_URL: str = "https://zurt.com.br/api/mercadopago/webhook"
    MERCADOPAGO_TIMEOUT_SECONDS: float = 15.0
    MERCADOPAGO_CURRENCY: str = "BRL"

    # URL
    FRONTEND_URL: str = "https://zurt.com.br"

    @property
    def mercadopago_test_mode(self) -> bool:
        """Explicit MERCADOPAGO_TEST_MODE wins; otherwise TEST- credentials mean sandbox."""
        if self.MERCADOPAGO_TEST_MODE is not None:
            return self.MERCADOPAGO_TEST_MODE
        return any(
            (credential or "").startswith("TEST-")
            for credential in (self.MERCADOPAGO_ACCESS_TOKEN, self.MERCADOPAGO_PUBLIC_KEY)
        )

    @property
    def frontend_base_url(self) -> str:
        # FRONTEND_URL may hold a comma-separated list; the first entry is canonical
        return self.FRONTEND_URL.split(",")[0].strip().rstrip("/")


settings = Settings()
