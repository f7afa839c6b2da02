from __future__ import annotations

import os
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseAppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "vatledger"
    ENV: str = "dev"
    DATABASE_URL: str | None = None
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_SSL_CERT_REQS: str | None = "required"
    REDIS_SSL_CA_CERTS: str | None = None
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "plain"

    # Business timezone: a single fixed offset, no daylight saving (Dili = UTC+9)
    BUSINESS_UTC_OFFSET_HOURS: int = 9
    BUSINESS_CITY: str = "Dili"

    # VAT defaults
    DEFAULT_VAT_RATE: float = 10
    CURRENCY_CODE: str = "USD"
    COUNTRY_CODE: str = "TL"

    # Receipt numbering
    RECEIPT_PREFIX: str = "REC"
    RECEIPT_COUNTER_KEY_PREFIX: str = "receipt_counter"

    # SAF-T product identification
    PRODUCT_ID: str = "Kaixa/OniT"
    PRODUCT_VERSION: str = "1.0"
    PRODUCT_COMPANY_TAX_ID: str = "000000000"
    SOFTWARE_CERTIFICATE_NUMBER: str = "0"
    PREPARED_BY: str = "Kaixa Business System"

    MONTHLY_REPORT_TOP_N: int = 5

    @field_validator("BUSINESS_UTC_OFFSET_HOURS")
    @classmethod
    def _check_offset(cls, v: int) -> int:
        if not -14 <= v <= 14:
            raise ValueError("BUSINESS_UTC_OFFSET_HOURS must be between -14 and 14")
        return v

    @model_validator(mode="after")
    def _validate_required_fields(self) -> BaseAppSettings:
        # Convert Heroku's postgres:// URL to postgresql://
        if self.DATABASE_URL and self.DATABASE_URL.startswith("postgres://"):
            self.DATABASE_URL = self.DATABASE_URL.replace("postgres://", "postgresql://", 1)

        if self.ENV.lower() == "prod":
            missing = [name for name in ("DATABASE_URL", "REDIS_URL") if not getattr(self, name)]
            if missing:
                raise ValueError(f"Missing required production settings: {', '.join(missing)}")
        return self


class DevSettings(BaseAppSettings):
    ENV: str = "dev"
    DATABASE_URL: str = "sqlite:///./vatledger_dev.db"


class TestSettings(BaseAppSettings):
    ENV: str = "test"
    DATABASE_URL: str = "sqlite:///:memory:"


class ProdSettings(BaseAppSettings):
    ENV: str = "prod"
    LOG_FORMAT: str = "json"


_ENV_TO_SETTINGS: dict[str, type[BaseAppSettings]] = {
    "dev": DevSettings,
    "development": DevSettings,
    "test": TestSettings,
    "testing": TestSettings,
    "prod": ProdSettings,
    "production": ProdSettings,
}


@lru_cache
def get_settings() -> BaseAppSettings:
    env_name = os.getenv("APP_ENV") or os.getenv("ENV") or "dev"
    settings_cls = _ENV_TO_SETTINGS.get(env_name.lower(), DevSettings)
    return settings_cls()


settings = get_settings()
