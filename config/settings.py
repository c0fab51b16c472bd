import os
from decimal import Decimal
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from core.exceptions import ConfigError
from models.deal import DealFieldKeys

load_dotenv()

# env var -> Settings field
ENV_FIELDS = {
    "SHOPIFY_STORE_DOMAIN": "store_domain",
    "SHOPIFY_ADMIN_API_ACCESS_TOKEN": "access_token",
    "SHOPIFY_API_VERSION": "api_version",
    "DEAL_METAOBJECT_TYPE": "deal_type",
    "PRICE_INCREMENT": "price_increment",
    "POLL_INTERVAL_SECONDS": "poll_interval",
    "PERSIST_START_MARKER": "persist_start_marker",
    "REQUEST_TIMEOUT_SECONDS": "request_timeout",
    "REPORT_FREQUENCY": "report_frequency",
    "LOG_DIR": "log_dir",
}

ENV_FIELD_KEYS = {
    "DEAL_PRICING_KEY": "pricing",
    "DEAL_START_TIME_KEY": "start_time",
    "DEAL_PRODUCT_KEY": "product",
    "DEAL_STARTED_KEY": "started",
}


class Settings(BaseModel):
    store_domain: str
    access_token: str
    api_version: str = "2025-01"
    deal_type: str = "deal"
    # 9.99 and 10 are both in use across stores
    price_increment: Decimal = Decimal("9.99")
    poll_interval: float = 1.0
    # Flip a "started" field on the deal metaobject before the first price step
    persist_start_marker: bool = False
    request_timeout: float = 30.0
    report_frequency: int = 100
    log_dir: str = "logs"
    field_keys: DealFieldKeys = Field(default_factory=DealFieldKeys)

    @field_validator("store_domain", "access_token")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

    @field_validator("price_increment")
    @classmethod
    def _positive_increment(cls, value: Decimal) -> Decimal:
        if value <= 0:
            raise ValueError("price increment must be greater than zero")
        return value

    @field_validator("poll_interval")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must be >= 0")
        return value

    @field_validator("request_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be > 0")
        return value

    @field_validator("report_frequency")
    @classmethod
    def _positive_frequency(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be >= 1")
        return value

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "Settings":
        """
        Build settings from the environment (the .env file is loaded on import).

        Raises:
            ConfigError: store domain or access token missing, or a value is invalid.
        """
        environ = os.environ if environ is None else environ

        missing = [name for name in ("SHOPIFY_STORE_DOMAIN", "SHOPIFY_ADMIN_API_ACCESS_TOKEN") if not environ.get(name)]
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        values = {field: environ[name] for name, field in ENV_FIELDS.items() if environ.get(name)}
        keys = {field: environ[name] for name, field in ENV_FIELD_KEYS.items() if environ.get(name)}

        try:
            return cls(field_keys=DealFieldKeys(**keys), **values)
        except ValidationError as e:
            raise ConfigError(f"Invalid settings: {e}") from e
