"""Central environment-driven settings for the order service.

The process loads this once at startup. Behavior is controlled by environment
variables (see `.env.example`).
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CommonSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "orderpay"
    log_level: str = "INFO"
    port: int = 8080
    database_url: str = "sqlite:///./orderpay.db"
    auto_create_schema: bool = True
    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    razorpay_base_url: str = "https://api.razorpay.com/v1"
    gateway_timeout_seconds: float = 10.0
    default_currency: str = "INR"
    cors_allow_origins: list[str] = ["*"]
    tracing_enabled: bool = False
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("gateway_timeout_seconds")
    @classmethod
    def _bounded_timeout(cls, value: float) -> float:
        if value <= 0 or value > 30:
            raise ValueError("gateway_timeout_seconds must be in (0, 30]")
        return value

    @field_validator("default_currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.upper()


settings = CommonSettings()
