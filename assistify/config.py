"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuration snapshot, built once at startup and passed to every component."""

    # Database
    database_url: str = Field(...)
    db_echo: bool = Field(False)

    # Sessions / OTP
    jwt_secret: SecretStr = Field(...)
    otp_ttl_minutes: int = Field(10)
    session_ttl_days: int = Field(5)

    # OpenRouter chat completions
    openrouter_api_key: Optional[SecretStr] = Field(None)
    openrouter_model: str = Field("meta-llama/llama-3.3-70b-instruct:free")
    openrouter_url: str = Field("https://openrouter.ai/api/v1/chat/completions")
    openrouter_temperature: float = Field(0.2)
    openrouter_max_tokens: int = Field(1200)
    generation_timeout_seconds: float = Field(30.0)

    # Mail; OTP codes are only logged when smtp_host is unset
    smtp_host: Optional[str] = Field(None)
    smtp_port: int = Field(587)
    smtp_username: Optional[str] = Field(None)
    smtp_password: Optional[SecretStr] = Field(None)
    smtp_use_tls: bool = Field(True)
    mail_from: str = Field("no-reply@assistify.local")

    # App
    allowed_origins: str = Field("*")
    app_env: str = Field("development")
    log_level: str = Field("INFO")

    # Derived
    @property
    def allowed_origins_list(self) -> list[str]:
        """Return ALLOWED_ORIGINS as a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def generation_configured(self) -> bool:
        """True when an OpenRouter key is present."""
        return bool(
            self.openrouter_api_key and self.openrouter_api_key.get_secret_value().strip()
        )

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()
