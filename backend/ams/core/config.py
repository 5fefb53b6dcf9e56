"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from ams.core.exceptions import ConfigurationError
from ams.core.security import TokenSettings

BASE_DIR = Path(__file__).resolve().parents[2]

_PLACEHOLDER_SECRETS = {"", "change-me"}
HMAC_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})


class Settings(BaseSettings):
    APP_NAME: str = "AMS API"
    ENV: str = "development"

    DATABASE_URL: str = "postgresql+psycopg://postgres@localhost:5432/ams"

    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "ams-api"
    JWT_AUDIENCE: str = "ams-clients"
    ACCESS_TOKEN_EXPIRE_HOURS: int = 6
    REFRESH_TOKEN_EXPIRE_DAYS: int = 14

    API_KEY_HEADER_NAME: str = "X-API-Key"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "http://localhost:3000"

    model_config = SettingsConfigDict(env_file=str(BASE_DIR / ".env"), env_file_encoding="utf-8")

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() in {"prod", "production"}

    def token_settings(self) -> TokenSettings:
        return TokenSettings(
            signing_key=self.JWT_SECRET,
            algorithm=self.JWT_ALGORITHM,
            issuer=self.JWT_ISSUER,
            audience=self.JWT_AUDIENCE,
            access_token_hours=self.ACCESS_TOKEN_EXPIRE_HOURS,
            refresh_token_days=self.REFRESH_TOKEN_EXPIRE_DAYS,
        )

    def validate_runtime_security(self) -> None:
        secret = self.JWT_SECRET.strip()
        if not secret:
            raise ConfigurationError("jwt_secret_not_configured", setting="JWT_SECRET")
        if self.is_production and secret in _PLACEHOLDER_SECRETS:
            raise ConfigurationError("jwt_secret_is_placeholder", setting="JWT_SECRET")
        if self.JWT_ALGORITHM not in HMAC_ALGORITHMS:
            raise ConfigurationError("jwt_algorithm_not_hmac", setting="JWT_ALGORITHM")


settings = Settings()
