"""Application configuration using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str
    DB_READY_ATTEMPTS: int = 10
    DB_READY_WAIT: float = 2.0

    # API key verification
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"

    # Dispatch
    PUBLIC_BASE_URL: str = ""  # Falls back to the inbound request origin
    CALLBACK_PATH: str = "/api/update-run"
    MACHINE_RUN_PATH: str = "/run"
    DISPATCH_TIMEOUT: float = 30.0

    # Output storage (S3-compatible spaces fronted by a CDN)
    SPACES_ENDPOINT: str = ""
    SPACES_BUCKET: str = ""
    SPACES_ENDPOINT_CDN: str = ""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


# Global settings instance
settings = Settings()
