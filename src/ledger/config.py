"""Application settings for the ledger service.

Infrastructure (databases, brokers, event store) is configured through
``domain.toml``; these settings cover the HTTP surface and the external
collaborators.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Owner authentication
    OWNER_PASSWORD: str = "owner123"
    JWT_SECRET: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Image embedding collaborator
    EMBEDDING_ADAPTER: str = "fake"
    EMBEDDING_SERVICE_URL: str = "http://localhost:8001"
    EMBEDDING_TIMEOUT_SECONDS: float = 30.0
    EMBEDDING_MODEL: str = "clip-vit-b32"
    IMAGE_MATCH_THRESHOLD: float = 0.97
    IMAGE_MATCH_LIMIT: int = 5

    # QR codes and uploaded images
    ASSET_STORE_ADAPTER: str = "memory"


@lru_cache
def get_settings() -> Settings:
    return Settings()
