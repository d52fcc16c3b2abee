import logging

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "YGO Deck Builder"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./ygodeck.db"

    jwt_secret: str = "change-me-to-a-long-random-secret-value"
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 7

    catalog_url: str = "https://db.ygoprodeck.com/api/v7/cardinfo.php"
    catalog_timeout: float = 10.0

    # How long the TCG banlist overlay is reused between searches
    banlist_ttl_seconds: int = 600

    allowed_origins: list[str] = ["*"]


settings = Settings()


def configure_logging() -> None:
    """Configure root logging from settings."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
