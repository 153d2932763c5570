from functools import lru_cache
from typing import Literal
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.development" if app_env == "development" else ".env.production"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "StorefrontRecommendations"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"                      # ignored when DEBUG is on
    GIT_SHA: str = "unknown"
    ALLOWED_ORIGINS: str = ""                    # CSV

    # Mongo
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "storefront"

    # Cache config (seconds)
    default_cache_ttl: int = 5 * 60              # 5 minutes
    related_cache_ttl: int = 5 * 60              # 5 minutes
    trending_cache_ttl: int = 15 * 60            # 15 minutes
    personalized_cache_ttl: int = 10 * 60        # 10 minutes
    vendor_metrics_cache_ttl: int = 10 * 60      # 10 minutes

    # Engine
    history_orders: int = 10                     # orders read for personalization
    trending_days: int = 30                      # trending lookback window
    fanout_concurrency: int = 16                 # max concurrent data-store reads per request

    # API
    api_prefix: str = "/api"

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True)

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
