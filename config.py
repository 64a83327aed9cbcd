from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "luminaStore"
    ACCESS_TOKEN_SECRET: str = "dev_secret_change_me"
    JWT_EXPIRES_MIN: int = 60
    PAYMENT_SECRET_KEY: str = ""
    PAYMENT_CURRENCY: str = "usd"
    LOG_LEVEL: str = "INFO"
    PORT: int = 5000


@lru_cache
def get_settings() -> Settings:
    return Settings()
