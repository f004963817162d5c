from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SCHEMATA_", env_file=".env", extra="ignore")

    # Casting defaults
    DATE_FORMAT: str = "%Y-%m-%d"
    DATETIME_FORMAT: str = "%Y-%m-%dT%H:%M:%S.%L"  # %L: milliseconds
    TIME_FORMAT: str = "%Y-%m-%dT%H:%M:%S.%L"
    DECIMAL_PRECISION: int = 2
    INTEGER_BASE: int = 10

    # Parsing
    RAISE_ON_ERROR: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # True for production (structured JSON), False for dev (colored)


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
