from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    turbopuffer_api_key: SecretStr
    # see turbopuffer.com/docs/regions; pick the one closest to you
    turbopuffer_region: str = "gcp-us-central1"

    # Index metadata files are written here as <name>.json
    index_dir: str = "."
    namespace_prefix: str = "mtg"

    # Upload batching (128 MiB per write at ~1 KiB per row)
    target_batch_bytes: int = Field(default=128 << 20, gt=0)
    estimated_row_bytes: int = Field(default=1 << 10, gt=0)

    http_timeout: float = Field(default=120.0, gt=0)
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
