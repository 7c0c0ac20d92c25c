from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "local"

    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "paged_query"
    db_user: str = "paged_query"
    db_password: str = "paged_query"

    # full SQLAlchemy URL, takes precedence over the db_* parts
    database_dsn: str | None = None

    batch_size: int = Field(default=100, ge=1)
    page: bool = True

    log_level: str = "INFO"

    @property
    def database_url(self) -> str:
        if self.database_dsn:
            return self.database_dsn
        # asyncpg + SQLAlchemy 2.x
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
