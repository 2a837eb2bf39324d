from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "NotesAI"
    debug: bool = False
    log_level: str = "INFO"
    log_format: str = "json"

    database_url: str = Field(default="sqlite:///./notesai.db", alias="DATABASE_URL")

    jwt_secret: str = Field(default="", alias="JWT_SECRET")
    jwt_algorithm: str = "HS256"
    access_token_ttl_seconds: int = Field(default=7 * 24 * 3600, alias="ACCESS_TOKEN_TTL_SECONDS")

    argon2_time_cost: int = Field(default=3, alias="ARGON2_TIME_COST")
    argon2_memory_cost: int = Field(default=262_144, alias="ARGON2_MEMORY_COST")
    argon2_parallelism: int = Field(default=1, alias="ARGON2_PARALLELISM")

    admin_emails: list[str] = Field(default_factory=list, alias="ADMIN_EMAILS")
    trusted_proxy_headers: bool = Field(default=True, alias="TRUSTED_PROXY_HEADERS")

    bug_report_user_per_minute: int = 2
    bug_report_user_per_hour: int = 10
    bug_report_ip_per_minute: int = 1
    bug_report_ip_per_hour: int = 5

    @property
    def is_memory_sqlite(self) -> bool:
        url = self.database_url
        return url in ("sqlite://", "sqlite:///:memory:") or url.endswith(":memory:")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
