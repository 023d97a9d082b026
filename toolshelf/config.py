"""Application configuration loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration — reads from environment / .env file."""

    # Storage
    database_url: str = "sqlite+aiosqlite:///./toolshelf.sqlite"
    seed_demo_data: bool = True

    # Query cache
    query_cache_ttl_seconds: float = 300.0  # 5 minutes

    # Listing defaults
    default_page_size: int = 12
    popular_default_limit: int = 10

    # Server
    host: str = "0.0.0.0"
    port: int = 3001
    allowed_origins: str = "*"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def cors_origins(self) -> list[str]:
        if self.allowed_origins == "*":
            return ["*"]
        return [o.strip() for o in self.allowed_origins.split(",")]


settings = Settings()
