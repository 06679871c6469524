from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Base
    APP_ENV: str = "dev"  # dev | staging | prod | test
    APP_NAME: str = "Sunny API"
    APP_VERSION: str = "0.1.0"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Database (SQLite par défaut, Postgres via postgresql+psycopg://...)
    DATABASE_URL: str = "sqlite:///./sunny.db"

    # LLM
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    SUNNY_DEMO_MODE: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def has_usable_openai_key(self) -> bool:
        key = (self.OPENAI_API_KEY or "").strip()
        if not key:
            return False
        lowered = key.lower()
        if lowered == "demo" or "dummy" in lowered or "placeholder" in lowered:
            return False
        return key.startswith("sk-")

    @property
    def demo_mode(self) -> bool:
        return self.SUNNY_DEMO_MODE or not self.has_usable_openai_key


@lru_cache
def get_settings() -> Settings:
    return Settings()
