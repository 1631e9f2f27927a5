# Файл: src/segment_data_client/config.py

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

# --- 1. Настройки PostgreSQL ---
class PostgresConfig(BaseModel):
    user: str = "postgres"
    password: str = "postgres"
    host: str = "localhost"
    port: int = 5432
    db: str = "segments"

    pool_size: int = 5
    max_overflow: int = 5
    pool_timeout: int = 30
    pool_recycle: int = 1800
    pool_pre_ping: bool = True
    application_name: str = "segment_data_client"

    def get_pg_dsn(self) -> str:
        """Собирает DSN для SQLAlchemy из полей этого объекта."""
        return f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.db}"


# --- 2. Явная конфигурация для фабрики клиента ---
class SegmentClientConfig(BaseModel):
    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    log_level: str = "INFO"


# --- 3. Настройки из .env / окружения ---
class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        # POSTGRES__HOST, POSTGRES__POOL_SIZE и т.д.
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)

    def to_client_config(self) -> SegmentClientConfig:
        return SegmentClientConfig(postgres=self.postgres, log_level=self.log_level)


_cached_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Возвращает синглтон-экземпляр настроек, создавая его при первом вызове.
    Это предотвращает ошибки валидации при импорте.
    """
    global _cached_settings
    if _cached_settings is None:
        _cached_settings = Settings()
    return _cached_settings
