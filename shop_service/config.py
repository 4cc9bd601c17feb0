from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Настройки приложения"""

    # App
    app_name: str = "Shop Service"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    # Database: либо полный URL, либо набор параметров
    database_url: Optional[str] = None
    database_protocol: str = "postgresql+asyncpg"
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "shop_db"
    database_user: str = "shop"
    database_password: str = "shop"

    # JWT
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 60

    # Kafka
    kafka_bootstrap_servers: str = "localhost:9092"
    email_topic: str = "send_email"

    # Pagination
    default_pagination_page_size: int = 20

    # CORS
    allowed_origins: List[str] = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

    @property
    def sqlalchemy_database_url(self) -> str:
        """Собирает URL подключения к БД"""
        if self.database_url:
            return self.database_url
        return (
            f"{self.database_protocol}://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )


settings = Settings()
