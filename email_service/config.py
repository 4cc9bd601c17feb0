from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    app_name: str = "Email Service"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8001

    # Kafka настройки
    kafka_bootstrap_servers: str = "localhost:9092"
    kafka_group_id: str = "email-service"
    kafka_auto_offset_reset: str = "earliest"

    # Топики для подписки
    kafka_topics: List[str] = ["send_email"]

    # SMTP relay
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = False
    smtp_start_tls: bool = True
    smtp_timeout: int = 30
    smtp_from_email: str = "no-reply@shop.local"
    smtp_from_name: str = "Excited User"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
