from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Staff Messaging"
    debug: bool = False

    # Storage
    database_url: str = f"sqlite:///{Path(__file__).resolve().parent.parent.parent / 'messaging.db'}"

    # Cache
    cache_backend: str = "memory"  # memory | redis | none
    redis_url: str = ""
    cache_prefix: str = "messaging:"
    conversation_list_ttl: int = 30
    last_message_ttl: int = 60
    message_list_ttl: int = 5
    participant_info_ttl: int = 3600
    unread_count_ttl: int = 10

    # Directory
    admin_sentinel: str = "admin"
    admin_display_name: str = "Management"
    employee_placeholder_name: str = "Employee"
    storage_public_url: str = "/storage"

    # Notifications
    notification_webhook_url: str = ""
    notification_timeout: float = 5.0
    notification_workers: int = 2
    notification_preview_length: int = 50

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["*"]

    model_config = {
        "env_file": str(Path(__file__).resolve().parent.parent.parent / ".env"),
        "env_prefix": "MESSAGING_",
    }


settings = Settings()
