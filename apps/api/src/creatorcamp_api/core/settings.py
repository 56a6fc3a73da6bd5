from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "sqlite+aiosqlite:///./creatorcamp.db"
    database_echo: bool = False

    # Application URLs
    frontend_url: str = "http://localhost:3000"
    api_base_url: str = "http://localhost:8000"

    # Internal API security
    admin_api_key: str = ""

    # Reputation ledger
    upload_default_points: int = Field(default=5, ge=0)
    first_upload_bonus_points: int = Field(default=5, ge=0)
    delivery_confirmation_points: int = Field(default=2, ge=0)
    restriction_penalty_threshold: int = Field(default=5, ge=1)
    first_ghosting_penalty: int = Field(default=5, ge=0)
    repeat_missed_deadline_penalty: int = Field(default=1, ge=0)

    # Terminal state override (undo-missed)
    terminal_override_enabled: bool = True
    terminal_override_min_reason_length: int = 10

    # Chat lifecycle reaper
    chat_reaper_enabled: bool = False
    chat_reaper_interval_seconds: int = 60 * 60
    chat_reaper_lease_seconds: int = 15 * 60
    chat_reaper_holder_label: str | None = None

    # Chat attachment storage
    chat_storage_bucket: str | None = None
    chat_storage_prefix: str = "chat-rooms"
    chat_storage_region: str | None = None
    chat_storage_endpoint: str | None = None
    chat_storage_force_path_style: bool = False

    # Email / notification settings
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    smtp_sender_email: str | None = None
    notification_bcc_recipients: list[str] = Field(default_factory=list)

    @field_validator("notification_bcc_recipients", mode="before")
    @classmethod
    def _parse_recipient_list(cls, value: object) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, (list, tuple, set)):
            return [str(item).strip() for item in value if str(item).strip()]
        return []


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
